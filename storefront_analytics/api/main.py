"""
Storefront Analytics API
========================

FastAPI endpoints for the sales dashboard.

Usage:
    uvicorn storefront_analytics.api.main:app --reload

Endpoints:
    POST /forecast - Forecast from an already aggregated series
    POST /forecast/upload - Aggregate an orders CSV and forecast it
    POST /summary/orders - Revenue and order value from an orders CSV
    POST /summary/dashboard - Dashboard tiles from orders, customers, products
    GET /health - Health check
"""

from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
import pandas as pd
from pydantic import BaseModel, Field

from storefront_analytics import __version__
from storefront_analytics.common import DataLoader, Preprocessor, SalesSummarizer, load_settings
from storefront_analytics.common.data_loader import SCHEMAS
from storefront_analytics.common.settings import cors_origins
from storefront_analytics.sales_prediction import (
    ForecastError,
    HistoricalPoint,
    fit_trend,
    forecast,
)

PeriodName = Literal['daily', 'weekly', 'monthly']

# ten years of days
MAX_HORIZON = 3660

settings = load_settings()
forecast_settings = settings['forecast']

app = FastAPI(
    title="Storefront Analytics API",
    description="Sales forecasting and KPIs for the store dashboard",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(settings),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class HistoryItem(BaseModel):
    date: date
    value: float = Field(allow_inf_nan=False)


class ForecastRequest(BaseModel):
    history: List[HistoryItem]
    horizon: int = Field(forecast_settings['horizon'], le=MAX_HORIZON)
    period: PeriodName = forecast_settings['period']
    pattern_window: int = Field(forecast_settings['pattern_window'], ge=1)
    decimals: int = Field(forecast_settings['decimals'], ge=0, le=6)


class ForecastItem(BaseModel):
    date: date
    forecast_value: float


class ForecastResponse(BaseModel):
    status: str
    forecast: List[ForecastItem]
    model_info: dict


class HealthResponse(BaseModel):
    status: str
    version: str


def _forecast_or_422(history: List[HistoricalPoint], horizon: int, period: str,
                     pattern_window: int, decimals: int):
    try:
        return forecast(
            history, horizon,
            period=period,
            pattern_window=pattern_window,
            decimals=decimals,
            strict=True
        )
    except ForecastError as e:
        logger.warning(f"Forecast rejected: {e}")
        raise HTTPException(status_code=422, detail=str(e))


async def _read_upload(file: UploadFile, schema: str, required: Optional[List[str]] = None) -> pd.DataFrame:
    contents = await file.read()
    try:
        df = DataLoader(settings).load_bytes(contents, parse_dates=False)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    required = required or SCHEMAS[schema]['required']
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise HTTPException(status_code=400, detail=f"Missing columns in {schema}: {missing}")
    return df


async def _read_orders(file: UploadFile) -> pd.DataFrame:
    return await _read_upload(file, 'orders', ['status', 'total_amount', 'created_at'])


# Health check
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@app.post("/forecast", response_model=ForecastResponse)
async def generate_forecast(request: ForecastRequest):
    """
    Forecast the periods following an aggregated revenue series.

    History must be in ascending date order, one item per period.
    """
    history = [HistoricalPoint(date=item.date, value=item.value) for item in request.history]
    dates = [p.date for p in history]
    if any(later <= earlier for earlier, later in zip(dates, dates[1:])):
        raise HTTPException(
            status_code=422,
            detail="History dates must be strictly increasing"
        )

    points = _forecast_or_422(
        history, request.horizon, request.period,
        request.pattern_window, request.decimals
    )

    return {
        "status": "success",
        "forecast": [p.to_dict() for p in points],
        "model_info": {
            "type": "TrendPattern",
            "period": request.period,
            "horizon": request.horizon,
            "pattern_window": request.pattern_window,
            "n_observations": len(history),
        },
    }


@app.post("/forecast/upload")
async def forecast_from_orders(
    file: UploadFile = File(...),
    period: PeriodName = Query(forecast_settings['period']),
    horizon: int = Query(forecast_settings['horizon'], le=MAX_HORIZON),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None)
):
    """
    Aggregate delivered orders from an uploaded CSV and forecast them.

    Expected CSV format:
    - created_at: Order timestamp
    - status: Order status
    - total_amount: Order total
    """
    orders = await _read_orders(file)

    try:
        preprocessor = Preprocessor(settings['data']['delivered_status'])
        sales = preprocessor.aggregate_sales(
            orders, period,
            start=start, end=end,
            fill_missing=forecast_settings['fill_missing_periods']
        )
        history = preprocessor.to_history(sales)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    points = _forecast_or_422(
        history, horizon, period,
        forecast_settings['pattern_window'], forecast_settings['decimals']
    )

    try:
        slope, intercept = fit_trend([p.value for p in history])

        chart = preprocessor.merge_forecast(sales, points)
        chart['date'] = chart['date'].dt.strftime('%Y-%m-%d')

        return {
            "status": "success",
            "period": period,
            "history": [p.to_dict() for p in history],
            "forecast": [p.to_dict() for p in points],
            "chart": chart.to_dict('records'),
            "model_info": {
                "type": "TrendPattern",
                "period": period,
                "horizon": horizon,
                "pattern_window": forecast_settings['pattern_window'],
                "slope": slope,
                "intercept": intercept,
                "n_observations": len(history),
            },
        }

    except Exception as e:
        logger.error(f"Forecast error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/summary/orders")
async def summarize_orders(
    file: UploadFile = File(...),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None)
):
    """
    Revenue, order count and average order value of delivered orders.

    Expected CSV format:
    - created_at: Order timestamp
    - status: Order status
    - total_amount: Order total
    """
    orders = await _read_orders(file)

    summarizer = SalesSummarizer(settings['data']['delivered_status'])
    delivered = summarizer.delivered_orders(orders, start=start, end=end)

    return {
        "status": "success",
        "metrics": summarizer.order_metrics(delivered),
    }


@app.post("/summary/dashboard")
async def summarize_dashboard(
    orders_file: UploadFile = File(...),
    customers_file: UploadFile = File(...),
    products_file: UploadFile = File(...),
    sessions_file: Optional[UploadFile] = File(None),
    as_of: Optional[datetime] = Query(None)
):
    """
    Dashboard tiles, customer and inventory panels from store extracts.

    Upload orders, customers and products CSVs; a user sessions CSV
    adds the dashboard usage panel.
    """
    orders = await _read_orders(orders_file)
    customers = await _read_upload(customers_file, 'customers')
    products = await _read_upload(products_file, 'products')

    summarizer = SalesSummarizer(settings['data']['delivered_status'])
    result = {
        "status": "success",
        "dashboard": summarizer.dashboard_metrics(orders, customers, products, as_of=as_of),
        "customers": summarizer.customer_metrics(customers, as_of=as_of),
        "customer_growth": summarizer.customer_growth(customers),
        "inventory": {
            "total_value": summarizer.inventory_value(products) if 'price' in products.columns else None,
            "low_stock_items": summarizer.low_stock_items(products),
        },
    }

    if sessions_file is not None:
        sessions = await _read_upload(sessions_file, 'user_sessions')
        result["usage"] = summarizer.session_metrics(sessions, as_of=as_of)

    return result


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
