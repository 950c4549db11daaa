"""
Forecast Model Evaluation Module
================================

Accuracy metrics and hold-out back-testing for the trend + pattern
forecast.

Usage:
    from storefront_analytics.sales_prediction import ForecastEvaluator

    evaluator = ForecastEvaluator()
    metrics = evaluator.calculate_metrics(actual, predicted)
    report = evaluator.backtest(history, holdout=7)
"""

from typing import Any, Dict, Optional, Sequence

import numpy as np
from loguru import logger
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from .blend_forecaster import HistoricalPoint, forecast


class ForecastEvaluator:
    """
    Evaluation toolkit for sales forecasts.

    Example:
        >>> evaluator = ForecastEvaluator()
        >>> metrics = evaluator.calculate_metrics(actual, predicted)
        >>> print(f"MAPE: {metrics['mape']:.2f}%")
    """

    def __init__(self):
        """Initialize ForecastEvaluator."""
        logger.info("ForecastEvaluator initialized")

    def calculate_metrics(
        self,
        actual: Sequence[float],
        predicted: Sequence[float]
    ) -> Dict[str, float]:
        """
        Calculate forecast evaluation metrics.

        Args:
            actual: Actual values
            predicted: Predicted values

        Returns:
            Dictionary with mse, rmse, mae, r2, mape, smape and bias

        Raises:
            ValueError: If the inputs are empty or differ in length
        """
        actual = np.array(actual, dtype=float).flatten()
        predicted = np.array(predicted, dtype=float).flatten()

        if len(actual) == 0 or len(actual) != len(predicted):
            raise ValueError(
                f"Need equal, non-empty inputs (got {len(actual)} and {len(predicted)})"
            )

        mse = mean_squared_error(actual, predicted)
        metrics = {
            'mse': float(mse),
            'rmse': float(np.sqrt(mse)),
            'mae': float(mean_absolute_error(actual, predicted)),
            # r2 is undefined for a single point
            'r2': float(r2_score(actual, predicted)) if len(actual) > 1 else np.nan,
            'bias': float(np.mean(predicted - actual)),
        }

        # MAPE (avoiding division by zero)
        mask = actual != 0
        if mask.any():
            metrics['mape'] = float(np.mean(np.abs((actual[mask] - predicted[mask]) / actual[mask])) * 100)
        else:
            metrics['mape'] = np.nan

        # sMAPE (symmetric)
        denominator = np.abs(actual) + np.abs(predicted)
        mask = denominator != 0
        if mask.any():
            metrics['smape'] = float(np.mean(2 * np.abs(actual[mask] - predicted[mask]) / denominator[mask]) * 100)
        else:
            metrics['smape'] = np.nan

        return metrics

    def backtest(
        self,
        history: Sequence[HistoricalPoint],
        holdout: int = 7,
        **forecast_kwargs: Any
    ) -> Dict[str, Any]:
        """
        Forecast the last *holdout* periods from the ones before them.

        Args:
            history: Full history, oldest first
            holdout: Number of trailing periods to hold out
            **forecast_kwargs: Passed through to :func:`forecast`

        Returns:
            Dictionary with the train size, actual and predicted values,
            metrics and value added over a naive forecast

        Raises:
            ValueError: If holdout is not positive or leaves fewer than
                two training points
        """
        points = [HistoricalPoint.coerce(p) for p in history]

        if holdout <= 0:
            raise ValueError(f"holdout must be positive, got {holdout}")
        if len(points) - holdout < 2:
            raise ValueError(
                f"Back-test needs at least 2 training points; "
                f"{len(points)} points with holdout={holdout} leaves {len(points) - holdout}"
            )

        train = points[:-holdout]
        test = points[-holdout:]

        predicted = [p.forecast_value for p in forecast(train, holdout, **forecast_kwargs)]
        actual = [p.value for p in test]

        metrics = self.calculate_metrics(actual, predicted)
        # naive forecast made at the same cutoff: the last training value, held flat
        naive = [train[-1].value] * holdout
        fva = self.forecast_value_added(actual, predicted, naive)

        logger.info(
            f"Back-test on {holdout} periods: MAE={metrics['mae']:.2f}, "
            f"RMSE={metrics['rmse']:.2f}"
        )
        return {
            'n_train': len(train),
            'n_test': len(test),
            'dates': [p.date.isoformat() for p in test],
            'actual': actual,
            'predicted': predicted,
            'metrics': metrics,
            'forecast_value_added': fva,
        }

    def forecast_value_added(
        self,
        actual: Sequence[float],
        model_pred: Sequence[float],
        naive_pred: Optional[Sequence[float]] = None
    ) -> Dict[str, float]:
        """
        Calculate Forecast Value Added (FVA) vs naive benchmark.

        Args:
            actual: Actual values
            model_pred: Model predictions
            naive_pred: Naive benchmark predictions (lag-1 if None)

        Returns:
            Dictionary with FVA metrics

        Example:
            >>> fva = evaluator.forecast_value_added(actual, predicted)
            >>> if fva['fva_mae'] > 0:
            ...     print("Model beats the naive forecast")
        """
        actual = np.array(actual, dtype=float).flatten()
        model_pred = np.array(model_pred, dtype=float).flatten()

        if naive_pred is None:
            naive_pred = np.roll(actual, 1)
            naive_pred[0] = actual[0]
        else:
            naive_pred = np.array(naive_pred, dtype=float).flatten()

        model_metrics = self.calculate_metrics(actual, model_pred)
        naive_metrics = self.calculate_metrics(actual, naive_pred)

        fva_mae_pct = 0.0
        if naive_metrics['mae'] != 0:
            fva_mae_pct = ((naive_metrics['mae'] - model_metrics['mae']) / naive_metrics['mae']) * 100

        fva_rmse_pct = 0.0
        if naive_metrics['rmse'] != 0:
            fva_rmse_pct = ((naive_metrics['rmse'] - model_metrics['rmse']) / naive_metrics['rmse']) * 100

        return {
            'model_mae': model_metrics['mae'],
            'naive_mae': naive_metrics['mae'],
            'fva_mae': naive_metrics['mae'] - model_metrics['mae'],
            'fva_mae_pct': fva_mae_pct,
            'model_rmse': model_metrics['rmse'],
            'naive_rmse': naive_metrics['rmse'],
            'fva_rmse': naive_metrics['rmse'] - model_metrics['rmse'],
            'fva_rmse_pct': fva_rmse_pct,
        }
