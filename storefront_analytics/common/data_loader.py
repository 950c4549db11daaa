"""
Data Loading and Validation Module
===================================

Loads store extracts (orders, order items, products, customers, user
sessions) from CSV or JSON files or uploaded bytes and validates them
against the column sets the analytics need.

Usage:
    from storefront_analytics.common import DataLoader

    loader = DataLoader()
    orders = loader.load_csv("data/orders.csv", date_columns=["created_at"])

    # Validate data
    is_valid, report = loader.validate_data(orders, schema="orders")
"""

from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd
from loguru import logger

from .settings import DEFAULT_SETTINGS

SCHEMAS: Dict[str, Dict[str, List[str]]] = {
    'orders': {
        'required': ['id', 'status', 'total_amount', 'created_at'],
        'numeric': ['subtotal', 'tax_amount', 'shipping_amount', 'total_amount'],
        'datetime': ['created_at'],
    },
    'order_items': {
        'required': ['order_id', 'product_name', 'quantity', 'total_price'],
        'numeric': ['quantity', 'unit_price', 'total_price'],
        'datetime': ['created_at'],
    },
    'products': {
        'required': ['id', 'name', 'stock_quantity', 'low_stock_threshold'],
        'numeric': ['price', 'cost', 'stock_quantity', 'low_stock_threshold'],
        'datetime': ['created_at'],
    },
    'customers': {
        'required': ['id', 'total_orders', 'total_spent', 'created_at'],
        'numeric': ['total_orders', 'total_spent'],
        'datetime': ['created_at'],
    },
    'user_sessions': {
        'required': ['user_id', 'session_duration', 'created_at'],
        'numeric': ['session_duration'],
        'datetime': ['created_at'],
    },
    'sales': {
        'required': ['date', 'revenue'],
        'numeric': ['revenue'],
        'datetime': ['date'],
    },
}


class DataLoader:
    """
    Data loader with schema validation for store extracts.

    Attributes:
        config (dict): The ``data`` section of the settings
        supported_formats (list): List of supported file formats

    Example:
        >>> loader = DataLoader()
        >>> df = loader.load_csv("orders.csv", date_columns=["created_at"])
        >>> print(f"Loaded {len(df)} records")
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize DataLoader.

        Args:
            config: Settings dictionary (defaults used when None)
        """
        settings = config or DEFAULT_SETTINGS
        self.config = settings.get('data', DEFAULT_SETTINGS['data'])
        self.supported_formats = ['.csv', '.json']
        logger.info("DataLoader initialized")

    def load(self, filepath: Union[str, Path], **kwargs) -> pd.DataFrame:
        """Load a file, picking the reader from its extension."""
        filepath = Path(filepath)
        if filepath.suffix.lower() == '.json':
            return self.load_json(filepath, **kwargs)
        return self.load_csv(filepath, **kwargs)

    def load_csv(
        self,
        filepath: Union[str, Path],
        date_columns: Optional[List[str]] = None,
        parse_dates: bool = True,
        dtype: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> pd.DataFrame:
        """
        Load CSV file with automatic date parsing.

        Args:
            filepath: Path to CSV file
            date_columns: List of column names to parse as dates
            parse_dates: Whether to automatically detect and parse dates
            dtype: Dictionary of column dtypes
            **kwargs: Additional arguments passed to pd.read_csv

        Returns:
            DataFrame with loaded and parsed data

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is unsupported
        """
        filepath = self._check_path(filepath)
        if filepath.suffix.lower() != '.csv':
            raise ValueError(f"Unsupported format for CSV loader: {filepath.suffix}")

        logger.info(f"Loading data from {filepath}")
        df = pd.read_csv(filepath, dtype=dtype, low_memory=False, **kwargs)
        return self._finish(df, date_columns, parse_dates)

    def load_json(
        self,
        filepath: Union[str, Path],
        date_columns: Optional[List[str]] = None,
        parse_dates: bool = True,
        **kwargs
    ) -> pd.DataFrame:
        """
        Load a JSON array of records, as exported from the database.

        Args:
            filepath: Path to JSON file
            date_columns: List of column names to parse as dates
            parse_dates: Whether to automatically detect and parse dates
            **kwargs: Additional arguments passed to pd.read_json

        Returns:
            DataFrame with loaded data
        """
        filepath = self._check_path(filepath)

        logger.info(f"Loading JSON from {filepath}")
        df = pd.read_json(filepath, orient=kwargs.pop('orient', 'records'),
                          convert_dates=False, **kwargs)
        return self._finish(df, date_columns, parse_dates)

    def load_bytes(
        self,
        contents: bytes,
        date_columns: Optional[List[str]] = None,
        parse_dates: bool = True
    ) -> pd.DataFrame:
        """
        Load CSV content from an upload.

        Raises:
            ValueError: If the content is empty or not parseable as CSV
        """
        if not contents:
            raise ValueError("Uploaded file is empty")
        try:
            df = pd.read_csv(BytesIO(contents))
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise ValueError(f"Could not parse CSV: {e}") from e
        return self._finish(df, date_columns, parse_dates)

    def _check_path(self, filepath: Union[str, Path]) -> Path:
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        if filepath.suffix.lower() not in self.supported_formats:
            raise ValueError(f"Unsupported format: {filepath.suffix}")

        return filepath

    def _finish(
        self,
        df: pd.DataFrame,
        date_columns: Optional[List[str]],
        parse_dates: bool
    ) -> pd.DataFrame:
        if date_columns:
            missing = [c for c in date_columns if c not in df.columns]
            if missing:
                raise ValueError(f"Missing date columns: {missing}")
            for col in date_columns:
                df[col] = pd.to_datetime(df[col], utc=True, errors='coerce', format='ISO8601')
        elif parse_dates:
            df = self._auto_parse_dates(df)

        logger.info(f"Loaded {len(df)} records with {len(df.columns)} columns")
        return df

    def _auto_parse_dates(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Automatically detect and parse date columns.

        Args:
            df: Input DataFrame

        Returns:
            DataFrame with parsed date columns
        """
        date_formats = self.config.get('date_formats', [])

        for col in df.columns:
            if not (pd.api.types.is_object_dtype(df[col])
                    or pd.api.types.is_string_dtype(df[col])):
                continue

            sample = df[col].dropna().head(100)
            if len(sample) == 0:
                continue

            # ISO timestamps with offsets, as the database emits them
            parsed = pd.to_datetime(sample, utc=True, errors='coerce', format='ISO8601')
            if parsed.notna().sum() > len(sample) * 0.8:
                df[col] = pd.to_datetime(df[col], utc=True, errors='coerce', format='ISO8601')
                logger.debug(f"Auto-parsed date column: {col}")
                continue

            for fmt in date_formats:
                parsed = pd.to_datetime(sample, format=fmt, errors='coerce')
                if parsed.notna().sum() > len(sample) * 0.8:
                    df[col] = pd.to_datetime(df[col], format=fmt, errors='coerce')
                    logger.debug(f"Auto-parsed date column: {col}")
                    break

        return df

    def validate_data(
        self,
        df: pd.DataFrame,
        required_columns: Optional[List[str]] = None,
        schema: Optional[str] = None
    ) -> Tuple[bool, Dict[str, Any]]:
        """
        Validate DataFrame against requirements and generate quality report.

        Args:
            df: DataFrame to validate
            required_columns: List of required column names
            schema: Schema name ('orders', 'order_items', 'products',
                'customers', 'user_sessions', 'sales')

        Returns:
            Tuple of (is_valid, validation_report)

        Example:
            >>> is_valid, report = loader.validate_data(df, schema="orders")
            >>> if not is_valid:
            ...     print(report['errors'])
        """
        report = {
            'is_valid': True,
            'errors': [],
            'warnings': [],
            'statistics': {}
        }

        min_points = self.config.get('min_data_points', 2)
        if len(df) < min_points:
            report['errors'].append(f"Insufficient data: {len(df)} < {min_points} required")
            report['is_valid'] = False

        if required_columns:
            missing = set(required_columns) - set(df.columns)
            if missing:
                report['errors'].append(f"Missing required columns: {sorted(missing)}")
                report['is_valid'] = False

        report['statistics'] = {
            'n_rows': len(df),
            'n_columns': len(df.columns),
            'missing_values': df.isna().sum().to_dict(),
        }

        if schema:
            schema_validation = self._validate_schema(df, schema)
            report['errors'].extend(schema_validation['errors'])
            report['warnings'].extend(schema_validation['warnings'])
            if schema_validation['errors']:
                report['is_valid'] = False

        if not report['is_valid']:
            logger.warning(f"Validation failed: {report['errors']}")

        return report['is_valid'], report

    def _validate_schema(self, df: pd.DataFrame, schema: str) -> Dict[str, List[str]]:
        """Validate DataFrame against predefined schemas."""
        result = {'errors': [], 'warnings': []}

        if schema not in SCHEMAS:
            result['warnings'].append(f"Unknown schema: {schema}")
            return result

        schema_def = SCHEMAS[schema]

        missing = set(schema_def['required']) - set(df.columns)
        if missing:
            result['errors'].append(f"Schema '{schema}' missing columns: {sorted(missing)}")

        for col in schema_def['numeric']:
            if col in df.columns and not pd.api.types.is_numeric_dtype(df[col]):
                result['warnings'].append(f"Column '{col}' should be numeric")

        for col in schema_def['datetime']:
            if col in df.columns and not pd.api.types.is_datetime64_any_dtype(df[col]):
                result['warnings'].append(f"Column '{col}' should be datetime")

        return result
