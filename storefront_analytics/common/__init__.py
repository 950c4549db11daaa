"""
Common utilities for the storefront analytics package.
"""

from .settings import load_settings, setup_logging
from .data_loader import DataLoader
from .preprocessing import Preprocessor
from .summary import SalesSummarizer

__all__ = ["load_settings", "setup_logging", "DataLoader", "Preprocessor", "SalesSummarizer"]
