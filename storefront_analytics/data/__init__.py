"""Synthetic store data for demos and tests."""

from .sample_data import generate_dataset, generate_products, save_dataset

__all__ = ["generate_dataset", "generate_products", "save_dataset"]
