"""HTTP service for the storefront analytics package."""
