"""Batch website audit engine: technical SEO, on-page, entity trust and hygiene."""

__version__ = "1.0.0"
