"""Copy Translated Content: copy content elements between pages and languages."""

__version__ = "1.0.0"
