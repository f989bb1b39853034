"""Application and framework models, with framework list, export and remove operations."""

__version__ = "0.1.0"