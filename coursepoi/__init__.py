"""Course point-of-interest ingestion, normalization and caching."""

__version__ = "0.1.0"
