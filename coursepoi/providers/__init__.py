from .errors import ProviderError, ProviderNotConfiguredError, ProviderShapeError
from .golfapi import fetch_coordinates, parse_envelope

__all__ = [
    "ProviderError",
    "ProviderNotConfiguredError",
    "ProviderShapeError",
    "fetch_coordinates",
    "parse_envelope",
]
