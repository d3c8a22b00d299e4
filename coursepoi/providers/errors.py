from __future__ import annotations


class ProviderError(RuntimeError):
    """Transport-level failure talking to an upstream data provider."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderShapeError(ProviderError):
    """Provider answered but the response envelope is unusable."""


class ProviderNotConfiguredError(ProviderError):
    """No credentials or provider id available, so no request was made."""
