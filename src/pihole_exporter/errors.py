from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class ExporterError(Exception):
    detail: str
    status_code: int = 500
    public_message: str = "Failed to collect metrics"

    def __str__(self) -> str:
        return self.detail


class AuthError(ExporterError):
    """Credential rejected or auth endpoint unreachable. Fatal at startup."""

    def __init__(self, detail: str):
        super().__init__(detail=detail, public_message="Authentication failed")


class FetchError(ExporterError):
    def __init__(self, detail: str):
        super().__init__(detail=detail, public_message="Failed to collect metrics")


class FetchTimeoutError(FetchError):
    pass


class EncodeError(ExporterError):
    def __init__(self, detail: str):
        super().__init__(detail=detail, public_message="Failed to encode metrics")
