# core/errors.py
from typing import Any, Dict


class CatalogError(Exception):
    """
    Base class for every failure the aggregation pipeline reports.
    `kind` is the stable name callers see in the error body.
    """
    kind = "catalog_error"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "details": str(self)}


class TransportError(CatalogError):
    """Connection-level failure: refused, DNS, timeout."""
    kind = "transport_error"


class RemoteAPIError(CatalogError):
    kind = "remote_api_error"

    def __init__(self, status_code: int, body: Any):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Remote API error: {status_code} - {body!r}")

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["statusCode"] = self.status_code
        return out


class RemoteFormatError(CatalogError):
    """Remote response did not have the expected JSON shape."""
    kind = "remote_format_error"


class InvalidPayload(CatalogError):
    kind = "invalid_payload"


class StoreError(CatalogError):
    kind = "store_error"
