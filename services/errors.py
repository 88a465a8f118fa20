# services/errors.py
"""
Error taxonomy shared by the ledger and token services.

Services raise these; main.py maps every LedgerError to a JSON response
with `status_code` and the public `detail`. Upstream details stay in logs.
"""
from __future__ import annotations

from typing import Any, Optional


class LedgerError(Exception):
    status_code: int = 400
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotAuthenticated(LedgerError):
    status_code = 401
    default_detail = "User not authenticated"


class NotFound(LedgerError):
    status_code = 404
    default_detail = "Not found"


class ValidationError(LedgerError):
    status_code = 422
    default_detail = "Invalid request"


class ConflictError(LedgerError):
    status_code = 409
    default_detail = "Conflict"


class UpstreamError(LedgerError):
    """External provider call failed or returned an unexpected shape."""

    status_code = 502
    default_detail = "Upstream provider request failed"

    def __init__(
        self,
        context: str,
        *,
        upstream_status: Optional[int] = None,
        body: Any = None,
    ):
        # detail stays generic; context/status/body are for logs only
        super().__init__()
        self.context = context
        self.upstream_status = upstream_status
        self.body = body

    def __str__(self) -> str:
        return f"{self.context} (status={self.upstream_status})"
