"""
Payout platform data types and client errors.

Defines the raw transaction record, the session cookie pair and the
exceptions raised while talking to the platform.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict


class RemoteTransaction(BaseModel):
    """Payout transaction as returned by the platform feed.

    Fields the sync job does not know about are kept, in arrival order,
    in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    payment_method_id: int
    wallet: Optional[str] = None
    amount: Any = None
    total: Any = None
    status: int
    approved_at: Optional[str] = None
    expired_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def extra_fields(self) -> Dict[str, Any]:
        """Unrecognized fields of the record."""
        return dict(self.model_extra or {})


class Session(BaseModel):
    """Authenticated cookie pair for one cabinet."""

    sid: str
    rsid: str
    expires_at: datetime
    cookie_names: Tuple[str, str] = ("sid", "rsid")

    def cookie_header(self) -> str:
        """Render the session as a Cookie header value, under the names it was issued with."""
        sid_name, rsid_name = self.cookie_names
        return f"{sid_name}={self.sid}; {rsid_name}={self.rsid}"


class APIError(Exception):
    """Base exception for platform client errors."""

    pass


class RateLimited(APIError):
    """Raised when the platform keeps answering 429 after all retries."""

    pass


class RequestFailed(APIError):
    """Raised when a request fails with a non-2xx status or a transport error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationFailed(APIError):
    """Raised when login does not yield a usable session."""

    pass


class UnexpectedResponseShape(APIError):
    """Raised when the payout listing body has an unknown structure."""

    pass
