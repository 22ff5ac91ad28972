"""
Gate panel API client.

Logs a cabinet in and reads pages of its payout feed.
"""

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from payout_sync.transactions.clients.base import (
    APIError,
    AuthenticationFailed,
    RemoteTransaction,
    Session,
    UnexpectedResponseShape,
)
from payout_sync.transactions.clients.fetcher import RateLimitedFetcher
from payout_sync.transactions.config import SyncConfig

logger = structlog.get_logger()

LOGIN_PATH = "/api/v1/auth/basic/login"
PAYOUTS_PATH = "/api/v1/payments/payouts"


class GateClient:
    """Client for the payout platform, built on a rate-limited fetcher."""

    def __init__(self, fetcher: RateLimitedFetcher, config: Optional[SyncConfig] = None):
        """
        Initialize the client.

        Args:
            fetcher: Fetcher used for every request
            config: Sync configuration (base URL, cookie names, status filter)
        """
        self.fetcher = fetcher
        self.config = config or SyncConfig()
        self.base_url = self.config.base_url.rstrip("/")

    async def login(self, login: str, password: str) -> Session:
        """
        Exchange credentials for a session.

        Args:
            login: Cabinet login
            password: Cabinet password

        Returns:
            Fresh session cookie pair

        Raises:
            AuthenticationFailed: Login request failed or cookies are missing
        """
        # Sessions are per cabinet; never send a previous cabinet's cookies
        self.fetcher.client.cookies.clear()
        try:
            response = await self.fetcher.request(
                "POST",
                f"{self.base_url}{LOGIN_PATH}",
                json={"login": login, "password": password},
            )
        except APIError as e:
            raise AuthenticationFailed(f"Login failed: {e}") from e

        raw_cookies = response.headers.get_list("set-cookie")
        if not raw_cookies:
            raise AuthenticationFailed("No cookies received after login")

        cookies = parse_set_cookie_headers(raw_cookies)
        sid_name, rsid_name = self.config.session_cookie_names
        if sid_name not in cookies or rsid_name not in cookies:
            raise AuthenticationFailed(
                f"Missing required cookies ({sid_name} and/or {rsid_name})"
            )

        return Session(
            sid=cookies[sid_name],
            rsid=cookies[rsid_name],
            cookie_names=(sid_name, rsid_name),
            expires_at=datetime.now(timezone.utc)
            + timedelta(seconds=self.config.session_ttl_seconds),
        )

    async def fetch_payouts_page(self, session: Session, page: int) -> List[RemoteTransaction]:
        """
        Fetch one page of the payout feed.

        Args:
            session: Authenticated session
            page: 1-based page number

        Returns:
            Transactions on the page, in feed order

        Raises:
            RateLimited / RequestFailed: From the fetcher
            UnexpectedResponseShape: Body is not a known payout listing
        """
        params: List[tuple[str, Any]] = [
            ("filters[status][]", status) for status in self.config.payout_statuses
        ]
        params.append(("page", page))

        response = await self.fetcher.request(
            "GET",
            f"{self.base_url}{PAYOUTS_PATH}",
            params=params,
            headers={"Cookie": session.cookie_header()},
        )

        try:
            body = json.loads(response.content, parse_float=Decimal)
        except ValueError as e:
            raise UnexpectedResponseShape(f"Payout page {page} is not JSON") from e

        records = extract_payout_records(body)
        try:
            return [RemoteTransaction.model_validate(record) for record in records]
        except ValidationError as e:
            raise UnexpectedResponseShape(
                f"Payout page {page} holds an invalid record: {e}"
            ) from e


def parse_set_cookie_headers(headers: List[str]) -> Dict[str, str]:
    """Map cookie names to values from raw Set-Cookie header values."""
    cookies: Dict[str, str] = {}
    for header in headers:
        pair = header.split(";", 1)[0]
        name, _, value = pair.partition("=")
        cookies[name.strip()] = value.strip()
    return cookies


def extract_payout_records(body: Any) -> List[Dict[str, Any]]:
    """
    Pull the record list out of a payout listing body.

    Accepts ``{"data": [...]}`` and ``{"response": {"payouts": {"data": [...]}}}``.
    """
    if isinstance(body, dict):
        data = body.get("data")
        if isinstance(data, list):
            return data

        nested = body.get("response")
        if isinstance(nested, dict):
            payouts = nested.get("payouts")
            if isinstance(payouts, dict) and isinstance(payouts.get("data"), list):
                return payouts["data"]

    raise UnexpectedResponseShape("Unexpected payout listing structure")
