"""In-process stand-in for the Gate payout platform, served via httpx.MockTransport."""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx


def make_record(external_id: int, **overrides: Any) -> Dict[str, Any]:
    """Build a payout record as the platform sends it."""
    record: Dict[str, Any] = {
        "id": external_id,
        "payment_method_id": 5000000000 + external_id,
        "wallet": f"wallet-{external_id}",
        "amount": {"trader": {"643": "1500.50"}},
        "total": {"trader": {"643": "1510.75"}},
        "status": 2,
        "approved_at": "2024-05-01T09:00:00Z",
        "expired_at": None,
        "created_at": "2024-05-01T08:55:00.000000Z",
        "updated_at": "2024-05-01T09:00:01.000000Z",
        "method": {"id": 7, "label": "SBP"},
    }
    record.update(overrides)
    return record


class GatePlatform:
    """
    Fake platform keeping one payout feed per login.

    ``feeds[login]`` is a list of pages, each a list of records. Requests
    are recorded in ``calls`` as ``(method, path, params, login)``.
    """

    def __init__(self):
        self.passwords: Dict[str, str] = {}
        self.feeds: Dict[str, List[List[Dict[str, Any]]]] = {}
        self.login_status: Dict[str, int] = {}
        self.calls: List[tuple] = []

    def add_cabinet(
        self,
        login: str,
        password: str = "secret",
        pages: Optional[List[List[Dict[str, Any]]]] = None,
        login_status: int = 200,
    ):
        self.passwords[login] = password
        self.feeds[login] = pages or []
        self.login_status[login] = login_status

    def page_requests(self, login: str) -> List[int]:
        return [
            int(params["page"][0])
            for method, path, params, who in self.calls
            if method == "GET" and who == login
        ]

    def login_requests(self, login: str) -> int:
        return sum(1 for method, _, _, who in self.calls if method == "POST" and who == login)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST" and request.url.path == "/api/v1/auth/basic/login":
            return self._login(request)
        if request.method == "GET" and request.url.path == "/api/v1/payments/payouts":
            return self._payouts(request)
        return httpx.Response(404)

    def _login(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        login = body.get("login")
        self.calls.append(("POST", request.url.path, {}, login))

        status = self.login_status.get(login, 401)
        if status != 200 or self.passwords.get(login) != body.get("password"):
            return httpx.Response(status if status != 200 else 401, json={"error": "denied"})

        return httpx.Response(
            200,
            headers=[
                ("set-cookie", f"sid=sid-{login}; Path=/; HttpOnly"),
                ("set-cookie", f"rsid=rsid-{login}; Path=/; HttpOnly"),
            ],
            json={"ok": True},
        )

    def _payouts(self, request: httpx.Request) -> httpx.Response:
        params = parse_qs(request.url.query.decode())
        cookies = dict(
            part.strip().split("=", 1)
            for part in request.headers.get("cookie", "").split(";")
            if "=" in part
        )
        login = cookies.get("sid", "").removeprefix("sid-")
        self.calls.append(("GET", request.url.path, params, login))

        if login not in self.feeds:
            return httpx.Response(401)

        page = int(params["page"][0])
        pages = self.feeds[login]
        data = pages[page - 1] if page <= len(pages) else []
        return httpx.Response(200, json={"data": data})
