"""
Async client for the tracker API.

Every response carries the ``{success, message, data}`` envelope; the client
returns ``data`` and raises ``ApiError`` for transport failures, non-2xx
statuses and ``success: false`` bodies alike.
"""
from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..config import settings

logger = structlog.get_logger(__name__)

# collection name -> list endpoint
COLLECTION_PATHS: Dict[str, str] = {
    "orders": "/orders",
    "buildings": "/buildings",
    "materials": "/materials",
    "splitters": "/splitters",
    "service_installers": "/service-installers",
    "tasks": "/tasks",
    "projects": "/projects",
    "users": "/users",
    "invoices": "/invoices",
    "notifications": "/notifications",
}


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


class CephasClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_url,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "CephasClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def request(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = await self._http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.warning("api_unreachable", method=method, path=path, error=str(e))
            raise ApiError(f"Network error: {e}") from e
        try:
            body = resp.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            if resp.is_success:
                raise ApiError("Malformed response", resp.status_code)
            raise ApiError(resp.reason_phrase or "Request failed", resp.status_code)
        if not resp.is_success or body.get("success") is False:
            message = body.get("message") or body.get("detail") or "Request failed"
            logger.info("api_error", method=method, path=path, status=resp.status_code, message=message)
            raise ApiError(str(message), resp.status_code)
        return body.get("data")

    async def get(self, path: str, **params) -> Any:
        return await self.request("GET", path, params={k: v for k, v in params.items() if v is not None})

    async def post(self, path: str, payload: Optional[dict] = None) -> Any:
        return await self.request("POST", path, json=payload or {})

    async def put(self, path: str, payload: dict) -> Any:
        return await self.request("PUT", path, json=payload)

    async def patch(self, path: str, payload: Optional[dict] = None) -> Any:
        return await self.request("PATCH", path, json=payload or {})

    # ---------- auth ----------
    async def login(self, identifier: str, password: str) -> Dict[str, Any]:
        data = await self.post("/auth/login", {"identifier": identifier, "password": password})
        self.token = data.get("token") if isinstance(data, dict) else None
        return data

    async def me(self) -> Dict[str, Any]:
        return await self.get("/auth/me")

    async def forgot_password(self, email: str) -> None:
        await self.post("/auth/forgot-password", {"email": email})

    async def reset_password(self, token: str, password: str) -> None:
        await self.post("/auth/reset-password", {"token": token, "password": password})

    # ---------- collections ----------
    async def list(self, collection: str, **params) -> List[Any]:
        path = COLLECTION_PATHS.get(collection)
        if path is None:
            raise KeyError(f"Unknown collection: {collection}")
        return await self.get(path, **params)

    async def dashboard(self) -> Dict[str, Any]:
        return await self.get("/dashboard")

    async def notifications(self) -> List[Any]:
        return await self.list("notifications")
