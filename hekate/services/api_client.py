"""
REST client for the Hekate API.

Thin wrapper over httpx: attaches the stored bearer token, encodes JSON or
multipart bodies, parses JSON responses and raises ApiRequestError on any
non-2xx status. It does not retry; callers decide what a failure means.
"""
import logging
from pathlib import Path
from typing import Any, Optional, Sequence

import httpx

from hekate.core.auth import TokenStore
from hekate.core.config import settings
from hekate.domain.exceptions import ApiRequestError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Request failed"


class UploadFile:
    """A local file to send as one part of a multipart request."""

    def __init__(self, field: str, path: str):
        self.field = field
        self.path = path

    @property
    def file_name(self) -> str:
        return Path(self.path).name or "image.jpg"

    @property
    def mime_type(self) -> str:
        suffix = Path(self.file_name).suffix.lstrip(".").lower()
        return f"image/{suffix}" if suffix else "image/jpeg"

    def as_httpx(self) -> tuple[str, tuple[str, bytes, str]]:
        local_path = self.path[len("file://"):] if self.path.startswith("file://") else self.path
        return self.field, (self.file_name, Path(local_path).read_bytes(), self.mime_type)


def form_fields(body: Optional[dict]) -> list[tuple[str, tuple[None, str]]]:
    """
    Multipart text parts for ``body``; list values repeat the field name.

    Sent as file-style parts without a filename so httpx encodes the
    request as multipart even when no file is attached.
    """
    fields = []
    for name, value in (body or {}).items():
        values = value if isinstance(value, (list, tuple)) else [value]
        fields.extend((name, (None, str(item))) for item in values)
    return fields


class ApiClient:
    """
    Async HTTP client bound to the configured API base URL.

    Usage:
        async with ApiClient() as api:
            dreams = await api.get("/dreams?archived=false")
    """

    def __init__(
        self,
        base_url: str | None = None,
        token_store: TokenStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root (defaults to EXPO_PUBLIC_API_URL)
            token_store: Where the bearer token is read from
            transport: Optional httpx transport (tests pass a MockTransport)
            timeout: Request timeout in seconds
        """
        self.base_url = (base_url or settings.EXPO_PUBLIC_API_URL).rstrip("/")
        self.token_store = token_store or TokenStore()
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def _headers(self, authenticated: bool) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if authenticated:
            token = self.token_store.get_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        files: Optional[Sequence[UploadFile]] = None,
        multipart: bool = False,
        authenticated: bool = True,
    ) -> Any:
        """
        Send a request and return the parsed JSON body.

        A ``body`` dict together with ``files`` (or with ``multipart``) is
        sent as multipart form fields; otherwise it is sent as JSON.

        Raises:
            ApiRequestError: On any non-2xx response
            httpx.HTTPError: On transport failures (wrapped by the API layer)
        """
        kwargs: dict[str, Any] = {"headers": self._headers(authenticated)}
        if files or multipart:
            kwargs["files"] = form_fields(body) + [upload.as_httpx() for upload in files or ()]
        elif body is not None:
            kwargs["json"] = body

        logger.debug(f"{method} {endpoint}")
        response = await self._client.request(method, endpoint, **kwargs)
        data = self._parse(response)

        if response.is_error:
            message = DEFAULT_ERROR_MESSAGE
            if isinstance(data, dict):
                message = data.get("error") or data.get("message") or DEFAULT_ERROR_MESSAGE
            logger.warning(f"{method} {endpoint} failed with {response.status_code}: {message}")
            raise ApiRequestError(message, status_code=response.status_code, payload=data)

        return data

    @staticmethod
    def _parse(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def get(self, endpoint: str, authenticated: bool = True) -> Any:
        return await self.request("GET", endpoint, authenticated=authenticated)

    async def post(self, endpoint: str, body: Any = None, files=None, authenticated: bool = True) -> Any:
        return await self.request("POST", endpoint, body=body, files=files, authenticated=authenticated)

    async def put(self, endpoint: str, body: Any = None, authenticated: bool = True) -> Any:
        return await self.request("PUT", endpoint, body=body, authenticated=authenticated)

    async def patch(
        self, endpoint: str, body: Any = None, files=None, multipart: bool = False, authenticated: bool = True
    ) -> Any:
        return await self.request(
            "PATCH", endpoint, body=body, files=files, multipart=multipart, authenticated=authenticated
        )

    async def delete(self, endpoint: str, authenticated: bool = True) -> Any:
        return await self.request("DELETE", endpoint, authenticated=authenticated)
