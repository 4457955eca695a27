"""Authenticated request gateway for the device HTTP API."""

import logging
from typing import AsyncIterator, Callable, Optional

import httpx

from webota.errors import AuthExpiredError
from webota.services.credential_store import CredentialStore
from webota.services.sink import PresentationSink

ProgressCallback = Callable[[int], None]


class _UploadProgressStream(httpx.AsyncByteStream):
    """Wraps a request body and reports the percentage sent so far."""

    def __init__(self, stream, total: int, on_progress: ProgressCallback):
        self._stream = stream
        self._total = total
        self._on_progress = on_progress

    async def __aiter__(self) -> AsyncIterator[bytes]:
        sent = 0
        last_percent = -1
        async for chunk in self._stream:
            sent += len(chunk)
            if self._total > 0:
                percent = min(100, round(sent * 100 / self._total))
                if percent != last_percent:
                    last_percent = percent
                    self._on_progress(percent)
            yield chunk


class RequestGateway:
    """Issues device requests with the session credential attached.

    Every non-401 response is returned unmodified. A 401 from any call
    clears the credential store, sends the sink to the login view and
    raises AuthExpiredError; callers must not retry on their own.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStore,
        sink: Optional[PresentationSink] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize request gateway.

        Args:
            base_url: Device base URL (e.g. http://192.168.4.1)
            credentials: Session credential store
            sink: Presentation sink notified on authentication loss
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests, ASGI apps)
        """
        self.logger = logging.getLogger("webota.gateway")
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.sink = sink or PresentationSink()
        self.timeout = timeout
        self.transport = transport

    async def request(
        self,
        path: str,
        method: str = "GET",
        *,
        authenticated: bool = True,
        show_login: bool = True,
        headers: Optional[dict] = None,
        on_upload_progress: Optional[ProgressCallback] = None,
        **kwargs,
    ) -> httpx.Response:
        """Send a request to the device.

        Args:
            path: Endpoint path (e.g. /ota-progress)
            method: HTTP method
            authenticated: Attach the Authorization header when a token exists
            show_login: Send the sink to the login view on 401 (off for the
                login probe itself)
            headers: Extra request headers
            on_upload_progress: Called with the sent percentage while the
                body is streamed (multipart uploads)
            **kwargs: Passed to httpx (data, files, params, ...)

        Returns:
            httpx.Response for every status except 401

        Raises:
            AuthExpiredError: Device answered 401
            httpx.HTTPError: Network-level failure
        """
        request_headers = dict(headers or {})
        if authenticated:
            auth_header = self.credentials.current_auth_header()
            if auth_header:
                request_headers["Authorization"] = auth_header

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            request = client.build_request(method, path, headers=request_headers, **kwargs)

            if on_upload_progress is not None:
                total = int(request.headers.get("Content-Length", 0))
                request.stream = _UploadProgressStream(
                    request.stream, total, on_upload_progress
                )

            response = await client.send(request)

        self.logger.debug(f"{method} {path} -> {response.status_code}")

        if response.status_code == 401:
            self.logger.warning(f"{method} {path} rejected with 401, clearing session")
            self.credentials.clear()
            if show_login:
                self.sink.show_login()
            raise AuthExpiredError()

        return response

    async def get(self, path: str, **kwargs) -> httpx.Response:
        return await self.request(path, "GET", **kwargs)

    async def post(self, path: str, **kwargs) -> httpx.Response:
        return await self.request(path, "POST", **kwargs)
