"""Unit tests for SessionService and format_uptime."""

import httpx
import pytest

from webota.errors import AuthExpiredError
from webota.services.gateway import RequestGateway
from webota.services.session import SessionService, format_uptime


def _session(credentials, sink, handler):
    gateway = RequestGateway(
        "http://device.local", credentials, sink=sink, transport=httpx.MockTransport(handler)
    )
    return SessionService(gateway)


@pytest.mark.unit
class TestSessionService:
    """Test SessionService against httpx.MockTransport."""

    @pytest.mark.asyncio
    async def test_login_success(self, credentials, mock_sink):
        def handler(request):
            assert request.url.path == "/status"
            assert request.headers["Authorization"] == "Basic YWRtaW46MTIzNA=="
            return httpx.Response(200, json={"version": "1.2.3", "uptime": 42})

        session = _session(credentials, mock_sink, handler)

        status = await session.login("admin", "1234")

        assert status.version == "1.2.3"
        assert status.uptime == 42
        assert credentials.is_authenticated() is True

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, credentials, mock_sink):
        session = _session(credentials, mock_sink, lambda request: httpx.Response(401))

        with pytest.raises(AuthExpiredError, match="Invalid username or password"):
            await session.login("admin", "wrong")

        assert credentials.is_authenticated() is False
        mock_sink.show_login.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_non_ok_probe_clears_token(self, credentials, mock_sink):
        session = _session(credentials, mock_sink, lambda request: httpx.Response(500))

        with pytest.raises(AuthExpiredError):
            await session.login("admin", "1234")

        assert credentials.is_authenticated() is False

    @pytest.mark.asyncio
    async def test_login_unreachable_device(self, credentials, mock_sink):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        session = _session(credentials, mock_sink, handler)

        with pytest.raises(AuthExpiredError):
            await session.login("admin", "1234")
        assert credentials.is_authenticated() is False

    def test_logout(self, credentials, mock_sink):
        credentials.set("admin", "1234")
        session = _session(credentials, mock_sink, lambda request: httpx.Response(200))

        session.logout()

        assert credentials.is_authenticated() is False

    @pytest.mark.asyncio
    async def test_restore_without_token_skips_probe(self, credentials, mock_sink):
        calls = []
        session = _session(credentials, mock_sink, lambda r: calls.append(r) or httpx.Response(200))

        assert await session.restore() is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_restore_valid_token(self, credentials, mock_sink):
        credentials.set("admin", "1234")
        session = _session(credentials, mock_sink, lambda r: httpx.Response(200, json={}))

        assert await session.restore() is True
        assert credentials.is_authenticated() is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 500])
    async def test_restore_rejected_token(self, credentials, mock_sink, status_code):
        credentials.set("admin", "1234")
        session = _session(credentials, mock_sink, lambda r: httpx.Response(status_code))

        assert await session.restore() is False
        assert credentials.is_authenticated() is False

    @pytest.mark.asyncio
    async def test_load_status_defaults(self, credentials, mock_sink):
        credentials.set("admin", "1234")
        session = _session(
            credentials, mock_sink, lambda r: httpx.Response(200, json={"version": "", "uptime": None})
        )

        status = await session.load_status()

        assert status.version == "-"
        assert status.uptime == 0

    @pytest.mark.asyncio
    async def test_load_status_failure_returns_none(self, credentials, mock_sink):
        session = _session(credentials, mock_sink, lambda r: httpx.Response(200, text="not json"))

        assert await session.load_status() is None

    @pytest.mark.asyncio
    async def test_load_ota_version_is_unauthenticated(self, credentials, mock_sink):
        credentials.set("admin", "1234")
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"version": "0.1.0"})

        session = _session(credentials, mock_sink, handler)

        assert await session.load_ota_version() == "0.1.0"
        assert seen[0].url.path == "/version"
        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_load_ota_version_unknown_on_error(self, credentials, mock_sink):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        session = _session(credentials, mock_sink, handler)

        assert await session.load_ota_version() == "Unknown"


@pytest.mark.unit
class TestFormatUptime:
    """Test format_uptime."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0s"),
            (59, "59s"),
            (61, "1m 1s"),
            (3725, "1h 2m 5s"),
            (93784, "1d 2h 3m"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_uptime(seconds) == expected
