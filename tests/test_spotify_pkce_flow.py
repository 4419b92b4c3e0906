"""Tests for the spotipy-backed authorization flow."""

from urllib.parse import parse_qs, urlparse

import pytest
from spotipy.oauth2 import SpotifyPKCE

from sparkstats.services.spotify_auth import AuthFlowError, Session, SpotifyPKCEFlow

REDIRECT_URI = "http://127.0.0.1:8888/api/spotify-auth/callback"


class RecordingDelegate:
    def __init__(self) -> None:
        self.initiated: list[Session] = []
        self.renewed: list[Session] = []
        self.failures: list[Exception] = []

    def session_initiated(self, session: Session) -> None:
        self.initiated.append(session)

    def session_renewed(self, session: Session) -> None:
        self.renewed.append(session)

    def session_failed(self, error: Exception) -> None:
        self.failures.append(error)


@pytest.fixture
def delegate() -> RecordingDelegate:
    return RecordingDelegate()


@pytest.fixture
def flow(delegate: RecordingDelegate) -> SpotifyPKCEFlow:
    return SpotifyPKCEFlow("client-id", REDIRECT_URI, delegate=delegate)


def _state_of(url: str) -> str:
    return parse_qs(urlparse(url).query)["state"][0]


def test_initiate_session_builds_authorize_url(flow: SpotifyPKCEFlow) -> None:
    url = flow.initiate_session(["user-read-private", "user-top-read"])

    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    assert parsed.netloc == "accounts.spotify.com"
    assert query["client_id"] == ["client-id"]
    assert query["redirect_uri"] == [REDIRECT_URI]
    assert query["code_challenge_method"] == ["S256"]
    assert query["scope"][0].split() == ["user-read-private", "user-top-read"]
    assert query["state"][0]


def test_can_handle_matches_redirect_uri_only(flow: SpotifyPKCEFlow) -> None:
    assert flow.can_handle(f"{REDIRECT_URI}?code=abc&state=xyz")
    assert not flow.can_handle("http://127.0.0.1:8888/other?code=abc")
    assert not flow.can_handle("https://127.0.0.1:8888/api/spotify-auth/callback")


@pytest.mark.asyncio
async def test_handle_ignores_foreign_url(flow: SpotifyPKCEFlow, delegate) -> None:
    handled = await flow.handle("https://example.com/callback?code=abc")

    assert handled is False
    assert delegate.initiated == []
    assert delegate.failures == []


@pytest.mark.asyncio
async def test_handle_exchanges_code_and_reports_session(
    flow: SpotifyPKCEFlow, delegate, monkeypatch
) -> None:
    exchanged: list[str] = []

    def fake_exchange(oauth, code):
        exchanged.append(code)
        return {
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "expires_in": 3600,
            "scope": "user-read-private",
        }

    monkeypatch.setattr(SpotifyPKCEFlow, "_exchange_code", staticmethod(fake_exchange))
    url = flow.initiate_session(["user-read-private"])

    handled = await flow.handle(f"{REDIRECT_URI}?code=abc&state={_state_of(url)}")

    assert handled is True
    assert exchanged == ["abc"]
    assert len(delegate.initiated) == 1
    session = delegate.initiated[0]
    assert session.access_token == "access-1"
    assert session.token.refresh_token == "refresh-1"
    assert session.scope == "user-read-private"
    assert session.session_id
    assert not session.is_expired


@pytest.mark.asyncio
async def test_handle_rejects_state_mismatch(flow: SpotifyPKCEFlow, delegate) -> None:
    flow.initiate_session(["user-read-private"])

    handled = await flow.handle(f"{REDIRECT_URI}?code=abc&state=forged")

    assert handled is True
    assert delegate.initiated == []
    assert len(delegate.failures) == 1
    assert isinstance(delegate.failures[0], AuthFlowError)
    assert "state" in str(delegate.failures[0])


@pytest.mark.asyncio
async def test_handle_without_pending_authorization_is_ignored(
    flow: SpotifyPKCEFlow, delegate
) -> None:
    handled = await flow.handle(f"{REDIRECT_URI}?code=abc&state=xyz")

    assert handled is False
    assert delegate.initiated == []
    assert delegate.failures == []


@pytest.mark.asyncio
async def test_handle_reports_denied_consent(flow: SpotifyPKCEFlow, delegate) -> None:
    url = flow.initiate_session(["user-read-private"])

    await flow.handle(f"{REDIRECT_URI}?error=access_denied&state={_state_of(url)}")

    assert delegate.initiated == []
    assert len(delegate.failures) == 1
    assert isinstance(delegate.failures[0], AuthFlowError)


@pytest.mark.asyncio
async def test_pending_authorization_is_single_use(
    flow: SpotifyPKCEFlow, delegate, monkeypatch
) -> None:
    monkeypatch.setattr(
        SpotifyPKCEFlow,
        "_exchange_code",
        staticmethod(
            lambda oauth, code: {
                "access_token": "a",
                "refresh_token": "r",
                "expires_in": 3600,
            }
        ),
    )
    url = flow.initiate_session(["user-read-private"])
    callback = f"{REDIRECT_URI}?code=abc&state={_state_of(url)}"

    assert await flow.handle(callback) is True
    assert await flow.handle(callback) is False

    assert len(delegate.initiated) == 1
    assert delegate.failures == []


@pytest.mark.asyncio
async def test_renew_session_keeps_refresh_token_when_omitted(
    flow: SpotifyPKCEFlow, delegate, monkeypatch
) -> None:
    refreshed: list[str] = []

    def fake_refresh(self, refresh_token):
        refreshed.append(refresh_token)
        return {"access_token": "access-2", "expires_in": 3600}

    monkeypatch.setattr(SpotifyPKCE, "refresh_access_token", fake_refresh)

    await flow.renew_session("refresh-1")

    assert refreshed == ["refresh-1"]
    assert len(delegate.renewed) == 1
    assert delegate.renewed[0].access_token == "access-2"
    assert delegate.renewed[0].token.refresh_token == "refresh-1"


@pytest.mark.asyncio
async def test_renew_session_reports_failure(
    flow: SpotifyPKCEFlow, delegate, monkeypatch
) -> None:
    def fake_refresh(self, refresh_token):
        raise RuntimeError("invalid_grant")

    monkeypatch.setattr(SpotifyPKCE, "refresh_access_token", fake_refresh)

    await flow.renew_session("refresh-1")

    assert delegate.renewed == []
    assert len(delegate.failures) == 1
    assert isinstance(delegate.failures[0], AuthFlowError)
    assert isinstance(delegate.failures[0].cause, RuntimeError)
