import pytest

from sparkstats.services.spotify_auth import (
    SCOPES,
    AuthConfigurationError,
    AuthSessionManager,
    Authorized,
    Authorizing,
    Failed,
    Idle,
)
from sparkstats.services.credential_store import CredentialStoreError, InMemoryCredentialStore
from sparkstats.services.token_store import TOKEN_KEY, TokenStore, TokenStoreError


def make_manager(token_store, flow, *, client_id: str = "client-id") -> AuthSessionManager:
    return AuthSessionManager(
        token_store,
        flow,
        client_id=client_id,
        redirect_uri="http://127.0.0.1:8888/api/spotify-auth/callback",
    )


def record_states(manager: AuthSessionManager) -> list:
    states: list = []
    manager.subscribe(states.append)
    return states


async def sign_in(manager: AuthSessionManager, flow, session) -> None:
    flow.callback_outcome = session
    manager.start_authorization()
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=abc")


@pytest.mark.asyncio
async def test_successful_sign_in_sequence(token_store, fake_flow, make_session) -> None:
    manager = make_manager(token_store, fake_flow)
    states = record_states(manager)
    session = make_session()
    fake_flow.callback_outcome = session
    presented: list[str] = []

    manager.start_authorization(presented.append)
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=abc")

    assert states == [Idle(), Authorizing(), Authorized(session)]
    assert presented == ["https://accounts.example.com/authorize?attempt=1"]
    assert fake_flow.initiated == [SCOPES]
    assert token_store.load_token() == session.token
    assert manager.current_session is session
    assert manager.is_authorized


@pytest.mark.asyncio
async def test_failed_sign_in_sequence(token_store, fake_flow) -> None:
    manager = make_manager(token_store, fake_flow)
    states = record_states(manager)
    error = RuntimeError("access_denied")
    fake_flow.callback_outcome = error

    manager.start_authorization()
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?error=x")

    assert states == [Idle(), Authorizing(), Failed(error)]
    assert token_store.has_valid_token() is False
    assert manager.pending_authorization_url is None


@pytest.mark.asyncio
async def test_failed_callback_keeps_stored_token(token_store, fake_flow, make_token) -> None:
    token = make_token()
    token_store.save_token(token)
    manager = make_manager(token_store, fake_flow)
    fake_flow.callback_outcome = RuntimeError("boom")

    manager.start_authorization()
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback")

    assert isinstance(manager.state, Failed)
    assert token_store.load_token() == token


@pytest.mark.asyncio
async def test_duplicate_start_is_ignored(token_store, fake_flow, make_session) -> None:
    manager = make_manager(token_store, fake_flow)
    states = record_states(manager)
    fake_flow.callback_outcome = make_session()

    manager.start_authorization()
    manager.start_authorization()
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=abc")

    assert len(fake_flow.initiated) == 1
    assert [type(state) for state in states] == [Idle, Authorizing, Authorized]


def test_missing_client_id_fails_fast(token_store, fake_flow) -> None:
    manager = make_manager(token_store, fake_flow, client_id="")
    states = record_states(manager)

    manager.start_authorization()

    assert len(states) == 2
    assert isinstance(states[-1], Failed)
    assert isinstance(states[-1].error, AuthConfigurationError)
    assert fake_flow.initiated == []


def test_initiate_failure_moves_to_failed(token_store, fake_flow) -> None:
    def broken(scopes):
        raise RuntimeError("cannot build url")

    fake_flow.initiate_session = broken
    manager = make_manager(token_store, fake_flow)

    manager.start_authorization()

    assert isinstance(manager.state, Failed)
    assert str(manager.state.error) == "cannot build url"


@pytest.mark.asyncio
async def test_sign_out_returns_to_idle(token_store, fake_flow, make_session) -> None:
    manager = make_manager(token_store, fake_flow)
    fake_flow.callback_outcome = make_session()
    manager.start_authorization()
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=abc")
    assert isinstance(manager.state, Authorized)

    manager.sign_out()

    assert manager.state == Idle()
    assert manager.current_session is None
    assert token_store.has_valid_token() is False
    assert manager.is_authorized is False


def test_sign_out_without_token_succeeds(token_store, fake_flow) -> None:
    manager = make_manager(token_store, fake_flow)

    manager.sign_out()
    manager.sign_out()

    assert manager.state == Idle()


def test_load_stored_session_with_valid_token_stays_idle(token_store, fake_flow, make_token) -> None:
    token_store.save_token(make_token())

    manager = make_manager(token_store, fake_flow)

    assert manager.state == Idle()
    assert manager.current_session is None
    assert token_store.has_valid_token() is True
    assert manager.is_authorized is True


def test_load_stored_session_deletes_expired_token(memory_store, token_store, fake_flow, make_token) -> None:
    token_store.save_token(make_token(expires_in=-30))

    make_manager(token_store, fake_flow)

    assert not memory_store.exists(TOKEN_KEY)


def test_load_stored_session_deletes_unreadable_token(memory_store, token_store, fake_flow) -> None:
    memory_store.put_raw(TOKEN_KEY, b"garbage")

    manager = make_manager(token_store, fake_flow)

    assert not memory_store.exists(TOKEN_KEY)
    assert manager.state == Idle()


@pytest.mark.asyncio
async def test_is_authorized_with_live_session_only(token_store, fake_flow, make_session) -> None:
    manager = make_manager(token_store, fake_flow)
    fake_flow.callback_outcome = make_session()
    manager.start_authorization()
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=abc")

    token_store.delete_token()

    assert token_store.has_valid_token() is False
    assert manager.is_authorized is True


@pytest.mark.asyncio
async def test_renew_session_replaces_session_and_token(
    token_store, fake_flow, make_session, make_token
) -> None:
    manager = make_manager(token_store, fake_flow)
    first = make_session(make_token(access_token="old", refresh_token="refresh-old"))
    fake_flow.callback_outcome = first
    manager.start_authorization()
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=abc")
    renewed = make_session(make_token(access_token="new", refresh_token="refresh-old"), "session-2")
    fake_flow.renew_outcome = renewed

    await manager.renew_session()

    assert fake_flow.renewed_with == ["refresh-old"]
    assert manager.state == Authorized(renewed)
    assert manager.get_current_access_token() == "new"


@pytest.mark.asyncio
async def test_renew_failure_moves_to_failed(token_store, fake_flow, make_session) -> None:
    manager = make_manager(token_store, fake_flow)
    fake_flow.callback_outcome = make_session()
    manager.start_authorization()
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=abc")
    error = RuntimeError("invalid_grant")
    fake_flow.renew_outcome = error

    await manager.renew_session()

    assert manager.state == Failed(error)
    assert token_store.has_valid_token() is True


@pytest.mark.asyncio
async def test_renew_without_session_does_nothing(token_store, fake_flow) -> None:
    manager = make_manager(token_store, fake_flow)

    await manager.renew_session()

    assert fake_flow.renewed_with == []
    assert manager.state == Idle()


def test_unsubscribe_stops_delivery(token_store, fake_flow) -> None:
    manager = make_manager(token_store, fake_flow, client_id="")
    states: list = []
    unsubscribe = manager.subscribe(states.append)

    unsubscribe()
    manager.start_authorization()

    assert states == [Idle()]


def test_token_accessors_return_none_without_token(token_store, fake_flow) -> None:
    manager = make_manager(token_store, fake_flow)

    assert manager.get_current_access_token() is None
    assert manager.get_current_refresh_token() is None


@pytest.mark.asyncio
async def test_stray_callback_keeps_authorized_session(
    token_store, fake_flow, make_session
) -> None:
    manager = make_manager(token_store, fake_flow)
    session = make_session()
    await sign_in(manager, fake_flow, session)
    states = record_states(manager)

    fake_flow.callback_outcome = RuntimeError("No Spotify authorization is in progress")
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=x&state=y")
    fake_flow.callback_outcome = make_session(session_id="session-2")
    await manager.handle_callback("http://127.0.0.1:8888/api/spotify-auth/callback?code=x&state=y")

    assert states == [Authorized(session)]
    assert manager.current_session is session


def test_unrequested_renewal_is_ignored(token_store, fake_flow, make_session) -> None:
    manager = make_manager(token_store, fake_flow)

    manager.session_renewed(make_session())

    assert manager.state == Idle()
    assert manager.current_session is None
    assert token_store.has_valid_token() is False


@pytest.mark.asyncio
async def test_persist_failure_moves_to_failed(fake_flow, make_session) -> None:
    class ReadOnlyStore(InMemoryCredentialStore):
        def save(self, data: bytes, key: str) -> None:
            raise CredentialStoreError("read-only")

    token_store = TokenStore(ReadOnlyStore())
    manager = make_manager(token_store, fake_flow)

    await sign_in(manager, fake_flow, make_session())

    assert isinstance(manager.state, Failed)
    assert isinstance(manager.state.error, TokenStoreError)
    assert manager.current_session is None
    assert manager.is_authorized is False


def test_load_stored_session_deletes_out_of_range_expiry(memory_store, token_store, fake_flow) -> None:
    memory_store.save(
        b'{"access_token":"a","refresh_token":"r","expiration_date":1e400}', TOKEN_KEY
    )

    manager = make_manager(token_store, fake_flow)

    assert manager.state == Idle()
    assert not memory_store.exists(TOKEN_KEY)
