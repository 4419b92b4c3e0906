import pathlib
import sys
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from sparkstats.services.credential_store import InMemoryCredentialStore  # noqa: E402
from sparkstats.services.spotify_auth.flow import Session  # noqa: E402
from sparkstats.services.token_store import Token, TokenStore  # noqa: E402


def build_token(
    *,
    expires_in: float = 3600,
    access_token: str = "access-1",
    refresh_token: str = "refresh-1",
) -> Token:
    now = datetime.now(timezone.utc).replace(microsecond=0)
    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        expiration_date=now + timedelta(seconds=expires_in),
    )


class FakeAuthFlow:
    """Platform flow double that reports scripted outcomes to its delegate."""

    def __init__(self) -> None:
        self.delegate = None
        self.initiated: list[tuple[str, ...]] = []
        self.handled: list[str] = []
        self.renewed_with: list[str] = []
        self.callback_outcome: Optional[object] = None
        self.renew_outcome: Optional[object] = None

    def initiate_session(self, scopes: Sequence[str]) -> str:
        self.initiated.append(tuple(scopes))
        return f"https://accounts.example.com/authorize?attempt={len(self.initiated)}"

    async def handle(self, url: str) -> bool:
        self.handled.append(url)
        self._report(self.callback_outcome, self.delegate.session_initiated)
        return True

    async def renew_session(self, refresh_token: str) -> None:
        self.renewed_with.append(refresh_token)
        self._report(self.renew_outcome, self.delegate.session_renewed)

    def _report(self, outcome: Optional[object], on_success: Callable) -> None:
        if isinstance(outcome, Exception):
            self.delegate.session_failed(outcome)
        elif outcome is not None:
            on_success(outcome)


def build_session(token: Optional[Token] = None, session_id: str = "session-1") -> Session:
    return Session(token=token or build_token(), scope="streaming", session_id=session_id)


@pytest.fixture
def memory_store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def token_store(memory_store: InMemoryCredentialStore) -> TokenStore:
    return TokenStore(memory_store)


@pytest.fixture
def fake_flow() -> FakeAuthFlow:
    return FakeAuthFlow()


@pytest.fixture
def make_token() -> Callable[..., Token]:
    return build_token


@pytest.fixture
def make_session() -> Callable[..., Session]:
    return build_session
