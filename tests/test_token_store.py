from datetime import datetime, timedelta, timezone

import pytest

from sparkstats.services.token_store import (
    TOKEN_KEY,
    Token,
    TokenInvalidError,
    TokenNotFoundError,
    TokenStore,
)


def test_save_then_load_round_trips(token_store: TokenStore, make_token) -> None:
    token = make_token(access_token="a" * 40, refresh_token="r" * 40)

    token_store.save_token(token)
    loaded = token_store.load_token()

    assert loaded.access_token == token.access_token
    assert loaded.refresh_token == token.refresh_token
    assert abs((loaded.expiration_date - token.expiration_date).total_seconds()) < 1


def test_round_trip_keeps_sub_second_precision(token_store: TokenStore) -> None:
    expiration = datetime(2030, 1, 2, 3, 4, 5, 250000, tzinfo=timezone.utc)
    token = Token("access", "refresh", expiration)

    token_store.save_token(token)

    assert token_store.load_token() == token


def test_has_valid_token_lifecycle(token_store: TokenStore, make_token) -> None:
    assert token_store.has_valid_token() is False

    token_store.save_token(make_token(expires_in=3600))
    assert token_store.has_valid_token() is True

    token_store.save_token(make_token(expires_in=-60))
    assert token_store.has_valid_token() is False

    token_store.save_token(make_token(expires_in=3600))
    token_store.delete_token()
    assert token_store.has_valid_token() is False


def test_delete_without_token_does_not_fail(token_store: TokenStore) -> None:
    token_store.delete_token()
    token_store.clear_tokens()

    with pytest.raises(TokenNotFoundError):
        token_store.load_token()


def test_token_is_stored_as_single_entry(memory_store, token_store: TokenStore, make_token) -> None:
    token_store.save_token(make_token())

    assert memory_store.exists(TOKEN_KEY)
    assert b"access-1" not in memory_store._entries[TOKEN_KEY]


def test_unreadable_token_raises_invalid(memory_store, token_store: TokenStore) -> None:
    memory_store.save(b"{not json", TOKEN_KEY)

    with pytest.raises(TokenInvalidError):
        token_store.load_token()
    assert token_store.has_valid_token() is False


def test_token_missing_fields_raises_invalid(memory_store, token_store: TokenStore) -> None:
    memory_store.save(b'{"access_token": "abc"}', TOKEN_KEY)

    with pytest.raises(TokenInvalidError):
        token_store.load_token()


def test_corrupted_entry_maps_to_invalid(memory_store, token_store: TokenStore) -> None:
    memory_store.put_raw(TOKEN_KEY, b"garbage")

    with pytest.raises(TokenInvalidError):
        token_store.load_token()


def test_current_access_token_requires_valid_token(token_store: TokenStore, make_token) -> None:
    with pytest.raises(TokenNotFoundError):
        token_store.get_current_access_token()

    token_store.save_token(make_token(expires_in=-1))
    with pytest.raises(TokenNotFoundError):
        token_store.get_current_access_token()
    assert token_store.get_current_refresh_token() == "refresh-1"

    token_store.save_token(make_token(access_token="fresh"))
    assert token_store.get_current_access_token() == "fresh"


def test_token_validity_is_strict_complement() -> None:
    now = datetime.now(timezone.utc)
    valid = Token("a", "r", now + timedelta(minutes=5))
    expired = Token("a", "r", now - timedelta(seconds=1))

    assert valid.is_valid and not valid.is_expired
    assert expired.is_expired and not expired.is_valid


def test_from_token_info_accepts_expires_in_and_keeps_refresh_token() -> None:
    token = Token.from_token_info(
        {"access_token": "new", "expires_in": 3600},
        fallback_refresh_token="old-refresh",
        now=1_700_000_000,
    )

    assert token.access_token == "new"
    assert token.refresh_token == "old-refresh"
    assert token.expiration_date == datetime.fromtimestamp(1_700_003_600, tz=timezone.utc)


def test_from_token_info_prefers_expires_at() -> None:
    token = Token.from_token_info(
        {
            "access_token": "new",
            "refresh_token": "refresh",
            "expires_in": 10,
            "expires_at": 1_800_000_000,
        }
    )

    assert token.refresh_token == "refresh"
    assert token.expiration_date.timestamp() == 1_800_000_000


@pytest.mark.parametrize("expiration", [b"1e400", b"-1e400", b"NaN"])
def test_out_of_range_expiration_raises_invalid(memory_store, token_store: TokenStore, expiration) -> None:
    memory_store.save(
        b'{"access_token":"a","refresh_token":"r","expiration_date":' + expiration + b"}",
        TOKEN_KEY,
    )

    with pytest.raises(TokenInvalidError):
        token_store.load_token()
    assert token_store.has_valid_token() is False
