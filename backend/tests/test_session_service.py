from unittest.mock import patch

from charlieverse.models.user import Principal
from charlieverse.services.session_service import SessionStore


def _principal(user_id=1, first_name="Ann"):
    return Principal(user_id=user_id, email=f"u{user_id}@example.com", first_name=first_name)


def test_create_and_get():
    store = SessionStore(ttl_seconds=60)
    token = store.create(_principal())

    assert len(token) > 20
    assert store.get(token).user_id == 1
    assert store.get("unknown") is None
    assert store.get(None) is None


def test_tokens_are_unique():
    store = SessionStore()
    tokens = {store.create(_principal()) for _ in range(50)}
    assert len(tokens) == 50


def test_expired_sessions_are_dropped():
    store = SessionStore(ttl_seconds=10)
    with patch("charlieverse.services.session_service.time.monotonic", return_value=1000.0):
        token = store.create(_principal())
    with patch("charlieverse.services.session_service.time.monotonic", return_value=1011.0):
        assert store.get(token) is None
    assert token not in store._sessions


def test_refresh_user_updates_every_session_of_that_user():
    store = SessionStore()
    first = store.create(_principal(1))
    second = store.create(_principal(1))
    other = store.create(_principal(2))

    store.refresh_user(_principal(1, first_name="Renamed"))

    assert store.get(first).first_name == "Renamed"
    assert store.get(second).first_name == "Renamed"
    assert store.get(other).first_name == "Ann"


def test_destroy_is_idempotent():
    store = SessionStore()
    token = store.create(_principal())

    store.destroy(token)
    store.destroy(token)
    store.destroy(None)

    assert store.get(token) is None
