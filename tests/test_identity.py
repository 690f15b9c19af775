"""Tests for the local identity service, password hashing and access tokens."""

import threading
from datetime import datetime, timedelta

import pytest

from whackatask.auth.identity import (
    EMAIL_ALREADY_IN_USE,
    INVALID_EMAIL,
    TOO_MANY_REQUESTS,
    USER_NOT_FOUND,
    WEAK_PASSWORD,
    WRONG_PASSWORD,
    IdentityClient,
    IdentityError,
)
from whackatask.auth.jwt import create_access_token, decode_access_token, get_session_id_from_token
from whackatask.auth.passwords import hash_password, verify_password
from whackatask.database.models import IdentityDB
from whackatask.session.errors import GENERIC_ERROR_MESSAGE, friendly_auth_message

from fakes import run


def _code(excinfo) -> str:
    return excinfo.value.code


class TestIdentityService:
    """Test registration and credential checks."""

    def test_register_and_verify(self, identity_service):
        """A registered identity can sign in; emails are case-insensitive."""
        created = run(identity_service.register("Fan@Example.com", "hunter22"))
        verified = run(identity_service.verify("fan@example.COM", "hunter22"))

        assert created.email == "fan@example.com"
        assert verified.uid == created.uid

    def test_credential_checks_run_off_the_event_loop(self, identity_service, monkeypatch):
        """Hashing and identity queries run in a worker thread."""
        threads = []

        def recording(method):
            def wrapper(*args):
                threads.append(threading.get_ident())
                return method(*args)
            return wrapper

        monkeypatch.setattr(identity_service, "_register", recording(identity_service._register))
        monkeypatch.setattr(identity_service, "_verify", recording(identity_service._verify))

        async def exercise():
            await identity_service.register("fan@example.com", "hunter22")
            await identity_service.verify("fan@example.com", "hunter22")
            return threading.get_ident()

        loop_thread = run(exercise())

        assert len(threads) == 2
        assert loop_thread not in threads

    def test_register_invalid_email(self, identity_service):
        with pytest.raises(IdentityError) as excinfo:
            run(identity_service.register("not-an-email", "hunter22"))
        assert _code(excinfo) == INVALID_EMAIL

    def test_register_weak_password(self, identity_service):
        with pytest.raises(IdentityError) as excinfo:
            run(identity_service.register("fan@example.com", "12345"))
        assert _code(excinfo) == WEAK_PASSWORD

    def test_register_duplicate_email(self, identity_service):
        run(identity_service.register("fan@example.com", "hunter22"))
        with pytest.raises(IdentityError) as excinfo:
            run(identity_service.register("FAN@example.com", "other-pass"))
        assert _code(excinfo) == EMAIL_ALREADY_IN_USE

    def test_verify_unknown_email(self, identity_service):
        with pytest.raises(IdentityError) as excinfo:
            run(identity_service.verify("ghost@example.com", "hunter22"))
        assert _code(excinfo) == USER_NOT_FOUND

    def test_verify_wrong_password(self, identity_service):
        run(identity_service.register("fan@example.com", "hunter22"))
        with pytest.raises(IdentityError) as excinfo:
            run(identity_service.verify("fan@example.com", "nope-nope"))
        assert _code(excinfo) == WRONG_PASSWORD

    def test_lockout_after_repeated_failures(self, identity_service):
        """The third bad password locks the identity, even against the right password."""
        run(identity_service.register("fan@example.com", "hunter22"))
        for _ in range(3):
            with pytest.raises(IdentityError):
                run(identity_service.verify("fan@example.com", "nope-nope"))

        with pytest.raises(IdentityError) as excinfo:
            run(identity_service.verify("fan@example.com", "hunter22"))
        assert _code(excinfo) == TOO_MANY_REQUESTS

    def test_lockout_expires(self, identity_service, session_factory):
        """Once locked_until passes, the right password works again."""
        run(identity_service.register("fan@example.com", "hunter22"))
        for _ in range(3):
            with pytest.raises(IdentityError):
                run(identity_service.verify("fan@example.com", "nope-nope"))

        db = session_factory()
        try:
            record = db.query(IdentityDB).filter(IdentityDB.email == "fan@example.com").first()
            record.locked_until = datetime.utcnow() - timedelta(seconds=1)
            db.commit()
        finally:
            db.close()

        assert run(identity_service.verify("fan@example.com", "hunter22")).email == "fan@example.com"

    def test_success_resets_failure_count(self, identity_service, session_factory):
        run(identity_service.register("fan@example.com", "hunter22"))
        with pytest.raises(IdentityError):
            run(identity_service.verify("fan@example.com", "nope-nope"))

        run(identity_service.verify("fan@example.com", "hunter22"))

        db = session_factory()
        try:
            record = db.query(IdentityDB).filter(IdentityDB.email == "fan@example.com").first()
            assert record.failed_attempts == 0
            assert record.last_sign_in_at is not None
        finally:
            db.close()

    def test_password_is_not_stored_in_plain_text(self, identity_service, session_factory):
        run(identity_service.register("fan@example.com", "hunter22"))

        db = session_factory()
        try:
            record = db.query(IdentityDB).first()
            assert "hunter22" not in record.password_hash
        finally:
            db.close()


class TestIdentityClient:
    """Test sign-in state tracking and listener notification."""

    def test_listeners_see_sign_in_and_sign_out(self, identity_service):
        client = IdentityClient(identity_service)
        seen = []

        async def listener(identity):
            seen.append(identity.email if identity else None)

        client.on_identity_changed(listener)
        run(client.create_identity("fan@example.com", "hunter22"))
        run(client.end_session())
        run(client.authenticate("fan@example.com", "hunter22"))

        assert seen == ["fan@example.com", None, "fan@example.com"]

    def test_unsubscribe_stops_notifications(self, identity_service):
        client = IdentityClient(identity_service)
        seen = []

        async def listener(identity):
            seen.append(identity)

        unsubscribe = client.on_identity_changed(listener)
        unsubscribe()
        run(client.create_identity("fan@example.com", "hunter22"))

        assert seen == []
        assert client.current_identity is not None

    def test_failed_authentication_does_not_notify(self, identity_service):
        client = IdentityClient(identity_service)
        run(identity_service.register("fan@example.com", "hunter22"))
        seen = []

        async def listener(identity):
            seen.append(identity)

        client.on_identity_changed(listener)
        with pytest.raises(IdentityError):
            run(client.authenticate("fan@example.com", "nope-nope"))

        assert seen == []
        assert client.current_identity is None


class TestPasswords:
    """Test password hashing helpers."""

    def test_hash_and_verify(self):
        stored = hash_password("hunter22", iterations=1000)

        assert stored.startswith("1000$")
        assert verify_password("hunter22", stored) is True
        assert verify_password("hunter23", stored) is False

    def test_hashes_are_salted(self):
        assert hash_password("hunter22", iterations=1000) != hash_password("hunter22", iterations=1000)

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("hunter22", "garbage") is False


class TestAccessTokens:
    """Test JWT session tokens."""

    def test_round_trip(self):
        token = create_access_token("session-1", "uid-1")
        payload = decode_access_token(token)

        assert payload["sid"] == "session-1"
        assert payload["sub"] == "uid-1"
        assert get_session_id_from_token(token) == "session-1"

    def test_invalid_token(self):
        assert decode_access_token("not.a.token") is None
        assert get_session_id_from_token("not.a.token") is None


class TestFriendlyMessages:
    """Test mapping of identity error codes to user-facing text."""

    @pytest.mark.parametrize(
        "code,message",
        [
            ("auth/email-already-in-use", "This email is already registered. Try signing in!"),
            ("auth/invalid-email", "Please enter a valid email address."),
            ("auth/weak-password", "Password should be at least 6 characters."),
            ("auth/user-not-found", "No account found with this email or username."),
            ("auth/wrong-password", "Incorrect password. Try again!"),
            ("auth/invalid-credential", "Invalid email/username or password. Please try again!"),
            ("auth/too-many-requests", "Too many attempts. Please wait a moment."),
        ],
    )
    def test_known_codes(self, code, message):
        assert friendly_auth_message(code) == message

    def test_unknown_code_is_generic(self):
        assert friendly_auth_message("auth/something-new") == GENERIC_ERROR_MESSAGE
        assert friendly_auth_message(None) == GENERIC_ERROR_MESSAGE
