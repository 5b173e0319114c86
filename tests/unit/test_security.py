"""
Unit tests for password hashing, tokens and authorization guards.
"""

from datetime import timedelta

import pytest
from jose import jwt

from bookstore.exceptions import AuthenticationError, AuthorizationError
from bookstore.security import (
    Identity,
    create_access_token,
    decode_access_token,
    get_password_hash,
    issue_token_for,
    require_admin_authority,
    require_authenticated,
    verify_password,
)

SECRET = "unit-test-secret"


class TestPasswordHashing:

    def test_hash_and_verify(self):
        hashed = get_password_hash("wonderland")

        assert hashed != "wonderland"
        assert verify_password("wonderland", hashed)
        assert not verify_password("looking-glass", hashed)

    def test_hashes_are_salted(self):
        assert get_password_hash("same") != get_password_hash("same")


class TestAccessTokens:
    """Tests for token issue and verification."""

    def test_round_trip_keeps_authorities(self):
        token = issue_token_for("alice", {"ROLE_ADMIN", "ROLE_CUSTOMER"}, secret_key=SECRET)

        identity = decode_access_token(token, secret_key=SECRET)

        assert identity.username == "alice"
        assert identity.authorities == frozenset({"ROLE_ADMIN", "ROLE_CUSTOMER"})
        assert identity.is_admin

    def test_customer_is_not_admin(self):
        token = issue_token_for("bob", {"ROLE_CUSTOMER"}, secret_key=SECRET)
        assert not decode_access_token(token, secret_key=SECRET).is_admin

    def test_single_authority_string_claim(self):
        token = jwt.encode({"sub": "carol", "authorities": "ROLE_ADMIN"}, SECRET, algorithm="HS256")
        assert decode_access_token(token, secret_key=SECRET).is_admin

    def test_wrong_secret_rejected(self):
        token = issue_token_for("alice", {"ROLE_ADMIN"}, secret_key=SECRET)
        with pytest.raises(AuthenticationError):
            decode_access_token(token, secret_key="another-secret")

    def test_tampered_token_rejected(self):
        token = issue_token_for("alice", {"ROLE_CUSTOMER"}, secret_key=SECRET)
        header, payload, signature = token.split(".")
        forged = ".".join([header, payload, signature[::-1]])

        with pytest.raises(AuthenticationError):
            decode_access_token(forged, secret_key=SECRET)

    def test_expired_token_rejected(self):
        token = create_access_token(
            {"sub": "alice"},
            expires_delta=timedelta(minutes=-5),
            secret_key=SECRET,
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token, secret_key=SECRET)

    @pytest.mark.parametrize("claims", [{"sub": ""}, {"authorities": ["ROLE_ADMIN"]}])
    def test_empty_subject_rejected(self, claims):
        token = jwt.encode(claims, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError):
            decode_access_token(token, secret_key=SECRET)


class TestGuards:
    """Tests for the identity guards."""

    def test_missing_identity(self):
        with pytest.raises(AuthenticationError):
            require_authenticated(None)
        with pytest.raises(AuthenticationError):
            require_admin_authority(None)

    def test_empty_username(self):
        with pytest.raises(AuthenticationError):
            require_authenticated(Identity(username=""))

    def test_admin_guard_needs_exact_authority(self):
        for authorities in [set(), {"ROLE_CUSTOMER"}, {"ADMIN"}, {"role_admin"}]:
            with pytest.raises(AuthorizationError):
                require_admin_authority(Identity("eve", frozenset(authorities)))

    def test_admin_guard_passes(self):
        identity = Identity("root", frozenset({"ROLE_ADMIN"}))
        assert require_admin_authority(identity) is identity
