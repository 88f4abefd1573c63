"""Unit tests for qms.core.security: bcrypt hashing and access/refresh JWTs."""

import unittest
from datetime import timedelta

import jwt
from pydantic import ValidationError

from qms.core.config import Settings
from qms.core.security import (
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    hash_refresh_token,
    verify_password,
    verify_refresh_token_hash,
)

from db_support import make_settings


class TestPasswordHashing(unittest.TestCase):
    def test_verify_matches_only_the_original_password(self) -> None:
        hashed = hash_password("s3cret-password", rounds=4)
        self.assertNotEqual(hashed, "s3cret-password")
        self.assertTrue(verify_password("s3cret-password", hashed))
        self.assertFalse(verify_password("s3cret-passwore", hashed))

    def test_same_password_hashes_differently(self) -> None:
        self.assertNotEqual(
            hash_password("same-password", rounds=4), hash_password("same-password", rounds=4)
        )

    def test_malformed_hash_returns_false(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))
        self.assertFalse(verify_password("anything", ""))

    def test_default_cost_comes_from_settings(self) -> None:
        hashed = hash_password("cost-check-password")
        self.assertTrue(hashed.startswith("$2b$12$"))


class TestRefreshTokenHashing(unittest.TestCase):
    def test_long_tokens_with_shared_prefix_do_not_collide(self) -> None:
        prefix = "x" * 100
        hashed = hash_refresh_token(prefix + "A", rounds=4)
        self.assertTrue(verify_refresh_token_hash(prefix + "A", hashed))
        self.assertFalse(verify_refresh_token_hash(prefix + "B", hashed))


class TestAccessTokens(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()

    def test_round_trip_recovers_subject_role_and_tenant(self) -> None:
        token = create_access_token(42, "CLIENT", tenant_id=7, settings=self.settings)
        payload = decode_access_token(token, settings=self.settings)
        self.assertEqual(payload["sub"], "42")
        self.assertEqual(payload["role"], "CLIENT")
        self.assertEqual(payload["tenant_id"], 7)
        self.assertEqual(payload["typ"], "access")

    def test_expiry_follows_settings(self) -> None:
        settings = make_settings(ACCESS_TOKEN_EXPIRE_MINUTES=30)
        payload = decode_access_token(
            create_access_token(1, "ADMIN", settings=settings), settings=settings
        )
        self.assertEqual(payload["exp"] - payload["iat"], 30 * 60)

    def test_expired_token_rejected(self) -> None:
        token = create_access_token(
            1, "ADMIN", settings=self.settings, expires_delta=timedelta(seconds=-5)
        )
        with self.assertRaises(TokenError):
            decode_access_token(token, settings=self.settings)

    def test_token_signed_with_refresh_secret_rejected(self) -> None:
        forged = jwt.encode(
            {"sub": "1", "role": "ADMIN", "typ": "access", "iat": 0, "exp": 4102444800},
            self.settings.JWT_REFRESH_SECRET.get_secret_value(),
            algorithm="HS256",
        )
        with self.assertRaises(TokenError):
            decode_access_token(forged, settings=self.settings)

    def test_refresh_token_is_not_an_access_token(self) -> None:
        refresh, _ = create_refresh_token(1, settings=self.settings)
        with self.assertRaises(TokenError):
            decode_access_token(refresh, settings=self.settings)

    def test_garbage_rejected(self) -> None:
        with self.assertRaises(TokenError):
            decode_access_token("not.a.jwt", settings=self.settings)

    def test_error_message_is_uniform(self) -> None:
        expired = create_access_token(
            1, "ADMIN", settings=self.settings, expires_delta=timedelta(seconds=-5)
        )
        messages = set()
        for token in (expired, "garbage"):
            try:
                decode_access_token(token, settings=self.settings)
            except TokenError as e:
                messages.add(str(e))
        self.assertEqual(messages, {"Invalid token"})


class TestRefreshTokens(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()

    def test_round_trip_and_expiry(self) -> None:
        token, expires_at = create_refresh_token(5, settings=self.settings)
        payload = decode_refresh_token(token, settings=self.settings)
        self.assertEqual(payload["sub"], "5")
        self.assertEqual(payload["typ"], "refresh")
        self.assertEqual(int(expires_at.timestamp()), payload["exp"])
        self.assertEqual(payload["exp"] - payload["iat"], 14 * 24 * 3600)

    def test_tokens_are_unique(self) -> None:
        a, _ = create_refresh_token(5, settings=self.settings)
        b, _ = create_refresh_token(5, settings=self.settings)
        self.assertNotEqual(a, b)

    def test_access_token_is_not_a_refresh_token(self) -> None:
        access = create_access_token(5, "ADMIN", settings=self.settings)
        with self.assertRaises(TokenError):
            decode_refresh_token(access, settings=self.settings)


class TestSettingsValidation(unittest.TestCase):
    def test_equal_secrets_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(JWT_ACCESS_SECRET="same", JWT_REFRESH_SECRET="same")

    def test_cheap_bcrypt_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(BCRYPT_ROUNDS=8)

    def test_non_postgres_url_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(DATABASE_URL="mysql://localhost/qms")


if __name__ == "__main__":
    unittest.main()
