from __future__ import annotations

import os
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from jose import jwt

from app.errors import ApiError
from app.security import Principal, create_access_token, decode_token, ensure_employee_access
from app.settings import get_settings


class SecurityTests(unittest.TestCase):
    def setUp(self) -> None:
        self._env = patch.dict(os.environ, {"JWT_SECRET": "unit-test-secret"}, clear=False)
        self._env.start()
        get_settings.cache_clear()

    def tearDown(self) -> None:
        self._env.stop()
        get_settings.cache_clear()

    def test_issued_token_decodes(self) -> None:
        token, expires_in = create_access_token(user_id=7, is_admin=True)
        claims = decode_token(token)

        self.assertEqual(claims["sub"], "7")
        self.assertTrue(claims["is_admin"])
        self.assertEqual(expires_in, get_settings().access_token_minutes * 60)

    def test_token_for_other_audience_is_rejected(self) -> None:
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "7",
                "iss": "rotapay",
                "aud": "someone-else",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(minutes=5)).timestamp()),
            },
            "unit-test-secret",
            algorithm="HS256",
        )
        with self.assertRaises(ApiError) as ctx:
            decode_token(token)
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.code, "INVALID_TOKEN")

    def test_non_numeric_subject_is_rejected(self) -> None:
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "admin",
                "iss": "rotapay",
                "aud": "rotapay-api",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(minutes=5)).timestamp()),
            },
            "unit-test-secret",
            algorithm="HS256",
        )
        with self.assertRaises(ApiError) as ctx:
            decode_token(token)
        self.assertEqual(ctx.exception.message, "Token subject is invalid.")

    def test_employee_scope(self) -> None:
        employee = Principal(user_id=7, token="t")
        admin = Principal(user_id=1, token="t", is_admin=True)

        ensure_employee_access(employee, 7)
        ensure_employee_access(admin, 7)
        with self.assertRaises(ApiError) as ctx:
            ensure_employee_access(employee, 8)
        self.assertEqual(ctx.exception.status_code, 403)


if __name__ == "__main__":
    unittest.main()
