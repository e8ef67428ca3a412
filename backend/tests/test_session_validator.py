from __future__ import annotations

import base64
import json
import unittest

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from coachhub.core import auth
from coachhub.core.auth import Principal, PrincipalKind, SessionRecord
from coachhub.core.config import settings
from coachhub.core.database import Base
from coachhub.core.security import (
    decode_session_token,
    encode_admin_token,
    encode_customer_token,
    encode_session_token,
    encode_trainer_token,
)
from coachhub.models import models

T0 = 1_760_000_000_000
DAY_MS = 86_400_000


class FakeIntrospector:
    def __init__(self, record):
        self.record = record

    def introspect(self, cookies, db, now=None):
        return self.record


class TestCustomerValidation(unittest.TestCase):
    def setUp(self):
        self._orig_signing_key = settings.SESSION_SIGNING_KEY
        settings.SESSION_SIGNING_KEY = None

    def tearDown(self):
        settings.SESSION_SIGNING_KEY = self._orig_signing_key

    def _cookies(self, token):
        return {"user_session": token}

    def test_valid_token_yields_customer_principal(self):
        token = encode_customer_token("user-1", "a@example.com", now=T0)
        principal = auth.authenticate_customer(self._cookies(token), now=T0 + 1000)

        self.assertEqual(principal, Principal(kind=PrincipalKind.customer, id="user-1", email="a@example.com"))
        self.assertIsNone(principal.trainer_id)

    def test_expiry_boundary_at_twenty_four_hours(self):
        token = encode_customer_token("user-1", "a@example.com", now=T0)

        self.assertIsNotNone(auth.authenticate_customer(self._cookies(token), now=T0 + DAY_MS - 1))
        self.assertIsNotNone(auth.authenticate_customer(self._cookies(token), now=T0 + DAY_MS))
        self.assertIsNone(auth.authenticate_customer(self._cookies(token), now=T0 + DAY_MS + 1))

    def test_timestamp_in_the_future_is_rejected_beyond_clock_skew(self):
        skew = settings.SESSION_CLOCK_SKEW_MS
        self.assertIsNotNone(auth.authenticate_customer(self._cookies(encode_customer_token("u", "e", now=T0 + skew)), now=T0))
        self.assertIsNone(auth.authenticate_customer(self._cookies(encode_customer_token("u", "e", now=T0 + skew + 1)), now=T0))
        self.assertIsNone(auth.authenticate_customer(self._cookies(encode_customer_token("u", "e", now=T0 + 10 * DAY_MS)), now=T0))

    def test_missing_cookie_is_unauthenticated(self):
        self.assertIsNone(auth.authenticate_customer({}, now=T0))
        self.assertIsNone(auth.authenticate_customer({"admin_session": "x"}, now=T0))

    def test_malformed_cookie_never_raises(self):
        bad_tokens = [
            "!!!",
            base64.b64encode(b"{not json").decode("ascii"),
            base64.b64encode(b'"just a string"').decode("ascii"),
            base64.b64encode(b'{"userId": "u", "timestamp": "yesterday"}').decode("ascii"),
            base64.b64encode(b'{"userId": "u", "timestamp": true}').decode("ascii"),
            base64.b64encode(b'{"email": "e", "timestamp": 1760000000000}').decode("ascii"),
            base64.b64encode(b"[" * 3000).decode("ascii"),
        ]
        for token in bad_tokens:
            with self.subTest(token=token):
                self.assertIsNone(auth.authenticate_customer(self._cookies(token), now=T0))

    def test_signing_key_rejects_unsigned_and_tampered_tokens(self):
        unsigned = encode_customer_token("user-1", "a@example.com", now=T0)

        settings.SESSION_SIGNING_KEY = "k1"
        signed = encode_customer_token("user-1", "a@example.com", now=T0)
        self.assertIsNotNone(auth.authenticate_customer(self._cookies(signed), now=T0))
        self.assertIsNone(auth.authenticate_customer(self._cookies(unsigned), now=T0))

        payload = decode_session_token(signed)
        payload["userId"] = "user-2"
        forged = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
        self.assertIsNone(auth.authenticate_customer(self._cookies(forged), now=T0))


class TestStaffMapping(unittest.TestCase):
    def test_admin_without_trainer_id_is_platform_admin(self):
        principal = auth.authenticate_staff({}, None, FakeIntrospector(SessionRecord(email="root@x", role="admin")))
        self.assertEqual(principal.kind, PrincipalKind.platform_admin)
        self.assertIsNone(principal.trainer_id)
        self.assertTrue(principal.is_platform_admin)

    def test_admin_or_trainer_with_trainer_id_is_trainer(self):
        for role in ("admin", "trainer"):
            with self.subTest(role=role):
                record = SessionRecord(email="coach@x", role=role, trainer_id="t-1")
                principal = auth.authenticate_staff({}, None, FakeIntrospector(record))
                self.assertEqual(principal.kind, PrincipalKind.trainer)
                self.assertEqual(principal.id, "t-1")
                self.assertEqual(principal.trainer_id, "t-1")

    def test_other_records_are_unauthenticated(self):
        for record in (None, SessionRecord(email="x", role="trainer"), SessionRecord(email="x", role="customer", trainer_id="t")):
            with self.subTest(record=record):
                self.assertIsNone(auth.authenticate_staff({}, None, FakeIntrospector(record)))

    def test_principal_invariants(self):
        with self.assertRaises(ValueError):
            Principal(kind=PrincipalKind.platform_admin, id="a", email=None, trainer_id="t")
        with self.assertRaises(ValueError):
            Principal(kind=PrincipalKind.trainer, id="t", email=None)


class TestTokenSessionIntrospector(unittest.TestCase):
    def setUp(self):
        self._orig_signing_key = settings.SESSION_SIGNING_KEY
        settings.SESSION_SIGNING_KEY = None
        self.engine = create_engine("sqlite://")
        Base.metadata.create_all(bind=self.engine)
        self.db = sessionmaker(bind=self.engine)()
        self.db.add_all([
            models.Trainer(id="t-ok", email="ok@example.com", email_verified=True),
            models.Trainer(id="t-unverified", email="new@example.com", email_verified=False),
            models.Trainer(id="t-expired", email="old@example.com", email_verified=True, subscription_status="expired"),
        ])
        self.db.commit()
        self.introspector = auth.TokenSessionIntrospector()

    def tearDown(self):
        settings.SESSION_SIGNING_KEY = self._orig_signing_key
        self.db.close()
        self.engine.dispose()

    def _staff(self, now=T0, **cookies):
        return auth.authenticate_staff(cookies, self.db, self.introspector, now=now)

    def test_verified_trainer_session(self):
        principal = self._staff(trainer_session=encode_trainer_token("t-ok", "ok@example.com", now=T0))
        self.assertEqual(principal.kind, PrincipalKind.trainer)
        self.assertEqual(principal.trainer_id, "t-ok")
        self.assertEqual(principal.email, "ok@example.com")

    def test_trainer_rejected_when_missing_unverified_or_expired(self):
        for trainer_id in ("t-missing", "t-unverified", "t-expired"):
            with self.subTest(trainer_id=trainer_id):
                token = encode_trainer_token(trainer_id, "x@example.com", now=T0)
                self.assertIsNone(self._staff(trainer_session=token))

    def test_expired_trainer_token_is_rejected(self):
        token = encode_trainer_token("t-ok", "ok@example.com", now=T0)
        self.assertIsNone(self._staff(now=T0 + DAY_MS + 1, trainer_session=token))

    def test_admin_cookie_yields_platform_admin(self):
        principal = self._staff(admin_session=encode_admin_token("root@example.com", now=T0))
        self.assertEqual(principal.kind, PrincipalKind.platform_admin)
        self.assertEqual(principal.email, "root@example.com")

    def test_admin_cookie_requires_admin_role(self):
        customer_token = encode_customer_token("user-1", "a@example.com", now=T0)
        self.assertIsNone(self._staff(admin_session=customer_token))
        trainer_token = encode_trainer_token("t-ok", "ok@example.com", now=T0)
        self.assertIsNone(self._staff(admin_session=trainer_token))

    def test_trainer_cookie_requires_trainer_role(self):
        token = encode_session_token({"trainerId": "t-ok", "email": "ok@example.com", "role": "admin"}, now=T0)
        self.assertIsNone(self._staff(trainer_session=token))

    def test_trainer_cookie_takes_precedence_and_falls_back_to_admin(self):
        both = self._staff(
            trainer_session=encode_trainer_token("t-ok", "ok@example.com", now=T0),
            admin_session=encode_admin_token("root@example.com", now=T0),
        )
        self.assertEqual(both.kind, PrincipalKind.trainer)

        fallback = self._staff(
            trainer_session="garbage",
            admin_session=encode_admin_token("root@example.com", now=T0),
        )
        self.assertEqual(fallback.kind, PrincipalKind.platform_admin)

    def test_decodable_trainer_cookie_does_not_fall_back_to_admin(self):
        admin_token = encode_admin_token("root@example.com", now=T0)
        trainer_tokens = {
            "stale": encode_trainer_token("t-ok", "ok@example.com", now=T0 - DAY_MS - 1),
            "unverified": encode_trainer_token("t-unverified", "new@example.com", now=T0),
            "subscription expired": encode_trainer_token("t-expired", "old@example.com", now=T0),
            "unknown trainer": encode_trainer_token("t-missing", "x@example.com", now=T0),
        }
        for label, trainer_token in trainer_tokens.items():
            with self.subTest(label):
                self.assertIsNone(self._staff(trainer_session=trainer_token, admin_session=admin_token))

    def test_deeply_nested_cookies_are_unauthenticated(self):
        nested = base64.b64encode(b"[" * 3000).decode("ascii")
        self.assertIsNone(self._staff(trainer_session=nested))
        self.assertIsNone(self._staff(admin_session=nested))

    def test_store_failure_is_unauthenticated(self):
        original = auth.crud.get_trainer

        def failing_get_trainer(_db, _trainer_id):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        auth.crud.get_trainer = failing_get_trainer
        try:
            token = encode_trainer_token("t-ok", "ok@example.com", now=T0)
            self.assertIsNone(self._staff(trainer_session=token))
        finally:
            auth.crud.get_trainer = original


if __name__ == "__main__":
    unittest.main()
