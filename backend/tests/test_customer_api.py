from __future__ import annotations

import unittest
from datetime import date, datetime, timezone

from api_harness import ApiTestCase

from coachhub.api import api
from coachhub.models import models
from sqlalchemy.exc import OperationalError

SESSION_GATED_ROUTES = [
    ("get", "/api/customer/info"),
    ("get", "/api/customer/workouts"),
    ("get", "/api/customer/nutrition"),
    ("get", "/api/customer/weight-goals"),
    ("get", "/api/customer/messages/unread"),
    ("get", "/api/admin/customers"),
    ("put", "/api/admin/customers/customer-1/update"),
    ("put", "/api/admin/customers/customer-1/update-password"),
    ("get", "/api/admin/customers/customer-1/messages/unread"),
    ("post", "/api/admin/exercises/seed-defaults"),
    ("get", "/api/platform-admin/trainers"),
    ("get", "/api/auth/trainer/me"),
]


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestSessionGatedRoutes(ApiTestCase):
    def test_cookieless_requests_are_rejected(self):
        for method, path in SESSION_GATED_ROUTES:
            with self.subTest(path=path):
                kwargs = {"json": {}} if method in {"put", "post"} else {}
                response = getattr(self.client, method)(path, **kwargs)
                self.assertEqual(response.status_code, 401, msg=response.text)
                self.assertTrue(response.json()["error"].startswith("Unauthorized"))


class TestCustomerPortalAPI(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.make_trainer()
        self.make_customer(trainer_id="trainer-1", full_name="Alex Client", phone="555-0100")
        self.make_customer(customer_id="customer-2", email="other@example.com", trainer_id="trainer-1")

    def test_info_returns_own_record(self):
        response = self.client.get("/api/customer/info", headers=self.customer_headers())

        self.assertEqual(response.status_code, 200, msg=response.text)
        customer = response.json()["customer"]
        self.assertEqual(customer["id"], "customer-1")
        self.assertEqual(customer["full_name"], "Alex Client")
        self.assertEqual(customer["phone"], "555-0100")
        self.assertNotIn("password_hash", customer)

    def test_info_for_unknown_customer_is_null(self):
        response = self.client.get("/api/customer/info", headers=self.customer_headers(customer_id="ghost"))
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()["customer"])

    def test_workouts_are_scoped_and_ordered_by_date(self):
        self.add(
            models.Workout(id="w-late", customer_id="customer-1", date=date(2026, 3, 10), name="Legs"),
            models.Workout(id="w-early", customer_id="customer-1", date=date(2026, 3, 1), name="Push"),
            models.Workout(id="w-other", customer_id="customer-2", date=date(2026, 3, 5), name="Pull"),
        )

        response = self.client.get("/api/customer/workouts", headers=self.customer_headers())

        self.assertEqual(response.status_code, 200)
        workouts = response.json()["workouts"]
        self.assertEqual([workout["id"] for workout in workouts], ["w-early", "w-late"])

    def test_nutrition_target_or_null(self):
        empty = self.client.get("/api/customer/nutrition", headers=self.customer_headers())
        self.assertEqual(empty.status_code, 200)
        self.assertEqual(empty.json(), {"target": None})

        self.add(models.NutritionTarget(id="n-1", customer_id="customer-1", calories=2200, protein_g=160))
        found = self.client.get("/api/customer/nutrition", headers=self.customer_headers())
        self.assertEqual(found.json()["target"]["calories"], 2200)

    def test_weight_goals_newest_start_date_first(self):
        self.add(
            models.WeightGoal(id="g-old", customer_id="customer-1", start_date=date(2025, 1, 1), target_weight=80),
            models.WeightGoal(id="g-new", customer_id="customer-1", start_date=date(2026, 1, 1), target_weight=75),
            models.WeightGoal(id="g-other", customer_id="customer-2", start_date=date(2026, 6, 1)),
        )

        response = self.client.get("/api/customer/weight-goals", headers=self.customer_headers())

        self.assertEqual(response.status_code, 200)
        goals = response.json()["weightGoals"]
        self.assertEqual([goal["id"] for goal in goals], ["g-new", "g-old"])

    def test_unread_count_includes_admin_messages_likes_and_replies(self):
        self.add(
            models.Message(id="m-admin-old", customer_id="customer-1", sender="admin", content="hi", created_at=_utc(2026, 1, 1, 9)),
            models.Message(id="m-admin-new", customer_id="customer-1", sender="admin", content="plan", created_at=_utc(2026, 1, 1, 11)),
            models.Message(id="m-own", customer_id="customer-1", sender="customer", content="done", created_at=_utc(2026, 1, 1, 8)),
            models.Message(id="m-elsewhere", customer_id="customer-2", sender="admin", content="x", created_at=_utc(2026, 1, 1, 12)),
        )
        self.add(
            models.MessageLike(id="l-1", message_id="m-own", liked_by="admin", created_at=_utc(2026, 1, 1, 12)),
            models.MessageLike(id="l-self", message_id="m-own", liked_by="customer", created_at=_utc(2026, 1, 1, 12)),
            models.MessageReply(id="r-1", message_id="m-own", sender="admin", content="nice", created_at=_utc(2026, 1, 1, 13)),
            models.MessageReply(id="r-old", message_id="m-own", sender="admin", content="old", created_at=_utc(2026, 1, 1, 7)),
        )

        everything = self.client.get("/api/customer/messages/unread", headers=self.customer_headers())
        self.assertEqual(everything.json(), {"unreadCount": 2})

        since = self.client.get(
            "/api/customer/messages/unread",
            params={"lastSeen": "2026-01-01T10:00:00Z"},
            headers=self.customer_headers(),
        )
        self.assertEqual(since.status_code, 200, msg=since.text)
        self.assertEqual(since.json(), {"unreadCount": 3})

    def test_unread_count_rejects_malformed_last_seen(self):
        response = self.client.get(
            "/api/customer/messages/unread",
            params={"lastSeen": "not-a-date"},
            headers=self.customer_headers(),
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("lastSeen", response.json()["error"])

    def test_store_failure_maps_to_generic_500(self):
        original = api.crud.list_workouts_for_customer

        def failing_list(_db, _customer_id):
            raise OperationalError("SELECT * FROM workouts", {}, Exception("connection reset by peer"))

        api.crud.list_workouts_for_customer = failing_list
        try:
            with self.assertLogs("coachhub.api.api", level="ERROR"):
                response = self.client.get("/api/customer/workouts", headers=self.customer_headers())
        finally:
            api.crud.list_workouts_for_customer = original

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Failed to fetch workouts"})
        self.assertNotIn("connection reset", response.text)


if __name__ == "__main__":
    unittest.main()
