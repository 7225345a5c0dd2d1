import re
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from leaderboard.app import create_app
from leaderboard.config import Settings
from leaderboard.db import InMemoryStore
from leaderboard.routes import coerce_limit, utc_timestamp

ISO_MILLIS = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class FailingStore(InMemoryStore):
    def get_all_notes(self):
        raise RuntimeError("boom")

    def get_top_scores(self, limit):
        raise RuntimeError("boom")

    def add_score(self, wallet_address, score, created_at):
        raise RuntimeError("boom")


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryStore()
        self.client = TestClient(
            create_app(_settings(), store=self.store, serve_client=False)
        )

    def test_list_notes(self):
        response = self.client.get("/api/notes")
        self.assertEqual(response.status_code, 200)
        notes = response.json()
        self.assertEqual([n["id"] for n in notes], [1, 2, 3, 4])
        self.assertEqual(notes[3]["isHighlighted"], 1)
        self.assertEqual(notes[0]["date"], "2023-07-15")
        self.assertEqual(set(notes[0]), {"id", "date", "content", "isHighlighted"})

    def test_submit_and_list_scores(self):
        for wallet, score in [("0xa", 5), ("0xb", 20), ("0xc", 3), ("0xd", 20)]:
            response = self.client.post(
                "/api/scores", json={"walletAddress": wallet, "score": score}
            )
            self.assertEqual(response.status_code, 201)

        response = self.client.get("/api/scores")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual([s["score"] for s in payload], [20, 20, 5, 3])
        self.assertEqual([s["walletAddress"] for s in payload[:2]], ["0xb", "0xd"])

        response = self.client.get("/api/scores", params={"limit": "2"})
        self.assertEqual(len(response.json()), 2)

    def test_submit_score_stamps_created_at(self):
        response = self.client.post(
            "/api/scores",
            json={
                "walletAddress": "0xabc",
                "score": 12,
                "createdAt": "1999-01-01T00:00:00.000Z",
            },
        )
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["id"], 1)
        self.assertEqual(payload["walletAddress"], "0xabc")
        self.assertEqual(payload["score"], 12)
        self.assertRegex(payload["createdAt"], ISO_MILLIS)
        self.assertNotEqual(payload["createdAt"], "1999-01-01T00:00:00.000Z")
        self.assertEqual(self.store.get_top_scores(1)[0].created_at, payload["createdAt"])

    def test_submit_score_rejects_wrong_types(self):
        response = self.client.post(
            "/api/scores", json={"walletAddress": "0xabc", "score": "12"}
        )
        self.assertEqual(response.status_code, 400)
        payload = response.json()
        self.assertEqual(payload["message"], "Invalid data")
        self.assertEqual(payload["errors"][0]["path"], ["score"])
        self.assertEqual(self.store.get_top_scores(10), [])

    def test_submit_score_requires_fields(self):
        response = self.client.post("/api/scores", json={"score": 3})
        self.assertEqual(response.status_code, 400)
        paths = [issue["path"] for issue in response.json()["errors"]]
        self.assertIn(["walletAddress"], paths)

    def test_submit_score_rejects_malformed_json(self):
        response = self.client.post(
            "/api/scores",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid data")

    def test_unknown_api_path_is_json_404(self):
        response = self.client.get("/api/missing")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Not Found"})

    def test_unknown_api_path_any_method_is_json_404(self):
        for method in ("post", "put", "delete"):
            response = getattr(self.client, method)("/api/missing")
            self.assertEqual(response.status_code, 404, method)
            self.assertEqual(response.json(), {"message": "Not Found"})

    def test_requests_are_logged(self):
        with self.assertLogs("leaderboard.request_log", level="INFO") as logs:
            self.client.get("/api/notes")
        self.assertEqual(len(logs.records), 1)
        line = logs.records[0].getMessage()
        self.assertTrue(line.startswith("GET /api/notes 200 in "))
        self.assertTrue(line.endswith("…"))
        self.assertEqual(len(line), 80)


class StoreFailureTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(
            create_app(_settings(), store=FailingStore(), serve_client=False)
        )

    def test_notes_failure(self):
        with self.assertLogs("leaderboard.routes", level="ERROR"):
            response = self.client.get("/api/notes")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Failed to fetch notes"})

    def test_scores_failure(self):
        with self.assertLogs("leaderboard.routes", level="ERROR"):
            response = self.client.get("/api/scores")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Failed to fetch scores"})

    def test_add_score_failure(self):
        with self.assertLogs("leaderboard.routes", level="ERROR"):
            response = self.client.post(
                "/api/scores", json={"walletAddress": "0x1", "score": 1}
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Failed to add score"})


class LimitCoercionTests(unittest.TestCase):
    def test_defaults(self):
        for raw in (None, "", "abc", "0", "-3", "nan", "-inf"):
            self.assertEqual(coerce_limit(raw, 10), 10, raw)

    def test_numeric_values(self):
        self.assertEqual(coerce_limit("3", 10), 3)
        self.assertEqual(coerce_limit(" 25 ", 10), 25)
        self.assertEqual(coerce_limit("2.9", 10), 2)
        self.assertEqual(coerce_limit("1e2", 10), 100)

    def test_fractions_and_infinity(self):
        self.assertEqual(coerce_limit("0.5", 10), 0)
        self.assertIsNone(coerce_limit("Infinity", 10))
        self.assertIsNone(coerce_limit("inf", 10))

    def test_limit_query_passed_to_store(self):
        store = InMemoryStore()
        client = TestClient(create_app(_settings(), store=store, serve_client=False))
        with patch.object(store, "get_top_scores", return_value=[]) as mock_top:
            client.get("/api/scores", params={"limit": "bogus"})
            client.get("/api/scores", params={"limit": "4"})
        self.assertEqual([c.args[0] for c in mock_top.call_args_list], [10, 4])

    def test_fractional_and_infinite_limits_over_http(self):
        store = InMemoryStore()
        for i, score in enumerate([3, 1, 2]):
            store.add_score(f"0x{i}", score, "2024-01-01T00:00:00.000Z")
        client = TestClient(create_app(_settings(), store=store, serve_client=False))
        self.assertEqual(client.get("/api/scores", params={"limit": "0.5"}).json(), [])
        everything = client.get("/api/scores", params={"limit": "Infinity"}).json()
        self.assertEqual([s["score"] for s in everything], [3, 2, 1])


class TimestampTests(unittest.TestCase):
    def test_utc_timestamp_format(self):
        from datetime import datetime, timezone

        moment = datetime(2024, 3, 9, 14, 5, 7, 123456, tzinfo=timezone.utc)
        self.assertEqual(utc_timestamp(moment), "2024-03-09T14:05:07.123Z")


class LifespanTests(unittest.TestCase):
    def test_store_closed_on_shutdown(self):
        store = InMemoryStore()
        app = create_app(_settings(), store=store, serve_client=False)
        with patch.object(store, "close") as mock_close:
            with TestClient(app) as client:
                self.assertEqual(client.get("/api/notes").status_code, 200)
                mock_close.assert_not_called()
        mock_close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
