import json
import os
import threading
import time
import unittest
from unittest.mock import patch

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret")
os.environ.setdefault("SUPABASE_PROJECT_URL", "https://project.supabase.test")
os.environ["RATE_LIMIT_ENABLED"] = "0"

from fastapi.testclient import TestClient
from jose import jwt
from starlette.requests import Request

from database import Base, engine
from main import app
from routers import holdings_routes
from services import supabase_auth


def _auth_headers(sub: str = "supabase-user-1") -> dict:
    now = int(time.time())
    token = jwt.encode(
        {
            "sub": sub,
            "email": f"{sub}@example.com",
            "aud": supabase_auth.SUPABASE_JWT_AUD,
            "iss": f"{supabase_auth.SUPABASE_PROJECT_URL}/auth/v1",
            "iat": now,
            "exp": now + 600,
        },
        supabase_auth.SUPABASE_JWT_SECRET,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        Base.metadata.create_all(bind=engine)
        self.client = TestClient(app)

    def tearDown(self):
        Base.metadata.drop_all(bind=engine)


class TestHoldingRoutes(ApiTestCase):
    def test_record_merge_and_summary(self):
        h = _auth_headers()
        r1 = self.client.post(
            "/holdings",
            json={"type": "STOCK", "name": "Apple", "ticker": "aapl", "quantity": 10, "buyPrice": 100},
            headers=h,
        )
        self.assertEqual(r1.status_code, 201)
        r2 = self.client.post(
            "/holdings",
            json={"type": "STOCK", "name": "Apple", "ticker": "AAPL", "quantity": 10, "buyPrice": 150},
            headers=h,
        )
        self.assertEqual(r2.json()["id"], r1.json()["id"])

        self.client.post(
            "/holdings",
            json={"type": "STOCK", "name": "Alphabet", "ticker": "GOOGL", "quantity": 1, "buyPrice": 10, "currency": "USD"},
            headers=h,
        )

        items = self.client.get("/holdings", headers=h).json()
        self.assertEqual([i["ticker"] for i in items], ["GOOGL", "AAPL"])
        aapl = items[1]
        self.assertEqual(aapl["quantity"], 20)
        self.assertAlmostEqual(aapl["buy_price"], 125)
        self.assertEqual(items[0]["buy_price"], 835)

        summary = self.client.get("/api/portfolio/summary", headers=h).json()
        self.assertEqual(summary["currency"], "INR")
        self.assertEqual(summary["invested_value"], 2500 + 835)
        # AAPL current price is the latest quote (150), not the average
        self.assertEqual(summary["net_worth"], 20 * 150 + 835)
        self.assertEqual(summary["by_type"], {"STOCK": 3835})

    def test_unknown_field_is_rejected(self):
        r = self.client.post(
            "/holdings",
            json={"type": "STOCK", "name": "X", "quantity": 1, "buyPrice": 1, "color": "red"},
            headers=_auth_headers(),
        )
        self.assertEqual(r.status_code, 422)

    def test_non_finite_numbers_are_rejected(self):
        h = _auth_headers()
        self.client.post(
            "/holdings", json={"type": "STOCK", "name": "A", "ticker": "A", "quantity": 1, "buyPrice": 1}, headers=h
        )
        for field in ("quantity", "buyPrice"):
            for bad in ("Infinity", "NaN"):
                body = {"type": "STOCK", "name": "A", "ticker": "A", "quantity": 1, "buyPrice": 1, field: bad}
                with self.subTest(field=field, value=bad):
                    self.assertEqual(self.client.post("/holdings", json=body, headers=h).status_code, 422)

        items = self.client.get("/holdings", headers=h).json()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["quantity"], 1)
        self.assertEqual(items[0]["buy_price"], 1)

    def test_record_requires_auth(self):
        r = self.client.post("/holdings", json={"type": "CASH", "name": "Wallet", "quantity": 1, "buyPrice": 1})
        self.assertEqual(r.status_code, 401)

    def test_patch_and_delete(self):
        h = _auth_headers()
        hid = self.client.post(
            "/holdings", json={"type": "CASH", "name": "Wallet", "quantity": 1, "buyPrice": 500}, headers=h
        ).json()["id"]

        r = self.client.patch(f"/holdings/{hid}", json={"name": "Savings"}, headers=h)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["name"], "Savings")

        # another user cannot touch it
        other = _auth_headers("supabase-user-2")
        self.assertEqual(self.client.patch(f"/holdings/{hid}", json={"name": "x"}, headers=other).status_code, 404)
        self.assertEqual(self.client.delete(f"/holdings/{hid}", headers=other).status_code, 404)

        # no identity: silent no-op
        self.assertEqual(self.client.delete(f"/holdings/{hid}").status_code, 200)
        self.assertEqual(len(self.client.get("/holdings", headers=h).json()), 1)

        self.assertEqual(self.client.delete(f"/holdings/{hid}", headers=h).status_code, 200)
        self.assertEqual(self.client.get("/holdings", headers=h).json(), [])


class TestHoldingStream(ApiTestCase):
    def _events(self, body: str):
        events = []
        for block in body.strip().split("\n\n"):
            lines = block.splitlines()
            name = lines[0][len("event: "):]
            data = json.loads("".join(line[len("data: "):] for line in lines[1:]))
            events.append((name, data))
        return events

    def test_stream_sends_snapshot_then_change(self):
        h = _auth_headers()
        self.assertEqual(self.client.get("/holdings", headers=h).json(), [])

        first_snapshot = threading.Event()
        real_snapshot = holdings_routes._snapshot

        def snapshot(user_id):
            items = real_snapshot(user_id)
            first_snapshot.set()
            return items

        checks = []

        async def is_disconnected(request):
            # stay connected for exactly one change event
            checks.append(request.url.path)
            return len(checks) > 1

        result = {}

        def open_stream():
            result["response"] = TestClient(app).get("/holdings/stream", headers=h)

        with patch.object(holdings_routes, "_snapshot", snapshot), \
                patch.object(holdings_routes, "HEARTBEAT_SEC", 10.0), \
                patch.object(Request, "is_disconnected", is_disconnected):
            reader = threading.Thread(target=open_stream, daemon=True)
            reader.start()
            self.assertTrue(first_snapshot.wait(timeout=5))
            created = self.client.post(
                "/holdings",
                json={"type": "CASH", "name": "Wallet", "quantity": 1, "buyPrice": 500},
                headers=h,
            )
            reader.join(timeout=15)

        self.assertFalse(reader.is_alive())
        self.assertEqual(created.status_code, 201)
        response = result["response"]
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/event-stream"))

        (first_name, first), (second_name, second) = self._events(response.text)
        self.assertEqual(first_name, "holdings")
        self.assertEqual(first, {"items": []})
        self.assertEqual(second_name, "holdings")
        self.assertEqual(second["change"], {"action": "created", "holding_id": created.json()["id"]})
        self.assertEqual([i["name"] for i in second["items"]], ["Wallet"])

    def test_stream_requires_auth(self):
        self.assertEqual(self.client.get("/holdings/stream").status_code, 401)


class TestWishlistRoutes(ApiTestCase):
    def test_add_list_remove(self):
        h = _auth_headers()
        created = self.client.post("/api/wishlist", json={"ticker": " infy "}, headers=h)
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json()["ticker"], "INFY")
        self.assertEqual(self.client.post("/api/wishlist", json={"ticker": "INFY"}, headers=h).status_code, 409)

        items = self.client.get("/api/wishlist", headers=h).json()
        self.assertEqual(len(items), 1)
        self.assertEqual(self.client.delete(f"/api/wishlist/{items[0]['id']}", headers=h).status_code, 204)
        self.assertEqual(self.client.get("/api/wishlist", headers=h).json(), [])


class TestOAuthRoutes(ApiTestCase):
    def test_save_get_revoke(self):
        body = {"userId": "fy-1", "accessToken": "tok-1", "appId": "APP-100"}
        r = self.client.post("/oauth/save-token", json=body)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["replaced_tokens"], 0)
        r = self.client.post("/oauth/save-token", json={**body, "accessToken": "tok-2"})
        self.assertEqual(r.json()["replaced_tokens"], 1)
        token_id = r.json()["token_id"]

        got = self.client.get("/oauth/get-token/fy-1", params={"appId": "APP-100"}).json()
        self.assertEqual(got["token_id"], token_id)
        self.assertNotIn("access_token", got)
        got = self.client.get("/oauth/get-token/fy-1", params={"includeToken": "true"}).json()
        self.assertEqual(got["access_token"], "tok-2")

        r = self.client.post("/oauth/revoke-token", json={"tokenId": token_id})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.client.get("/oauth/get-token/fy-1").status_code, 404)

    def test_missing_fields_are_validation_errors(self):
        self.assertEqual(self.client.post("/oauth/save-token", json={"userId": "u"}).status_code, 422)
        self.assertEqual(self.client.post("/oauth/revoke-token", json={}).status_code, 422)
        self.assertEqual(
            self.client.post("/oauth/exchange-token", json={"code": "", "appId": "a", "appSecret": "s"}).status_code,
            422,
        )

    def test_exchange_upstream_failure_is_generic(self):
        from services.errors import UpstreamError

        async def _fail(self, code, app_id, app_secret, client=None):
            raise UpstreamError("fyers validate-authcode rejected", upstream_status=400, body="bad code xyz")

        with patch("services.fyers_service.FyersService.exchange_auth_code", _fail):
            r = self.client.post("/oauth/exchange-token", json={"code": "c", "appId": "a", "appSecret": "s"})

        self.assertEqual(r.status_code, 502)
        self.assertNotIn("bad code xyz", r.text)

    def test_exchange_success_persists_token(self):
        async def _ok(self, code, app_id, app_secret, client=None):
            return {"access_token": "at", "refresh_token": "rt", "expires_in": 86400}

        with patch("services.fyers_service.FyersService.exchange_auth_code", _ok):
            r = self.client.post("/oauth/exchange-token", json={"code": "c", "appId": "a", "appSecret": "s"})

        self.assertEqual(r.status_code, 200)
        payload = r.json()
        self.assertTrue(payload["success"])
        self.assertEqual(payload["expires_in"], 86400)
        got = self.client.get(f"/oauth/get-token/{payload['user_id']}", params={"includeToken": "true"}).json()
        self.assertEqual(got["access_token"], "at")


if __name__ == "__main__":
    unittest.main()
