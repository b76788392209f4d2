import json

import httpx
import pytest
from fastapi.testclient import TestClient

from entitle import checkout as C
from entitle import gateway as GW
from entitle import ops as O
from entitle.api import build_app, create_app
from entitle.config import Settings
from entitle.directory import Identity

from conftest import SECRET, TOKEN, USER_ID

AUTH = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture
def client(runner) -> TestClient:
    return TestClient(build_app(runner))


# ═══════════════════════════════════════════════════════════════════════════════
# /create-order
# ═══════════════════════════════════════════════════════════════════════════════


def test_create_order(client, gateway) -> None:
    response = client.post(
        "/create-order",
        headers=AUTH,
        json={"user_id": USER_ID, "amount": 39900, "currency": "INR", "promo_code": "SAVE20", "discount": 20},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["order_id"].startswith("order_")
    assert (body["amount"], body["currency"]) == (39900, "INR")


def test_create_order_without_credential(client, gateway) -> None:
    response = client.post("/create-order", json={"user_id": USER_ID, "amount": 49900, "currency": "INR"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}
    assert gateway.drafts == []


@pytest.mark.parametrize("header", ["Basic abc", "Bearer", "tok-alice"])
def test_malformed_authorization_header(client, header: str) -> None:
    response = client.post(
        "/create-order",
        headers={"Authorization": header},
        json={"user_id": USER_ID, "amount": 49900, "currency": "INR"},
    )
    assert response.status_code == 401


def test_create_order_missing_fields(client) -> None:
    response = client.post("/create-order", headers=AUTH, json={"amount": 49900, "currency": "INR"})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing user_id"}


def test_create_order_malformed_body(client, gateway) -> None:
    response = client.post("/create-order", headers=AUTH, json={"user_id": USER_ID, "amount": "lots", "currency": "INR"})
    assert response.status_code == 400
    assert "amount" in response.json()["error"]
    assert gateway.drafts == []


def test_create_order_not_json(client) -> None:
    response = client.post(
        "/create-order", headers={**AUTH, "Content-Type": "application/json"}, content=b"{not json"
    )
    assert response.status_code == 400
    assert "error" in response.json()


def test_gateway_rejection_is_500(client, gateway) -> None:
    gateway.reject_with = "Razorpay error: The amount must be atleast INR 1.00"
    response = client.post("/create-order", headers=AUTH, json={"user_id": USER_ID, "amount": 49900, "currency": "INR"})
    assert response.status_code == 500
    assert response.json() == {"error": "Razorpay error: The amount must be atleast INR 1.00"}


# ═══════════════════════════════════════════════════════════════════════════════
# /verify-payment
# ═══════════════════════════════════════════════════════════════════════════════


def test_verify_payment_with_gateway_field_names(client, directory) -> None:
    response = client.post(
        "/verify-payment",
        headers=AUTH,
        json={
            "razorpay_payment_id": "pay_1",
            "razorpay_order_id": "order_1",
            "razorpay_signature": GW.sign(SECRET, "order_1", "pay_1"),
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Payment verified and subscription activated"
    assert body["plan_id"] == "premium_yearly"
    assert directory.update_attempts == 1


def test_verify_payment_bad_signature(client, directory) -> None:
    response = client.post(
        "/verify-payment",
        headers=AUTH,
        json={"payment_id": "pay_1", "order_id": "order_1", "signature": "0" * 64},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid payment signature"}
    assert directory.update_attempts == 0


def test_verify_payment_update_failed(client, directory) -> None:
    directory.fail_updates = True
    response = client.post(
        "/verify-payment",
        headers=AUTH,
        json={"payment_id": "pay_1", "order_id": "order_1", "signature": GW.sign(SECRET, "order_1", "pay_1")},
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Payment verified but subscription update failed"}


# ═══════════════════════════════════════════════════════════════════════════════
# /quote, /validate-promo
# ═══════════════════════════════════════════════════════════════════════════════


def test_quote_for_india_with_promo(client) -> None:
    response = client.get("/quote", params={"locale": "hi-IN", "timezone": "Asia/Kolkata", "promo_code": "SAVE20"})

    assert response.status_code == 200
    assert response.json() == {
        "region": "IN",
        "currency": "INR",
        "symbol": "₹",
        "base_price": 499,
        "discount_percentage": 20,
        "final_price": 399,
        "amount": 39900,
        "period": "year",
        "promo_message": "Promo code applied! 20% off",
    }


def test_quote_without_signals_uses_fallback(client) -> None:
    body = client.get("/quote").json()
    assert (body["region"], body["final_price"], body["promo_message"]) == ("OTHER", 799, None)


def test_quoted_amount_is_accepted_by_create_order(client) -> None:
    quote = client.get("/quote", params={"locale": "en-US", "promo_code": "SAVE20"}).json()
    response = client.post(
        "/create-order",
        headers=AUTH,
        json={"user_id": USER_ID, "amount": quote["amount"], "currency": quote["currency"], "promo_code": "SAVE20"},
    )
    assert response.status_code == 200
    assert response.json()["amount"] == 1000  # $12 - 20% = $9.60, rounded to $10


def test_validate_promo(client) -> None:
    response = client.post("/validate-promo", json={"promo_code": " save20 "})
    assert response.status_code == 200
    assert response.json() == {
        "code": "SAVE20",
        "valid": True,
        "discount_percentage": 20,
        "message": "Promo code applied! 20% off",
    }

    assert client.post("/validate-promo", json={}).json()["message"] == "Please enter a promo code"


# ═══════════════════════════════════════════════════════════════════════════════
# Cross-cutting
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("path", ["/create-order", "/verify-payment", "/validate-promo"])
def test_cors_preflight(client, path: str) -> None:
    response = client.options(
        path,
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type, apikey, x-client-info",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    allowed = response.headers["access-control-allow-headers"].lower()
    for header in ("authorization", "content-type", "apikey", "x-client-info"):
        assert header in allowed


def test_unexpected_error_is_500_json() -> None:
    # PromoValidator is never injected
    runner = O.ops().on(C.ResolveQuote, C.resolve_quote).compile()
    client = TestClient(build_app(runner))
    response = client.get("/quote")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


# ═══════════════════════════════════════════════════════════════════════════════
# Assembled app
# ═══════════════════════════════════════════════════════════════════════════════


def test_create_app_with_static_auth_and_database_promos() -> None:
    settings = Settings(
        gateway_key_id="rzp_test",
        gateway_key_secret="rzp_secret",
        database_url="sqlite+aiosqlite:///:memory:",
        auth_backend="static",
        static_tokens={"tok-u1": Identity("u1", "u1@example.com")},
    )

    with TestClient(create_app(settings)) as client:
        quote = client.get("/quote", params={"timezone": "Europe/Berlin"}).json()
        assert (quote["currency"], quote["final_price"]) == ("EUR", 11)

        assert client.post("/validate-promo", json={"promo_code": "NONE"}).json()["valid"] is False

        # Profiles for static identities are created at startup
        response = client.post(
            "/verify-payment",
            headers={"Authorization": "Bearer tok-u1"},
            json={"payment_id": "pay_9", "order_id": "order_9", "signature": GW.sign("rzp_secret", "order_9", "pay_9")},
        )
        assert response.status_code == 200
        assert response.json()["plan_id"] == "premium_yearly"


def test_create_app_with_remote_auth_writes_hosted_profile() -> None:
    patched: list[httpx.Request] = []

    def data_api(request: httpx.Request) -> httpx.Response:
        match (request.method, request.url.path):
            case ("GET", "/auth/v1/user"):
                return httpx.Response(200, json={"id": "uuid-1", "email": "new@example.com"})
            case ("PATCH", "/rest/v1/profiles"):
                patched.append(request)
                return httpx.Response(200, json=[{"user_id": "uuid-1"}])
            case ("GET", "/rest/v1/subscriptions"):
                return httpx.Response(200, json=[])
            case ("POST", "/rest/v1/subscriptions"):
                return httpx.Response(201)
            case _:
                return httpx.Response(404)

    settings = Settings(
        gateway_key_id="rzp_test",
        gateway_key_secret="rzp_secret",
        directory_url="https://data.example.com",
        directory_service_key="service-key",
        database_url="sqlite+aiosqlite:///:memory:",
    )
    http = httpx.AsyncClient(transport=httpx.MockTransport(data_api))

    with TestClient(create_app(settings, client=http)) as client:
        response = client.post(
            "/verify-payment",
            headers={"Authorization": "Bearer user-jwt"},
            json={"payment_id": "pay_1", "order_id": "order_1", "signature": GW.sign("rzp_secret", "order_1", "pay_1")},
        )

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert len(patched) == 1
    assert patched[0].url.params["user_id"] == "eq.uuid-1"
    assert json.loads(patched[0].content)["has_active_subscription"] is True


def test_create_app_requires_gateway_keys() -> None:
    with pytest.raises(ValueError):
        create_app(Settings(auth_backend="static", database_url="sqlite+aiosqlite:///:memory:"))
