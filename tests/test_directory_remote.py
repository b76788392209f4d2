import json
from datetime import timedelta

import httpx

from entitle import directory as D
from entitle._types import BearerCredential

from conftest import NOW, err, ok, run

URL = "https://data.example.com/"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ═══════════════════════════════════════════════════════════════════════════════
# Authenticator
# ═══════════════════════════════════════════════════════════════════════════════


def test_authenticator_resolves_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url == "https://data.example.com/auth/v1/user"
        assert request.headers["authorization"] == "Bearer user-token"
        assert request.headers["apikey"] == "service-key"
        return httpx.Response(200, json={"id": "uuid-1", "email": "a@example.com"})

    authenticator = D.RemoteAuthenticator(_client(handler), URL, "service-key")
    identity = ok(run(authenticator.authenticate(BearerCredential("user-token"))))
    assert identity == D.Identity("uuid-1", "a@example.com")


def test_authenticator_rejection_is_error() -> None:
    authenticator = D.RemoteAuthenticator(
        _client(lambda request: httpx.Response(401, json={"msg": "bad jwt"})), URL, "service-key"
    )
    assert "401" in err(run(authenticator.authenticate(BearerCredential("expired")))).message


# ═══════════════════════════════════════════════════════════════════════════════
# Hosted profiles
# ═══════════════════════════════════════════════════════════════════════════════


def test_update_entitlement_patches_profile_row() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"user_id": "uuid-1"}])

    directory = D.RemoteDirectory(_client(handler), URL, "service-key")
    premium = D.UserEntitlement.premium(NOW, timedelta(days=365))

    ok(run(directory.update_entitlement("uuid-1", premium, used_promo_code="SAVE20")))

    request = seen[0]
    assert request.method == "PATCH"
    assert request.url.path == "/rest/v1/profiles"
    assert request.url.params["user_id"] == "eq.uuid-1"
    assert request.headers["prefer"] == "return=representation"
    assert json.loads(request.content) == {
        "has_active_subscription": True,
        "plan_tier": "premium",
        "plan_id": "premium_yearly",
        "plan_start_date": "2026-03-01T12:00:00+00:00",
        "plan_end_date": "2027-03-01T12:00:00+00:00",
        "used_promo_code": "SAVE20",
    }


def test_update_with_no_matching_row_is_error() -> None:
    directory = D.RemoteDirectory(_client(lambda request: httpx.Response(200, json=[])), URL, "service-key")
    premium = D.UserEntitlement.premium(NOW, timedelta(days=365))
    assert "No profile" in err(run(directory.update_entitlement("ghost", premium))).message


def test_get_profile_parses_row() -> None:
    row = {
        "user_id": "uuid-1",
        "email": "a@example.com",
        "has_active_subscription": True,
        "plan_tier": "premium",
        "plan_id": "premium_yearly",
        "plan_start_date": "2026-03-01T12:00:00+00:00",
        "plan_end_date": "2027-03-01T12:00:00+00:00",
        "used_promo_code": None,
    }
    directory = D.RemoteDirectory(_client(lambda request: httpx.Response(200, json=[row])), URL, "service-key")

    profile = ok(run(directory.get_profile("uuid-1")))
    assert profile.entitlement == D.UserEntitlement.premium(NOW, timedelta(days=365))
    assert profile.entitlement.is_active_at(NOW + timedelta(days=1))


def test_ledger_upserts_on_payment_id() -> None:
    stored: dict[str, dict] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            assert request.url.params["on_conflict"] == "razorpay_payment_id"
            assert request.headers["prefer"] == "resolution=merge-duplicates"
            row = json.loads(request.content)
            stored[row["razorpay_payment_id"]] = row
            return httpx.Response(201)
        wanted = request.url.params["razorpay_payment_id"].removeprefix("eq.")
        return httpx.Response(200, json=[stored[wanted]] if wanted in stored else [])

    directory = D.RemoteDirectory(_client(handler), URL, "service-key")
    record = D.SubscriptionRecord(
        "uuid-1", "pay_1", "order_1", NOW, NOW + timedelta(days=365), amount=39900, currency="INR"
    )

    ok(run(directory.record_subscription(record)))
    assert ok(run(directory.find_subscription("pay_1"))) == record
    assert ok(run(directory.find_subscription("pay_2"))) is None


def test_transport_error_is_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    directory = D.RemoteDirectory(_client(handler), URL, "service-key")
    assert "transport error" in err(run(directory.get_profile("uuid-1"))).message
