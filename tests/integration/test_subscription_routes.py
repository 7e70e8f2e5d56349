"""
HTTP tests for the subscription, feature access and webhook endpoints.

The application is built with create_application(); database-backed providers are
replaced through dependency_overrides with the in-memory fakes from conftest.
"""
from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from shelfkeeper.main import create_application
from shelfkeeper.modules.subscription_management.domain.models.entitlement import FeatureType
from shelfkeeper.modules.subscription_management.domain.models.subscription import (
    SubscriptionPlan,
    SubscriptionStatus,
)
from shelfkeeper.modules.subscription_management.domain.services.collaborators import PaymentEvent
from shelfkeeper.modules.subscription_management.domain.services.feature_gate_service import FeatureGateService
from shelfkeeper.modules.subscription_management.presentation.dependencies import (
    get_feature_gate_service,
    get_payment_gateway,
    get_subscription_service,
    require_feature,
)
from tests.conftest import NOW, auth_headers, make_subscription

API = "/api/v1"


@pytest.fixture
def app(subscription_service, catalog, payment_gateway):
    application = create_application()

    @application.post(f"{API}/lists/share", dependencies=[Depends(require_feature(FeatureType.SHARED_LISTS))])
    async def share_list():
        return {"shared": True}

    application.dependency_overrides[get_subscription_service] = lambda: subscription_service
    application.dependency_overrides[get_feature_gate_service] = lambda: FeatureGateService(subscription_service, catalog)
    application.dependency_overrides[get_payment_gateway] = lambda: payment_gateway
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def headers(user_id):
    return auth_headers(user_id)


def _window(days: int = 30) -> dict:
    return {"start_time": NOW.isoformat(), "end_time": (NOW + timedelta(days=days)).isoformat()}


# =========================================================================
# HEALTH AND AUTHENTICATION
# =========================================================================

def test_health_is_public(client):
    for path in ("/health", f"{API}/health"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_protected_route_requires_token(client):
    response = client.get(f"{API}/subscriptions/me")

    assert response.status_code == 401
    error = response.json()["error"]
    assert error["code"] == "AUTHENTICATION_ERROR"
    assert error["message"] == "No authentication token provided"


def test_invalid_token_is_rejected(client):
    response = client.get(f"{API}/subscriptions/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid or expired token"


# =========================================================================
# SUBSCRIPTIONS
# =========================================================================

def test_me_without_subscription_is_404(client, headers):
    response = client.get(f"{API}/subscriptions/me", headers=headers)

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["message"] == "Active subscription not found."
    assert error["request_id"]


def test_create_then_read_subscription(client, headers, user_id):
    created = client.post(f"{API}/subscriptions", headers=headers, json={"plan": "basic", **_window()})

    assert created.status_code == 201
    body = created.json()
    assert body["plan"] == "basic"
    assert body["status"] == "active"
    assert body["user_id"] == str(user_id)
    assert "payment_customer_id" not in body

    me = client.get(f"{API}/subscriptions/me", headers=headers)
    assert me.json()["subscription_id"] == body["subscription_id"]


def test_create_replaces_active_subscription(client, headers, repository):
    first = client.post(f"{API}/subscriptions", headers=headers, json={"plan": "basic", **_window()}).json()
    second = client.post(f"{API}/subscriptions", headers=headers, json={"plan": "premium", **_window()}).json()

    rows = {str(row.subscription_id): row for row in repository.rows.values()}
    assert rows[first["subscription_id"]].status == SubscriptionStatus.CANCELLED
    assert rows[second["subscription_id"]].status == SubscriptionStatus.ACTIVE


def test_create_with_inverted_window_is_422(client, headers):
    response = client.post(f"{API}/subscriptions", headers=headers, json={"plan": "basic", **_window(days=-1)})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_create_with_unknown_plan_is_422(client, headers):
    response = client.post(f"{API}/subscriptions", headers=headers, json={"plan": "gold", **_window()})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["errors"][0]["field"] == "body.plan"


def test_cancel_own_subscription(client, headers, user_id, repository):
    subscription = repository.add(make_subscription(user_id=user_id))

    response = client.post(f"{API}/subscriptions/{subscription.subscription_id}/cancel", headers=headers)

    assert response.status_code == 204
    assert repository.rows[subscription.subscription_id].status == SubscriptionStatus.CANCELLED


def test_cancel_other_users_subscription_is_403(client, headers, repository):
    subscription = repository.add(make_subscription())

    response = client.post(f"{API}/subscriptions/{subscription.subscription_id}/cancel", headers=headers)

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "You can only change your own active subscription."
    assert repository.rows[subscription.subscription_id].is_active


def test_upgrade_and_invalid_downgrade(client, headers, user_id, repository):
    subscription = repository.add(make_subscription(user_id=user_id, plan=SubscriptionPlan.BASIC))
    base = f"{API}/subscriptions/{subscription.subscription_id}"

    upgraded = client.post(f"{base}/upgrade", headers=headers, json={"new_plan": "premium"})
    wrong_way = client.post(f"{base}/downgrade", headers=headers, json={"new_plan": "premium"})

    assert upgraded.status_code == 204
    assert wrong_way.status_code == 422
    assert wrong_way.json()["error"]["message"] == "New plan must be a downgrade."
    assert repository.rows[subscription.subscription_id].plan == SubscriptionPlan.PREMIUM


def test_status_override_requires_admin(client, headers, repository):
    subscription = repository.add(make_subscription())
    path = f"{API}/subscriptions/{subscription.subscription_id}/status"

    as_user = client.patch(path, headers=headers, json={"status": "paused"})
    as_admin = client.patch(path, headers=auth_headers(uuid4(), roles=["admin"]), json={"status": "paused"})

    assert as_user.status_code == 403
    assert as_admin.status_code == 204
    assert repository.rows[subscription.subscription_id].status == SubscriptionStatus.PAUSED


def test_status_override_unknown_subscription(client):
    response = client.patch(
        f"{API}/subscriptions/{uuid4()}/status",
        headers=auth_headers(uuid4(), roles=["admin"]),
        json={"status": "expired"},
    )
    assert response.status_code == 404


# =========================================================================
# CHECKOUT
# =========================================================================

def test_checkout_returns_hosted_page(client, headers, user_id, user_directory, payment_gateway):
    user_directory.register(user_id, "reader@example.com")

    response = client.post(
        f"{API}/subscriptions/checkout",
        headers=headers,
        json={"plan": "premium", "success_url": "https://app.test/ok", "cancel_url": "https://app.test/no"},
    )

    assert response.status_code == 200
    assert response.json() == {"checkout_url": "https://checkout.stripe.test/cs_test_1"}
    assert payment_gateway.sessions[0]["metadata"]["plan"] == "premium"


def test_checkout_for_free_plan_is_422(client, headers):
    response = client.post(
        f"{API}/subscriptions/checkout",
        headers=headers,
        json={"plan": "free", "success_url": "https://app.test/ok", "cancel_url": "https://app.test/no"},
    )
    assert response.status_code == 422


def test_checkout_with_relative_url_is_422(client, headers):
    response = client.post(
        f"{API}/subscriptions/checkout",
        headers=headers,
        json={"plan": "basic", "success_url": "/ok", "cancel_url": "https://app.test/no"},
    )
    assert response.status_code == 422


def test_checkout_provider_failure_is_502(client, headers, user_id, user_directory, payment_gateway):
    user_directory.register(user_id, "reader@example.com")
    payment_gateway.fail_customer = True

    response = client.post(
        f"{API}/subscriptions/checkout",
        headers=headers,
        json={"plan": "basic", "success_url": "https://app.test/ok", "cancel_url": "https://app.test/no"},
    )

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"


# =========================================================================
# FEATURE ACCESS
# =========================================================================

def test_feature_access_for_free_user(client, headers):
    response = client.get(f"{API}/features/shared_lists/access", headers=headers)

    assert response.status_code == 200
    assert response.json() == {
        "feature": "shared_lists",
        "plan": "free",
        "allowed": False,
        "reason": "Shared lists require Premium plan.",
    }


def test_feature_access_for_premium_user(client, headers, user_id, repository):
    repository.add(make_subscription(user_id=user_id, plan=SubscriptionPlan.PREMIUM))

    body = client.get(f"{API}/features/batch_operations/access", headers=headers).json()

    assert body["allowed"] is True
    assert body["reason"] is None


def test_media_item_limit_access_uses_catalog(client, headers, user_id, catalog):
    catalog.counts[user_id] = 10

    body = client.get(f"{API}/features/media_item_limit/access", headers=headers).json()

    assert body["allowed"] is False
    assert body["reason"] == "Media item limit (10) exceeded for Free plan."


def test_unknown_feature_is_422(client, headers):
    response = client.get(f"{API}/features/teleportation/access", headers=headers)
    assert response.status_code == 422


def test_require_feature_blocks_free_user(client, headers):
    response = client.post(f"{API}/lists/share", headers=headers)

    assert response.status_code == 403
    error = response.json()["error"]
    assert error["message"] == "Shared lists require Premium plan."
    assert error["details"]["feature"] == "shared_lists"


def test_require_feature_lets_premium_user_through(client, headers, user_id, repository):
    repository.add(make_subscription(user_id=user_id, plan=SubscriptionPlan.PREMIUM))

    response = client.post(f"{API}/lists/share", headers=headers)

    assert response.status_code == 200
    assert response.json() == {"shared": True}


# =========================================================================
# STRIPE WEBHOOK
# =========================================================================

def test_webhook_acknowledges_verified_event(client, payment_gateway):
    payment_gateway.events["t=1,v1=good"] = PaymentEvent(
        event_id="evt_1", event_type="customer.subscription.updated", data={"id": "sub_1"}
    )

    response = client.post(
        f"{API}/stripe/webhooks",
        content=b'{"id": "evt_1"}',
        headers={"Stripe-Signature": "t=1,v1=good"},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True, "event_type": "customer.subscription.updated"}


def test_webhook_with_bad_signature_is_400(client):
    response = client.post(
        f"{API}/stripe/webhooks",
        content=b"{}",
        headers={"Stripe-Signature": "t=1,v1=forged"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"].startswith("Stripe webhook error:")


def test_webhook_without_signature_is_400(client):
    response = client.post(f"{API}/stripe/webhooks", content=b"{}")

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Missing Stripe-Signature header"


def test_webhook_without_payment_provider_is_400(app, client):
    app.dependency_overrides[get_payment_gateway] = lambda: None

    response = client.post(
        f"{API}/stripe/webhooks",
        content=b"{}",
        headers={"Stripe-Signature": "t=1,v1=good"},
    )

    assert response.status_code == 400
