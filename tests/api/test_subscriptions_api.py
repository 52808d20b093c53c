"""
Subscription API tests.

Plan lifecycle, quota usage and top-up packs for the calling vendor.
"""

from uuid import uuid4


def _headers(vendor) -> dict[str, str]:
    return {"X-Vendor-Id": str(vendor.id)}


def test_list_plans_hides_inactive(client):
    response = client.get("/api/subscriptions/plans")

    assert response.status_code == 200
    ids = [p["id"] for p in response.json()]
    assert "starter" in ids
    assert "legacy-trial" not in ids


def test_subscribe_then_current(client, make_vendor):
    vendor = make_vendor(plan_id=None)

    created = client.post(
        "/api/subscriptions", json={"plan_id": "growth"}, headers=_headers(vendor)
    )

    assert created.status_code == 201
    assert created.json()["status"] == "ACTIVE"
    assert created.json()["days_remaining"] == 365

    current = client.get("/api/subscriptions/current", headers=_headers(vendor))
    assert current.json()["id"] == created.json()["id"]
    assert current.json()["is_active"] is True


def test_no_current_subscription(client, make_vendor):
    vendor = make_vendor(plan_id=None)

    response = client.get("/api/subscriptions/current", headers=_headers(vendor))

    assert response.status_code == 404


def test_subscribe_unknown_plan(client, make_vendor):
    vendor = make_vendor(plan_id=None)

    response = client.post(
        "/api/subscriptions", json={"plan_id": "platinum"}, headers=_headers(vendor)
    )

    assert response.status_code == 404
    assert response.json()["detail"][0]["code"] == "plan_not_found"


def test_resubscribe_supersedes(client, vendor):
    client.post("/api/subscriptions", json={"plan_id": "growth"}, headers=_headers(vendor))

    history = client.get("/api/subscriptions/history", headers=_headers(vendor)).json()

    assert sorted(s["status"] for s in history) == ["ACTIVE", "INACTIVE"]


def test_cancel_then_renew_is_conflict(client, vendor):
    current = client.get("/api/subscriptions/current", headers=_headers(vendor)).json()

    cancelled = client.post(
        f"/api/subscriptions/{current['id']}/cancel", headers=_headers(vendor)
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"

    renewed = client.post(f"/api/subscriptions/{current['id']}/renew", headers=_headers(vendor))
    assert renewed.status_code == 409
    assert renewed.json()["detail"][0]["code"] == "invalid_transition"


def test_renew_extends_end_date(client, vendor):
    current = client.get("/api/subscriptions/current", headers=_headers(vendor)).json()

    renewed = client.post(f"/api/subscriptions/{current['id']}/renew", headers=_headers(vendor))

    assert renewed.status_code == 200
    assert renewed.json()["days_remaining"] == 730


def test_other_vendors_subscription_is_not_found(client, vendor, make_vendor):
    other = make_vendor("Other Co")
    theirs = client.get("/api/subscriptions/current", headers=_headers(other)).json()

    response = client.post(
        f"/api/subscriptions/{theirs['id']}/cancel", headers=_headers(vendor)
    )

    assert response.status_code == 404


def test_unknown_subscription(client, vendor):
    response = client.post(f"/api/subscriptions/{uuid4()}/renew", headers=_headers(vendor))

    assert response.status_code == 404
    assert response.json()["detail"][0]["code"] == "subscription_not_found"


def test_toggle_auto_renewal(client, vendor):
    current = client.get("/api/subscriptions/current", headers=_headers(vendor)).json()

    response = client.put(
        f"/api/subscriptions/{current['id']}/auto-renewal",
        json={"enabled": True},
        headers=_headers(vendor),
    )

    assert response.status_code == 200
    assert response.json()["auto_renewal_enabled"] is True


# --- Quota & Top-ups ---


def test_quota_usage(client, vendor, make_lead):
    lead = make_lead()
    client.post(f"/api/leads/{lead.id}/purchase", headers=_headers(vendor))

    body = client.get("/api/subscriptions/quota", headers=_headers(vendor)).json()

    assert body["entitled"] is True
    assert body["can_purchase"] is True
    assert [(w["window"], w["used"], w["limit"]) for w in body["windows"]] == [
        ("daily", 1, 2),
        ("weekly", 1, 10),
        ("yearly", 1, 100),
    ]


def test_quota_for_vendor_without_plan(client, make_vendor):
    vendor = make_vendor(plan_id=None)

    body = client.get("/api/subscriptions/quota", headers=_headers(vendor)).json()

    assert body["entitled"] is False
    assert body["can_purchase"] is False


def test_buy_top_up(client, vendor):
    response = client.post(
        "/api/subscriptions/top-ups", json={"packs": 2}, headers=_headers(vendor)
    )

    assert response.status_code == 201
    body = response.json()
    assert body["leads_purchased"] == 20
    assert body["amount_paid"] == 3000.0
    assert body["balance"] == 20


def test_list_top_ups_oldest_first(client, vendor, clock):
    client.post("/api/subscriptions/top-ups", json={"packs": 1}, headers=_headers(vendor))
    clock.advance(minutes=5)
    client.post("/api/subscriptions/top-ups", json={"packs": 2}, headers=_headers(vendor))

    response = client.get("/api/subscriptions/top-ups", headers=_headers(vendor))

    assert response.status_code == 200
    body = response.json()
    assert body["balance"] == 30
    assert [p["leads_purchased"] for p in body["packs"]] == [10, 20]


def test_list_top_ups_empty(client, make_vendor):
    vendor = make_vendor(plan_id=None)

    body = client.get("/api/subscriptions/top-ups", headers=_headers(vendor)).json()

    assert body == {"balance": 0, "packs": []}


def test_top_up_requires_subscription(client, make_vendor):
    vendor = make_vendor(plan_id=None)

    response = client.post(
        "/api/subscriptions/top-ups", json={"packs": 1}, headers=_headers(vendor)
    )

    assert response.status_code == 402


def test_top_up_pack_count_is_validated(client, vendor):
    response = client.post(
        "/api/subscriptions/top-ups", json={"packs": 0}, headers=_headers(vendor)
    )

    assert response.status_code == 422
