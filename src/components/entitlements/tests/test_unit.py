"""
Entitlements component unit tests.

Subscription lifecycle, derived expiry, vendor registry and top-ups.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

from src.adapters.dev_notifier import DevNotifierAdapter
from src.components.entitlements import (
    RenewInput,
    SubscribeInput,
    run_renew,
    run_subscribe,
)

# --- Vendor Registry ---


class TestVendors:
    def test_register_vendor(self, ctx) -> None:
        vendor, errors = ctx.entitlements.register_vendor("  Acme Packaging  ")

        assert errors == []
        assert vendor is not None
        assert vendor.display_name == "Acme Packaging"
        assert ctx.entitlements.get_vendor(vendor.id) == vendor

    def test_register_requires_name(self, ctx) -> None:
        vendor, errors = ctx.entitlements.register_vendor("   ")

        assert vendor is None
        assert errors[0].code == "display_name_required"

    def test_deactivate_removes_entitlement(self, ctx, vendor) -> None:
        assert ctx.entitlements.is_entitled(vendor.id) is True

        updated, errors = ctx.entitlements.deactivate_vendor(vendor.id)

        assert errors == []
        assert updated.status == "deactivated"
        assert ctx.entitlements.is_entitled(vendor.id) is False

    def test_deactivate_unknown_vendor(self, ctx) -> None:
        vendor, errors = ctx.entitlements.deactivate_vendor(uuid4())

        assert vendor is None
        assert errors[0].code == "vendor_not_found"


# --- Subscribe ---


class TestSubscribe:
    def test_subscribe_sets_plan_duration(self, ctx, make_vendor, clock) -> None:
        vendor = make_vendor(plan_id=None)

        sub, errors = ctx.entitlements.subscribe(vendor.id, "starter")

        assert errors == []
        assert sub.status == "ACTIVE"
        assert sub.start_date == clock.now_utc()
        assert sub.end_date == clock.now_utc() + timedelta(days=365)
        assert ctx.entitlements.get_active_subscription(vendor.id) == sub

    def test_subscribe_initializes_quota(self, ctx, vendor) -> None:
        snapshot = ctx.quota.get_snapshot(vendor.id)

        assert snapshot.plan_id == "starter"
        assert [(w.used, w.limit) for w in snapshot.windows] == [(0, 2), (0, 10), (0, 100)]

    def test_upgrade_supersedes_previous_row(self, ctx, vendor) -> None:
        first = ctx.entitlements.get_active_subscription(vendor.id)

        second, errors = ctx.entitlements.subscribe(vendor.id, "growth")

        assert errors == []
        history = {s.id: s.status for s in ctx.entitlements.history(vendor.id)}
        assert history == {first.id: "INACTIVE", second.id: "ACTIVE"}
        assert ctx.quota.get_snapshot(vendor.id).window("daily").limit == 10

    def test_unknown_plan(self, ctx, vendor) -> None:
        sub, errors = ctx.entitlements.subscribe(vendor.id, "platinum")

        assert sub is None
        assert errors[0].code == "plan_not_found"

    def test_retired_plan_rejected(self, ctx, vendor) -> None:
        sub, errors = ctx.entitlements.subscribe(vendor.id, "legacy-trial")

        assert sub is None
        assert errors[0].code == "plan_inactive"

    def test_unknown_vendor(self, ctx) -> None:
        sub, errors = ctx.entitlements.subscribe(uuid4(), "starter")

        assert sub is None
        assert errors[0].code == "vendor_not_found"

    def test_run_subscribe_output(self, ctx, make_vendor) -> None:
        vendor = make_vendor(plan_id=None)

        result = run_subscribe(SubscribeInput(vendor.id, "growth"), ctx.entitlements)

        assert result.success is True
        assert result.subscription.plan_id == "growth"
        assert result.errors == ()


# --- Expiry ---


class TestDerivedExpiry:
    def test_expired_active_row_is_not_active(self, ctx, vendor, clock) -> None:
        """Status still reads ACTIVE in storage; end_date decides."""
        clock.advance(days=366)

        assert ctx.entitlements.get_active_subscription(vendor.id) is None
        assert ctx.entitlements.is_entitled(vendor.id) is False
        assert ctx.entitlements.history(vendor.id)[0].status == "ACTIVE"

    def test_days_remaining(self, ctx, vendor, clock) -> None:
        assert ctx.entitlements.days_remaining(vendor.id) == 365

        clock.advance(days=300, hours=1)

        assert ctx.entitlements.days_remaining(vendor.id) == 65

    def test_days_remaining_without_subscription(self, ctx, make_vendor) -> None:
        vendor = make_vendor(plan_id=None)

        assert ctx.entitlements.days_remaining(vendor.id) == 0


# --- Renew / Cancel ---


class TestRenewCancel:
    def test_renew_extends_from_current_end_date(self, ctx, vendor, clock) -> None:
        sub = ctx.entitlements.get_active_subscription(vendor.id)
        clock.advance(days=100)

        renewed, errors = ctx.entitlements.renew(sub.id)

        assert errors == []
        assert renewed.end_date == sub.end_date + timedelta(days=365)
        assert renewed.status == "ACTIVE"

    def test_renew_clears_reminder_flag(self, ctx, vendor) -> None:
        sub = ctx.entitlements.get_active_subscription(vendor.id)
        ctx.entitlements.mark_renewal_notified(sub.id)

        result = run_renew(RenewInput(sub.id), ctx.entitlements)

        assert result.success is True
        assert result.subscription.renewal_notification_sent is False

    def test_cancel(self, ctx, vendor) -> None:
        sub = ctx.entitlements.get_active_subscription(vendor.id)

        cancelled, errors = ctx.entitlements.cancel(sub.id)

        assert errors == []
        assert cancelled.status == "CANCELLED"
        assert ctx.entitlements.get_active_subscription(vendor.id) is None

    def test_cancelled_cannot_be_renewed(self, ctx, vendor) -> None:
        sub = ctx.entitlements.get_active_subscription(vendor.id)
        ctx.entitlements.cancel(sub.id)

        renewed, errors = ctx.entitlements.renew(sub.id)

        assert renewed is None
        assert errors[0].code == "invalid_transition"

    def test_other_vendor_cannot_touch_subscription(self, ctx, vendor, make_vendor) -> None:
        other = make_vendor("Other Co")
        sub = ctx.entitlements.get_active_subscription(vendor.id)

        result, errors = ctx.entitlements.cancel(sub.id, vendor_id=other.id)

        assert result is None
        assert errors[0].code == "subscription_not_found"

    def test_toggle_auto_renewal(self, ctx, vendor) -> None:
        sub = ctx.entitlements.get_active_subscription(vendor.id)

        updated, errors = ctx.entitlements.set_auto_renewal(sub.id, True)

        assert errors == []
        assert updated.auto_renewal_enabled is True
        assert ctx.entitlements.get_active_subscription(vendor.id).auto_renewal_enabled is True


# --- Top-ups ---


class TestTopUps:
    def test_purchase_top_up(self, ctx, vendor) -> None:
        pack, errors = ctx.entitlements.purchase_top_up(vendor.id, packs=2)

        assert errors == []
        assert pack.leads_purchased == 20
        assert pack.leads_remaining == 20
        assert pack.amount_paid == 3000
        assert ctx.entitlements.top_up_balance(vendor.id) == 20

    def test_top_up_needs_subscription(self, ctx, make_vendor) -> None:
        vendor = make_vendor(plan_id=None)

        pack, errors = ctx.entitlements.purchase_top_up(vendor.id)

        assert pack is None
        assert errors[0].code == "not_entitled"

    def test_zero_packs_rejected(self, ctx, vendor) -> None:
        pack, errors = ctx.entitlements.purchase_top_up(vendor.id, packs=0)

        assert pack is None
        assert errors[0].code == "packs_invalid"


# --- Expiration & Reminders ---


class TestReminders:
    def test_expiration_summary(self, ctx, make_vendor, clock) -> None:
        make_vendor("Soon", plan_id="starter")
        clock.advance(days=340)
        make_vendor("Later", plan_id="starter")
        clock.advance(days=20)

        summary = ctx.entitlements.expiration_summary()

        assert summary.expiring_within_7_days == 1
        assert summary.expiring_within_30_days == 1
        assert summary.active_but_expired == 0

        clock.advance(days=10)
        summary = ctx.entitlements.expiration_summary()
        assert summary.active_but_expired == 1

    def test_reminders_sent_once(self, ctx, vendor, clock) -> None:
        notifier = DevNotifierAdapter()
        clock.advance(days=360)

        sent = ctx.entitlements.send_renewal_reminders(notifier)

        assert [s.vendor_id for s in sent] == [vendor.id]
        assert notifier.reminders_for(vendor.id)[0].days_remaining == 5
        assert ctx.entitlements.send_renewal_reminders(notifier) == []

    def test_not_due_yet(self, ctx, vendor, clock) -> None:
        clock.advance(days=300)

        assert ctx.entitlements.due_for_reminder() == []
