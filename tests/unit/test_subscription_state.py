from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.domain.entities import VendorPlanSubscription
from src.domain.state import can_transition, transition

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


def _sub(status="ACTIVE", **kwargs):
    return VendorPlanSubscription(
        vendor_id=uuid4(),
        plan_id="starter",
        start_date=NOW,
        end_date=NOW + timedelta(days=365),
        status=status,
        **kwargs,
    )


@pytest.mark.parametrize(
    "status,action,allowed",
    [
        ("ACTIVE", "renew", True),
        ("ACTIVE", "cancel", True),
        ("ACTIVE", "supersede", True),
        ("CANCELLED", "renew", False),
        ("CANCELLED", "cancel", False),
        ("INACTIVE", "renew", False),
        ("INACTIVE", "supersede", False),
    ],
)
def test_can_transition(status, action, allowed):
    assert can_transition(status, action) is allowed


def test_renew_extends_from_end_date():
    sub = _sub(renewal_notification_sent=True)
    later = NOW + timedelta(days=100)

    renewed = transition(sub, "renew", later)

    assert renewed.status == "ACTIVE"
    assert renewed.end_date == sub.end_date + timedelta(days=365)
    assert renewed.renewal_notification_sent is False
    assert renewed.updated_at == later
    assert sub.end_date == NOW + timedelta(days=365)


def test_renew_lapsed_row():
    sub = _sub()
    lapsed = NOW + timedelta(days=400)

    renewed = transition(sub, "renew", lapsed)

    # Extends from the old end_date, not from the renewal time.
    assert renewed.end_date == sub.end_date + timedelta(days=365)
    assert renewed.end_date < lapsed + timedelta(days=365)


def test_renew_long_lapsed_row_stays_expired():
    sub = _sub()
    lapsed = NOW + timedelta(days=800)

    renewed = transition(sub, "renew", lapsed)

    assert renewed.is_active_at(lapsed) is False


def test_cancel():
    assert transition(_sub(), "cancel", NOW).status == "CANCELLED"


def test_supersede():
    assert transition(_sub(), "supersede", NOW).status == "INACTIVE"


def test_terminal_states_reject():
    with pytest.raises(ValueError, match="Cannot renew"):
        transition(_sub("CANCELLED"), "renew", NOW)


# --- Derived expiry ---


def test_expiry_is_derived_from_end_date():
    sub = _sub()

    assert sub.is_active_at(NOW) is True
    assert sub.is_active_at(sub.end_date) is False
    assert _sub("CANCELLED").is_active_at(NOW) is False


def test_days_remaining_rounds_up():
    sub = _sub()

    assert sub.days_remaining(NOW) == 365
    assert sub.days_remaining(NOW + timedelta(hours=1)) == 365
    assert sub.days_remaining(sub.end_date - timedelta(hours=1)) == 1
    assert sub.days_remaining(sub.end_date + timedelta(days=3)) == 0
