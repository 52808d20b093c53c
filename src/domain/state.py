from datetime import datetime, timedelta
from typing import Literal

from src.domain.entities import SubscriptionStatus, VendorPlanSubscription

SubscriptionAction = Literal["supersede", "renew", "cancel"]

# Only ACTIVE rows move. INACTIVE and CANCELLED are terminal; a vendor who
# comes back gets a fresh ACTIVE row through subscribe.
_ALLOWED: dict[SubscriptionAction, tuple[SubscriptionStatus, SubscriptionStatus]] = {
    "supersede": ("ACTIVE", "INACTIVE"),
    "renew": ("ACTIVE", "ACTIVE"),
    "cancel": ("ACTIVE", "CANCELLED"),
}


def can_transition(current: SubscriptionStatus, action: SubscriptionAction) -> bool:
    """
    Determine if a subscription action is allowed from the current status.
    """
    expected_from, _ = _ALLOWED[action]
    return current == expected_from


def transition(
    sub: VendorPlanSubscription,
    action: SubscriptionAction,
    now: datetime,
) -> VendorPlanSubscription:
    """
    Return a NEW subscription with the action applied.
    Raises ValueError if the action is not allowed from the current status.

    Expiry is not a state: an ACTIVE row past its end_date is still ACTIVE
    here and can be renewed or cancelled.
    """
    if not can_transition(sub.status, action):
        raise ValueError(f"Cannot {action} a subscription in status {sub.status}")

    _, new_status = _ALLOWED[action]
    updates: dict[str, object] = {"status": new_status, "updated_at": now}

    if action == "renew":
        # Extend from the current end_date so early renewal keeps paid time.
        updates["end_date"] = sub.end_date + timedelta(days=sub.plan_duration_days)
        updates["renewal_notification_sent"] = False

    return sub.model_copy(update=updates)
