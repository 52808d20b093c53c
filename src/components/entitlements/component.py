"""
Entitlements component - Subscription lifecycle entry points.

Shell Layer - converts service tuples into output models.
"""

from __future__ import annotations

from uuid import UUID

from ._impl import EntitlementService
from .models import (
    AutoRenewalInput,
    CancelInput,
    RenewInput,
    SubscribeInput,
    SubscriptionOutput,
    TopUpInput,
    TopUpOutput,
    VendorOutput,
)


def run_subscribe(
    input_data: SubscribeInput,
    service: EntitlementService,
) -> SubscriptionOutput:
    """Subscribe a vendor to a plan, superseding any current plan."""
    sub, errors = service.subscribe(input_data.vendor_id, input_data.plan_id)
    return SubscriptionOutput(
        subscription=sub,
        errors=tuple(errors),
        success=sub is not None,
    )


def run_renew(
    input_data: RenewInput,
    service: EntitlementService,
) -> SubscriptionOutput:
    sub, errors = service.renew(input_data.subscription_id, input_data.vendor_id)
    return SubscriptionOutput(
        subscription=sub,
        errors=tuple(errors),
        success=sub is not None,
    )


def run_cancel(
    input_data: CancelInput,
    service: EntitlementService,
) -> SubscriptionOutput:
    sub, errors = service.cancel(input_data.subscription_id, input_data.vendor_id)
    return SubscriptionOutput(
        subscription=sub,
        errors=tuple(errors),
        success=sub is not None,
    )


def run_set_auto_renewal(
    input_data: AutoRenewalInput,
    service: EntitlementService,
) -> SubscriptionOutput:
    sub, errors = service.set_auto_renewal(
        input_data.subscription_id, input_data.enabled, input_data.vendor_id
    )
    return SubscriptionOutput(
        subscription=sub,
        errors=tuple(errors),
        success=sub is not None,
    )


def run_purchase_top_up(
    input_data: TopUpInput,
    service: EntitlementService,
) -> TopUpOutput:
    """Buy top-up packs for a vendor with a live subscription."""
    pack, errors = service.purchase_top_up(input_data.vendor_id, input_data.packs)
    return TopUpOutput(pack=pack, errors=tuple(errors), success=pack is not None)


def run_register_vendor(
    display_name: str,
    service: EntitlementService,
) -> VendorOutput:
    vendor, errors = service.register_vendor(display_name)
    return VendorOutput(vendor=vendor, errors=tuple(errors), success=vendor is not None)


def run_deactivate_vendor(
    vendor_id: UUID,
    service: EntitlementService,
) -> VendorOutput:
    vendor, errors = service.deactivate_vendor(vendor_id)
    return VendorOutput(vendor=vendor, errors=tuple(errors), success=vendor is not None)
