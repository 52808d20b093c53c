"""Subscription, quota and top-up routes for the calling vendor."""

from datetime import datetime
from typing import NoReturn
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import (
    get_clock,
    get_current_vendor_id,
    get_entitlement_service,
    get_quota_service,
)
from src.api.schemas import (
    AutoRenewalRequest,
    ErrorItem,
    PlanResponse,
    QuotaResponse,
    SubscribeRequest,
    SubscriptionResponse,
    TopUpListResponse,
    TopUpPackResponse,
    TopUpRequest,
    TopUpResponse,
    WindowUsageResponse,
)
from src.components.entitlements import (
    AutoRenewalInput,
    CancelInput,
    EntitlementError,
    EntitlementService,
    RenewInput,
    SubscribeInput,
    SubscriptionOutput,
    TopUpInput,
    run_cancel,
    run_purchase_top_up,
    run_renew,
    run_set_auto_renewal,
    run_subscribe,
)
from src.components.quota import QuotaService
from src.core.ports.time import ClockPort
from src.domain.entities import VendorPlanSubscription

router = APIRouter()

ENTITLEMENT_ERROR_STATUS = {
    "subscription_not_found": 404,
    "plan_not_found": 404,
    "vendor_not_found": 404,
    "not_entitled": 402,
    "invalid_transition": 409,
}


def raise_entitlement_error(
    errors: tuple[EntitlementError, ...] | list[EntitlementError],
) -> NoReturn:
    status_code = ENTITLEMENT_ERROR_STATUS.get(errors[0].code, 400) if errors else 400
    raise HTTPException(
        status_code=status_code,
        detail=[ErrorItem(code=e.code, message=e.message, field=e.field).model_dump() for e in errors],
    )


def subscription_response(sub: VendorPlanSubscription, now: datetime) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=sub.id,
        vendor_id=sub.vendor_id,
        plan_id=sub.plan_id,
        start_date=sub.start_date,
        end_date=sub.end_date,
        status=sub.status,
        is_active=sub.is_active_at(now),
        days_remaining=sub.days_remaining(now),
        auto_renewal_enabled=sub.auto_renewal_enabled,
        renewal_notification_sent=sub.renewal_notification_sent,
    )


def _lifecycle_result(result: SubscriptionOutput, clock: ClockPort) -> SubscriptionResponse:
    if not result.success or result.subscription is None:
        raise_entitlement_error(result.errors)
    return subscription_response(result.subscription, clock.now_utc())


# --- Plans ---


@router.get("/plans", response_model=list[PlanResponse])
def list_plans(
    service: EntitlementService = Depends(get_entitlement_service),
) -> list[PlanResponse]:
    return [
        PlanResponse(
            id=p.id,
            name=p.name,
            daily_limit=p.daily_limit,
            weekly_limit=p.weekly_limit,
            yearly_limit=p.yearly_limit,
            duration_days=p.duration_days,
            price=p.price,
        )
        for p in service.list_plans()
    ]


# --- Subscriptions ---


@router.get("/current", response_model=SubscriptionResponse)
def current_subscription(
    vendor_id: UUID = Depends(get_current_vendor_id),
    service: EntitlementService = Depends(get_entitlement_service),
    clock: ClockPort = Depends(get_clock),
) -> SubscriptionResponse:
    """The vendor's unexpired ACTIVE subscription."""
    sub = service.get_active_subscription(vendor_id)
    if sub is None:
        raise HTTPException(status_code=404, detail="No active subscription")
    return subscription_response(sub, clock.now_utc())


@router.get("/history", response_model=list[SubscriptionResponse])
def subscription_history(
    vendor_id: UUID = Depends(get_current_vendor_id),
    service: EntitlementService = Depends(get_entitlement_service),
    clock: ClockPort = Depends(get_clock),
) -> list[SubscriptionResponse]:
    now = clock.now_utc()
    return [subscription_response(s, now) for s in service.history(vendor_id)]


@router.post("", response_model=SubscriptionResponse, status_code=201)
def subscribe(
    data: SubscribeRequest,
    vendor_id: UUID = Depends(get_current_vendor_id),
    service: EntitlementService = Depends(get_entitlement_service),
    clock: ClockPort = Depends(get_clock),
) -> SubscriptionResponse:
    result = run_subscribe(SubscribeInput(vendor_id=vendor_id, plan_id=data.plan_id), service)
    return _lifecycle_result(result, clock)


@router.post("/{subscription_id}/renew", response_model=SubscriptionResponse)
def renew(
    subscription_id: UUID,
    vendor_id: UUID = Depends(get_current_vendor_id),
    service: EntitlementService = Depends(get_entitlement_service),
    clock: ClockPort = Depends(get_clock),
) -> SubscriptionResponse:
    result = run_renew(RenewInput(subscription_id=subscription_id, vendor_id=vendor_id), service)
    return _lifecycle_result(result, clock)


@router.post("/{subscription_id}/cancel", response_model=SubscriptionResponse)
def cancel(
    subscription_id: UUID,
    vendor_id: UUID = Depends(get_current_vendor_id),
    service: EntitlementService = Depends(get_entitlement_service),
    clock: ClockPort = Depends(get_clock),
) -> SubscriptionResponse:
    result = run_cancel(CancelInput(subscription_id=subscription_id, vendor_id=vendor_id), service)
    return _lifecycle_result(result, clock)


@router.put("/{subscription_id}/auto-renewal", response_model=SubscriptionResponse)
def set_auto_renewal(
    subscription_id: UUID,
    data: AutoRenewalRequest,
    vendor_id: UUID = Depends(get_current_vendor_id),
    service: EntitlementService = Depends(get_entitlement_service),
    clock: ClockPort = Depends(get_clock),
) -> SubscriptionResponse:
    result = run_set_auto_renewal(
        AutoRenewalInput(
            subscription_id=subscription_id,
            enabled=data.enabled,
            vendor_id=vendor_id,
        ),
        service,
    )
    return _lifecycle_result(result, clock)


# --- Quota & Top-ups ---


@router.get("/quota", response_model=QuotaResponse)
def quota_usage(
    vendor_id: UUID = Depends(get_current_vendor_id),
    quota: QuotaService = Depends(get_quota_service),
) -> QuotaResponse:
    """Counters as they stand after any pending rollover. Read-only."""
    snapshot = quota.get_snapshot(vendor_id)
    return QuotaResponse(
        vendor_id=snapshot.vendor_id,
        as_of=snapshot.as_of,
        entitled=snapshot.entitled,
        can_purchase=snapshot.can_purchase,
        plan_id=snapshot.plan_id,
        windows=[
            WindowUsageResponse(
                window=w.window,
                used=w.used,
                limit=w.limit,
                remaining=w.remaining,
                resets_at=w.resets_at,
            )
            for w in snapshot.windows
        ],
        exhausted_window=snapshot.exhausted_window,
        top_up_remaining=snapshot.top_up_remaining,
    )


@router.post("/top-ups", response_model=TopUpResponse, status_code=201)
def purchase_top_up(
    data: TopUpRequest,
    vendor_id: UUID = Depends(get_current_vendor_id),
    service: EntitlementService = Depends(get_entitlement_service),
) -> TopUpResponse:
    result = run_purchase_top_up(TopUpInput(vendor_id=vendor_id, packs=data.packs), service)
    if not result.success or result.pack is None:
        raise_entitlement_error(result.errors)
    return TopUpResponse(
        id=result.pack.id,
        leads_purchased=result.pack.leads_purchased,
        leads_remaining=result.pack.leads_remaining,
        amount_paid=result.pack.amount_paid,
        balance=service.top_up_balance(vendor_id),
    )


@router.get("/top-ups", response_model=TopUpListResponse)
def list_top_ups(
    vendor_id: UUID = Depends(get_current_vendor_id),
    service: EntitlementService = Depends(get_entitlement_service),
) -> TopUpListResponse:
    """Packs oldest first, the order they are drawn down in."""
    packs = service.list_top_ups(vendor_id)
    return TopUpListResponse(
        balance=sum(p.leads_remaining for p in packs),
        packs=[
            TopUpPackResponse(
                id=p.id,
                leads_purchased=p.leads_purchased,
                leads_remaining=p.leads_remaining,
                amount_paid=p.amount_paid,
                created_at=p.created_at,
            )
            for p in packs
        ],
    )
