"""Operator routes: vendor registry, expiring subscriptions, lead closing."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import (
    get_catalog_service,
    get_clock,
    get_entitlement_service,
    require_admin,
)
from src.api.routes.leads import lead_view_response
from src.api.routes.subscriptions import raise_entitlement_error, subscription_response
from src.api.schemas import (
    ErrorItem,
    ExpiringResponse,
    LeadViewResponse,
    VendorCreateRequest,
    VendorResponse,
)
from src.components.catalog import CatalogService
from src.components.disclosure import to_view
from src.components.entitlements import (
    EntitlementService,
    run_deactivate_vendor,
    run_register_vendor,
)
from src.core.ports.time import ClockPort
from src.domain.entities import Vendor

router = APIRouter(dependencies=[Depends(require_admin)])


def _vendor_response(vendor: Vendor) -> VendorResponse:
    return VendorResponse(
        id=vendor.id,
        display_name=vendor.display_name,
        status=vendor.status,
        created_at=vendor.created_at,
    )


# --- Vendors ---


@router.post("/vendors", response_model=VendorResponse, status_code=201)
def register_vendor(
    data: VendorCreateRequest,
    service: EntitlementService = Depends(get_entitlement_service),
) -> VendorResponse:
    result = run_register_vendor(data.display_name, service)
    if not result.success or result.vendor is None:
        raise_entitlement_error(result.errors)
    return _vendor_response(result.vendor)


@router.get("/vendors", response_model=list[VendorResponse])
def list_vendors(
    service: EntitlementService = Depends(get_entitlement_service),
) -> list[VendorResponse]:
    return [_vendor_response(v) for v in service.list_vendors()]


@router.post("/vendors/{vendor_id}/deactivate", response_model=VendorResponse)
def deactivate_vendor(
    vendor_id: UUID,
    service: EntitlementService = Depends(get_entitlement_service),
) -> VendorResponse:
    """Vendor keeps its history but can no longer purchase."""
    result = run_deactivate_vendor(vendor_id, service)
    if not result.success or result.vendor is None:
        raise_entitlement_error(result.errors)
    return _vendor_response(result.vendor)


# --- Subscriptions ---


@router.get("/subscriptions/expiring", response_model=ExpiringResponse)
def expiring_subscriptions(
    service: EntitlementService = Depends(get_entitlement_service),
    clock: ClockPort = Depends(get_clock),
) -> ExpiringResponse:
    summary = service.expiration_summary()
    now = clock.now_utc()
    return ExpiringResponse(
        as_of=summary.as_of,
        expiring_within_7_days=summary.expiring_within_7_days,
        expiring_within_30_days=summary.expiring_within_30_days,
        active_but_expired=summary.active_but_expired,
        due_for_reminder=[subscription_response(s, now) for s in service.due_for_reminder()],
    )


# --- Leads ---


@router.post("/leads/{lead_id}/close", response_model=LeadViewResponse)
def close_lead(
    lead_id: UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> LeadViewResponse:
    """Withdraw an open lead from the marketplace. Existing purchases stand."""
    lead, errors = catalog.close_lead(lead_id)
    if lead is None:
        status_code = 404 if errors and errors[0].code == "lead_not_found" else 409
        raise HTTPException(
            status_code=status_code,
            detail=[ErrorItem(code=e.code, message=e.message, field=e.field).model_dump() for e in errors],
        )
    return lead_view_response(to_view(lead, revealed=False))
