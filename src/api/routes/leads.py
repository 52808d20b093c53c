"""Lead routes: marketplace, owned leads, purchase and intake."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from src.api.deps import (
    get_admission_controller,
    get_catalog_service,
    get_current_vendor_id,
    get_ledger_service,
)
from src.api.schemas import (
    DirectLeadCreateRequest,
    ErrorItem,
    LeadCreateRequest,
    LeadViewResponse,
    OwnedLeadResponse,
    PurchaseErrorResponse,
    PurchaseResponse,
    PurchaseStatsResponse,
)
from src.components.admission import (
    AdmissionController,
    PurchaseError,
    PurchaseErrorCode,
    PurchaseInput,
    run_purchase,
)
from src.components.catalog import (
    CatalogError,
    CatalogService,
    CreateDirectLeadInput,
    CreateLeadInput,
    run_create_direct_lead,
    run_create_marketplace_lead,
)
from src.components.disclosure import LeadView, to_view
from src.components.ledger import LedgerService, run_stats

router = APIRouter()

PURCHASE_ERROR_STATUS: dict[PurchaseErrorCode, int] = {
    "lead_not_available": 404,
    "already_owned": 409,
    "not_entitled": 402,
    "quota_exceeded": 429,
    "concurrency_conflict": 503,
}


def lead_view_response(view: LeadView) -> LeadViewResponse:
    return LeadViewResponse(
        id=view.id,
        title=view.title,
        category=view.category,
        location=view.location,
        quantity=view.quantity,
        budget=view.budget,
        price=view.price,
        status=view.status,
        created_at=view.created_at,
        is_direct=view.is_direct,
        contact_revealed=view.contact_revealed,
        buyer_name=view.buyer_name,
        buyer_email=view.buyer_email,
        buyer_phone=view.buyer_phone,
    )


def _validation_error(errors: tuple[CatalogError, ...] | list[CatalogError]) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=[ErrorItem(code=e.code, message=e.message, field=e.field).model_dump() for e in errors],
    )


def purchase_denied(error: PurchaseError) -> JSONResponse:
    body = PurchaseErrorResponse(
        code=error.code,
        message=error.message,
        window=error.window,
        resets_at=error.resets_at,
    )
    return JSONResponse(
        status_code=PURCHASE_ERROR_STATUS[error.code],
        content=body.model_dump(mode="json"),
    )


# --- Vendor views ---


@router.get("/marketplace", response_model=list[LeadViewResponse])
def list_marketplace(
    category: str | None = None,
    vendor_id: UUID = Depends(get_current_vendor_id),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[LeadViewResponse]:
    """Open leads this vendor has not bought. Buyer contact is withheld."""
    leads = catalog.list_marketplace(vendor_id, category=category)
    return [lead_view_response(to_view(lead, revealed=False)) for lead in leads]


@router.get("/owned", response_model=list[OwnedLeadResponse])
def list_owned(
    vendor_id: UUID = Depends(get_current_vendor_id),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[OwnedLeadResponse]:
    """Direct and purchased leads with buyer contact revealed."""
    result = []
    for owned in catalog.list_owned(vendor_id):
        view, _ = catalog.get_lead_view(vendor_id, owned.lead.id)
        if view is None:
            continue
        result.append(
            OwnedLeadResponse(
                lead=lead_view_response(view),
                source=owned.source,
                acquired_at=owned.acquired_at,
            )
        )
    return result


@router.get("/purchases/stats", response_model=PurchaseStatsResponse)
def purchase_stats(
    vendor_id: UUID = Depends(get_current_vendor_id),
    ledger: LedgerService = Depends(get_ledger_service),
) -> PurchaseStatsResponse:
    stats = run_stats(vendor_id, ledger)
    return PurchaseStatsResponse(
        total_purchases=stats.total_purchases,
        total_spent=stats.total_spent,
    )


@router.get("/{lead_id}", response_model=LeadViewResponse)
def get_lead(
    lead_id: UUID,
    vendor_id: UUID = Depends(get_current_vendor_id),
    catalog: CatalogService = Depends(get_catalog_service),
) -> LeadViewResponse:
    view, errors = catalog.get_lead_view(vendor_id, lead_id)
    if view is None:
        raise HTTPException(status_code=404, detail=errors[0].message)
    return lead_view_response(view)


@router.post("/{lead_id}/purchase", response_model=PurchaseResponse, status_code=201)
def purchase_lead(
    lead_id: UUID,
    vendor_id: UUID = Depends(get_current_vendor_id),
    controller: AdmissionController = Depends(get_admission_controller),
) -> PurchaseResponse | JSONResponse:
    """
    Buy a lead against the vendor's quota.

    Denials carry {code, message, window, resets_at}; the status code
    identifies the reason class.
    """
    outcome = run_purchase(PurchaseInput(vendor_id=vendor_id, lead_id=lead_id), controller)
    if not outcome.success:
        assert outcome.error is not None
        return purchase_denied(outcome.error)

    purchase = outcome.purchase
    return PurchaseResponse(
        lead_id=lead_id,
        grant=outcome.grant or "purchased",
        purchase_id=purchase.id if purchase else None,
        amount=purchase.amount if purchase else None,
        funded_by=purchase.funded_by if purchase else None,
        granted_at=purchase.granted_at if purchase else None,
    )


# --- Intake ---


@router.post("", response_model=LeadViewResponse, status_code=201)
def create_marketplace_lead(
    data: LeadCreateRequest,
    catalog: CatalogService = Depends(get_catalog_service),
) -> LeadViewResponse:
    """Publish a buyer requirement to the marketplace."""
    result = run_create_marketplace_lead(
        CreateLeadInput(
            title=data.title,
            buyer_name=data.buyer_name,
            buyer_email=data.buyer_email,
            buyer_phone=data.buyer_phone,
            category=data.category,
            location=data.location,
            quantity=data.quantity,
            budget=data.budget,
            price=data.price,
        ),
        catalog,
    )
    if not result.success or result.lead is None:
        raise _validation_error(result.errors)
    return lead_view_response(to_view(result.lead, revealed=False))


@router.post("/direct", response_model=LeadViewResponse, status_code=201)
def create_direct_lead(
    data: DirectLeadCreateRequest,
    vendor_id: UUID = Depends(get_current_vendor_id),
    catalog: CatalogService = Depends(get_catalog_service),
) -> LeadViewResponse:
    """Record a lead the calling vendor sourced itself."""
    result = run_create_direct_lead(
        CreateDirectLeadInput(
            owning_vendor_id=vendor_id,
            title=data.title,
            buyer_name=data.buyer_name,
            buyer_email=data.buyer_email,
            buyer_phone=data.buyer_phone,
            category=data.category,
            location=data.location,
            quantity=data.quantity,
            budget=data.budget,
        ),
        catalog,
    )
    if not result.success or result.lead is None:
        raise _validation_error(result.errors)
    return lead_view_response(to_view(result.lead, revealed=True))
