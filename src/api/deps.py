import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from src.adapters.clock import SystemClock
from src.app_shell.context import ServiceContext
from src.components.admission import AdmissionController
from src.components.catalog import CatalogService
from src.components.entitlements import EntitlementService
from src.components.ledger import LedgerService
from src.components.quota import QuotaService
from src.core.ports.time import ClockPort
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("LMX_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "marketplace.db")
        self.rules_path = Path(
            os.environ.get("LMX_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.admin_key = os.environ.get("LMX_ADMIN_KEY")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Clock ---
def get_clock() -> ClockPort:
    return SystemClock()


# --- Services ---
def get_context(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    clock: ClockPort = Depends(get_clock),
) -> ServiceContext:
    return ServiceContext.create(settings.db_path, rules, clock)


def get_entitlement_service(ctx: ServiceContext = Depends(get_context)) -> EntitlementService:
    return ctx.entitlements


def get_quota_service(ctx: ServiceContext = Depends(get_context)) -> QuotaService:
    return ctx.quota


def get_ledger_service(ctx: ServiceContext = Depends(get_context)) -> LedgerService:
    return ctx.ledger


def get_catalog_service(ctx: ServiceContext = Depends(get_context)) -> CatalogService:
    return ctx.catalog


def get_admission_controller(
    ctx: ServiceContext = Depends(get_context),
) -> AdmissionController:
    return ctx.admission


# --- Caller identity ---
def get_current_vendor_id(
    x_vendor_id: Annotated[str | None, Header()] = None,
) -> UUID:
    """Vendor making the request, taken from the X-Vendor-Id header."""
    if not x_vendor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Vendor-Id header",
        )
    try:
        return UUID(x_vendor_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-Vendor-Id header",
        ) from e


def require_admin(
    settings: Settings = Depends(get_settings),
    x_admin_key: Annotated[str | None, Header()] = None,
) -> None:
    """Admin routes are open unless LMX_ADMIN_KEY is set."""
    if settings.admin_key and x_admin_key != settings.admin_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin key required",
        )
