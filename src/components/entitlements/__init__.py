"""
Entitlements component - Vendor registry, subscriptions and top-up packs.
"""

from ._impl import EntitlementService, initial_quota, validate_display_name
from .component import (
    run_cancel,
    run_deactivate_vendor,
    run_purchase_top_up,
    run_register_vendor,
    run_renew,
    run_set_auto_renewal,
    run_subscribe,
)
from .models import (
    AutoRenewalInput,
    CancelInput,
    EntitlementConfig,
    EntitlementError,
    ExpirationSummary,
    RenewInput,
    SubscribeInput,
    SubscriptionOutput,
    TopUpInput,
    TopUpOutput,
    VendorOutput,
)
from .ports import PlanCatalogPort, RenewalNotifierPort

__all__ = [
    # Entry points
    "run_subscribe",
    "run_renew",
    "run_cancel",
    "run_set_auto_renewal",
    "run_purchase_top_up",
    "run_register_vendor",
    "run_deactivate_vendor",
    # Service
    "EntitlementService",
    "initial_quota",
    "validate_display_name",
    # Input models
    "SubscribeInput",
    "RenewInput",
    "CancelInput",
    "AutoRenewalInput",
    "TopUpInput",
    # Output models
    "SubscriptionOutput",
    "TopUpOutput",
    "VendorOutput",
    "ExpirationSummary",
    "EntitlementConfig",
    "EntitlementError",
    # Ports
    "PlanCatalogPort",
    "RenewalNotifierPort",
]
