"""
Disclosure component - Gate for buyer contact fields.
"""

from .component import DisclosureResolver, can_reveal, may_reveal, to_view
from .models import LeadView
from .ports import PurchaseLookupPort

__all__ = [
    "DisclosureResolver",
    "can_reveal",
    "may_reveal",
    "to_view",
    "LeadView",
    "PurchaseLookupPort",
]
