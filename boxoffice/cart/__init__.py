"""
Cart Module

Minimal cart collaborator for the ticketing engine: line items as handed over
by the commerce catalog, plus the service fee hook that keeps a single fee
line item in step with the cart's contents.
"""

from .router import router
from .service import CartService
from .service_fee import FeeRecalculation, ServiceFeeHook, calculate_service_fee, is_service_fee

__all__ = [
    "router",
    "CartService",
    "FeeRecalculation",
    "ServiceFeeHook",
    "calculate_service_fee",
    "is_service_fee",
]
