"""
Inventory Module

Read-only views over show inventory: per-date availability by category and
the seat map used by seat selection.
"""

from .router import router
from .service import InventoryService

__all__ = ["router", "InventoryService"]
