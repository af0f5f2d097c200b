"""
Admin Module

Per-show sales statistics, ticket listings with buyer details and the
general access capacity override.
"""

from .router import router
from .service import ShowAdminService

__all__ = ["router", "ShowAdminService"]
