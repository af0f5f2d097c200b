"""
Checkout Module

Everything between a finished cart and issued tickets:

- line_items.py: resolves line items against the show catalog
- guard.py: read-only duplicate seat and capacity checks
- issuance.py: ticket creation and its compensation
- workflow.py: the two-phase order-completion workflow
"""

from .router import router
from .guard import CheckoutGuard
from .issuance import TicketIssuanceService
from .line_items import LineItemResolver, TicketLine
from .workflow import (
    CompleteCartWorkflow, CompletedCart, StepResponse, Workflow, WorkflowStep
)

__all__ = [
    "router",
    "CheckoutGuard",
    "TicketIssuanceService",
    "LineItemResolver",
    "TicketLine",
    "CompleteCartWorkflow",
    "CompletedCart",
    "StepResponse",
    "Workflow",
    "WorkflowStep",
]
