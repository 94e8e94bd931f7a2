"""
Orders services package.

- OrderService: order state machine (create, status, pay, cancel, merge, delete)
- SettlementService: at-most-once loyalty accrual, shift accrual on payment
- TransitionResult / SideEffectOutcome: results returned by transitions
"""

from .order_service import OrderService
from .settlement_service import SettlementService
from .results import SideEffectOutcome, TransitionResult

__all__ = [
    'OrderService',
    'SettlementService',
    'SideEffectOutcome',
    'TransitionResult',
]
