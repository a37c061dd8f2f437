from tablepos.domain.orders.aggregates import Cart, CartLine, ValidationIssue
from tablepos.domain.orders.settlement import (
    CashSettlement,
    SettlementError,
    change_order_status,
    complete_payment,
    order_amount_due,
    settle_cash,
)
from tablepos.domain.orders.workflow import (
    OrderEditSession,
    SessionError,
    SessionMode,
    SessionState,
    SubmitResult,
    SubmitStep,
)

__all__ = [
    "Cart",
    "CartLine",
    "CashSettlement",
    "OrderEditSession",
    "SessionError",
    "SessionMode",
    "SessionState",
    "SettlementError",
    "SubmitResult",
    "SubmitStep",
    "ValidationIssue",
    "change_order_status",
    "complete_payment",
    "order_amount_due",
    "settle_cash",
]
