"""Service layer: ledger, collateral selection, origination, repayment, monitoring."""
from .collateral import CollateralSelector
from .engine import BorrowingEngine
from .ledger import PositionLedger
from .monitor import LiquidationMonitor
from .originator import LoanOriginator
from .repayment import RepaymentService

__all__ = [
    "BorrowingEngine",
    "CollateralSelector",
    "LiquidationMonitor",
    "LoanOriginator",
    "PositionLedger",
    "RepaymentService",
]
