"""Collaborator interfaces for the borrowing engine."""
from .collateral_store import CollateralStore
from .notifier import Notifier
from .position_store import PositionStore

__all__ = ["CollateralStore", "Notifier", "PositionStore"]
