"""Notifier protocol: delivery channel for liquidation-risk messages."""
from typing import Protocol


class Notifier(Protocol):
    """A channel the liquidation monitor pushes messages through.

    Both methods return True once the channel accepted the message and
    False otherwise; delivery problems are reported that way, not raised.
    """

    async def send_alert(self, message: str, subject: str = "") -> bool:
        """Position at warning level or worse; ``subject`` carries the severity."""
        ...

    async def send_log(self, message: str, silent: bool = True) -> bool:
        """Scan notes such as a skipped wallet after a degraded read."""
        ...
