"""JSON-file backed store for local, single-user use."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from ..errors import CollaboratorUnavailable
from .memory import InMemoryStore
from .records import (
    asset_from_record,
    asset_to_record,
    position_from_record,
    position_to_record,
)

logger = logging.getLogger(__name__)


class JsonFileStore(InMemoryStore):
    """InMemoryStore that loads from and writes through to a JSON file."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)

    async def open(self) -> None:
        if not self._path.exists():
            logger.info("Ledger file %s not found, starting empty", self._path)
            return
        try:
            with open(self._path) as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise CollaboratorUnavailable(
                f"Cannot read ledger file {self._path}: {e}"
            ) from e

        self._assets = {
            a.id: a for a in (asset_from_record(r) for r in raw.get("assets", []))
        }
        self._positions = {
            p.id: p
            for p in (position_from_record(r) for r in raw.get("positions", []))
        }
        logger.debug(
            "Loaded %d assets and %d positions from %s",
            len(self._assets), len(self._positions), self._path,
        )

    async def _persist(self) -> None:
        payload = {
            "assets": [asset_to_record(a) for a in self._assets.values()],
            "positions": [position_to_record(p) for p in self._positions.values()],
        }
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise CollaboratorUnavailable(
                f"Cannot write ledger file {self._path}: {e}"
            ) from e
