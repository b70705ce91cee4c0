"""Utilities for reading and writing presentation JSON documents."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from .slide_models import Presentation

LOGGER = logging.getLogger(__name__)


class PresentationStore:
    """Persist whole `Presentation` values as ``<root>/<id>.json``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, presentation_id: str) -> Path:
        if not presentation_id or "/" in presentation_id or "\\" in presentation_id:
            raise ValueError(f"Invalid presentation id: {presentation_id!r}")
        return self.root / f"{presentation_id}.json"

    # ------------------------------------------------------------------
    # I/O helpers
    # ------------------------------------------------------------------
    def load(self, presentation_id: str) -> Presentation:
        path = self.path_for(presentation_id)
        if not path.exists():
            raise KeyError(f"presentation {presentation_id} not found in {self.root}")
        data = json.loads(path.read_text(encoding="utf-8"))
        return Presentation.from_dict(data)

    def save(self, presentation: Presentation) -> Path:
        path = self.path_for(presentation.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(presentation.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        LOGGER.info("Saved presentation %s (%d slides)", presentation.id, len(presentation.slides))
        return path

    def exists(self, presentation_id: str) -> bool:
        return self.path_for(presentation_id).exists()

    def list_ids(self) -> List[str]:
        if not self.root.exists():
            return []
        return sorted(path.stem for path in self.root.glob("*.json"))

    def delete(self, presentation_id: str) -> None:
        path = self.path_for(presentation_id)
        if not path.exists():
            raise KeyError(f"presentation {presentation_id} not found in {self.root}")
        path.unlink()
