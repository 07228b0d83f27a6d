"""
Persistencia del offset de sincronización por canción.

Guarda un diccionario {track_id: offset_ms} en ~/.lyrics-cache/offsets.json.
"""

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_OFFSETS_PATH = Path.home() / ".lyrics-cache" / "offsets.json"


class OffsetStore:
    """Offset manual por canción, persistido en disco."""

    def __init__(self, path: Optional[Path] = None):
        self._path = path or DEFAULT_OFFSETS_PATH
        self._offsets: dict[str, int] = {}
        self.load()

    def load(self) -> None:
        """Carga los offsets desde disco. Si no existe o está corrupto, queda vacío."""
        if not self._path.exists():
            return

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            self._offsets = {str(k): int(v) for k, v in data.items()}
            logger.debug(f"Offsets cargados desde {self._path}: {len(self._offsets)}")
        except Exception as e:
            logger.warning(f"Error leyendo offsets: {e}. Se ignoran.")
            self._offsets = {}

    def get(self, track_id: str) -> int:
        """Retorna el offset guardado para la canción, 0 si no hay."""
        return self._offsets.get(track_id, 0)

    def set(self, track_id: str, offset_ms: int) -> None:
        """Guarda el offset de la canción (0 lo elimina)."""
        if offset_ms == 0:
            self._offsets.pop(track_id, None)
        else:
            self._offsets[track_id] = int(offset_ms)
        self.save()

    def save(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._offsets, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
        except Exception as e:
            logger.warning(f"Error guardando offsets: {e}")
