"""
Configuración del motor: intervalos de polling, umbrales de
reconciliación, traducción y límites del offset manual.

Se guarda como JSON en ~/.lyrics-cache/letra-karaoke.json.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from .time_reconciler import ReconcilerConfig

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".lyrics-cache" / "letra-karaoke.json"


@dataclass
class AppSettings:
    """Parámetros ajustables del motor de sincronización."""

    # --- Polling del reproductor ---
    poll_interval_ms: int = 3000
    fast_poll_interval_ms: int = 1000
    boundary_lookahead_ms: int = 1500  # Polling rápido si un cambio de línea está cerca

    # --- Refresco ---
    frame_interval_ms: int = 16

    # --- Reconciliación de tiempo ---
    ignore_threshold_ms: int = 50
    snap_threshold_ms: int = 2000
    blend_duration_ms: int = 500

    # --- Traducción ---
    translation_enabled: bool = True
    target_lang: str = "en"
    translation_cache_size: int = 512

    # --- Offset manual ---
    offset_step_ms: int = 10
    max_offset_ms: int = 500

    def validate(self) -> None:
        """Lleva cada valor a su rango permitido."""
        self.poll_interval_ms = max(500, min(30000, self.poll_interval_ms))
        self.fast_poll_interval_ms = max(250, min(self.poll_interval_ms, self.fast_poll_interval_ms))
        self.boundary_lookahead_ms = max(0, min(10000, self.boundary_lookahead_ms))
        self.frame_interval_ms = max(8, min(100, self.frame_interval_ms))
        self.ignore_threshold_ms = max(0, min(500, self.ignore_threshold_ms))
        self.snap_threshold_ms = max(self.ignore_threshold_ms, min(10000, self.snap_threshold_ms))
        self.blend_duration_ms = max(0, min(5000, self.blend_duration_ms))
        self.translation_cache_size = max(1, min(100000, self.translation_cache_size))
        self.offset_step_ms = max(1, min(500, self.offset_step_ms))
        self.max_offset_ms = max(0, min(10000, self.max_offset_ms))

    def reconciler_config(self) -> ReconcilerConfig:
        """Umbrales de reconciliación derivados de la configuración."""
        return ReconcilerConfig(
            ignore_threshold_ms=self.ignore_threshold_ms,
            snap_threshold_ms=self.snap_threshold_ms,
            blend_duration_ms=self.blend_duration_ms,
        )


class SettingsManager:
    """
    Acceso a la configuración del motor, respaldada por un archivo JSON.

    Las claves desconocidas del archivo se ignoran y los valores fuera de
    rango se corrigen al cargar; un archivo ilegible deja los defaults.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = path or DEFAULT_SETTINGS_PATH
        self._settings = AppSettings()
        self.load()

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def path(self) -> Path:
        return self._path

    def _apply(self, data: dict) -> list[str]:
        """Copia los campos conocidos sobre la configuración actual."""
        known = {f.name for f in fields(AppSettings)}
        ignored = []
        for key, value in data.items():
            if key in known:
                setattr(self._settings, key, value)
            else:
                ignored.append(key)
        self._settings.validate()
        return ignored

    def load(self) -> None:
        if not self._path.exists():
            logger.info(f"Sin configuración en {self._path}, se usan los valores por defecto")
            return

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            ignored = self._apply(data)
        except Exception as e:
            logger.warning(f"Configuración ilegible ({e}), se usan los valores por defecto")
            self._settings = AppSettings()
            return

        if ignored:
            logger.debug(f"Claves de configuración ignoradas: {', '.join(sorted(ignored))}")
        logger.info(f"Configuración cargada: {self._path}")

    def update(self, **changes) -> AppSettings:
        """
        Modifica campos de la configuración y la persiste.

        Raises:
            KeyError: si algún campo no existe en AppSettings
        """
        unknown = set(changes) - {f.name for f in fields(AppSettings)}
        if unknown:
            raise KeyError(f"Campos de configuración desconocidos: {', '.join(sorted(unknown))}")
        self._apply(changes)
        self.save()
        return self._settings

    def save(self) -> None:
        try:
            self._settings.validate()
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(asdict(self._settings), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            logger.debug(f"Configuración escrita en {self._path}")
        except Exception as e:
            logger.warning(f"No se pudo escribir la configuración: {e}")

    def reset(self) -> None:
        """Vuelve a los valores por defecto y los persiste."""
        self._settings = AppSettings()
        self.save()
        logger.info("Configuración reiniciada")
