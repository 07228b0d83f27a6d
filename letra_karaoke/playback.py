"""
Fuente del estado de reproducción.

El motor solo necesita `poll()`: qué canción suena, si está reproduciendo
y en qué posición. La integración con el servicio de música queda fuera;
LocalClockSource estima la posición con el reloj monotónico para una
canción indicada a mano (sin API del reproductor no hay posición real).
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Reloj monotónico en milisegundos."""
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class TrackInfo:
    """Información de la canción actual."""

    track_id: str
    title: str
    artist: str
    duration_ms: int = 0
    album: str = ""

    def __str__(self) -> str:
        return f"{self.artist} - {self.title}"


@dataclass(frozen=True)
class PlaybackState:
    """Resultado de consultar al reproductor."""

    is_playing: bool
    position_ms: int
    track: TrackInfo


class PlaybackSource(Protocol):
    def poll(self) -> Optional[PlaybackState]: ...


class LocalClockSource:
    """
    Fuente de reproducción basada en el reloj local.

    La posición avanza desde que se llama a `play()`; `pause()` la congela
    y `seek()` la reubica. Sirve para usar el motor sin un reproductor real.
    """

    def __init__(self, track: Optional[TrackInfo] = None, clock=monotonic_ms):
        self._clock = clock
        self._track: Optional[TrackInfo] = track
        self._is_playing = False
        self._paused_position_ms = 0
        self._playback_start_ms: Optional[float] = None

    def load(self, track: Optional[TrackInfo]) -> None:
        """Cambia la canción y reinicia la posición."""
        self._track = track
        self._is_playing = False
        self._paused_position_ms = 0
        self._playback_start_ms = None
        logger.info(f"Canción cargada: {track}" if track else "Sin canción")

    def play(self) -> None:
        if self._is_playing or self._track is None:
            return
        self._is_playing = True
        # Reanudar: el tiempo de inicio es AHORA, la posición guardada se mantiene
        self._playback_start_ms = self._clock()
        logger.info(f"Reproducción iniciada desde {self._paused_position_ms}ms")

    def pause(self) -> None:
        if not self._is_playing:
            return
        # Guardar posición ANTES de cambiar estado
        self._paused_position_ms = self.position_ms
        self._is_playing = False
        logger.info(f"Reproducción pausada en posición {self._paused_position_ms}ms")

    def seek(self, position_ms: int) -> None:
        self._paused_position_ms = max(0, position_ms)
        self._playback_start_ms = self._clock()
        logger.info(f"Posición establecida manualmente: {position_ms}ms")

    @property
    def position_ms(self) -> int:
        """Posición = posición al pausar + tiempo transcurrido desde que se reanudó."""
        if not self._is_playing or self._playback_start_ms is None:
            return self._paused_position_ms
        elapsed = self._clock() - self._playback_start_ms
        position = self._paused_position_ms + int(elapsed)
        if self._track and self._track.duration_ms > 0:
            position = min(position, self._track.duration_ms)
        return position

    def poll(self) -> Optional[PlaybackState]:
        if self._track is None:
            return None
        return PlaybackState(
            is_playing=self._is_playing,
            position_ms=self.position_ms,
            track=self._track,
        )
