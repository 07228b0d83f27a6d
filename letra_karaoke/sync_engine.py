"""
Motor de sincronización de letras.

Controlador de la sesión de reproducción. Es el único dueño del estado
compartido (reconciliador de tiempo, líneas actuales, fence de canción) y
lo modifica siempre desde el mismo event loop:

- timer de polling: consulta al reproductor. Intervalo corto si un cambio
  de línea está a menos de 1.5s, largo en otro caso.
- timer de refresco: avanza el reconciliador y resuelve la línea activa.
- tareas asyncio: búsqueda de letras y traducción. Sus resultados solo se
  aplican si el fence capturado al iniciar sigue siendo el actual.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from PyQt6.QtCore import QTimer

from .language import LanguageHeuristic
from .line_resolver import ActiveLineResolver, ResolvedLine
from .lrc_parser import LRCParser, LyricLine
from .lyrics_service import LyricsService
from .offset_store import OffsetStore
from .playback import PlaybackSource, PlaybackState, TrackInfo, monotonic_ms
from .settings import AppSettings
from .time_reconciler import PositionSample, TimeReconciler
from .translation_aligner import TranslationAligner
from .translation_service import TranslationService

logger = logging.getLogger(__name__)


class TranslationSource(Enum):
    """Origen de las traducciones mostradas."""

    OFFICIAL = "official"  # Versión oficial en inglés alineada
    AUTO = "auto"  # Traducción automática línea por línea
    NONE = "none"


@dataclass
class SyncState:
    """Estado actual de la sincronización."""

    track: Optional[TrackInfo]
    current_line_index: int
    next_line_index: int
    crossfade_progress: float
    current_line: Optional[LyricLine]
    next_line: Optional[LyricLine]
    position_ms: int  # Con offset aplicado
    is_playing: bool
    offset_ms: int


# Type alias para callbacks
OnSyncUpdateCallback = Callable[[SyncState], None]
OnLyricsLoadedCallback = Callable[[list[LyricLine]], None]


class SyncEngine:
    """
    Motor de sincronización de letras con la reproducción.

    Coordina la fuente de reproducción, los servicios de letras y
    traducción y el reconciliador de tiempo para determinar qué línea
    mostrar en cada momento.
    """

    def __init__(
        self,
        source: PlaybackSource,
        lyrics_service: LyricsService,
        translation_service: Optional[TranslationService] = None,
        offset_store: Optional[OffsetStore] = None,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.source = source
        self.lyrics_service = lyrics_service
        self.translation_service = translation_service
        self.offset_store = offset_store
        self.settings = settings or AppSettings()
        self._clock = clock

        if translation_service is not None:
            self._heuristic = translation_service.heuristic
        else:
            self._heuristic = LanguageHeuristic()

        # Estado de la sesión
        self._reconciler = TimeReconciler(self.settings.reconciler_config())
        self._track: Optional[TrackInfo] = None
        self._lines: list[LyricLine] = []
        self._fence: int = 0
        self._offset_ms: int = 0
        self._is_placeholder: bool = False
        self._translation_source: TranslationSource = TranslationSource.NONE
        self._title_translation: Optional[str] = None
        self._last_resolved: Optional[ResolvedLine] = None

        # Timers y tareas
        self._running: bool = False
        self._poll_interval_ms: int = self.settings.poll_interval_ms
        self._poll_timer: Optional[QTimer] = None
        self._frame_timer: Optional[QTimer] = None
        self._fetch_task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        # Callbacks
        self._on_sync_update: list[OnSyncUpdateCallback] = []
        self._on_lyrics_loaded: list[OnLyricsLoadedCallback] = []

    # --- Propiedades ---

    @property
    def track(self) -> Optional[TrackInfo]:
        return self._track

    @property
    def lines(self) -> list[LyricLine]:
        return self._lines

    @property
    def fence(self) -> int:
        return self._fence

    @property
    def offset_ms(self) -> int:
        return self._offset_ms

    @property
    def is_placeholder(self) -> bool:
        """True si se muestran letras de relleno."""
        return self._is_placeholder

    @property
    def translation_source(self) -> TranslationSource:
        return self._translation_source

    @property
    def title_translation(self) -> Optional[str]:
        return self._title_translation

    @property
    def is_playing(self) -> bool:
        return self._reconciler.is_playing

    @property
    def poll_interval_ms(self) -> int:
        return self._poll_interval_ms

    @property
    def position_ms(self) -> int:
        """Posición reconciliada con el offset del usuario aplicado."""
        return self._reconciler.estimate_ms + self._offset_ms

    # --- Eventos del reproductor ---

    def handle_poll(self, playback: Optional[PlaybackState]) -> None:
        """
        Procesa el resultado de consultar al reproductor.

        Args:
            playback: Estado informado, o None si no hay nada reproduciéndose.
        """
        if playback is None:
            if self._track is not None:
                logger.info("No hay canción reproduciéndose")
                self._reset_session(None)
            return

        if self._track is None or self._track.track_id != playback.track.track_id:
            # El reset detiene el timer de refresco: la canción nueva parte detenida
            self._start_track(playback.track)

        was_playing = self._reconciler.is_playing
        self._reconciler.on_sample(
            PositionSample(
                position_ms=playback.position_ms,
                is_playing=playback.is_playing,
                sampled_at_monotonic_ms=self._clock(),
            )
        )

        if was_playing != playback.is_playing:
            self._on_playback_changed(playback.is_playing)

        self._update_sync()
        self._update_poll_interval()

    def handle_frame(self, now_ms: Optional[float] = None) -> None:
        """Refresco de pantalla: avanza la estimación si está reproduciendo."""
        if not self._reconciler.is_playing:
            return

        self._reconciler.tick(self._clock() if now_ms is None else now_ms)
        self._update_sync()
        self._update_poll_interval()

    def _on_playback_changed(self, is_playing: bool) -> None:
        logger.debug(f"Reproducción {'activa' if is_playing else 'detenida'}")
        if self._frame_timer is None:
            return
        if is_playing:
            self._frame_timer.start(self.settings.frame_interval_ms)
        else:
            self._frame_timer.stop()

    # --- Cambio de canción ---

    def _reset_session(self, track: Optional[TrackInfo]) -> None:
        """Descarta todo el estado de la canción anterior y avanza el fence."""
        self._fence += 1
        self._track = track
        self._lines = []
        self._is_placeholder = False
        self._translation_source = TranslationSource.NONE
        self._title_translation = None
        self._last_resolved = None
        self._reconciler.reset()
        if self._frame_timer is not None:
            self._frame_timer.stop()
        self._offset_ms = (
            self.offset_store.get(track.track_id) if track and self.offset_store else 0
        )

        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        self._fetch_task = None

        self._notify_lyrics_loaded([])

    def _start_track(self, track: TrackInfo) -> None:
        logger.info(f"Nueva canción: {track}")

        # Limpiar letras anteriores inmediatamente para no mostrar
        # la canción anterior mientras se buscan las nuevas
        self._reset_session(track)
        self._fetch_task = self._schedule(self.load_track(track, self._fence))

    def _schedule(self, coro) -> Optional[asyncio.Task]:
        """Lanza una tarea en el event loop del motor."""
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("Sin event loop activo, no se buscan letras")
                coro.close()
                return None
        return loop.create_task(coro)

    def _is_current(self, fence: int) -> bool:
        return fence == self._fence

    async def load_track(self, track: TrackInfo, fence: int) -> None:
        """
        Busca letras para un track, las muestra y traduce en segundo plano.

        Los resultados se descartan si la canción cambió mientras tanto.
        """
        try:
            result = await self.lyrics_service.fetch_lyrics(
                track.title, track.artist, track.duration_ms
            )
        except Exception as e:
            logger.error(f"Error buscando letras: {e}")
            result = None

        if not self._is_current(fence):
            logger.debug("Track cambió durante búsqueda, descartando resultado")
            return

        if result is None:
            logger.info("No se encontraron letras, usando letras de relleno")
            self._is_placeholder = True
            self._set_lines(LRCParser.create_placeholder_lyrics(track.duration_ms, track.title))
            return

        self._is_placeholder = False
        self._set_lines(result.lines)

        if self.settings.translation_enabled:
            await self.translate_track(track, result.lines, fence)

    async def translate_track(
        self, track: TrackInfo, lines: list[LyricLine], fence: int
    ) -> None:
        """
        Añade traducciones: primero la versión oficial, luego traducción automática.
        """
        if not any(self._heuristic.needs_translation(line.text) for line in lines):
            logger.debug("Letras en inglés/alemán, no se traducen")
            return

        merged = lines
        source = TranslationSource.NONE

        try:
            official = await self.lyrics_service.fetch_official_translation(
                track.title, track.artist
            )
        except Exception as e:
            logger.warning(f"Error buscando traducción oficial: {e}")
            official = None

        if not self._is_current(fence):
            logger.debug("Track cambió durante búsqueda de traducción, descartando resultado")
            return

        if official:
            merged = TranslationAligner.merge(lines, official)
            if any(line.translation for line in merged):
                source = TranslationSource.OFFICIAL

        title_translation = None
        if self.translation_service is not None:
            try:
                translated = await asyncio.to_thread(
                    self.translation_service.translate_lyrics, merged
                )
                title_translation = await asyncio.to_thread(
                    self.translation_service.translate_title, track.title
                )
            except Exception as e:
                logger.warning(f"Error en traducción: {e}")
            else:
                added = sum(
                    1
                    for before, after in zip(merged, translated)
                    if after.translation and not before.translation
                )
                if added and source is TranslationSource.NONE:
                    source = TranslationSource.AUTO
                merged = translated

        if not self._is_current(fence):
            logger.debug("Track cambió durante traducción, descartando resultado")
            return
        if not self.settings.translation_enabled:
            logger.debug("Traducción desactivada durante la traducción, descartando resultado")
            return

        translated_count = sum(1 for line in merged if line.translation)
        logger.info(
            f"Traducción completada ({source.value}): {translated_count} líneas traducidas"
        )
        self._translation_source = source
        self._title_translation = title_translation
        self._set_lines(merged)

    def _set_lines(self, lines: list[LyricLine]) -> None:
        self._lines = list(lines)
        self._last_resolved = None
        self._notify_lyrics_loaded(self._lines)
        self._update_sync(force=True)

    def apply_translation_setting(self) -> None:
        """
        Aplica `settings.translation_enabled` a la canción actual.

        Desactivada: quita las traducciones mostradas. Activada: traduce las
        letras actuales si la búsqueda inicial ya terminó.
        """
        if self._track is None or not self._lines or self._is_placeholder:
            return

        if not self.settings.translation_enabled:
            self._translation_source = TranslationSource.NONE
            self._title_translation = None
            self._set_lines([replace(line, translation=None) for line in self._lines])
            return

        if self._fetch_task is not None and not self._fetch_task.done():
            # load_track traduce al terminar la búsqueda
            return
        self._fetch_task = self._schedule(
            self.translate_track(self._track, self._lines, self._fence)
        )

    # --- Offset manual ---

    def set_offset(self, offset_ms: int) -> int:
        """
        Establece el offset de la canción actual y lo persiste.

        Returns:
            Offset aplicado (limitado a ±max_offset_ms).
        """
        limit = self.settings.max_offset_ms
        self._offset_ms = max(-limit, min(limit, int(offset_ms)))
        logger.info(f"Offset ajustado: {self._offset_ms}ms")

        if self._track is not None and self.offset_store is not None:
            self.offset_store.set(self._track.track_id, self._offset_ms)

        self._update_sync(force=True)
        return self._offset_ms

    def adjust_offset(self, delta_ms: int) -> int:
        """Ajusta el offset (positivo = letras adelantadas)."""
        return self.set_offset(self._offset_ms + delta_ms)

    def reset_offset(self) -> None:
        """Reinicia el offset a 0."""
        self.set_offset(0)

    # --- Resolución y polling adaptativo ---

    def resolve(self) -> ResolvedLine:
        """Resuelve la línea activa con la posición actual."""
        return ActiveLineResolver.resolve(self._lines, self.position_ms)

    def current_poll_interval_ms(self) -> int:
        """
        Intervalo de polling deseado.

        Corto si el próximo cambio de línea está dentro de la ventana de
        anticipación, para corregir la deriva justo antes del cambio.
        """
        if self._lines and self._reconciler.is_playing:
            time_to_next = ActiveLineResolver.time_to_next_line(self._lines, self.position_ms)
            if time_to_next is not None and time_to_next <= self.settings.boundary_lookahead_ms:
                return self.settings.fast_poll_interval_ms
        return self.settings.poll_interval_ms

    def _update_poll_interval(self) -> None:
        interval = self.current_poll_interval_ms()
        if interval == self._poll_interval_ms:
            return

        self._poll_interval_ms = interval
        logger.debug(f"Intervalo de polling: {interval}ms")
        if self._poll_timer is not None:
            self._poll_timer.setInterval(interval)

    def _update_sync(self, force: bool = False) -> None:
        """Resuelve la línea activa y notifica si cambió."""
        if not self._lines:
            return

        resolved = self.resolve()
        if not force and resolved == self._last_resolved:
            return
        self._last_resolved = resolved

        state = SyncState(
            track=self._track,
            current_line_index=resolved.active_index,
            next_line_index=resolved.next_index,
            crossfade_progress=resolved.crossfade_progress,
            current_line=self._lines[resolved.active_index] if resolved.active_index >= 0 else None,
            next_line=self._lines[resolved.next_index] if resolved.next_index >= 0 else None,
            position_ms=self.position_ms,
            is_playing=self._reconciler.is_playing,
            offset_ms=self._offset_ms,
        )
        self._notify_sync_update(state)

    # --- Callbacks públicos ---

    def on_sync_update(self, callback: OnSyncUpdateCallback) -> None:
        """Registra callback para actualizaciones de sincronización."""
        self._on_sync_update.append(callback)

    def on_lyrics_loaded(self, callback: OnLyricsLoadedCallback) -> None:
        """Registra callback para cuando se cargan letras."""
        self._on_lyrics_loaded.append(callback)

    def _notify_sync_update(self, state: SyncState) -> None:
        for callback in self._on_sync_update:
            try:
                callback(state)
            except Exception as e:
                logger.error(f"Error en callback on_sync_update: {e}")

    def _notify_lyrics_loaded(self, lines: list[LyricLine]) -> None:
        for callback in self._on_lyrics_loaded:
            try:
                callback(lines)
            except Exception as e:
                logger.error(f"Error en callback on_lyrics_loaded: {e}")

    # --- Control del loop ---

    def start(self) -> None:
        """Inicia los timers de polling y refresco (QTimer, dentro del event loop de Qt)."""
        if self._running:
            return

        self._running = True
        self._loop = asyncio.get_event_loop()

        self._poll_timer = QTimer()
        self._poll_timer.timeout.connect(self._on_poll_tick)
        self._poll_timer.start(self._poll_interval_ms)

        self._frame_timer = QTimer()
        self._frame_timer.timeout.connect(self._on_frame_tick)

        # Verificación inicial sin esperar al primer tick
        self._on_poll_tick()
        logger.info("SyncEngine iniciado")

    def _on_poll_tick(self) -> None:
        if not self._running:
            return
        try:
            self.handle_poll(self.source.poll())
        except Exception as e:
            logger.error(f"Error en polling: {e}")

    def _on_frame_tick(self) -> None:
        if not self._running:
            return
        try:
            self.handle_frame()
        except Exception as e:
            logger.error(f"Error en loop de sincronización: {e}")

    def stop(self) -> None:
        """Detiene los timers y cancela la búsqueda en curso."""
        self._running = False
        for timer in (self._poll_timer, self._frame_timer):
            if timer is not None:
                timer.stop()
        self._poll_timer = None
        self._frame_timer = None

        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        self._fetch_task = None
        logger.info("SyncEngine detenido")

    @property
    def is_running(self) -> bool:
        return self._running
