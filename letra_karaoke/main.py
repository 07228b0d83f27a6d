"""
Letra Karaoke - Aplicación principal

Letras sincronizadas con traducción para la canción en reproducción.
Consulta al reproductor, obtiene letras y muestra en consola la línea
activa a medida que avanza la reproducción.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import click
import qasync
from PyQt6.QtCore import QCoreApplication, QTimer

from .lrc_parser import LyricLine
from .lyrics_service import LyricsService
from .offset_store import OffsetStore
from .playback import LocalClockSource, TrackInfo
from .settings import SettingsManager
from .sync_engine import SyncEngine, SyncState
from .translation_service import TranslationCache, TranslationService

if TYPE_CHECKING:
    from .hotkeys import HotkeyAction, HotkeyManager

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


class LetraKaraokeApp:
    """
    Aplicación principal que orquesta todos los componentes.
    """

    def __init__(self, source: LocalClockSource, settings_manager: SettingsManager):
        self.source = source
        self.settings_manager = settings_manager
        self.settings = settings_manager.settings

        # Componentes
        self.lyrics_service: Optional[LyricsService] = None
        self.sync_engine: Optional[SyncEngine] = None
        self.hotkey_manager: Optional["HotkeyManager"] = None

        self.app: Optional[QCoreApplication] = None
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._running: bool = False

    async def initialize(self) -> bool:
        """
        Inicializa todos los componentes.

        Returns:
            True si la inicialización fue exitosa.
        """
        logger.info("Inicializando Letra Karaoke...")

        try:
            self.lyrics_service = LyricsService()
            await self.lyrics_service.initialize()

            translation_service = TranslationService(
                cache=TranslationCache(self.settings.translation_cache_size),
                target_lang=self.settings.target_lang,
            )

            self.sync_engine = SyncEngine(
                source=self.source,
                lyrics_service=self.lyrics_service,
                translation_service=translation_service,
                offset_store=OffsetStore(),
                settings=self.settings,
            )
            self.sync_engine.on_sync_update(self._on_sync_update)
            self.sync_engine.on_lyrics_loaded(self._on_lyrics_loaded)
        except Exception as e:
            logger.error(f"Error durante la inicialización: {e}")
            return False

        # Los hotkeys son opcionales (pynput necesita un display)
        try:
            from .hotkeys import HotkeyManager

            self.hotkey_manager = HotkeyManager()
            self.hotkey_manager.on_hotkey(self._on_hotkey_thread)
        except Exception as e:
            logger.warning(f"Hotkeys no disponibles: {e}")
            self.hotkey_manager = None

        logger.info("✓ Inicialización completa")
        return True

    def _on_lyrics_loaded(self, lines: list[LyricLine]) -> None:
        if lines:
            logger.info(f"Letras cargadas: {len(lines)} líneas")

    def _on_sync_update(self, state: SyncState) -> None:
        """Muestra en consola cada cambio de línea activa."""
        if state.crossfade_progress > 0 or state.current_line is None:
            return
        line = state.current_line
        click.echo(f"[{state.position_ms / 1000:7.2f}s] {line.text}")
        if line.translation:
            click.echo(f"{'':11}→ {line.translation}")

    def _on_hotkey_thread(self, action: "HotkeyAction") -> None:
        """Callback desde el hilo de pynput: reenviar al event loop."""
        if self.loop is not None:
            self.loop.call_soon_threadsafe(self.handle_hotkey, action)

    def handle_hotkey(self, action: "HotkeyAction") -> None:
        from .hotkeys import HotkeyAction

        logger.debug(f"Hotkey: {action.value}")
        step = self.settings.offset_step_ms

        if action == HotkeyAction.OFFSET_INCREASE:
            self.sync_engine.adjust_offset(step)
        elif action == HotkeyAction.OFFSET_DECREASE:
            self.sync_engine.adjust_offset(-step)
        elif action == HotkeyAction.OFFSET_RESET:
            self.sync_engine.reset_offset()
        elif action == HotkeyAction.TOGGLE_PLAYBACK:
            playback = self.source.poll()
            if playback is not None and playback.is_playing:
                self.source.pause()
            else:
                self.source.play()
        elif action == HotkeyAction.TOGGLE_TRANSLATION:
            self.settings_manager.update(translation_enabled=not self.settings.translation_enabled)
            logger.info(
                f"Traducción {'habilitada' if self.settings.translation_enabled else 'deshabilitada'}"
            )
            self.sync_engine.apply_translation_setting()
        elif action == HotkeyAction.QUIT_APP:
            self.quit()

    def quit(self) -> None:
        """Cierra la aplicación de forma segura."""
        logger.info("Cerrando aplicación...")
        self._running = False

    async def run(self) -> None:
        """Ejecuta la aplicación principal."""
        self._running = True

        if self.hotkey_manager is not None:
            try:
                self.hotkey_manager.start()
            except Exception as e:
                logger.warning(f"No se pudo iniciar el listener de hotkeys: {e}")
                self.hotkey_manager = None

        self.source.play()
        self.sync_engine.start()

        try:
            # El loop de Qt maneja los timers
            while self._running:
                await asyncio.sleep(0.1)
        finally:
            await self.cleanup()
            if self.app:
                QTimer.singleShot(0, self.app.quit)

    async def cleanup(self) -> None:
        """Limpia recursos."""
        if self.sync_engine:
            self.sync_engine.stop()

        if self.hotkey_manager:
            self.hotkey_manager.stop()
            self.hotkey_manager = None

        if self.lyrics_service:
            await self.lyrics_service.close()
            self.lyrics_service = None

        logger.info("Aplicación cerrada")


@click.command()
@click.option("--artist", "-a", required=True, help="Artista de la canción")
@click.option("--title", "-t", required=True, help="Título de la canción")
@click.option("--duration", "-d", type=float, default=0.0, help="Duración en segundos")
@click.option("--start", "-s", type=float, default=0.0, help="Posición inicial en segundos")
@click.option("--track-id", default=None, help="Identificador de la canción (para el offset guardado)")
@click.option("--no-translation", is_flag=True, help="Desactivar traducción")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Archivo de configuración JSON",
)
@click.option("--verbose", "-v", is_flag=True, help="Logging detallado")
def main(artist, title, duration, start, track_id, no_translation, settings_path, verbose):
    """Muestra letras sincronizadas de la canción indicada."""
    setup_logging(verbose)

    settings_manager = SettingsManager(settings_path)
    if no_translation:
        settings_manager.settings.translation_enabled = False

    track = TrackInfo(
        track_id=track_id or f"{artist.lower()}|{title.lower()}",
        title=title,
        artist=artist,
        duration_ms=int(duration * 1000),
    )
    source = LocalClockSource(track)
    if start > 0:
        source.seek(int(start * 1000))

    # QCoreApplication: timers de Qt sin interfaz gráfica
    app = QCoreApplication(sys.argv)
    app.setApplicationName("Letra Karaoke")

    loop = qasync.QEventLoop(app)
    asyncio.set_event_loop(loop)

    letra_app = LetraKaraokeApp(source, settings_manager)
    letra_app.app = app
    letra_app.loop = loop

    async def run_app():
        if not await letra_app.initialize():
            logger.error("Error inicializando la aplicación")
            return
        await letra_app.run()

    with loop:
        try:
            loop.run_until_complete(run_app())
        except KeyboardInterrupt:
            logger.info("Interrupción de teclado")
            loop.run_until_complete(letra_app.cleanup())


if __name__ == "__main__":
    main()
