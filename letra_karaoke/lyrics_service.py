"""
Servicio de obtención de letras desde LRCLIB.

API: https://lrclib.net/api
- /get: búsqueda exacta por artista, canción y duración
- /search: búsqueda textual, usada para encontrar traducciones oficiales
  ("English ver.", "English Version", ...)

Los errores de red o HTTP se registran y se tratan como "sin datos".
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import aiohttp

from .lrc_parser import LRCParser, LyricLine

logger = logging.getLogger(__name__)


@dataclass
class LyricsResult:
    """Letras obtenidas de un proveedor."""

    lines: list[LyricLine]
    provider: str
    is_synced: bool = True


class LyricsProvider(Protocol):
    async def fetch(
        self, track_name: str, artist_name: str, duration_ms: int
    ) -> Optional[LyricsResult]: ...


class TranslationCandidateProvider(Protocol):
    async def fetch_official_translation(
        self, track_name: str, artist_name: str
    ) -> Optional[str]: ...


class LRCLIBProvider:
    """
    Proveedor de letras desde LRCLIB.

    - Sin autenticación requerida
    - Soporta letras sincronizadas y planas
    """

    BASE_URL = "https://lrclib.net/api"
    TIMEOUT_S = 10

    # Sufijos con los que se publican traducciones oficiales
    TRANSLATION_QUERIES = ["{track} English", "{track} (English ver.)", "{track} (English Version)"]
    TRANSLATION_MARKERS = ["english ver", "english version", "(en)", "[english]"]

    def __init__(self, session: aiohttp.ClientSession):
        self.session = session

    async def fetch(
        self, track_name: str, artist_name: str, duration_ms: int = 0
    ) -> Optional[LyricsResult]:
        """
        Busca letras en LRCLIB.

        Args:
            track_name: Título de la canción
            artist_name: Nombre del artista
            duration_ms: Duración en ms (opcional, mejora precisión)

        Returns:
            LyricsResult si se encontró, None si no.
        """
        params = {
            "track_name": track_name,
            "artist_name": artist_name,
        }
        if duration_ms > 0:
            params["duration"] = str(duration_ms // 1000)

        try:
            async with self.session.get(
                f"{self.BASE_URL}/get",
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.TIMEOUT_S),
            ) as response:
                if response.status == 404:
                    logger.info(f"LRCLIB sin letras para: {artist_name} - {track_name}")
                    return None
                if response.status != 200:
                    logger.warning(f"LRCLIB /get error: {response.status}")
                    return None
                data = await response.json()
        except Exception as e:
            logger.warning(f"LRCLIB /get exception: {e}")
            return None

        return self._parse_response(data, duration_ms)

    def _parse_response(self, data: dict, duration_ms: int) -> Optional[LyricsResult]:
        """Parsea la respuesta de LRCLIB a LyricsResult."""
        if data.get("instrumental"):
            logger.info("La canción está marcada como instrumental")
            return None

        synced_lyrics = data.get("syncedLyrics")
        plain_lyrics = data.get("plainLyrics")

        if synced_lyrics:
            # Preferir letras sincronizadas
            return LyricsResult(
                lines=LRCParser.parse_synced(synced_lyrics), provider="LRCLIB"
            )
        if plain_lyrics:
            # Fallback a letras planas repartidas en la duración
            return LyricsResult(
                lines=LRCParser.parse_unsynced(plain_lyrics, duration_ms),
                provider="LRCLIB",
                is_synced=False,
            )

        logger.info("Respuesta de LRCLIB sin letras")
        return None

    def _is_official_translation(self, result: dict, artist_name: str) -> bool:
        name = (result.get("trackName") or "").lower()
        artist = (result.get("artistName") or "").lower()
        return artist_name.lower() in artist and any(
            marker in name for marker in self.TRANSLATION_MARKERS
        )

    async def fetch_official_translation(
        self, track_name: str, artist_name: str
    ) -> Optional[str]:
        """
        Busca en LRCLIB una versión oficial en inglés de la canción.

        Returns:
            Texto LRC sincronizado de la traducción, o None.
        """
        for template in self.TRANSLATION_QUERIES:
            query = f"{template.format(track=track_name)} {artist_name}"
            try:
                async with self.session.get(
                    f"{self.BASE_URL}/search",
                    params={"q": query},
                    timeout=aiohttp.ClientTimeout(total=self.TIMEOUT_S),
                ) as response:
                    if response.status != 200:
                        continue
                    results = await response.json()
            except Exception as e:
                logger.warning(f"LRCLIB /search exception: {e}")
                continue

            for result in results or []:
                if self._is_official_translation(result, artist_name) and result.get(
                    "syncedLyrics"
                ):
                    logger.info(f"Traducción oficial encontrada: {result.get('trackName')}")
                    return result["syncedLyrics"]

        logger.info(f"Sin traducción oficial para: {artist_name} - {track_name}")
        return None


class LyricsService:
    """
    Servicio principal de obtención de letras.

    Gestiona la sesión HTTP y el proveedor LRCLIB.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session
        self._owns_session = session is None
        self.provider: Optional[LRCLIBProvider] = (
            LRCLIBProvider(session) if session is not None else None
        )

    async def initialize(self) -> None:
        """Inicializa la sesión HTTP y el proveedor."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self.provider = LRCLIBProvider(self._session)
        logger.info("LyricsService inicializado con proveedor: LRCLIB")

    async def close(self) -> None:
        """Cierra la sesión HTTP si fue creada por el servicio."""
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    async def fetch_lyrics(
        self, track_name: str, artist_name: str, duration_ms: int = 0
    ) -> Optional[LyricsResult]:
        """
        Busca letras para una canción.

        Returns:
            LyricsResult con al menos una línea, o None.
        """
        if not track_name or not artist_name:
            logger.warning("Se requiere artista y título para buscar letras")
            return None
        if self.provider is None:
            logger.error("LyricsService no inicializado")
            return None

        result = await self.provider.fetch(track_name, artist_name, duration_ms)
        if result is None or not result.lines:
            return None

        logger.info(
            f"Letras encontradas en {result.provider} para: {artist_name} - {track_name} "
            f"({len(result.lines)} líneas, synced={result.is_synced})"
        )
        return result

    async def fetch_official_translation(
        self, track_name: str, artist_name: str
    ) -> Optional[list[LyricLine]]:
        """Busca y parsea la traducción oficial, si existe."""
        if self.provider is None:
            return None
        raw = await self.provider.fetch_official_translation(track_name, artist_name)
        if not raw:
            return None
        lines = LRCParser.parse_synced(raw)
        return lines or None
