"""
Parser para formato LRC (Lyrics)

Formato LRC soportado:
[mm:ss.xx] Línea de letra
[00:12.00] Primera línea
[00:17.200] Segunda línea

La fracción puede tener 2 dígitos (centésimas) o 3 dígitos (milisegundos).
Las líneas que no siguen el formato (tags de metadatos, comentarios,
basura) se descartan sin error.
"""

import re
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class LyricLine:
    """Representa una línea de letra con su timestamp."""

    text: str
    start_time_ms: int  # Tiempo en milisegundos
    translation: Optional[str] = field(default=None)  # Traducción opcional

    @property
    def start_time_seconds(self) -> float:
        """Retorna el timestamp en segundos."""
        return self.start_time_ms / 1000.0

    def __repr__(self) -> str:
        minutes = self.start_time_ms // 60000
        seconds = (self.start_time_ms % 60000) / 1000
        return f"[{minutes:02d}:{seconds:05.2f}] {self.text}"


class LRCParser:
    """Parser para strings en formato LRC y letras planas."""

    # [mm:ss.xx] o [mm:ss.xxx] en cualquier parte de la línea (BOM, prefijos), dígitos ASCII
    TIMESTAMP_PATTERN = re.compile(r"\[([0-9]+):([0-9]+)\.([0-9]{2,3})\](.*)")

    # Líneas de relleno cuando no hay letras
    PLACEHOLDER_LINES = ["♪ ♪ ♪", "", "No lyrics available", "for this song", "", "♪ ♪ ♪"]
    WAITING_LINES = [
        "♪ Waiting for music...",
        "",
        "Play a song",
        "and lyrics will appear here",
        "",
        "♪ ♪ ♪",
    ]

    @classmethod
    def parse_synced(cls, lrc_content: str) -> list[LyricLine]:
        """
        Parsea contenido LRC a una lista de líneas.

        Args:
            lrc_content: String con contenido en formato LRC

        Returns:
            Lista de LyricLine en el orden del texto (vacía si nada es válido)
        """
        lines: list[LyricLine] = []

        for raw_line in lrc_content.splitlines():
            match = cls.TIMESTAMP_PATTERN.search(raw_line.strip())
            if not match:
                continue

            text = match.group(4).strip()
            if not text:
                continue

            minutes = int(match.group(1))
            seconds = int(match.group(2))

            # El número de dígitos decide la escala, no el valor:
            # .xx son centésimas, .xxx se toma literal como milisegundos
            fraction = match.group(3)
            if len(fraction) == 2:
                milliseconds = int(fraction) * 10
            else:
                milliseconds = int(fraction)

            start_time_ms = (minutes * 60 + seconds) * 1000 + milliseconds
            lines.append(LyricLine(text=text, start_time_ms=start_time_ms))

        return lines

    @classmethod
    def parse_unsynced(cls, plain_text: str, duration_ms: int) -> list[LyricLine]:
        """
        Convierte letra plana (sin timestamps) a líneas con timestamps estimados.

        Args:
            plain_text: Letra sin formato LRC
            duration_ms: Duración total de la canción en ms

        Returns:
            Lista de LyricLine distribuidas uniformemente en la duración,
            o lista vacía si no hay líneas o la duración no es positiva.
        """
        lines_text = [line.strip() for line in plain_text.splitlines() if line.strip()]

        if duration_ms <= 0 or not lines_text:
            return []

        count = len(lines_text)
        return [
            LyricLine(text=text, start_time_ms=(idx * duration_ms) // count)
            for idx, text in enumerate(lines_text)
        ]

    @classmethod
    def create_placeholder_lyrics(
        cls, duration_ms: int, track_name: Optional[str] = None
    ) -> list[LyricLine]:
        """
        Genera letras de relleno cuando no se encontraron letras.

        Args:
            duration_ms: Duración de la canción en ms
            track_name: Si se conoce la canción, se indica que no hay letras;
                si no, se muestra el mensaje de espera.
        """
        texts = cls.PLACEHOLDER_LINES if track_name else cls.WAITING_LINES
        count = len(texts)

        if duration_ms <= 0:
            return [LyricLine(text=text, start_time_ms=0) for text in texts]

        return [
            LyricLine(text=text, start_time_ms=(idx * duration_ms) // count)
            for idx, text in enumerate(texts)
        ]

    @classmethod
    def to_lrc(cls, lines: list[LyricLine]) -> str:
        """
        Convierte líneas de vuelta a formato LRC string.

        Args:
            lines: Líneas a convertir

        Returns:
            String en formato LRC con fracción de centésimas
        """
        result = []
        for line in lines:
            minutes = line.start_time_ms // 60000
            seconds = (line.start_time_ms % 60000) // 1000
            centis = (line.start_time_ms % 1000) // 10
            result.append(f"[{minutes:02d}:{seconds:02d}.{centis:02d}]{line.text}")
        return "\n".join(result)
