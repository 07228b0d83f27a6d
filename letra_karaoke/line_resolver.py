"""
Resolución de la línea activa.

Dada la lista de líneas y el tiempo actual (ya con el offset del usuario),
determina qué línea está activa y el peso del cross-fade anticipado hacia
la siguiente línea.
"""

from dataclasses import dataclass
from typing import Optional

from .lrc_parser import LyricLine

# Ventana de anticipación antes de cada cambio de línea
CROSSFADE_WINDOW_MS = 200


@dataclass(frozen=True)
class ResolvedLine:
    """Resultado de la resolución para un instante."""

    active_index: int  # -1 si ninguna línea está activa
    next_index: int  # -1 si no hay línea siguiente
    crossfade_progress: float  # 0..1 dentro de la ventana de anticipación

    @property
    def has_active_line(self) -> bool:
        return self.active_index >= 0


class ActiveLineResolver:
    """Determina la línea activa y el cross-fade para un tiempo dado."""

    @staticmethod
    def find_active_index(lines: list[LyricLine], current_time_ms: float) -> int:
        """
        Busca el menor índice cuya ventana [inicio, inicio siguiente) contiene el tiempo.

        Returns:
            Índice de la línea activa o -1 si el tiempo es anterior a la primera línea.
        """
        last = len(lines) - 1
        for idx, line in enumerate(lines):
            if current_time_ms < line.start_time_ms:
                continue
            if idx == last or current_time_ms < lines[idx + 1].start_time_ms:
                return idx
        return -1

    @classmethod
    def resolve(
        cls,
        lines: list[LyricLine],
        current_time_ms: float,
        crossfade_window_ms: float = CROSSFADE_WINDOW_MS,
    ) -> ResolvedLine:
        """
        Resuelve la línea activa para el tiempo actual.

        Args:
            lines: Líneas ordenadas por timestamp
            current_time_ms: Tiempo de reproducción ajustado por offset
            crossfade_window_ms: Ventana de anticipación

        Returns:
            ResolvedLine con índices y progreso del cross-fade
        """
        active_index = cls.find_active_index(lines, current_time_ms)

        next_index = active_index + 1
        if next_index >= len(lines):
            return ResolvedLine(active_index=active_index, next_index=-1, crossfade_progress=0.0)

        time_to_next = lines[next_index].start_time_ms - current_time_ms
        progress = 0.0
        if 0 < time_to_next < crossfade_window_ms:
            progress = 1 - time_to_next / crossfade_window_ms

        return ResolvedLine(
            active_index=active_index,
            next_index=next_index,
            crossfade_progress=progress,
        )

    @classmethod
    def time_to_next_line(
        cls, lines: list[LyricLine], current_time_ms: float
    ) -> Optional[float]:
        """
        Milisegundos hasta el próximo cambio de línea.

        Returns:
            Tiempo restante, o None si no hay una línea siguiente.
        """
        next_index = cls.find_active_index(lines, current_time_ms) + 1
        if next_index >= len(lines):
            return None
        return lines[next_index].start_time_ms - current_time_ms
