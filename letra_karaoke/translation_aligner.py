"""
Alineación de letras originales con una traducción oficial.

Las dos secuencias vienen de fuentes distintas y no comparten clave,
así que se empareja por índice (1:1 si tienen el mismo largo, por
proporción si no) y se validan los pares con el timestamp y el texto.
"""

import logging
import math
from dataclasses import replace

from .lrc_parser import LyricLine

logger = logging.getLogger(__name__)


class TranslationAligner:
    """Combina letras originales con una secuencia de traducción candidata."""

    # Diferencia máxima de timestamps para aceptar un par
    MAX_TIMESTAMP_DIFF_MS = 5000

    @staticmethod
    def candidate_index(index: int, orig_len: int, cand_len: int) -> int:
        """
        Calcula el índice de la línea candidata para una línea original.

        Args:
            index: Índice de la línea original
            orig_len: Cantidad de líneas originales
            cand_len: Cantidad de líneas candidatas

        Returns:
            Índice en la secuencia candidata, dentro de [0, cand_len - 1]
        """
        if orig_len == cand_len:
            return index
        if orig_len == 1:
            return 0

        # Redondeo hacia arriba en .5 (no bancario)
        mapped = math.floor(index * (cand_len - 1) / (orig_len - 1) + 0.5)
        return max(0, min(mapped, cand_len - 1))

    @classmethod
    def merge(
        cls, original: list[LyricLine], candidate: list[LyricLine]
    ) -> list[LyricLine]:
        """
        Adjunta la traducción candidata a cada línea original cuando el par es válido.

        Args:
            original: Letras originales
            candidate: Letras traducidas, parseadas por separado

        Returns:
            Nueva lista de LyricLine; las entradas no se modifican.
        """
        if not candidate:
            return list(original)

        orig_len = len(original)
        cand_len = len(candidate)
        merged: list[LyricLine] = []
        attached = 0

        for index, line in enumerate(original):
            cand_line = candidate[cls.candidate_index(index, orig_len, cand_len)]

            if abs(cand_line.start_time_ms - line.start_time_ms) > cls.MAX_TIMESTAMP_DIFF_MS:
                merged.append(line)
                continue

            if cand_line.text.lower() == line.text.lower():
                merged.append(line)
                continue

            if not cand_line.text.strip():
                merged.append(line)
                continue

            merged.append(replace(line, translation=cand_line.text))
            attached += 1

        logger.debug(f"Traducción alineada: {attached}/{orig_len} líneas")
        return merged
