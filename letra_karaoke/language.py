"""
Heurística de idioma para decidir qué líneas traducir.

No es un detector de idioma real: busca escrituras CJK y palabras
indicadoras (alemán, inglés, japonés romanizado) para decidir si una
línea necesita traducción. Ante la duda se traduce.

Las listas de palabras viven en data/language_indicators.json para
poder ampliarlas sin tocar la lógica.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_INDICATORS_PATH = Path(__file__).parent / "data" / "language_indicators.json"

# Hiragana, Katakana, ideogramas CJK y Hangul
CJK_PATTERN = re.compile(r"[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FFF\uAC00-\uD7AF]")
HANGUL_PATTERN = re.compile(r"[\uAC00-\uD7AF]")


def _word_pattern(words: Iterable[str]) -> Optional[re.Pattern]:
    """Compila una lista de palabras a un regex de palabra completa."""
    words = sorted({w.strip().lower() for w in words if w.strip()}, key=len, reverse=True)
    if not words:
        return None
    alternatives = "|".join(re.escape(w) for w in words)
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


@dataclass(frozen=True)
class LanguageIndicators:
    """Tablas de palabras indicadoras por idioma."""

    german: frozenset[str]
    english: frozenset[str]
    romaji: frozenset[str]

    @classmethod
    def from_dict(cls, data: dict) -> "LanguageIndicators":
        return cls(
            german=frozenset(data.get("german", [])),
            english=frozenset(data.get("english", [])),
            romaji=frozenset(data.get("romaji", [])),
        )

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "LanguageIndicators":
        """
        Carga las tablas desde un archivo JSON.

        Args:
            path: Ruta al JSON. Default: data/language_indicators.json
        """
        path = path or DEFAULT_INDICATORS_PATH
        data = json.loads(path.read_text(encoding="utf-8"))
        indicators = cls.from_dict(data)
        logger.debug(
            f"Indicadores de idioma cargados desde {path}: "
            f"{len(indicators.german)} de, {len(indicators.english)} en, "
            f"{len(indicators.romaji)} romaji"
        )
        return indicators


def contains_cjk(text: str) -> bool:
    """Detecta si el texto contiene caracteres chinos, japoneses o coreanos."""
    return CJK_PATTERN.search(text) is not None


def detect_source_lang(text: str) -> str:
    """
    Detecta el idioma origen para el traductor.

    Returns:
        'ko' para coreano, 'ja' para el resto de CJK, 'auto' en otro caso.
    """
    if contains_cjk(text):
        if HANGUL_PATTERN.search(text):
            return "ko"
        # Japonés es lo más común en letras con kanji/kana
        return "ja"
    return "auto"


class LanguageHeuristic:
    """
    Clasifica líneas de letra como "necesita traducción" o no.

    Orden de decisión:
    1. Texto vacío: no se traduce.
    2. Contiene CJK: siempre se traduce.
    3. Palabra indicadora alemana o inglesa: no se traduce.
    4. Partícula/terminación de japonés romanizado: se traduce.
    5. Por defecto: se traduce.
    """

    def __init__(self, indicators: Optional[LanguageIndicators] = None):
        indicators = indicators or LanguageIndicators.load()
        self.indicators = indicators
        self._german = _word_pattern(indicators.german)
        self._english = _word_pattern(indicators.english)
        self._romaji = _word_pattern(indicators.romaji)

    def is_native(self, text: str) -> bool:
        """Retorna True si el texto parece alemán o inglés."""
        for pattern in (self._german, self._english):
            if pattern is not None and pattern.search(text):
                return True
        return False

    def needs_translation(self, text: str) -> bool:
        if not text.strip():
            return False

        if contains_cjk(text):
            return True

        if self.is_native(text):
            return False

        if self._romaji is not None and self._romaji.search(text):
            return True

        # Texto latino ambiguo: mejor traducir de más que de menos
        return True


_default_heuristic: Optional[LanguageHeuristic] = None


def needs_translation(text: str) -> bool:
    """Atajo sobre la heurística con las tablas por defecto."""
    global _default_heuristic
    if _default_heuristic is None:
        _default_heuristic = LanguageHeuristic()
    return _default_heuristic.needs_translation(text)
