"""
Servicio de traducción de letras.

Traduce al inglés las líneas que la heurística de idioma marca como
extranjeras, usando Google Translate (deep-translator).
Incluye un caché en memoria acotado para evitar traducciones repetidas.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import replace
from typing import Optional

from deep_translator import GoogleTranslator

from .language import LanguageHeuristic, detect_source_lang
from .lrc_parser import LyricLine

logger = logging.getLogger(__name__)


class TranslationCache:
    """
    Caché LRU de traducciones en memoria, con tamaño máximo.

    Se usa desde hilos de asyncio.to_thread: todo acceso pasa por un lock.
    """

    def __init__(self, max_entries: int = 512):
        """
        Inicializa el caché de traducciones.

        Args:
            max_entries: Cantidad máxima de traducciones guardadas.
                Al superarla se descarta la menos usada recientemente.
        """
        self.max_entries = max(1, max_entries)
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(source_lang: str, text: str) -> str:
        return f"{source_lang}:{text}"

    def get(self, source_lang: str, text: str) -> Optional[str]:
        key = self.make_key(source_lang, text)
        with self._lock:
            translation = self._entries.get(key)
            if translation is not None:
                self._entries.move_to_end(key)
            return translation

    def save(self, source_lang: str, text: str, translation: str) -> None:
        key = self.make_key(source_lang, text)
        with self._lock:
            self._entries[key] = translation
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> int:
        """
        Limpia el caché.

        Returns:
            Número de entradas eliminadas.
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Caché de traducciones limpiado: {count} entradas eliminadas")
        return count

    def __len__(self) -> int:
        return len(self._entries)


class TranslationService:
    """
    Servicio de traducción línea por línea usando Google Translate.

    Características:
    - Traducción batch agrupada por idioma origen
    - Caché LRU en memoria
    - Heurística de idioma para no traducir inglés/alemán
    """

    def __init__(
        self,
        cache: Optional[TranslationCache] = None,
        heuristic: Optional[LanguageHeuristic] = None,
        target_lang: str = "en",
    ):
        """
        Inicializa el servicio de traducción.

        Args:
            cache: Caché de traducciones compartido
            heuristic: Heurística de idioma
            target_lang: Idioma destino (default: inglés)
        """
        self.cache = cache if cache is not None else TranslationCache()
        self.heuristic = heuristic or LanguageHeuristic()
        self.target_lang = target_lang
        self._translators: dict[str, GoogleTranslator] = {}

    def _get_translator(self, source: str) -> GoogleTranslator:
        """Obtiene o crea el traductor para un idioma origen."""
        translator = self._translators.get(source)
        if translator is None:
            translator = GoogleTranslator(source=source, target=self.target_lang)
            self._translators[source] = translator
        return translator

    def _accept(self, text: str, translation: Optional[str]) -> Optional[str]:
        """Descarta traducciones vacías o iguales al original."""
        if not translation or not translation.strip():
            return None
        if translation.lower() == text.lower():
            return None
        return translation

    def translate(self, text: str, source_lang_hint: str = "auto") -> Optional[str]:
        """
        Traduce una línea.

        Args:
            text: Texto a traducir
            source_lang_hint: Idioma origen ('ja', 'ko' o 'auto')

        Returns:
            Traducción, o None si no hay traducción útil o falló el proveedor.
        """
        if not text.strip():
            return None

        cached = self.cache.get(source_lang_hint, text)
        if cached is not None:
            return cached

        try:
            result = self._get_translator(source_lang_hint).translate(text)
        except Exception as e:
            logger.warning(f"Error traduciendo línea: {e}")
            return None

        translation = self._accept(text, result)
        if translation is not None:
            self.cache.save(source_lang_hint, text, translation)
        return translation

    def _batch_translate(self, texts: list[str], source_lang: str) -> list[Optional[str]]:
        """
        Traduce múltiples textos del mismo idioma en batch.

        Si el batch falla, traduce uno por uno.
        """
        if not texts:
            return []

        translator = self._get_translator(source_lang)

        try:
            results = translator.translate_batch(texts) or []
        except Exception as e:
            logger.warning(f"Error en batch translate, intentando uno por uno: {e}")
            return [self.translate(text, source_lang) for text in texts]

        translations: list[Optional[str]] = []
        for i, text in enumerate(texts):
            result = results[i] if i < len(results) else None
            translation = self._accept(text, result)
            if translation is not None:
                self.cache.save(source_lang, text, translation)
            translations.append(translation)
        return translations

    def translate_lyrics(self, lines: list[LyricLine]) -> list[LyricLine]:
        """
        Traduce las líneas que lo necesiten y aún no tengan traducción.

        Args:
            lines: Letras (posiblemente con traducciones oficiales ya adjuntas)

        Returns:
            Nueva lista de LyricLine con traducciones añadidas
        """
        result = list(lines)

        # {idioma origen: [(índice, texto)]} de lo que falta traducir
        pending: dict[str, list[tuple[int, str]]] = {}
        for idx, line in enumerate(lines):
            if line.translation or not self.heuristic.needs_translation(line.text):
                continue

            source_lang = detect_source_lang(line.text)
            cached = self.cache.get(source_lang, line.text)
            if cached is not None:
                result[idx] = replace(line, translation=cached)
            else:
                pending.setdefault(source_lang, []).append((idx, line.text))

        if not pending:
            return result

        translated_count = 0
        for source_lang, items in pending.items():
            translations = self._batch_translate([text for _, text in items], source_lang)
            for (idx, _), translation in zip(items, translations):
                if translation:
                    result[idx] = replace(result[idx], translation=translation)
                    translated_count += 1

        logger.info(f"Traducidas {translated_count} líneas")
        return result

    def translate_title(self, title: str) -> Optional[str]:
        """Traduce el título de la canción si no está en inglés/alemán."""
        if not title.strip() or not self.heuristic.needs_translation(title):
            return None
        return self.translate(title, detect_source_lang(title))
