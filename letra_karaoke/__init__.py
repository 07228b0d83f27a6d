"""Letra Karaoke: letras sincronizadas con traducción."""

__version__ = "0.1.0"
