#!/usr/bin/env python3
"""
Launcher para Letra Karaoke
Este archivo es el punto de entrada para PyInstaller
"""

from letra_karaoke.main import main

if __name__ == "__main__":
    main()
