"""
Gestor de hotkeys globales.

Hotkeys configurados:
- Ctrl+Alt+Up: Adelantar letras (+offset)
- Ctrl+Alt+Down: Atrasar letras (-offset)
- Ctrl+Alt+R: Resetear offset a 0
- Ctrl+Alt+P: Pausar/reanudar la reproducción local
- Ctrl+Shift+T: Activar/desactivar traducción
- Ctrl+Shift+Q: Salir

El listener de pynput corre en su propio hilo: los callbacks deben
reenviar la acción al event loop (loop.call_soon_threadsafe).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from pynput import keyboard
from pynput.keyboard import Key, KeyCode

logger = logging.getLogger(__name__)


class HotkeyAction(Enum):
    """Acciones disponibles via hotkeys."""

    OFFSET_INCREASE = "offset_increase"
    OFFSET_DECREASE = "offset_decrease"
    OFFSET_RESET = "offset_reset"
    TOGGLE_PLAYBACK = "toggle_playback"
    TOGGLE_TRANSLATION = "toggle_translation"
    QUIT_APP = "quit_app"


@dataclass(frozen=True)
class Hotkey:
    """Representa una combinación de teclas."""

    action: HotkeyAction
    modifiers: frozenset  # ctrl, shift, alt
    key: Key | KeyCode
    description: str

    def matches(self, modifiers: frozenset, key: Key | KeyCode) -> bool:
        """Verifica si la combinación actual coincide con este hotkey."""
        if self.modifiers != modifiers:
            return False
        if isinstance(self.key, KeyCode):
            if not isinstance(key, KeyCode) or not key.char or not self.key.char:
                return False
            return key.char.lower() == self.key.char.lower()
        return key == self.key

    def __str__(self) -> str:
        parts = [m.capitalize() for m in sorted(self.modifiers)]
        if isinstance(self.key, KeyCode) and self.key.char:
            parts.append(self.key.char.upper())
        else:
            parts.append(str(self.key).replace("Key.", "").capitalize())
        return "+".join(parts)


DEFAULT_HOTKEYS = [
    Hotkey(HotkeyAction.OFFSET_INCREASE, frozenset({"ctrl", "alt"}), Key.up, "Adelantar letras"),
    Hotkey(HotkeyAction.OFFSET_DECREASE, frozenset({"ctrl", "alt"}), Key.down, "Atrasar letras"),
    Hotkey(HotkeyAction.OFFSET_RESET, frozenset({"ctrl", "alt"}), KeyCode.from_char("r"), "Resetear offset a 0"),
    Hotkey(HotkeyAction.TOGGLE_PLAYBACK, frozenset({"ctrl", "alt"}), KeyCode.from_char("p"), "Pausar/reanudar"),
    Hotkey(HotkeyAction.TOGGLE_TRANSLATION, frozenset({"ctrl", "shift"}), KeyCode.from_char("t"), "Activar/desactivar traducción"),
    Hotkey(HotkeyAction.QUIT_APP, frozenset({"ctrl", "shift"}), KeyCode.from_char("q"), "Cerrar aplicación"),
]

HotkeyCallback = Callable[[HotkeyAction], None]


class HotkeyManager:
    """Gestor de hotkeys globales usando pynput."""

    MODIFIERS = {
        Key.ctrl_l: "ctrl",
        Key.ctrl_r: "ctrl",
        Key.shift_l: "shift",
        Key.shift_r: "shift",
        Key.alt_l: "alt",
        Key.alt_r: "alt",
        Key.alt_gr: "alt",
    }

    def __init__(self, hotkeys: Optional[list[Hotkey]] = None):
        self._listener: Optional[keyboard.Listener] = None
        self._current_modifiers: set[str] = set()
        self._callbacks: list[HotkeyCallback] = []
        self._hotkeys = list(hotkeys or DEFAULT_HOTKEYS)

    @property
    def hotkeys(self) -> list[Hotkey]:
        return list(self._hotkeys)

    def _on_press(self, key: Key | KeyCode) -> None:
        modifier = self.MODIFIERS.get(key)
        if modifier:
            self._current_modifiers.add(modifier)
            return

        current = frozenset(self._current_modifiers)
        for hotkey in self._hotkeys:
            if hotkey.matches(current, key):
                logger.debug(f"Hotkey detectado: {hotkey.action.value}")
                self._trigger_action(hotkey.action)
                return

    def _on_release(self, key: Key | KeyCode) -> None:
        modifier = self.MODIFIERS.get(key)
        if modifier:
            self._current_modifiers.discard(modifier)

    def _trigger_action(self, action: HotkeyAction) -> None:
        for callback in self._callbacks:
            try:
                callback(action)
            except Exception as e:
                logger.error(f"Error en callback de hotkey: {e}")

    def on_hotkey(self, callback: HotkeyCallback) -> None:
        """Registra un callback para cuando se activa un hotkey."""
        self._callbacks.append(callback)

    def start(self) -> None:
        """Inicia el listener de hotkeys."""
        if self._listener is not None:
            return

        self._listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        self._listener.start()
        logger.info(
            "HotkeyManager iniciado: "
            + ", ".join(f"{hotkey} ({hotkey.description})" for hotkey in self._hotkeys)
        )

    def stop(self) -> None:
        """Detiene el listener de hotkeys."""
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
            logger.info("HotkeyManager detenido")
