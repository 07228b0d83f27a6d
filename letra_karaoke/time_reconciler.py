"""
Reconciliación del tiempo de reproducción.

El reproductor informa la posición cada pocos segundos y con retraso.
Entre muestras se interpola con el reloj monotónico a la frecuencia del
refresco de pantalla. Cuando llega una muestra nueva:

- deriva <= 50ms: se ignora (ruido de interpolación)
- deriva en (50ms, 2000ms]: se mezcla suavemente hacia la muestra en 500ms
- deriva > 2000ms: salto inmediato (seek, pausa, cambio de canción)

El estado es un valor inmutable; `step(state, event)` es una función pura
y TimeReconciler solo guarda el último estado.
"""

import math
from dataclasses import dataclass, replace
from typing import Optional, Union

IGNORE_THRESHOLD_MS = 50
SNAP_THRESHOLD_MS = 2000
BLEND_DURATION_MS = 500


@dataclass(frozen=True)
class PositionSample:
    """Muestra de posición informada por el reproductor."""

    position_ms: int
    is_playing: bool
    sampled_at_monotonic_ms: float


@dataclass(frozen=True)
class ReconciliationState:
    """Estado de la reconciliación para una sesión de reproducción."""

    current_estimate_ms: float
    target_ms: float
    blending: bool = False
    blend_from_ms: float = 0.0
    blend_to_ms: float = 0.0
    blend_start_monotonic_ms: float = 0.0
    last_frame_monotonic_ms: Optional[float] = None
    is_playing: bool = False

    @property
    def estimate_ms(self) -> int:
        return int(math.floor(self.current_estimate_ms))


@dataclass(frozen=True)
class SampleEvent:
    sample: PositionSample


@dataclass(frozen=True)
class FrameEvent:
    now_ms: float


ReconcilerEvent = Union[SampleEvent, FrameEvent]


@dataclass(frozen=True)
class ReconcilerConfig:
    """Umbrales de la reconciliación."""

    ignore_threshold_ms: float = IGNORE_THRESHOLD_MS
    snap_threshold_ms: float = SNAP_THRESHOLD_MS
    blend_duration_ms: float = BLEND_DURATION_MS


DEFAULT_CONFIG = ReconcilerConfig()


def ease_out_cubic(t: float) -> float:
    return 1 - (1 - t) ** 3


def initial_state(sample: PositionSample) -> ReconciliationState:
    """Crea el estado de una sesión nueva a partir de la primera muestra."""
    return ReconciliationState(
        current_estimate_ms=float(sample.position_ms),
        target_ms=float(sample.position_ms),
        is_playing=sample.is_playing,
    )


def _apply_sample(
    state: ReconciliationState, sample: PositionSample, config: ReconcilerConfig
) -> ReconciliationState:
    position = float(sample.position_ms)

    if not sample.is_playing:
        # Idle: se congela en la posición informada y se cancela cualquier mezcla
        return ReconciliationState(
            current_estimate_ms=position,
            target_ms=position,
            is_playing=False,
        )

    if not state.is_playing:
        # Reanudación: el primer frame no debe sumar el tiempo en pausa
        state = replace(state, is_playing=True, last_frame_monotonic_ms=None)

    drift = abs(state.current_estimate_ms - position)

    if drift > config.snap_threshold_ms:
        return replace(
            state,
            current_estimate_ms=position,
            target_ms=position,
            blending=False,
        )

    if drift > config.ignore_threshold_ms:
        return replace(
            state,
            target_ms=position,
            blending=True,
            blend_from_ms=state.current_estimate_ms,
            blend_to_ms=position,
            blend_start_monotonic_ms=sample.sampled_at_monotonic_ms,
        )

    return state


def _apply_frame(
    state: ReconciliationState, now_ms: float, config: ReconcilerConfig
) -> ReconciliationState:
    if not state.is_playing:
        return state

    if state.last_frame_monotonic_ms is None:
        return replace(state, last_frame_monotonic_ms=now_ms)

    delta_ms = max(0.0, now_ms - state.last_frame_monotonic_ms)

    if not state.blending:
        return replace(
            state,
            current_estimate_ms=state.current_estimate_ms + delta_ms,
            last_frame_monotonic_ms=now_ms,
        )

    elapsed = now_ms - state.blend_start_monotonic_ms
    if config.blend_duration_ms > 0:
        t = min(max(elapsed, 0.0) / config.blend_duration_ms, 1.0)
    else:
        t = 1.0

    if t >= 1:
        # Fin de la mezcla: se fija el destino y se suma el delta del frame
        return replace(
            state,
            current_estimate_ms=state.blend_to_ms + delta_ms,
            blending=False,
            last_frame_monotonic_ms=now_ms,
        )

    estimate = state.blend_from_ms + (state.blend_to_ms - state.blend_from_ms) * ease_out_cubic(t)
    return replace(state, current_estimate_ms=estimate, last_frame_monotonic_ms=now_ms)


def step(
    state: ReconciliationState,
    event: ReconcilerEvent,
    config: ReconcilerConfig = DEFAULT_CONFIG,
) -> ReconciliationState:
    """
    Aplica un evento al estado y retorna el estado siguiente.

    Args:
        state: Estado actual (no se modifica)
        event: SampleEvent (nueva muestra) o FrameEvent (refresco de pantalla)
        config: Umbrales de la reconciliación

    Returns:
        Nuevo ReconciliationState
    """
    if isinstance(event, SampleEvent):
        return _apply_sample(state, event.sample, config)
    if isinstance(event, FrameEvent):
        return _apply_frame(state, event.now_ms, config)
    raise TypeError(f"Evento no soportado: {event!r}")


class TimeReconciler:
    """
    Mantiene el último estado de la reconciliación.

    El planificador llama a `on_sample` cuando llega una muestra del
    reproductor y a `tick` en cada refresco de pantalla.
    """

    def __init__(self, config: Optional[ReconcilerConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self._state: Optional[ReconciliationState] = None

    @property
    def state(self) -> Optional[ReconciliationState]:
        return self._state

    @property
    def estimate_ms(self) -> int:
        """Posición estimada actual (0 si aún no hubo muestras)."""
        if self._state is None:
            return 0
        return self._state.estimate_ms

    @property
    def is_playing(self) -> bool:
        return self._state is not None and self._state.is_playing

    def on_sample(self, sample: PositionSample) -> None:
        if self._state is None:
            self._state = initial_state(sample)
            return
        self._state = step(self._state, SampleEvent(sample), self.config)

    def tick(self, now_ms: float) -> int:
        """Avanza la estimación al instante `now_ms` y la retorna."""
        if self._state is None:
            return 0
        self._state = step(self._state, FrameEvent(now_ms), self.config)
        return self._state.estimate_ms

    def reset(self) -> None:
        """Descarta el estado (cambio de canción)."""
        self._state = None
