# src/testosim/visualization.py
"""
Layered time series handed to whatever draws them.
Labels, colors, opacity and visibility are suggestions, not engine state.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal, Sequence

import numpy as np

from .types import ConcentrationSample

LayerType = Literal["compound_curve", "total_curve", "anabolic_index", "androgenic_index"]

TOTAL_COLOR = "34A853"       # green
ANABOLIC_COLOR = "FBBC05"    # yellow
ANDROGENIC_COLOR = "EA4335"  # red


@dataclass(frozen=True)
class Layer:
    type: LayerType
    name: str
    color: str
    data: tuple[ConcentrationSample, ...]
    opacity: float = 1.0
    visible: bool = True

    @property
    def values(self) -> np.ndarray:
        return np.array([p.value for p in self.data], dtype=float)

    def normalized(self) -> Layer:
        """Same layer scaled to its own maximum (0-1); unchanged if the max is <= 0."""
        if not self.data:
            return self
        peak = max(p.value for p in self.data)
        if peak <= 0:
            return self
        return replace(self, data=tuple(ConcentrationSample(p.timestamp, p.value / peak) for p in self.data))


@dataclass(frozen=True)
class VisualizationStatistics:
    max_concentration: float
    max_compound_concentration: float
    max_anabolic_index: float
    max_androgenic_index: float
    average_anabolic_index: float
    average_androgenic_index: float
    anabolic_to_androgenic_ratio: float


def _samples(times: Sequence[datetime], values) -> tuple[ConcentrationSample, ...]:
    return tuple(ConcentrationSample(t, float(v)) for t, v in zip(times, values))


@dataclass
class Visualization:
    """
    Ordered layers for one regimen over [start, end]. Earlier layers are drawn below.
    `truncated` is set when a dose schedule hit its step cap, so some
    administrations are missing from the curves.
    """
    start: datetime
    end: datetime
    unit: str = "mg/L"
    layers: list[Layer] = field(default_factory=list)
    truncated: bool = False

    def add_layer(self, type: LayerType, name: str, color: str, times: Sequence[datetime], values,
                  opacity: float = 1.0, visible: bool = True) -> Layer:
        layer = Layer(type=type, name=name, color=color, data=_samples(times, values),
                      opacity=min(1.0, max(0.0, opacity)), visible=visible)
        self.layers.append(layer)
        return layer

    def layers_of_type(self, type: LayerType) -> list[Layer]:
        return [layer for layer in self.layers if layer.type == type]

    @property
    def visible_layers(self) -> list[Layer]:
        return [layer for layer in self.layers if layer.visible]

    @property
    def total(self) -> Layer | None:
        totals = self.layers_of_type("total_curve")
        return totals[0] if totals else None

    def statistics(self) -> VisualizationStatistics:
        def values(type: LayerType) -> np.ndarray:
            layers = self.layers_of_type(type)
            if not layers:
                return np.zeros(0)
            return np.concatenate([layer.values for layer in layers])

        def peak(v: np.ndarray) -> float:
            return float(v.max()) if v.size else 0.0

        def mean(v: np.ndarray) -> float:
            return float(v.mean()) if v.size else 0.0

        anabolic = values("anabolic_index")
        androgenic = values("androgenic_index")
        avg_ana, avg_andro = mean(anabolic), mean(androgenic)
        return VisualizationStatistics(
            max_concentration=peak(values("total_curve")),
            max_compound_concentration=peak(values("compound_curve")),
            max_anabolic_index=peak(anabolic),
            max_androgenic_index=peak(androgenic),
            average_anabolic_index=avg_ana,
            average_androgenic_index=avg_andro,
            anabolic_to_androgenic_ratio=avg_ana / avg_andro if avg_andro > 0 else 0.0,
        )
