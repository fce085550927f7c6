# src/testosim/potency.py
from dataclasses import dataclass
from typing import Literal

PotencyClass = Literal[
    "testosterone", "nandrolone", "trenbolone", "boldenone", "drostanolone",
    "stanozolol", "metenolone", "trestolone", "dhb",
]


@dataclass(frozen=True)
class Potency:
    """
    Fixed per-class figures shared by the effect indices and layer coloring.

    anabolic    : multiplier applied to the weekly dose for the anabolic index
    androgenic  : multiplier applied to the weekly dose for the androgenic index
    color       : hex color (no '#') suggested for this class's curves
    label       : human readable class name
    """
    anabolic: float
    androgenic: float
    color: str
    label: str


POTENCY: dict[str, Potency] = {
    "testosterone": Potency(1.0, 1.0, "4285F4", "Testosterone"),
    "nandrolone":   Potency(1.25, 0.37, "0F9D58", "Nandrolone"),
    "trenbolone":   Potency(5.0, 5.0, "DB4437", "Trenbolone"),
    "boldenone":    Potency(1.0, 0.5, "F4B400", "Boldenone"),
    "drostanolone": Potency(0.65, 1.25, "9C27B0", "Drostanolone (Masteron)"),
    "stanozolol":   Potency(2.0, 0.6, "FF6D00", "Stanozolol (Winstrol)"),
    "metenolone":   Potency(0.88, 0.44, "795548", "Metenolone (Primobolan)"),
    "trestolone":   Potency(2.3, 1.5, "607D8B", "Trestolone (MENT)"),
    "dhb":          Potency(1.55, 0.65, "009688", "1-Testosterone (DHB)"),
}

POTENCY_CLASSES: tuple[str, ...] = tuple(POTENCY)


def potency_for(potency_class: str) -> Potency:
    """Look up a class; unknown classes are a programming error."""
    try:
        return POTENCY[potency_class]
    except KeyError:
        raise ValueError(f"Unknown potency class '{potency_class}'.") from None


def color_for(potency_class: str) -> str:
    return potency_for(potency_class).color
