# src/testosim/types.py
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal, Mapping, Optional, Sequence, Union
from uuid import uuid4

from .config import SIMPLE_DISPLAY_DAYS
from .potency import potency_for
from .validation import (
    validate_fraction, validate_non_negative, validate_non_negative_int, validate_positive,
)

# Time is kept in DAYS inside the engine; timestamps are naive or aware datetimes,
# used consistently by the caller.
Route = Literal["intramuscular", "subcutaneous", "oral", "transdermal"]
ROUTES: tuple[str, ...] = ("intramuscular", "subcutaneous", "oral", "transdermal")

ROUTE_LABELS: dict[str, str] = {
    "intramuscular": "Intramuscular (IM)",
    "subcutaneous": "Subcutaneous (SubQ)",
    "oral": "Oral",
    "transdermal": "Transdermal",
}

DAY = timedelta(days=1)


def _new_id() -> str:
    return uuid4().hex


def days_between(start: datetime, end: datetime) -> float:
    """Signed difference end - start in (fractional) days."""
    return (end - start) / DAY


@dataclass(frozen=True)
class Compound:
    """
    A single pharmacologic compound (parent hormone + ester).

    name             : common name, e.g. "Testosterone Enanthate"
    potency_class    : one of potency.POTENCY_CLASSES
    half_life_days   : elimination half-life (days)
    bioavailability  : route -> fraction of the dose reaching circulation (0-1)
    ka_per_day       : route -> first-order absorption rate constant (1/day)
    ester            : ester name; None for suspensions
    """
    name: str
    potency_class: str
    half_life_days: float
    bioavailability: Mapping[str, float]
    ka_per_day: Mapping[str, float]
    ester: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        potency_for(self.potency_class)
        validate_positive("half_life_days", self.half_life_days)
        for route, f in self.bioavailability.items():
            validate_fraction(f"bioavailability[{route}]", f)
        for route, ka in self.ka_per_day.items():
            validate_positive(f"ka_per_day[{route}]", ka)

    @property
    def full_display_name(self) -> str:
        base = potency_for(self.potency_class).label
        if self.ester:
            return f"{base} {self.ester}"
        return f"{base} Suspension"

    def supports(self, route: str) -> bool:
        return route in self.bioavailability


@dataclass(frozen=True)
class BlendComponent:
    compound_id: str
    mg_per_ml: float

    def __post_init__(self) -> None:
        validate_non_negative("mg_per_ml", self.mg_per_ml)


@dataclass(frozen=True)
class Blend:
    """A vial holding several compounds at fixed concentrations."""
    name: str
    components: Sequence[BlendComponent]
    manufacturer: Optional[str] = None
    description: Optional[str] = None
    id: str = field(default_factory=_new_id)

    @property
    def total_concentration(self) -> float:
        """Sum of component concentrations (mg/mL)."""
        return sum(c.mg_per_ml for c in self.components)


@dataclass(frozen=True)
class CompoundTarget:
    compound_id: str


@dataclass(frozen=True)
class BlendTarget:
    blend_id: str


# Exactly one payload per dose: a compound or a blend, never both.
DoseTarget = Union[CompoundTarget, BlendTarget]


@dataclass(frozen=True)
class LabSample:
    """A measured blood level. `unit` is carried along, never converted."""
    timestamp: datetime
    value: float
    unit: str = "ng/dL"


@dataclass(frozen=True)
class ConcentrationSample:
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class SimpleRegimen:
    """
    One compound or blend on a fixed schedule.

    dose_mg         : amount per administration (mg)
    frequency_days  : spacing between administrations; <= 0 means a single dose
    target          : CompoundTarget or BlendTarget
    route           : administration route
    lab_samples     : observed blood levels recorded against this regimen
    """
    name: str
    start: datetime
    dose_mg: float
    frequency_days: float
    target: DoseTarget
    route: Route = "intramuscular"
    lab_samples: Sequence[LabSample] = ()
    notes: Optional[str] = None
    id: str = field(default_factory=_new_id)

    kind = "simple"

    @property
    def end_date(self) -> datetime:
        # display window only; dosing itself is not bounded by it
        return self.start + SIMPLE_DISPLAY_DAYS * DAY


@dataclass(frozen=True)
class StageDose:
    """One compound or blend administered on its own schedule inside a stage."""
    target: DoseTarget
    dose_mg: float
    frequency_days: float
    route: Route = "intramuscular"


@dataclass(frozen=True)
class Stage:
    """
    A time-boxed block of an advanced regimen.

    start_week      : 0-based week offset from the regimen start
    duration_weeks  : stage length in weeks (0 is allowed and contributes nothing)
    doses           : StageDose entries, each independent of the others
    """
    name: str
    start_week: int
    duration_weeks: int
    doses: Sequence[StageDose] = ()

    def __post_init__(self) -> None:
        validate_non_negative_int("start_week", self.start_week)
        validate_non_negative_int("duration_weeks", self.duration_weeks)

    def start_date(self, regimen_start: datetime) -> datetime:
        return regimen_start + self.start_week * 7 * DAY

    def end_date(self, regimen_start: datetime) -> datetime:
        return self.start_date(regimen_start) + self.duration_weeks * 7 * DAY

    @property
    def compound_doses(self) -> tuple[StageDose, ...]:
        return tuple(d for d in self.doses if isinstance(d.target, CompoundTarget))

    @property
    def blend_doses(self) -> tuple[StageDose, ...]:
        return tuple(d for d in self.doses if isinstance(d.target, BlendTarget))


@dataclass(frozen=True)
class AdvancedRegimen:
    """A multi-stage plan; stages may overlap or leave gaps."""
    name: str
    start: datetime
    total_weeks: int
    stages: Sequence[Stage] = ()
    notes: Optional[str] = None
    id: str = field(default_factory=_new_id)

    kind = "advanced"

    def __post_init__(self) -> None:
        validate_non_negative_int("total_weeks", self.total_weeks)

    @property
    def end_date(self) -> datetime:
        return self.start + self.total_weeks * 7 * DAY


Regimen = Union[SimpleRegimen, AdvancedRegimen]
