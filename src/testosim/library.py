# src/testosim/library.py
from __future__ import annotations

from typing import Iterable, Optional, Protocol

from .types import Blend, BlendComponent, Compound


class ReferenceTable(Protocol):
    """The only view of reference data the engine needs: id -> object, or None."""

    def compound(self, compound_id: str) -> Optional[Compound]: ...

    def blend(self, blend_id: str) -> Optional[Blend]: ...


class CompoundLibrary:
    """
    Read-only lookup of compounds and blends by id.
    Safe to share between any number of simulations.
    """

    def __init__(self, compounds: Iterable[Compound] = (), blends: Iterable[Blend] = ()):
        self._compounds: dict[str, Compound] = {c.id: c for c in compounds}
        self._blends: dict[str, Blend] = {b.id: b for b in blends}

    @property
    def compounds(self) -> tuple[Compound, ...]:
        return tuple(self._compounds.values())

    @property
    def blends(self) -> tuple[Blend, ...]:
        return tuple(self._blends.values())

    def compound(self, compound_id: str) -> Optional[Compound]:
        return self._compounds.get(compound_id)

    def blend(self, blend_id: str) -> Optional[Blend]:
        return self._blends.get(blend_id)

    # --------------------------
    # Filters
    # --------------------------
    def compounds_of_class(self, potency_class: str) -> list[Compound]:
        return [c for c in self._compounds.values() if c.potency_class == potency_class]

    def compounds_for_route(self, route: str) -> list[Compound]:
        return [c for c in self._compounds.values() if c.supports(route)]

    def compounds_with_ester(self, ester: str) -> list[Compound]:
        return [c for c in self._compounds.values() if c.ester == ester]

    def compounds_with_half_life_between(self, low: float, high: float) -> list[Compound]:
        return [c for c in self._compounds.values() if low <= c.half_life_days <= high]

    def blends_containing(self, compound_id: str) -> list[Blend]:
        return [
            b for b in self._blends.values()
            if any(comp.compound_id == compound_id for comp in b.components)
        ]


# Shared per-route figures for the depot injectables.
_IM_SC_F = {"intramuscular": 1.0, "subcutaneous": 0.85}
_ORAL_F = {"oral": 0.07}

# (id, name, class, ester, half-life days, ka IM, ka SC)
_INJECTABLES = (
    ("testosterone-propionate", "Testosterone Propionate", "testosterone", "Propionate", 0.8, 0.70, 0.50),
    ("testosterone-phenylpropionate", "Testosterone Phenylpropionate", "testosterone", "Phenylpropionate", 2.5, 0.50, 0.35),
    ("testosterone-isocaproate", "Testosterone Isocaproate", "testosterone", "Isocaproate", 3.1, 0.35, 0.25),
    ("testosterone-enanthate", "Testosterone Enanthate", "testosterone", "Enanthate", 4.5, 0.30, 0.22),
    ("testosterone-cypionate", "Testosterone Cypionate", "testosterone", "Cypionate", 7.0, 0.25, 0.18),
    ("testosterone-decanoate", "Testosterone Decanoate", "testosterone", "Decanoate", 10.0, 0.18, 0.14),
    ("testosterone-undecanoate-im", "Testosterone Undecanoate (Injectable)", "testosterone", "Undecanoate", 21.0, 0.15, 0.10),
    ("nandrolone-decanoate", "Nandrolone Decanoate", "nandrolone", "Decanoate", 9.0, 0.20, 0.15),
    ("boldenone-undecylenate", "Boldenone Undecylenate", "boldenone", "Undecylenate", 5.125, 0.25, 0.18),
    ("trenbolone-acetate", "Trenbolone Acetate", "trenbolone", "Acetate", 1.5, 1.00, 0.70),
    ("trenbolone-enanthate", "Trenbolone Enanthate", "trenbolone", "Enanthate", 11.0, 0.18, 0.14),
    ("trenbolone-hexahydrobenzylcarbonate", "Trenbolone Hexahydrobenzylcarbonate", "trenbolone", "Hexahydrobenzylcarbonate", 8.0, 0.20, 0.15),
    ("stanozolol-suspension", "Stanozolol Suspension", "stanozolol", None, 1.0, 1.50, 1.00),
    ("drostanolone-propionate", "Drostanolone Propionate", "drostanolone", "Propionate", 2.0, 0.70, 0.50),
    ("drostanolone-enanthate", "Drostanolone Enanthate", "drostanolone", "Enanthate", 5.0, 0.30, 0.22),
    ("metenolone-enanthate", "Metenolone Enanthate", "metenolone", "Enanthate", 10.5, 0.18, 0.15),
    ("trestolone-acetate", "Trestolone Acetate", "trestolone", "Acetate", 0.083, 2.00, 1.50),
    ("dhb-cypionate", "1-Testosterone Cypionate", "dhb", "Cypionate", 8.0, 0.22, 0.16),
)

# (id, name, manufacturer, description, mg/mL for propionate, phenylpropionate, isocaproate, decanoate)
_SUSTANON = (
    ("sustanon-250", "Sustanon 250", "Organon", "Mixed testosterone esters for TRT", (30, 60, 60, 100)),
    ("sustanon-350", "Sustanon 350", "Generic", "Higher concentration mixed testosterone esters", (40, 80, 80, 150)),
    ("sustanon-400", "Sustanon 400", "Generic", "Highest concentration mixed testosterone esters", (50, 100, 100, 150)),
)


def default_compounds() -> list[Compound]:
    compounds = [
        Compound(
            id=cid, name=name, potency_class=cls, ester=ester, half_life_days=t_half,
            bioavailability=dict(_IM_SC_F),
            ka_per_day={"intramuscular": ka_im, "subcutaneous": ka_sc},
        )
        for cid, name, cls, ester, t_half, ka_im, ka_sc in _INJECTABLES
    ]
    compounds.append(Compound(
        id="testosterone-undecanoate-oral",
        name="Testosterone Undecanoate (Oral)",
        potency_class="testosterone",
        ester="Undecanoate",
        half_life_days=0.067,  # 1.6 h
        bioavailability=dict(_ORAL_F),
        ka_per_day={"oral": 6.0},
    ))
    return compounds


def default_blends() -> list[Blend]:
    esters = ("testosterone-propionate", "testosterone-phenylpropionate",
              "testosterone-isocaproate", "testosterone-decanoate")
    return [
        Blend(
            id=bid, name=name, manufacturer=maker, description=desc,
            components=tuple(BlendComponent(cid, float(mg)) for cid, mg in zip(esters, mgs)),
        )
        for bid, name, maker, desc, mgs in _SUSTANON
    ]


def default_library() -> CompoundLibrary:
    """Library seeded with the bundled literature compounds and Sustanon blends."""
    return CompoundLibrary(default_compounds(), default_blends())
