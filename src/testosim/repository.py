# src/testosim/repository.py
from __future__ import annotations

from typing import Iterable, Optional, Protocol

from .library import CompoundLibrary
from .types import Blend, Compound, Regimen


class Repository(Protocol):
    """
    Persistence boundary. Storage encoding is the implementer's business;
    the engine only needs round-trip load/save by id.
    """

    def load_regimen(self, regimen_id: str) -> Optional[Regimen]: ...

    def save_regimen(self, regimen: Regimen) -> None: ...

    def load_compound(self, compound_id: str) -> Optional[Compound]: ...

    def save_compound(self, compound: Compound) -> None: ...

    def load_blend(self, blend_id: str) -> Optional[Blend]: ...

    def save_blend(self, blend: Blend) -> None: ...


class InMemoryRepository:
    """Dict-backed Repository. Values are immutable, so no copies are made."""

    def __init__(self, compounds: Iterable[Compound] = (), blends: Iterable[Blend] = (),
                 regimens: Iterable[Regimen] = ()):
        self._compounds = {c.id: c for c in compounds}
        self._blends = {b.id: b for b in blends}
        self._regimens = {r.id: r for r in regimens}

    def load_regimen(self, regimen_id: str) -> Optional[Regimen]:
        return self._regimens.get(regimen_id)

    def save_regimen(self, regimen: Regimen) -> None:
        self._regimens[regimen.id] = regimen

    def delete_regimen(self, regimen_id: str) -> None:
        self._regimens.pop(regimen_id, None)

    def regimens(self) -> list[Regimen]:
        return sorted(self._regimens.values(), key=lambda r: r.start)

    def load_compound(self, compound_id: str) -> Optional[Compound]:
        return self._compounds.get(compound_id)

    def save_compound(self, compound: Compound) -> None:
        self._compounds[compound.id] = compound

    def load_blend(self, blend_id: str) -> Optional[Blend]:
        return self._blends.get(blend_id)

    def save_blend(self, blend: Blend) -> None:
        self._blends[blend.id] = blend

    def library(self) -> CompoundLibrary:
        """Snapshot of the stored reference data as a read-only lookup table."""
        return CompoundLibrary(self._compounds.values(), self._blends.values())
