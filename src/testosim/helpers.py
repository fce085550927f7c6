import logging

from .library import ReferenceTable
from .types import BlendTarget, Compound, CompoundTarget, DoseTarget

logger = logging.getLogger(__name__)


def component_doses(target: DoseTarget, dose_mg: float,
                    library: ReferenceTable) -> list[tuple[Compound, float]]:
    """
    Split one administration into (compound, mg) pairs.

    A blend dose is shared in proportion to each component's mg/mL. Unknown
    ids are logged and skipped so the rest of a blend still counts.
    """
    if isinstance(target, CompoundTarget):
        compound = library.compound(target.compound_id)
        if compound is None:
            logger.warning("Unknown compound id '%s'; skipping its contribution.", target.compound_id)
            return []
        return [(compound, float(dose_mg))]

    blend = library.blend(target.blend_id)
    if blend is None:
        logger.warning("Unknown blend id '%s'; skipping its contribution.", target.blend_id)
        return []
    total = blend.total_concentration
    if total <= 0:
        logger.warning("Blend '%s' has zero total concentration; skipping.", blend.name)
        return []

    pairs: list[tuple[Compound, float]] = []
    for comp in blend.components:
        compound = library.compound(comp.compound_id)
        if compound is None:
            logger.warning("Blend '%s' references unknown compound '%s'; skipping that component.",
                           blend.name, comp.compound_id)
            continue
        pairs.append((compound, dose_mg * comp.mg_per_ml / total))
    return pairs


def target_name(target: DoseTarget, library: ReferenceTable) -> str:
    """Display name of a dose target, or its raw id when unresolved."""
    if isinstance(target, BlendTarget):
        blend = library.blend(target.blend_id)
        return blend.name if blend is not None else target.blend_id
    compound = library.compound(target.compound_id)
    return compound.full_display_name if compound is not None else target.compound_id
