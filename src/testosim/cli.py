# src/testosim/cli.py
import argparse
import csv
import logging
import sys
from datetime import datetime, timedelta
from typing import Optional, Sequence

from .concentration import PKModel
from .config import DEFAULT_CALIBRATION_FACTOR, DEFAULT_WEIGHT_KG, LOG_LEVEL, USE_TWO_COMPARTMENT
from .dosing import every_n_days, single_dose
from .library import default_library
from .metrics import day_axis, summarize
from .simulate import simulate_regimen
from .types import ROUTE_LABELS, ROUTES, BlendTarget, CompoundTarget

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="testosim", description="Testosterone/AAS blood level simulation")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Simulate a fixed-dose regimen")
    target = sim.add_mutually_exclusive_group(required=True)
    target.add_argument("--compound", help="Compound id (see `testosim compounds`)")
    target.add_argument("--blend", help="Blend id (see `testosim compounds`)")
    sim.add_argument("--dose", type=float, required=True, help="Dose per administration (mg)")
    sim.add_argument("--every", type=float, default=0.0, help="Dosing interval (days); 0 = single dose")
    sim.add_argument("--route", choices=ROUTES, default="intramuscular", help="Administration route")
    sim.add_argument("--start", type=datetime.fromisoformat, default=None,
                     help="Start timestamp (ISO 8601); default today 00:00")
    sim.add_argument("--weeks", type=float, default=12.0, help="Simulated span (weeks)")
    sim.add_argument("--step", type=float, default=0.25, help="Grid step (days)")
    sim.add_argument("--weight", type=float, default=DEFAULT_WEIGHT_KG, help="Body weight (kg)")
    sim.add_argument("--calibration", type=float, default=DEFAULT_CALIBRATION_FACTOR,
                     help="Global calibration multiplier")
    sim.add_argument("--one-compartment", action="store_true",
                     help="Use the one-compartment model instead of the two-compartment one")
    sim.add_argument("--endogenous", action="store_true", help="Add the endogenous baseline to the total")
    sim.add_argument("--csv", default=None, help="Write layers to this CSV path (timestamp,layer,value)")

    sub.add_parser("compounds", help="List library compounds and blends")
    return parser


def _list_compounds(out) -> int:
    library = default_library()
    for c in library.compounds:
        routes = ", ".join(ROUTE_LABELS[r] for r in ROUTES if c.supports(r))
        out.write(f"{c.id:40s} {c.full_display_name:45s} t1/2={c.half_life_days:g} d  [{routes}]\n")
    for b in library.blends:
        parts = " + ".join(f"{comp.mg_per_ml:g} {comp.compound_id}" for comp in b.components)
        out.write(f"{b.id:40s} {b.name:45s} {b.total_concentration:g} mg/mL ({parts})\n")
    return 0


def _simulate(args, out) -> int:
    library = default_library()
    if args.compound is not None:
        if library.compound(args.compound) is None:
            raise ValueError(f"Unknown compound id '{args.compound}'.")
        target = CompoundTarget(args.compound)
    else:
        if library.blend(args.blend) is None:
            raise ValueError(f"Unknown blend id '{args.blend}'.")
        target = BlendTarget(args.blend)
    if args.weeks <= 0:
        raise ValueError("weeks must be > 0")

    start = args.start or datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
    if args.every > 0:
        regimen = every_n_days("cli", start, args.dose, args.every, target, route=args.route)
    else:
        regimen = single_dose("cli", start, args.dose, target, route=args.route)

    model = PKModel(two_compartment=USE_TWO_COMPARTMENT and not args.one_compartment)
    viz = simulate_regimen(
        regimen, library,
        window=(start, start + timedelta(weeks=args.weeks)),
        weight_kg=args.weight, calibration_factor=args.calibration,
        model=model, step_days=args.step, include_endogenous=args.endogenous,
    )

    total = viz.total
    t = day_axis([p.timestamp for p in total.data])
    s = summarize(t, total.values, args.every if args.every > 0 else None)
    out.write(f"peak      {s.peak:.4g} mg/L at day {s.peak_day:.2f}\n")
    out.write(f"average   {s.average:.4g} mg/L\n")
    out.write(f"trough    {s.trough:.4g} mg/L\n")
    out.write(f"AUC       {s.auc:.4g} mg*day/L\n")
    stats = viz.statistics()
    out.write(f"anabolic  {stats.average_anabolic_index:.4g}\n")
    out.write(f"androgenic {stats.average_androgenic_index:.4g}\n")
    if viz.truncated:
        out.write("warning   dose schedule hit the step cap; levels are incomplete\n")

    if args.csv:
        with open(args.csv, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["timestamp", "layer", "value"])
            for layer in viz.layers:
                for p in layer.data:
                    writer.writerow([p.timestamp.isoformat(), layer.name, p.value])
        logger.info("Wrote %d layers to %s", len(viz.layers), args.csv)
    return 0


def main(argv: Optional[Sequence[str]] = None, out=None) -> int:
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    if out is None:
        out = sys.stdout
    args = _build_parser().parse_args(argv)
    try:
        if args.command == "compounds":
            return _list_compounds(out)
        return _simulate(args, out)
    except ValueError as exc:
        sys.stderr.write(f"testosim: error: {exc}\n")
        return 2


if __name__ == "__main__":
    sys.exit(main())
