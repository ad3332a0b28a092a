from __future__ import annotations

"""
Moon phase check script.

Uses:
- mooncal.core.engine.MoonPhaseEngine.compute_range
- mooncal.api.public.observation_to_dict (for --json)
"""

import argparse
from typing import List, Optional

from mooncal.api.public import observation_to_dict
from mooncal.core.engine import MoonPhaseEngine
from mooncal.core.errors import MoonPhaseError

from tools.common import add_common_args, resolve_coordinate, resolve_date_range, dump_json, fail


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Moon phase check")
    add_common_args(parser)
    args = parser.parse_args(argv)

    try:
        start, end = resolve_date_range(args)
    except ValueError as e:
        fail(f"invalid date: {e}")
        return
    if start is None or end is None:
        parser.error("--date or --start/--end required")

    try:
        coordinate = resolve_coordinate(args)
        rows = MoonPhaseEngine().compute_range(start, end, coordinate)
    except (MoonPhaseError, ValueError) as e:
        fail(str(e))
        return

    if args.json:
        dump_json({"rows": [observation_to_dict(o) for o in rows]})
        return

    for o in rows:
        c = o.calculation
        if args.verbose:
            print(
                f"{o.date.isoformat()}  {c.phase_name.value:<15}  "
                f"phase={c.phase:.3f} illum={c.illumination * 100:.2f}% age={c.age:.1f}d "
                f"dist={c.distance_km}km rise={o.rise_set.rise} set={o.rise_set.set} "
                f"next={o.next_phase.phase_name.value}@{o.next_phase.date.isoformat()}"
            )
        else:
            print(f"{o.date.isoformat()}  {c.phase_name.value}")


if __name__ == "__main__":
    main()
