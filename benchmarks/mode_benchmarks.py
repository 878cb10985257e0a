"""Compare interpret and compile modes on plot-style sampling loops."""

from __future__ import annotations

import argparse
import json
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from _bench_utils import host_metadata, summarize_sweeps

from mp_jax import Engine, Mode


@dataclass(frozen=True)
class Case:
    name: str
    expr: str
    modes: tuple[Mode, ...] = (Mode.INTERPRET, Mode.COMPILE)


@dataclass(frozen=True)
class Row:
    name: str
    mode: str
    points: int
    mean_us_per_point: float
    p50_us_per_point: float
    p95_us_per_point: float
    stddev_us_per_point: float
    samples: int


def _run_case(case: Case, mode: Mode, *, points: int, samples: int) -> Row:
    engine = Engine.from_source(case.expr, mode)
    span = 10.0
    resolution = span / points
    # Warm up jax dispatch for every op in the expression.
    engine.sample(-1.0, -1.0 + resolution, resolution=resolution)

    per_point: list[float] = []
    with engine:
        for _ in range(samples):
            start = time.perf_counter()
            out = engine.sample(-span / 2, span / 2, resolution=resolution, capacity=points)
            end = time.perf_counter()
            per_point.append((end - start) * 1e6 / max(1, len(out)))

    summary = summarize_sweeps(per_point)
    return Row(
        name=case.name,
        mode=mode.value,
        points=points,
        mean_us_per_point=summary.mean_us,
        p50_us_per_point=summary.p50_us,
        p95_us_per_point=summary.p95_us,
        stddev_us_per_point=summary.stddev_us,
        samples=summary.sweeps,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--points", type=int, default=1000, help="samples per sweep")
    parser.add_argument("--samples", type=int, default=3, help="timing sweeps per case")
    parser.add_argument("--json-out", default="", help="optional output JSON")
    args = parser.parse_args()

    cases = [
        Case("linear", "2*x+1"),
        Case("polynomial", "x^3-2*x^2+x-5"),
        Case("rational", "(x+1)/(x-3)"),
        Case("nested_unary", "-(-(x*p))+e"),
        Case("transcendental", "sin(x)*cos(x)+sqrt(x*x)", modes=(Mode.INTERPRET,)),
    ]

    rows: list[Row] = []
    print("Mode benchmark")
    for case in cases:
        for mode in case.modes:
            row = _run_case(case, mode, points=args.points, samples=args.samples)
            rows.append(row)
            print(f"{case.name:14} {mode.value:9} mean={row.mean_us_per_point:9.2f}us/pt p95={row.p95_us_per_point:9.2f}us/pt")

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "timestamp_utc": datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ"),
            "host": host_metadata(),
            "points": args.points,
            "samples": args.samples,
            "rows": [asdict(row) for row in rows],
        }
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"Wrote JSON: {outpath}")


if __name__ == "__main__":
    main()
