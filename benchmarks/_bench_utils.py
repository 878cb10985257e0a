"""Timing summaries and host metadata for the mode benchmarks."""

from __future__ import annotations

import os
import platform
import statistics
from dataclasses import dataclass
from typing import Any

import jax
import jax.numpy as jnp

ENGINE_ENV_VARS = (
    "MP_JAX_ARENA_CAPACITY",
    "MP_JAX_VM_KEEP_STACK",
    "MP_JAX_SAMPLE_CAPACITY",
    "MP_JAX_SAMPLE_RESOLUTION",
    "XLA_FLAGS",
)


@dataclass(frozen=True)
class TimingSummary:
    """Per-point sweep timings in microseconds."""

    mean_us: float
    p50_us: float
    p95_us: float
    stddev_us: float
    sweeps: int


def _quantile(ordered: list[float], q: float) -> float:
    if len(ordered) == 1:
        return ordered[0]
    # Inclusive method interpolates linearly between the closest ranks.
    cuts = statistics.quantiles(ordered, n=100, method="inclusive")
    return cuts[round(q * 100) - 1]


def summarize_sweeps(per_point_us: list[float]) -> TimingSummary:
    if not per_point_us:
        raise ValueError("no sweep timings to summarize")
    ordered = sorted(per_point_us)
    return TimingSummary(
        mean_us=statistics.fmean(ordered),
        p50_us=_quantile(ordered, 0.50),
        p95_us=_quantile(ordered, 0.95),
        stddev_us=statistics.stdev(ordered) if len(ordered) > 1 else 0.0,
        sweeps=len(ordered),
    )


def host_metadata() -> dict[str, Any]:
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "jax": jax.__version__,
        "backend": jax.default_backend(),
        "x64": str(jnp.asarray(0.0).dtype) == "float64",
        "env": {name: os.environ[name] for name in ENGINE_ENV_VARS if name in os.environ},
    }
