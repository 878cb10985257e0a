"""Scalar float64 arithmetic on jax.numpy.

Python floats raise on ``1.0 / 0.0`` and return complex numbers for
``(-8.0) ** (1 / 3)``. Both evaluation modes need IEEE-754 results
instead (inf, -inf, NaN), so every operand is a 0-d float64 jax array.
"""

from __future__ import annotations

from typing import Callable, Final

import jax

# Process-wide: every jax user in this process gets 64-bit defaults.
jax.config.update("jax_enable_x64", True)

import jax.numpy as jnp  # noqa: E402

from .ast import FunctionName  # noqa: E402


def as_float64(value) -> jnp.ndarray:
    if isinstance(value, jnp.ndarray) and value.dtype == jnp.float64:
        return value
    return jnp.asarray(value, dtype=jnp.float64)


def to_float(value) -> float:
    return float(value)


def is_zero(value) -> bool:
    """True for both +0.0 and -0.0."""
    return float(value) == 0.0


def add(left: jnp.ndarray, right: jnp.ndarray) -> jnp.ndarray:
    return left + right


def subtract(left: jnp.ndarray, right: jnp.ndarray) -> jnp.ndarray:
    return left - right


def multiply(left: jnp.ndarray, right: jnp.ndarray) -> jnp.ndarray:
    return left * right


def divide(left: jnp.ndarray, right: jnp.ndarray) -> jnp.ndarray:
    return left / right


def power(left: jnp.ndarray, right: jnp.ndarray) -> jnp.ndarray:
    return jnp.power(left, right)


def negate(value: jnp.ndarray) -> jnp.ndarray:
    return -value


FUNCTIONS: Final[dict[FunctionName, Callable[[jnp.ndarray], jnp.ndarray]]] = {
    FunctionName.LN: jnp.log,
    FunctionName.LOG: jnp.log10,
    FunctionName.SIN: jnp.sin,
    FunctionName.COS: jnp.cos,
    FunctionName.TAN: jnp.tan,
    FunctionName.SQRT: jnp.sqrt,
}
