"""Fixed 26-slot variable table addressed by the letters a-z."""

from __future__ import annotations

import numbers
import string

from .errors import VariableError

VARIABLE_NAMES = string.ascii_lowercase
VARIABLE_COUNT = len(VARIABLE_NAMES)


def is_variable_name(name: object) -> bool:
    return isinstance(name, str) and len(name) == 1 and "a" <= name <= "z"


def variable_index(name: object) -> int:
    if not is_variable_name(name):
        raise VariableError(f"Variable must be a single letter a-z, got {name!r}")
    return ord(name) - ord("a")


def _as_slot_value(name: str, value: object) -> float:
    if isinstance(value, numbers.Real):
        return float(value)
    # 0-d jax/numpy arrays
    if getattr(value, "ndim", None) == 0:
        return float(value)
    raise TypeError(f"variable {name!r} must be bound to a real number, got {type(value).__name__}")


class VariableTable:
    """Slots default to 0.0; each engine owns its own table."""

    def __init__(self) -> None:
        self._slots = [0.0] * VARIABLE_COUNT

    def bind(self, name: str, value: object) -> None:
        self._slots[variable_index(name)] = _as_slot_value(name, value)

    def slot(self, index: int) -> float:
        if not 0 <= index < VARIABLE_COUNT:
            raise VariableError(f"Variable index must be in [0, {VARIABLE_COUNT}), got {index}")
        return self._slots[index]

    def clear(self) -> None:
        self._slots = [0.0] * VARIABLE_COUNT

    def as_dict(self) -> dict[str, float]:
        return dict(zip(VARIABLE_NAMES, self._slots))

    def __getitem__(self, name: str) -> float:
        return self._slots[variable_index(name)]

    def __setitem__(self, name: str, value: object) -> None:
        self.bind(name, value)

    def __len__(self) -> int:
        return VARIABLE_COUNT

    def __repr__(self) -> str:
        bound = {name: value for name, value in self.as_dict().items() if value != 0.0}
        return f"VariableTable({bound})"
