"""
Tagged decoding of loosely-typed state vector fields.

OpenSky state vectors mix booleans, integers, floats, strings, nulls and
the occasional nested array (sensor IDs) in one positional list. Each
field is probed in a fixed order - bool, int, float, string - and
anything else becomes an explicit NONE value, so callers never deal with
bare ``Any``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union


class ValueKind(str, Enum):
    """Kinds a state vector field can decode to."""
    BOOL = 'bool'
    INT = 'int'
    FLOAT = 'float'
    STRING = 'string'
    NONE = 'none'


@dataclass(frozen=True)
class StateValue:
    """A single decoded state vector field."""
    kind: ValueKind
    value: Union[bool, int, float, str, None] = None

    @classmethod
    def decode(cls, raw: Any) -> 'StateValue':
        """
        Decode a raw JSON scalar.

        bool must be probed before int since bool is an int subclass.
        """
        if isinstance(raw, StateValue):
            return raw
        if isinstance(raw, bool):
            return cls(ValueKind.BOOL, raw)
        if isinstance(raw, int):
            return cls(ValueKind.INT, raw)
        if isinstance(raw, float):
            return cls(ValueKind.FLOAT, raw)
        if isinstance(raw, str):
            return cls(ValueKind.STRING, raw)
        return NONE

    def as_str(self) -> Optional[str]:
        return self.value if self.kind is ValueKind.STRING else None

    def as_float(self) -> Optional[float]:
        """Numeric value for INT or FLOAT kinds; None if it does not fit a float."""
        if self.kind in (ValueKind.INT, ValueKind.FLOAT):
            try:
                return float(self.value)
            except (OverflowError, ValueError):
                return None
        return None

    def as_bool(self) -> Optional[bool]:
        return self.value if self.kind is ValueKind.BOOL else None


NONE = StateValue(ValueKind.NONE)


def decode_row(row: Any) -> Optional[List[StateValue]]:
    """Decode one raw state vector, or None if it is not a list."""
    if not isinstance(row, list):
        return None
    return [StateValue.decode(item) for item in row]


def decode_states(states: Any) -> List[List[StateValue]]:
    """
    Decode the ``states`` member of an OpenSky response.

    A missing member, or one that is not a list of lists, yields an
    empty list rather than a failure.
    """
    if not isinstance(states, list):
        return []

    rows = []
    for raw_row in states:
        row = decode_row(raw_row)
        if row is None:
            return []
        rows.append(row)
    return rows
