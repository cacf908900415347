"""Value definitions and helpers for Starling.

Starling values are a tagged union over a few Python natives (`bool`,
`int`, `str`, `tuple`) and the wrapper classes defined here. Lists and
dicts are wrapped so that they can be frozen; functions share the
`CallableValue` base so that the dispatcher can recognise anything
callable no matter how the evaluator obtained it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class NoneVal:
    """Marker object for the Starling `None` value.

    All instances compare equal and hash alike, so `None` can be used as a
    dict key.
    """
    def __repr__(self) -> str:
        return 'None'


@dataclass
class ErrorVal:
    """Describes a Starling runtime error.

    `name` is the error kind (e.g. 'MissingArguments'), `code` the short
    stable identifier, and `names` carries the parameter or variable names
    the error is about, when there are any.
    """
    name: str
    message: str
    code: str = ''
    names: tuple = ()

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, code={self.code!r}, message={self.message!r})"


@dataclass(eq=False)
class ListVal:
    """A mutable Starling list."""
    items: List[Any]
    frozen: bool = field(default=False, compare=False)

    def __repr__(self) -> str:
        return f"List({self.items!r})"


class DictVal:
    """A mutable Starling dict. Insertion order is preserved.

    `entries` maps `dict_key(key)` to the `(key, value)` pair, so that keys
    which are equal in Python but not in Starling (`True` and `1`) stay
    distinct.
    """
    def __init__(self, entries=(), frozen: bool = False):
        self.entries: Dict[Any, Tuple[Any, Any]] = {}
        self.frozen = frozen
        pairs = entries.items() if isinstance(entries, dict) else entries
        for key, value in pairs:
            self.set(key, value)

    def contains(self, key: Any) -> bool:
        return dict_key(key) in self.entries

    def get(self, key: Any) -> Any:
        return self.entries[dict_key(key)][1]

    def set(self, key: Any, value: Any):
        tagged = dict_key(key)
        if tagged in self.entries:
            key = self.entries[tagged][0]
        self.entries[tagged] = (key, value)

    def keys(self) -> List[Any]:
        return [key for key, _ in self.entries.values()]

    def items(self) -> List[Tuple[Any, Any]]:
        return list(self.entries.values())

    def __repr__(self) -> str:
        return f"Dict({self.items()!r})"


def dict_key(value: Any) -> Any:
    """Return the host key a dict stores `value` under.

    Booleans are tagged so they never collide with integers, including
    inside tuples.
    """
    if isinstance(value, bool):
        return (bool, value)
    if isinstance(value, tuple):
        return (tuple, tuple([dict_key(v) for v in value]))
    return value


class CallableValue:
    """Base class for every value the dispatcher is able to call.

    Subclasses provide a `name` used in error messages.
    """


def is_callable(value: Any) -> bool:
    return isinstance(value, CallableValue)


def type_name(value: Any) -> str:
    """Return the Starling type name of a runtime value."""
    if isinstance(value, NoneVal):
        return 'NoneType'
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, int):
        return 'int'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, tuple):
        return 'tuple'
    if isinstance(value, ListVal):
        return 'list'
    if isinstance(value, DictVal):
        return 'dict'
    # FunctionValue and BuiltinFunction report their own type name
    tn = getattr(value, 'type_name', None)
    if tn is not None:
        return tn
    return type(value).__name__


def is_hashable(value: Any) -> bool:
    if isinstance(value, (ListVal, DictVal)):
        return False
    if isinstance(value, tuple):
        return all(is_hashable(v) for v in value)
    return True


def freeze_value(value: Any) -> None:
    """Deeply freeze a value in place.

    Lists and dicts stop accepting mutation; containers are walked so that
    everything reachable from a frozen value is frozen too. Functions
    freeze their default values.
    """
    if isinstance(value, ListVal):
        if value.frozen:
            return
        value.frozen = True
        for item in value.items:
            freeze_value(item)
    elif isinstance(value, DictVal):
        if value.frozen:
            return
        value.frozen = True
        for k, v in value.items():
            freeze_value(k)
            freeze_value(v)
    elif isinstance(value, tuple):
        for item in value:
            freeze_value(item)
    else:
        freeze = getattr(value, 'freeze', None)
        if freeze is not None:
            freeze()


def to_repr(value: Any) -> str:
    """Convert a Starling value to its source-like representation."""
    if isinstance(value, NoneVal):
        return 'None'
    if isinstance(value, bool):
        return 'True' if value else 'False'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')
        return '"' + escaped + '"'
    if isinstance(value, tuple):
        if len(value) == 1:
            return '(' + to_repr(value[0]) + ',)'
        return '(' + ', '.join(to_repr(v) for v in value) + ')'
    if isinstance(value, ListVal):
        return '[' + ', '.join(to_repr(v) for v in value.items) + ']'
    if isinstance(value, DictVal):
        return '{' + ', '.join(f"{to_repr(k)}: {to_repr(v)}" for k, v in value.items()) + '}'
    return repr(value)


def is_truthy(value: Any) -> bool:
    if isinstance(value, NoneVal):
        return False
    if isinstance(value, (bool, int)):
        return value != 0
    if isinstance(value, (str, tuple)):
        return len(value) > 0
    if isinstance(value, ListVal):
        return len(value.items) > 0
    if isinstance(value, DictVal):
        return len(value.entries) > 0
    return True


def equal_values(a: Any, b: Any) -> bool:
    """Deep structural equality.

    Booleans are not integers here, so `True == 1` is false.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, int) and isinstance(b, int):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if isinstance(a, tuple) and isinstance(b, tuple):
        return len(a) == len(b) and all(equal_values(x, y) for x, y in zip(a, b))
    if isinstance(a, ListVal) and isinstance(b, ListVal):
        if len(a.items) != len(b.items):
            return False
        return all(equal_values(x, y) for x, y in zip(a.items, b.items))
    if isinstance(a, DictVal) and isinstance(b, DictVal):
        if len(a.entries) != len(b.entries):
            return False
        for tagged, (_, value) in a.entries.items():
            if tagged not in b.entries:
                return False
            if not equal_values(value, b.entries[tagged][1]):
                return False
        return True
    if isinstance(a, NoneVal) and isinstance(b, NoneVal):
        return True
    if type(a) is not type(b):
        return False
    return a is b
