"""User-defined functions and parameter binding.

A `FunctionValue` is created each time a `def` or `lambda` is executed.
Default expressions are evaluated once, at that moment, and the resulting
objects are stored on the function. Every call that omits a defaulted
parameter receives the very same object, so in-place mutation of a list
or dict default is visible to later calls.

`bind_arguments` matches a call's arguments against the declared
parameters and returns a fresh call frame. The frame is only created once
binding has fully succeeded.
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, List, Optional, Sequence

from .ast import Node, Param, PARAM_NORMAL, PARAM_ARGS, PARAM_KWARGS
from .environment import Environment
from .errors import (
    error, missing_arguments, unexpected_keyword_argument, too_many_arguments,
    multiple_values_for_argument,
)
from .types import CallableValue, DictVal, freeze_value


class _NoDefault:
    def __repr__(self) -> str:
        return '<required>'


NO_DEFAULT = _NoDefault()
_UNBOUND = object()


def check_params(func_name: str, params: List[Param]):
    """Validate a parameter list at definition time.

    Names must be unique, at most one `*` and one `**` may appear, `**`
    must come last, and a required positional parameter may not follow a
    defaulted one. A bare `*` must be followed by a keyword-only
    parameter, and neither `*` nor `**` takes a default.
    """
    seen = set()
    seen_default = False
    seen_star = False
    bare_star = False
    for i, param in enumerate(params):
        if param.name is not None:
            if param.name in seen:
                raise error('InvalidParameters',
                            f"duplicate parameter {param.name!r} in {func_name}()", (param.name,))
            seen.add(param.name)
        if param.kind in (PARAM_ARGS, PARAM_KWARGS) and param.default is not None:
            raise error('InvalidParameters',
                        f"'*' and '**' parameters of {func_name}() cannot have defaults")
        if param.kind == PARAM_KWARGS:
            if i != len(params) - 1 or param.name is None:
                raise error('InvalidParameters', f"'**' must name the last parameter of {func_name}()")
        elif param.kind == PARAM_ARGS:
            if seen_star:
                raise error('InvalidParameters', f"{func_name}() declares '*' more than once")
            seen_star = True
            bare_star = param.name is None
        elif param.kind == PARAM_NORMAL:
            if param.name is None:
                raise error('InvalidParameters', f"unnamed parameter in {func_name}()")
            bare_star = False
            if param.default is not None:
                seen_default = True
            elif seen_default and not seen_star:
                raise error('InvalidParameters',
                            f"required parameter {param.name!r} follows a defaulted one in {func_name}()",
                            (param.name,))
        else:
            raise error('InvalidParameters', f"unknown parameter kind {param.kind!r}")
    if bare_star:
        raise error('InvalidParameters', f"bare '*' in {func_name}() must be followed by a keyword-only parameter")


class FunctionValue(CallableValue):
    """Represents a user-defined Starling function (or lambda)."""

    type_name = 'function'

    def __init__(self, name: str, params: List[Param], defaults: Sequence[Any],
                 body: List[Node], closure: Environment, local_names: FrozenSet[str]):
        self.name = name
        self.params = params
        # one slot per parameter; NO_DEFAULT where the parameter has none
        self.defaults = list(defaults)
        self.body = body
        self.closure = closure  # defining frame chain
        self.local_names = local_names
        self.positional_count = 0
        self.star_index: Optional[int] = None
        self.kwargs_index: Optional[int] = None
        self.index: Dict[str, int] = {}
        for i, param in enumerate(params):
            if param.kind == PARAM_ARGS:
                self.star_index = i
            elif param.kind == PARAM_KWARGS:
                self.kwargs_index = i
            else:
                self.index[param.name] = i
                if self.star_index is None:
                    self.positional_count += 1

    def freeze(self):
        for value in self.defaults:
            if value is not NO_DEFAULT:
                freeze_value(value)

    def __repr__(self) -> str:
        return f"<function {self.name}>"


def bind_arguments(func: FunctionValue, args: Sequence[Any], kwargs: Dict[str, Any]) -> Environment:
    params = func.params
    slots: List[Any] = [_UNBOUND] * len(params)

    # Positional arguments fill slots left to right; the surplus goes to *args
    n = min(len(args), func.positional_count)
    slots[:n] = args[:n]
    extra = tuple(args[n:])
    if extra:
        if func.star_index is None or params[func.star_index].name is None:
            raise too_many_arguments(func.name, func.positional_count, len(args))

    extra_kwargs: Dict[str, Any] = {}
    for name, value in kwargs.items():
        i = func.index.get(name)
        if i is None:
            if func.kwargs_index is None:
                raise unexpected_keyword_argument(func.name, name)
            extra_kwargs[name] = value
        elif slots[i] is not _UNBOUND:
            raise multiple_values_for_argument(func.name, name)
        else:
            slots[i] = value

    missing = []
    for i, param in enumerate(params):
        if param.kind != PARAM_NORMAL or slots[i] is not _UNBOUND:
            continue
        default = func.defaults[i]
        if default is NO_DEFAULT:
            missing.append(param.name)
        else:
            slots[i] = default
    if missing:
        raise missing_arguments(func.name, missing)

    frame = Environment(func.name, parent=func.closure, local_names=func.local_names)
    for i, param in enumerate(params):
        if param.kind == PARAM_ARGS:
            if param.name is not None:
                frame.values[param.name] = extra
        elif param.kind == PARAM_KWARGS:
            frame.values[param.name] = DictVal(extra_kwargs)
        else:
            frame.values[param.name] = slots[i]
    return frame
