from dataclasses import dataclass, replace
from typing import Any, Optional
from starling.types import CallableValue


@dataclass(eq=False)
class BuiltinFunction(CallableValue):
    """A host function exposed to Starling code.

    `fn` receives the positional arguments as a list, plus a dict of
    keyword arguments when `takes_kwargs` is set. `arity` of None means
    any number of positional arguments. A builtin obtained through
    attribute access carries its receiver, which is passed as the first
    positional argument.
    """
    name: str
    arity: Optional[int]
    fn: Any
    takes_kwargs: bool = False
    receiver: Any = None

    type_name = 'builtin_function'

    def bind(self, receiver: Any) -> 'BuiltinFunction':
        return replace(self, receiver=receiver)

    def __repr__(self) -> str:
        if self.receiver is not None:
            return f"<built-in method {self.name}>"
        return f"<builtin {self.name}>"
