from typing import Any, Dict, FrozenSet, List, Optional
from starling.errors import error
from starling.types import freeze_value, type_name


class Environment:
    """A scope mapping identifiers to values.

    Module globals and function-call frames are both environments. A call
    frame carries the local-name table of its function: a local that has
    not been assigned yet must not fall through to an enclosing binding of
    the same name.
    """
    def __init__(self, name: str = 'module', parent: Optional['Environment'] = None,
                 local_names: Optional[FrozenSet[str]] = None):
        self.name = name
        self.parent = parent
        self.local_names = local_names
        self.values: Dict[str, Any] = {}
        self.frozen = False

    def __repr__(self) -> str:
        return f"<environment {self.name}>"

    def get(self, name: str) -> Any:
        if name in self.values:
            return self.values[name]
        if self.local_names is not None and name in self.local_names:
            raise error('LocalVariableReferencedBeforeAssignment',
                        f"local variable {name!r} referenced before assignment", (name,))
        if self.parent:
            return self.parent.get(name)
        raise error('VariableNotFound', f"variable {name!r} not found", (name,))

    def set(self, name: str, value: Any):
        # Assignments always bind in this scope; there is no rebinding of
        # an enclosing name.
        if self.frozen:
            raise error('FrozenEnvironment', f"cannot assign {name!r}: environment {self.name} is frozen", (name,))
        self.values[name] = value

    def get_parent(self) -> Optional['Environment']:
        return self.parent

    def child(self, name: str) -> 'Environment':
        """Freeze this environment and return a new scope on top of it."""
        self.freeze()
        return Environment(name, parent=self)

    def freeze(self) -> 'Environment':
        if not self.frozen:
            self.frozen = True
            for value in self.values.values():
                freeze_value(value)
        return self

    def import_symbol(self, env: 'Environment', symbol: str, new_name: Optional[str] = None):
        if not symbol or symbol.startswith('_'):
            raise error('CannotImportPrivateSymbol', f"cannot import private symbol {symbol!r}", (symbol,))
        self.set(new_name or symbol, env.get(symbol))


class TypeValues:
    """Attributes attached to value types, such as `list.append`.

    The interpreter consults this registry for `value.attr` and binds the
    result to the receiver.
    """
    def __init__(self):
        self.type_objs: Dict[str, Dict[str, Any]] = {}

    def get_type_value(self, obj: Any, attr: str) -> Optional[Any]:
        return self.type_objs.get(type_name(obj), {}).get(attr)

    def list_type_value(self, obj: Any) -> List[str]:
        return list(self.type_objs.get(type_name(obj), {}).keys())

    def add_type_value(self, obj: str, attr: str, value: Any):
        self.type_objs.setdefault(obj, {})[attr] = value
