"""Evaluator and call dispatcher for Starling.

The interpreter walks trees from `starling.ast`. Its public entry point
for the rest of a host program is `Interpreter.call`, which invokes any
callable value with positional and keyword arguments. Every call, user
defined or builtin, goes through the same depth check: once the number of
active calls reaches `max_call_depth` the next call fails with a
`RecursionTooDeep` error. Recursion is never detected statically, so
functions may refer to each other before both are defined.
"""

from __future__ import annotations

import sys
from typing import Any, Dict, List, Optional, Sequence

from .ast import (
    Node, Module, FuncDef, Lambda, Return, ExprStmt, Assign, AugAssign, If, For, Pass,
    Literal, Ident, ListLit, TupleLit, DictLit, BinaryOp, BoolOp, UnaryOp, Conditional,
    Index, Member, Call, Param,
)
from .builtin_function import BuiltinFunction
from .environment import Environment, TypeValues
from .errors import (
    StarlingError, ReturnSignal, error, multiple_values_for_argument, too_many_arguments,
    unexpected_keyword_argument,
)
from .function import FunctionValue, NO_DEFAULT, bind_arguments, check_params
from .resolve import resolve_locals
from .types import (
    NoneVal, ListVal, DictVal, is_callable, is_hashable, is_truthy, equal_values,
    to_repr, type_name,
)

DEFAULT_MAX_CALL_DEPTH = 200
# Largest depth the host C stack is known to survive when every call
# nests a few expressions.
MAX_CALL_DEPTH_LIMIT = 1000

# Host stack frames one Starling call may take, with generous room for
# nested expressions; used to size the host recursion limit.
_HOST_FRAMES_PER_CALL = 50
_HOST_FRAME_MARGIN = 1000


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Interpreter:
    """Core interpreter that evaluates Starling trees.

    One interpreter is one execution context: it owns the global
    environment and the call stack used to bound recursion.
    """
    def __init__(self, max_call_depth: int = DEFAULT_MAX_CALL_DEPTH, debug_level: int = 0,
                 debug_file: Optional[str] = 'debug.txt', predeclared: Optional[Environment] = None,
                 type_values: Optional[TypeValues] = None):
        if max_call_depth < 1:
            raise ValueError('max_call_depth must be at least 1')
        if max_call_depth > MAX_CALL_DEPTH_LIMIT:
            raise ValueError(f'max_call_depth must be at most {MAX_CALL_DEPTH_LIMIT}')
        self.global_env = Environment('module', parent=predeclared)
        self.type_values = type_values if type_values is not None else TypeValues()
        self.max_call_depth = max_call_depth
        self.call_stack: List[str] = []
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 and debug_file else None
        required = max_call_depth * _HOST_FRAMES_PER_CALL + _HOST_FRAME_MARGIN
        if sys.getrecursionlimit() < required:
            sys.setrecursionlimit(required)

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def __enter__(self) -> 'Interpreter':
        return self

    def __exit__(self, *exc_info):
        self.close()

    # Public API
    def run(self, module: Module, env: Optional[Environment] = None) -> Any:
        if env is None:
            env = self.global_env
        return self.execute_block(module.body, env)

    @property
    def call_depth(self) -> int:
        return len(self.call_stack)

    def call(self, func: Any, args: Sequence[Any] = (), kwargs: Optional[Dict[str, Any]] = None) -> Any:
        """Call a Starling callable and return its result."""
        if kwargs is None:
            kwargs = {}
        if not is_callable(func):
            raise error('NotCallable', f"{type_name(func)} value {to_repr(func)} is not callable")
        if len(self.call_stack) >= self.max_call_depth:
            raise error('RecursionTooDeep',
                        f"maximum call depth of {self.max_call_depth} exceeded calling {func.name}()")
        self.call_stack.append(func.name)
        if self.debug_level >= 3:
            self.debug(f"call {func.name} depth={len(self.call_stack)}")
        try:
            if isinstance(func, BuiltinFunction):
                result = self.call_builtin(func, list(args), kwargs)
            else:
                result = self.call_function(func, args, kwargs)
        except StarlingError as ex:
            if self.debug_level >= 1:
                self.debug(f"error in {func.name} at depth {len(self.call_stack)}: {ex.err.message}")
            raise
        except RecursionError:
            # the host stack ran out before max_call_depth was reached
            raise error('RecursionTooDeep',
                        f"host stack exhausted at call depth {len(self.call_stack)} calling {func.name}()") from None
        finally:
            self.call_stack.pop()
        if self.debug_level >= 3:
            self.debug(f"return {func.name} -> {to_repr(result)}")
        return result

    def call_function(self, func: FunctionValue, args: Sequence[Any], kwargs: Dict[str, Any]) -> Any:
        frame = bind_arguments(func, args, kwargs)
        if self.debug_level >= 4:
            bound = ', '.join(f"{k}={to_repr(v)}" for k, v in frame.values.items())
            self.debug(f"bind {func.name}({bound})")
        res = self.execute_block(func.body, frame)
        if isinstance(res, ReturnSignal):
            return res.value
        return NoneVal()

    def call_builtin(self, func: BuiltinFunction, args: List[Any], kwargs: Dict[str, Any]) -> Any:
        if func.receiver is not None:
            args = [func.receiver] + args
        if kwargs and not func.takes_kwargs:
            raise unexpected_keyword_argument(func.name, next(iter(kwargs)))
        # arity counts the receiver
        if func.arity is not None:
            if len(args) > func.arity:
                raise too_many_arguments(func.name, func.arity, len(args))
            if len(args) < func.arity:
                raise error('MissingArguments',
                            f"{func.name}() expects {func.arity} arguments ({len(args)} given)")
        result = func.fn(args, kwargs) if func.takes_kwargs else func.fn(args)
        return NoneVal() if result is None else result

    def make_function(self, name: str, params: List[Param], body: List[Node],
                      local_names, env: Environment) -> FunctionValue:
        check_params(name, params)
        # defaults are evaluated once, here, in the defining scope
        defaults = [self.evaluate(p.default, env) if p.default is not None else NO_DEFAULT
                    for p in params]
        if local_names is None:
            local_names = resolve_locals(params, body)
        return FunctionValue(name, params, defaults, body, env, frozenset(local_names))

    def execute_block(self, statements: List[Node], env: Environment) -> Any:
        for stmt in statements:
            result = self.execute(stmt, env)
            # propagate return signals
            if isinstance(result, ReturnSignal):
                return result
        return None

    def execute(self, node: Node, env: Environment) -> Any:
        if isinstance(node, ExprStmt):
            self.evaluate(node.expr, env)
            return None
        if isinstance(node, Return):
            value = self.evaluate(node.value, env) if node.value is not None else NoneVal()
            return ReturnSignal(value)
        if isinstance(node, Assign):
            value = self.evaluate(node.value, env)
            self.assign_lvalue(node.target, value, env)
            return None
        if isinstance(node, AugAssign):
            self.execute_aug_assign(node, env)
            return None
        if isinstance(node, FuncDef):
            func_value = self.make_function(node.name, node.params, node.body, node.local_names, env)
            env.set(node.name, func_value)
            if self.debug_level >= 2:
                self.debug(f"define function {node.name} in {env.name}")
            return None
        if isinstance(node, If):
            cond = self.evaluate(node.condition, env)
            body = node.then_body if is_truthy(cond) else node.else_body
            return self.execute_block(body, env)
        if isinstance(node, For):
            iterable = self.evaluate(node.iterable, env)
            for item in self.iterate(iterable):
                self.assign_lvalue(node.target, item, env)
                res = self.execute_block(node.body, env)
                if isinstance(res, ReturnSignal):
                    return res
            return None
        if isinstance(node, Pass):
            return None
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def execute_aug_assign(self, node: AugAssign, env: Environment):
        value = self.evaluate(node.value, env)
        if isinstance(node.target, Ident):
            current = env.get(node.target.name)
            env.set(node.target.name, self.apply_aug_op(node.op, current, value))
            return
        if isinstance(node.target, Index):
            # container and key are evaluated only once
            container = self.evaluate(node.target.target, env)
            key = self.evaluate(node.target.index, env)
            current = self.get_item(container, key)
            self.set_item(container, key, self.apply_aug_op(node.op, current, value))
            return
        raise error('TypeError', 'invalid augmented assignment target')

    def apply_aug_op(self, op: str, current: Any, value: Any) -> Any:
        # `x += list` extends the list in place
        if op == '+' and isinstance(current, ListVal) and isinstance(value, ListVal):
            self.check_mutable(current)
            current.items.extend(list(value.items))
            return current
        return self.apply_binary_op(op, current, value)

    def iterate(self, value: Any) -> List[Any]:
        if isinstance(value, ListVal):
            return list(value.items)
        if isinstance(value, tuple):
            return list(value)
        if isinstance(value, DictVal):
            return value.keys()
        raise error('TypeError', f"{type_name(value)} value is not iterable")

    def evaluate(self, node: Node, env: Environment) -> Any:
        if isinstance(node, Literal):
            return NoneVal() if node.value is None else node.value
        if isinstance(node, Ident):
            return env.get(node.name)
        if isinstance(node, Call):
            return self.evaluate_call(node, env)
        if isinstance(node, BinaryOp):
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.op, left, right)
        if isinstance(node, BoolOp):
            left = self.evaluate(node.left, env)
            if node.op == 'and':
                return self.evaluate(node.right, env) if is_truthy(left) else left
            if node.op == 'or':
                return left if is_truthy(left) else self.evaluate(node.right, env)
            raise error('TypeError', f"unsupported boolean operator {node.op}")
        if isinstance(node, UnaryOp):
            operand = self.evaluate(node.operand, env)
            if node.op == 'not':
                return not is_truthy(operand)
            if node.op == '-':
                if _is_int(operand):
                    return -operand
                raise error('TypeError', f"unary - expects int, got {type_name(operand)}")
            raise error('TypeError', f"unsupported unary operator {node.op}")
        if isinstance(node, Conditional):
            cond = self.evaluate(node.condition, env)
            return self.evaluate(node.then_expr if is_truthy(cond) else node.else_expr, env)
        if isinstance(node, ListLit):
            return ListVal([self.evaluate(el, env) for el in node.elements])
        if isinstance(node, TupleLit):
            return tuple([self.evaluate(el, env) for el in node.elements])
        if isinstance(node, DictLit):
            result = DictVal()
            for key_node, val_node in node.entries:
                key = self.evaluate(key_node, env)
                self.check_hashable(key)
                result.set(key, self.evaluate(val_node, env))
            return result
        if isinstance(node, Index):
            target = self.evaluate(node.target, env)
            index = self.evaluate(node.index, env)
            return self.get_item(target, index)
        if isinstance(node, Member):
            target = self.evaluate(node.target, env)
            attr = self.type_values.get_type_value(target, node.name)
            if attr is None:
                raise error('AttributeError', f"{type_name(target)} has no attribute {node.name!r}", (node.name,))
            if isinstance(attr, BuiltinFunction):
                return attr.bind(target)
            return attr
        if isinstance(node, Lambda):
            return self.make_function('lambda', node.params, [Return(node.body)], node.local_names, env)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def evaluate_call(self, node: Call, env: Environment) -> Any:
        func = self.evaluate(node.func, env)
        func_name = func.name if is_callable(func) else type_name(func)
        args = [self.evaluate(arg, env) for arg in node.args]
        if node.star_args is not None:
            extra = self.evaluate(node.star_args, env)
            if isinstance(extra, ListVal):
                args.extend(extra.items)
            elif isinstance(extra, tuple):
                args.extend(extra)
            else:
                raise error('TypeError', f"argument after * must be a list or tuple, not {type_name(extra)}")
        kwargs: Dict[str, Any] = {}
        for name, expr in node.kwargs:
            if name in kwargs:
                raise multiple_values_for_argument(func_name, name)
            kwargs[name] = self.evaluate(expr, env)
        if node.star_kwargs is not None:
            extra = self.evaluate(node.star_kwargs, env)
            if not isinstance(extra, DictVal):
                raise error('TypeError', f"argument after ** must be a dict, not {type_name(extra)}")
            for name, value in extra.items():
                if not isinstance(name, str):
                    raise error('TypeError', f"keywords must be strings, not {type_name(name)}")
                if name in kwargs:
                    raise multiple_values_for_argument(func_name, name)
                kwargs[name] = value
        return self.call(func, args, kwargs)

    def assign_lvalue(self, target: Node, value: Any, env: Environment):
        if isinstance(target, Ident):
            env.set(target.name, value)
            return
        if isinstance(target, Index):
            container = self.evaluate(target.target, env)
            key = self.evaluate(target.index, env)
            self.set_item(container, key, value)
            return
        if isinstance(target, (TupleLit, ListLit)):
            if isinstance(value, ListVal):
                items = list(value.items)
            elif isinstance(value, tuple):
                items = list(value)
            else:
                raise error('TypeError', f"cannot unpack {type_name(value)} value")
            if len(items) != len(target.elements):
                raise error('TypeError',
                            f"cannot unpack {len(items)} values into {len(target.elements)} targets")
            for el, item in zip(target.elements, items):
                self.assign_lvalue(el, item, env)
            return
        if isinstance(target, Member):
            raise error('TypeError', 'cannot assign to an attribute')
        raise error('TypeError', 'invalid assignment target')

    def check_mutable(self, value: Any):
        if getattr(value, 'frozen', False):
            raise error('FrozenValue', f"cannot mutate frozen {type_name(value)} value")

    def check_hashable(self, key: Any):
        if not is_hashable(key):
            raise error('TypeError', f"unhashable type: {type_name(key)}")

    def normalize_index(self, index: Any, length: int) -> int:
        if not _is_int(index):
            raise error('TypeError', f"index must be int, not {type_name(index)}")
        i = index + length if index < 0 else index
        if i < 0 or i >= length:
            raise error('IndexError', f"index {index} out of range for length {length}")
        return i

    def get_item(self, target: Any, index: Any) -> Any:
        if isinstance(target, ListVal):
            return target.items[self.normalize_index(index, len(target.items))]
        if isinstance(target, (tuple, str)):
            return target[self.normalize_index(index, len(target))]
        if isinstance(target, DictVal):
            self.check_hashable(index)
            if not target.contains(index):
                raise error('KeyError', f"key {to_repr(index)} not found in dict")
            return target.get(index)
        raise error('TypeError', f"{type_name(target)} value is not subscriptable")

    def set_item(self, container: Any, key: Any, value: Any):
        if isinstance(container, ListVal):
            i = self.normalize_index(key, len(container.items))
            self.check_mutable(container)
            container.items[i] = value
            return
        if isinstance(container, DictVal):
            self.check_hashable(key)
            self.check_mutable(container)
            container.set(key, value)
            return
        raise error('TypeError', f"{type_name(container)} value does not support item assignment")

    def compare(self, a: Any, b: Any) -> int:
        if (_is_int(a) and _is_int(b)) or (isinstance(a, str) and isinstance(b, str)) \
                or (isinstance(a, bool) and isinstance(b, bool)):
            return (a > b) - (a < b)
        if isinstance(a, (tuple, ListVal)) and type(a) is type(b):
            xs = list(a.items) if isinstance(a, ListVal) else list(a)
            ys = list(b.items) if isinstance(b, ListVal) else list(b)
            for x, y in zip(xs, ys):
                if not equal_values(x, y):
                    return self.compare(x, y)
            return (len(xs) > len(ys)) - (len(xs) < len(ys))
        raise error('TypeError', f"cannot compare {type_name(a)} with {type_name(b)}")

    def contains(self, container: Any, item: Any) -> bool:
        if isinstance(container, (ListVal, tuple)):
            elements = container.items if isinstance(container, ListVal) else container
            for x in elements:
                if equal_values(item, x):
                    return True
            return False
        if isinstance(container, DictVal):
            self.check_hashable(item)
            return container.contains(item)
        if isinstance(container, str):
            if not isinstance(item, str):
                raise error('TypeError', f"'in <string>' requires string operand, not {type_name(item)}")
            return item in container
        raise error('TypeError', f"'in' not supported for {type_name(container)}")

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        if op == '+':
            if _is_int(a) and _is_int(b):
                return a + b
            if isinstance(a, str) and isinstance(b, str):
                return a + b
            if isinstance(a, ListVal) and isinstance(b, ListVal):
                return ListVal(a.items + b.items)
            if isinstance(a, tuple) and isinstance(b, tuple):
                return a + b
        elif op == '-':
            if _is_int(a) and _is_int(b):
                return a - b
        elif op == '*':
            if _is_int(a) and _is_int(b):
                return a * b
            if _is_int(b) and isinstance(a, (str, tuple)):
                return a * b
            if _is_int(a) and isinstance(b, (str, tuple)):
                return b * a
            if _is_int(b) and isinstance(a, ListVal):
                return ListVal(a.items * b)
            if _is_int(a) and isinstance(b, ListVal):
                return ListVal(b.items * a)
        elif op in ('//', '%'):
            if _is_int(a) and _is_int(b):
                if b == 0:
                    raise error('ZeroDivisionError', 'division by zero' if op == '//' else 'modulo by zero')
                return a // b if op == '//' else a % b
        elif op in ('==', '!='):
            eq = equal_values(a, b)
            return eq if op == '==' else not eq
        elif op in ('<', '<=', '>', '>='):
            c = self.compare(a, b)
            if op == '<':
                return c < 0
            if op == '<=':
                return c <= 0
            if op == '>':
                return c > 0
            return c >= 0
        elif op == 'in':
            return self.contains(b, a)
        elif op == 'not in':
            return not self.contains(b, a)
        else:
            raise error('TypeError', f"unknown operator {op}")
        raise error('TypeError', f"unsupported {op} for {type_name(a)} and {type_name(b)}")


def run_module(module: Module, **options) -> Interpreter:
    """Execute a module tree and return the interpreter holding its globals."""
    interpreter = Interpreter(**options)
    interpreter.run(module)
    return interpreter
