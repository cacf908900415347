# Starling language package
# This package provides the function-call evaluator for the Starling
# configuration language: environments, parameter binding and calls.
from .interpreter import run_module, Interpreter, DEFAULT_MAX_CALL_DEPTH, MAX_CALL_DEPTH_LIMIT
from .errors import StarlingError
from .environment import Environment, TypeValues
from .builtin_function import BuiltinFunction
from .function import FunctionValue

__all__ = [
    'run_module',
    'Interpreter',
    'DEFAULT_MAX_CALL_DEPTH',
    'MAX_CALL_DEPTH_LIMIT',
    'StarlingError',
    'Environment',
    'TypeValues',
    'BuiltinFunction',
    'FunctionValue',
]
