from typing import Any, Iterable
from starling.types import ErrorVal

# CF: function calls, CM: environments, CE: imports, CV: values
MISSING_ARGUMENTS = 'CF00'
UNEXPECTED_KEYWORD_ARGUMENT = 'CF01'
TOO_MANY_ARGUMENTS = 'CF02'
MULTIPLE_VALUES_FOR_ARGUMENT = 'CF03'
NOT_CALLABLE = 'CF04'
RECURSION_TOO_DEEP = 'CF05'
INVALID_PARAMETERS = 'CF06'
FROZEN_ENVIRONMENT = 'CM00'
VARIABLE_NOT_FOUND = 'CM01'
LOCAL_REFERENCED_BEFORE_ASSIGNMENT = 'CM03'
CANNOT_IMPORT_PRIVATE_SYMBOL = 'CE02'
FROZEN_VALUE = 'CV00'
TYPE_ERROR = 'CV01'
INDEX_ERROR = 'CV02'
KEY_ERROR = 'CV03'
ZERO_DIVISION = 'CV04'
ATTRIBUTE_ERROR = 'CV05'

_CODES = {
    'MissingArguments': MISSING_ARGUMENTS,
    'UnexpectedKeywordArgument': UNEXPECTED_KEYWORD_ARGUMENT,
    'TooManyArguments': TOO_MANY_ARGUMENTS,
    'MultipleValuesForArgument': MULTIPLE_VALUES_FOR_ARGUMENT,
    'NotCallable': NOT_CALLABLE,
    'RecursionTooDeep': RECURSION_TOO_DEEP,
    'InvalidParameters': INVALID_PARAMETERS,
    'FrozenEnvironment': FROZEN_ENVIRONMENT,
    'VariableNotFound': VARIABLE_NOT_FOUND,
    'LocalVariableReferencedBeforeAssignment': LOCAL_REFERENCED_BEFORE_ASSIGNMENT,
    'CannotImportPrivateSymbol': CANNOT_IMPORT_PRIVATE_SYMBOL,
    'FrozenValue': FROZEN_VALUE,
    'TypeError': TYPE_ERROR,
    'IndexError': INDEX_ERROR,
    'KeyError': KEY_ERROR,
    'ZeroDivisionError': ZERO_DIVISION,
    'AttributeError': ATTRIBUTE_ERROR,
}


class StarlingError(Exception):
    """Exception type used to propagate Starling runtime errors."""
    def __init__(self, err: ErrorVal):
        super().__init__(f"StarlingError: [{err.code}] {err.name}: {err.message}")
        self.err = err

    @property
    def name(self) -> str:
        return self.err.name


class ReturnSignal(Exception):
    """Internal exception to handle return statements in functions."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value


def error(name: str, message: str, names: Iterable[str] = ()) -> StarlingError:
    """Build a StarlingError of the given kind, filling in its code."""
    return StarlingError(ErrorVal(name, message, _CODES.get(name, ''), tuple(names)))


def missing_arguments(func_name: str, names: Iterable[str]) -> StarlingError:
    names = tuple(names)
    plural = 'argument' if len(names) == 1 else 'arguments'
    listed = ', '.join(repr(n) for n in names)
    return error('MissingArguments',
                 f"{func_name}() missing {len(names)} required {plural}: {listed}", names)


def unexpected_keyword_argument(func_name: str, name: str) -> StarlingError:
    return error('UnexpectedKeywordArgument',
                 f"{func_name}() got an unexpected keyword argument {name!r}", (name,))


def too_many_arguments(func_name: str, accepted: int, given: int) -> StarlingError:
    return error('TooManyArguments',
                 f"{func_name}() accepts at most {accepted} positional arguments ({given} given)")


def multiple_values_for_argument(func_name: str, name: str) -> StarlingError:
    return error('MultipleValuesForArgument',
                 f"{func_name}() got multiple values for argument {name!r}", (name,))
