import sys

import pytest

from starling import DEFAULT_MAX_CALL_DEPTH, MAX_CALL_DEPTH_LIMIT
from starling.errors import StarlingError
from starling.interpreter import Interpreter

from builders import (
    run, module, define, ret, ref, call, assign, if_, binop, lst, tup, attr, stmt,
)


def fib_definition():
    return define(
        'fib', ['x'],
        if_(binop('<', ref('x'), 2), [ret(ref('x'))]),
        ret(binop('+', call('fib', binop('-', ref('x'), 2)), call('fib', binop('-', ref('x'), 1)))),
    )


def depth_definition():
    # depth(n) recurses n times and returns n
    return define(
        'depth', ['n'],
        if_(binop('==', ref('n'), 0), [ret(0)]),
        ret(binop('+', call('depth', binop('-', ref('n'), 1)), 1)),
    )


def yin_yang():
    return [
        assign('calls', lst()),
        define(
            'yin', ['rec'],
            stmt(call(attr(ref('calls'), 'append'), 'yin')),
            if_(ref('rec'), [stmt(call('yang', False))]),
        ),
        define(
            'yang', ['rec'],
            stmt(call(attr(ref('calls'), 'append'), 'yang')),
            if_(ref('rec'), [stmt(call('yin', False))]),
        ),
    ]


def test_fibonacci():
    interp = run(fib_definition(), assign('r', call('fib', 10)))
    assert interp.global_env.get('r') == 55


def test_mutual_forward_reference_yin_first():
    interp = run(*yin_yang(), stmt(call('yin', True)))
    assert interp.global_env.get('calls').items == ['yin', 'yang']


def test_mutual_forward_reference_yang_first():
    interp = run(*yin_yang(), stmt(call('yang', True)))
    assert interp.global_env.get('calls').items == ['yang', 'yin']


def test_definition_may_reference_undefined_function():
    interp = run(define('f', [], ret(call('not_yet_defined'))))
    f = interp.global_env.get('f')
    with pytest.raises(StarlingError) as exc:
        interp.call(f)
    assert exc.value.name == 'VariableNotFound'


def test_runaway_self_recursion():
    with pytest.raises(StarlingError) as exc:
        run(define('f', [], ret(call('f'))), stmt(call('f')))
    assert exc.value.name == 'RecursionTooDeep'
    assert str(DEFAULT_MAX_CALL_DEPTH) in exc.value.err.message


def test_runaway_mutual_recursion():
    with pytest.raises(StarlingError) as exc:
        run(
            define('a', [], ret(call('b'))),
            define('b', [], ret(call('a'))),
            stmt(call('a')),
        )
    assert exc.value.name == 'RecursionTooDeep'


def test_runaway_branching_recursion_terminates():
    with pytest.raises(StarlingError) as exc:
        run(define('g', [], stmt(call('g')), stmt(call('g'))), stmt(call('g')), max_call_depth=30)
    assert exc.value.name == 'RecursionTooDeep'


def test_configured_depth_is_exact():
    interp = run(depth_definition(), max_call_depth=5)
    depth = interp.global_env.get('depth')
    assert interp.call(depth, [4]) == 4
    with pytest.raises(StarlingError) as exc:
        interp.call(depth, [5])
    assert exc.value.name == 'RecursionTooDeep'
    assert interp.call_stack == []
    # the interpreter stays usable after the error
    assert interp.call(depth, [3]) == 3


def test_deep_legitimate_recursion_below_default_limit():
    interp = run(depth_definition(), assign('r', call('depth', DEFAULT_MAX_CALL_DEPTH - 1)))
    assert interp.global_env.get('r') == DEFAULT_MAX_CALL_DEPTH - 1


def test_each_interpreter_tracks_its_own_depth():
    first = run(depth_definition(), max_call_depth=3)
    second = run(depth_definition(), max_call_depth=50)
    with pytest.raises(StarlingError):
        first.call(first.global_env.get('depth'), [10])
    assert second.call(second.global_env.get('depth'), [10]) == 10


def test_invalid_depth_configuration():
    with pytest.raises(ValueError):
        Interpreter(max_call_depth=0)


def test_recursion_error_reported_through_module_run():
    interp = Interpreter(max_call_depth=10, debug_file=None)
    with pytest.raises(StarlingError) as exc:
        interp.run(module(define('f', [], ret(call('f'))), stmt(call('f'))))
    assert exc.value.err.code == 'CF05'


def test_depth_above_limit_is_rejected():
    with pytest.raises(ValueError):
        Interpreter(max_call_depth=MAX_CALL_DEPTH_LIMIT + 1)
    with pytest.raises(ValueError):
        Interpreter(max_call_depth=20000)


def test_recursion_through_tuple_literal_at_largest_depth():
    with pytest.raises(StarlingError) as exc:
        run(define('f', [], ret(tup(call('f')))), stmt(call('f')), max_call_depth=MAX_CALL_DEPTH_LIMIT)
    assert exc.value.name == 'RecursionTooDeep'
    assert str(MAX_CALL_DEPTH_LIMIT) in exc.value.err.message


def test_recursion_through_containers_at_largest_depth():
    with pytest.raises(StarlingError) as exc:
        run(
            define('f', [], ret(binop('in', 1, lst(tup(call('f')))))),
            stmt(call('f')),
            max_call_depth=MAX_CALL_DEPTH_LIMIT,
        )
    assert exc.value.name == 'RecursionTooDeep'


def test_host_stack_exhaustion_becomes_recursion_too_deep():
    interp = run(depth_definition(), max_call_depth=MAX_CALL_DEPTH_LIMIT)
    depth = interp.global_env.get('depth')
    limit = sys.getrecursionlimit()
    sys.setrecursionlimit(600)
    try:
        with pytest.raises(StarlingError) as exc:
            interp.call(depth, [MAX_CALL_DEPTH_LIMIT - 1])
    finally:
        sys.setrecursionlimit(limit)
    assert exc.value.name == 'RecursionTooDeep'
    assert exc.value.err.code == 'CF05'
    assert interp.call_stack == []
    assert interp.call(depth, [10]) == 10
