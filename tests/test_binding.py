import pytest

from starling.ast import Literal, Param, PARAM_ARGS, PARAM_KWARGS
from starling.errors import StarlingError
from starling.types import DictVal, NoneVal

from builders import (
    run, define, ret, ref, tup, call, assign, param, star, starstar, binop, dct, lst,
)


def wide_function(n):
    names = [f"p{i}" for i in range(n)]
    return define('f', names, ret(tup(*[ref(name) for name in names])))


def test_positional_and_keyword_binding():
    interp = run(
        define('f', ['a', 'b', param('c', 3)], ret(tup(ref('a'), ref('b'), ref('c')))),
        assign('r1', call('f', 1, 2)),
        assign('r2', call('f', 1, c=30, b=20)),
        assign('r3', call('f', b=2, a=1)),
    )
    env = interp.global_env
    assert env.get('r1') == (1, 2, 3)
    assert env.get('r2') == (1, 20, 30)
    assert env.get('r3') == (1, 2, 3)


@pytest.mark.parametrize('n', [1, 63, 64, 65, 100, 129])
def test_wide_function_binds_every_position(n):
    interp = run(wide_function(n), assign('r', call('f', *range(n))))
    assert interp.global_env.get('r') == tuple(range(n))


def test_missing_last_of_65_parameters():
    with pytest.raises(StarlingError) as exc:
        run(wide_function(65), assign('r', call('f', *range(64))))
    assert exc.value.name == 'MissingArguments'
    assert exc.value.err.names == ('p64',)
    assert exc.value.err.code == 'CF00'


def test_keyword_fills_last_of_65_parameters():
    interp = run(wide_function(65), assign('r', call('f', *range(64), p64='last')))
    assert interp.global_env.get('r')[-1] == 'last'


def test_keyword_for_positionally_filled_parameter_beyond_64():
    with pytest.raises(StarlingError) as exc:
        run(wide_function(65), assign('r', call('f', *range(65), p64=0)))
    assert exc.value.name == 'MultipleValuesForArgument'
    assert exc.value.err.names == ('p64',)


def test_unexpected_keyword_named_beyond_64_parameters():
    with pytest.raises(StarlingError) as exc:
        run(wide_function(70), assign('r', call('f', *range(70), p70=1)))
    assert exc.value.name == 'UnexpectedKeywordArgument'
    assert exc.value.err.names == ('p70',)
    assert "'p70'" in exc.value.err.message


def test_missing_arguments_lists_all_names():
    with pytest.raises(StarlingError) as exc:
        run(define('f', ['a', 'b', 'c', param('d', 1)], ret(ref('a'))), assign('r', call('f', b=1)))
    assert exc.value.name == 'MissingArguments'
    assert exc.value.err.names == ('a', 'c')
    assert 'missing 2 required arguments' in exc.value.err.message


def test_too_many_positional_arguments():
    with pytest.raises(StarlingError) as exc:
        run(define('f', ['a', param('b', 2)], ret(ref('a'))), assign('r', call('f', 1, 2, 3)))
    assert exc.value.name == 'TooManyArguments'
    assert 'at most 2' in exc.value.err.message


def test_too_many_positional_arguments_for_zero_parameters():
    with pytest.raises(StarlingError) as exc:
        run(define('f', [], ret(1)), assign('r', call('f', 1)))
    assert exc.value.name == 'TooManyArguments'


def test_star_args_and_kwargs_collectors():
    interp = run(
        define('f', ['a', star('rest'), starstar('opts')], ret(tup(ref('a'), ref('rest'), ref('opts')))),
        assign('r', call('f', 1, 2, 3, x=4, y=5)),
    )
    a, rest, opts = interp.global_env.get('r')
    assert a == 1
    assert rest == (2, 3)
    assert isinstance(opts, DictVal)
    assert opts.items() == [('x', 4), ('y', 5)]


def test_empty_collectors():
    interp = run(
        define('f', [star('rest'), starstar('opts')], ret(tup(ref('rest'), ref('opts')))),
        assign('r', call('f')),
    )
    rest, opts = interp.global_env.get('r')
    assert rest == ()
    assert opts.items() == []


def test_keyword_only_parameters_after_bare_star():
    interp = run(
        define('f', ['a', star(), param('b', 2), 'c'], ret(tup(ref('a'), ref('b'), ref('c')))),
        assign('r', call('f', 1, c=3)),
    )
    assert interp.global_env.get('r') == (1, 2, 3)
    with pytest.raises(StarlingError) as exc:
        run(
            define('f', ['a', star(), 'c'], ret(ref('a'))),
            assign('r', call('f', 1, 2)),
        )
    assert exc.value.name == 'TooManyArguments'
    with pytest.raises(StarlingError) as exc:
        run(
            define('f', ['a', star(), 'c'], ret(ref('a'))),
            assign('r', call('f', 1)),
        )
    assert exc.value.err.names == ('c',)


def test_call_site_star_and_double_star():
    interp = run(
        define('f', ['a', 'b', 'c'], ret(tup(ref('a'), ref('b'), ref('c')))),
        assign('r', call('f', 1, star=lst(2), starstar=dct(c=3))),
    )
    assert interp.global_env.get('r') == (1, 2, 3)


def test_keyword_given_explicitly_and_through_double_star():
    with pytest.raises(StarlingError) as exc:
        run(
            define('f', ['a'], ret(ref('a'))),
            assign('r', call('f', a=1, starstar=dct(a=2))),
        )
    assert exc.value.name == 'MultipleValuesForArgument'
    assert exc.value.err.names == ('a',)


def test_star_argument_must_be_sequence():
    with pytest.raises(StarlingError) as exc:
        run(define('f', [star('xs')], ret(ref('xs'))), assign('r', call('f', star=binop('+', 1, 1))))
    assert exc.value.name == 'TypeError'


def test_keyword_naming_a_collector_is_unexpected():
    with pytest.raises(StarlingError) as exc:
        run(define('f', [star('rest')], ret(ref('rest'))), assign('r', call('f', rest=1)))
    assert exc.value.name == 'UnexpectedKeywordArgument'


def test_host_call_entry_point():
    interp = run(define('f', ['a', param('b', 10)], ret(binop('+', ref('a'), ref('b')))))
    f = interp.global_env.get('f')
    assert interp.call(f, [1]) == 11
    assert interp.call(f, [], {'a': 1, 'b': 2}) == 3
    assert interp.call_depth == 0


def test_failed_binding_leaves_no_active_call():
    interp = run(define('f', ['a'], ret(ref('a'))))
    f = interp.global_env.get('f')
    with pytest.raises(StarlingError):
        interp.call(f, [1, 2])
    assert interp.call_stack == []
    assert interp.call(f, [5]) == 5


def test_implicit_return_is_none():
    interp = run(define('f', [], assign('x', 1)), assign('r', call('f')))
    assert interp.global_env.get('r') == NoneVal()


@pytest.mark.parametrize('params', [
    ['a', 'a'],
    [param('a', 1), 'b'],
    [starstar('kw'), 'a'],
    [star('x'), star('y')],
    [star()],
    ['a', star()],
    [star(), starstar('kw')],
    [Param('args', Literal(1), kind=PARAM_ARGS)],
    [Param('kw', Literal(1), kind=PARAM_KWARGS)],
])
def test_invalid_parameter_lists(params):
    with pytest.raises(StarlingError) as exc:
        run(define('f', params, ret(1)))
    assert exc.value.name == 'InvalidParameters'


def test_bare_star_followed_by_keyword_only_parameter():
    interp = run(
        define('f', ['a', star(), param('b', 2), starstar('kw')], ret(ref('b'))),
        assign('r', call('f', 1, b=3)),
    )
    assert interp.global_env.get('r') == 3
