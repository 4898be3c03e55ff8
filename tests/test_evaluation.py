import pytest

from softmacs.errors import ArityOrShapeError, NotCombinable, SoftmacsTypeError, UnboundSymbol, UnresolvedReference
from softmacs.evaluation import Machine, evaluate
from softmacs.builtin import make_global_environment
from softmacs.store import TermStore
from softmacs.types.combiner import Applicative, CompoundOperative
from softmacs.types.environment import Environment
from softmacs.types.nil import Nil, Ignore
from softmacs.types.pair import Pair, Ref, make_list
from softmacs.types.symbol import Symbol

from terms import sx, text, run


def to_list(term):
    items = []
    while type(term) is Pair:
        items.append(term.car)
        term = term.cdr
    return items


@pytest.mark.parametrize("atom", [0, -7, 3.5, True, False, "hello", Nil, Ignore])
def test_atoms_evaluate_to_themselves(atom):
    assert evaluate(atom, Environment()) is atom


def test_environments_and_combiners_evaluate_to_themselves(interp):
    env = Environment()
    car = interp.env.lookup(Symbol("car"))
    assert interp.eval(env) is env
    assert interp.eval(car) is car


def test_unbound_symbol(interp):
    with pytest.raises(UnboundSymbol) as err:
        run(interp, "undefined-thing")
    assert err.value.symbol == Symbol("undefined-thing")


@pytest.mark.parametrize("head", [1, text("s"), True, Nil])
def test_not_combinable(interp, head):
    with pytest.raises(NotCombinable) as err:
        run(interp, [head, 1, 2])
    assert err.value.term == sx(head)


def test_quote(interp):
    assert run(interp, ["quote", "a"]) == Symbol("a")
    assert run(interp, ["quote", [1, "b"]]) == sx([1, "b"])
    with pytest.raises(ArityOrShapeError):
        run(interp, ["quote", 1, 2])


def test_applicatives_evaluate_operands(interp):
    assert run(interp, ["+", 1, ["*", 2, 3], ["-", 10, 4]]) == 13
    assert run(interp, ["list", 1, ["cons", 2, 3]]) == make_list(1, Pair(2, 3))
    assert run(interp, ["car", ["cdr", ["list", 1, 2, 3]]]) == 2


def test_operands_must_be_a_proper_list(interp):
    with pytest.raises(ArityOrShapeError):
        interp.eval(Pair(Symbol("+"), Pair(1, 2)))


def test_arithmetic_and_comparison(interp):
    assert run(interp, ["+"]) == 0
    assert run(interp, ["*"]) == 1
    assert run(interp, ["-", 5]) == -5
    assert run(interp, ["<", 1, 2, 3]) is True
    assert run(interp, ["<", 1, 3, 2]) is False
    assert run(interp, [">=", 3, 3, 1]) is True
    assert run(interp, ["=", 2, 2.0]) is True
    with pytest.raises(SoftmacsTypeError):
        run(interp, ["+", 1, "#t"])
    with pytest.raises(SoftmacsTypeError):
        run(interp, ["car", []])


def test_predicates(interp):
    assert run(interp, ["null?", ["quote", []]]) is True
    assert run(interp, ["pair?", ["list", 1]]) is True
    assert run(interp, ["symbol?", ["quote", "a"]]) is True
    assert run(interp, ["operative?", "vau"]) is True
    assert run(interp, ["operative?", "car"]) is False
    assert run(interp, ["applicative?", "car"]) is True
    assert run(interp, ["environment?", ["make-environment"]]) is True
    assert run(interp, ["eq?", ["quote", "a"], ["quote", "a"]]) is True
    assert run(interp, ["eq?", ["list", 1], ["list", 1]]) is False
    assert run(interp, ["equal?", ["list", 1], ["list", 1]]) is True


def test_truthiness(interp):
    # only #f and () are false
    assert run(interp, ["if", 0, 1, 2]) == 1
    assert run(interp, ["if", text(""), 1, 2]) == 1
    assert run(interp, ["if", ["quote", []], 1, 2]) == 2
    assert run(interp, ["if", "#f", 1, 2]) == 2
    assert run(interp, ["if", "#f", 1]) is False
    assert run(interp, ["not", ["quote", []]]) is True


def test_and_or(interp):
    assert run(interp, ["and"]) is True
    assert run(interp, ["or"]) is False
    assert run(interp, ["and", 1, 2, 3]) == 3
    assert run(interp, ["and", 1, "#f", "boom"]) is False
    assert run(interp, ["or", "#f", 7, "boom"]) == 7
    assert run(interp, ["or", "#f", ["quote", []]]) is Nil


def test_begin(interp):
    assert run(interp, ["begin"]) is Nil
    assert run(interp, ["begin", ["define", "a", 1], ["+", "a", 1]]) == 2


def test_vau_receives_unevaluated_operands_and_caller_environment(interp):
    run(interp, ["define", "q", ["vau", "args", "e", ["list", "args", "e"]]])
    args, env = to_list(run(interp, ["q", ["undefined", 1], "x"]))
    assert args == sx([["undefined", 1], "x"])
    assert env is interp.env


def test_user_defined_if_evaluates_one_branch(interp):
    run(
        interp,
        ["define", "my-if", ["vau", ["c", "t", "e"], "env",
                             ["if", ["eval", "c", "env"], ["eval", "t", "env"], ["eval", "e", "env"]]]],
        ["define", "count", 0],
        ["define", "bump", ["lambda", ["v"], ["set!", "count", ["+", "count", 1]], "v"]],
    )
    assert run(interp, ["my-if", "#t", ["bump", 1], ["bump", 2]]) == 1
    assert run(interp, "count") == 1
    assert run(interp, ["my-if", ["<", 2, 1], ["bump", 1], ["bump", 2]]) == 2
    assert run(interp, "count") == 2


def test_wrap_and_unwrap(interp):
    run(interp, ["define", "id-op", ["vau", ["x"], "#ignore", "x"]])
    assert run(interp, ["id-op", ["+", 1, 2]]) == sx(["+", 1, 2])
    assert run(interp, [["wrap", "id-op"], ["+", 1, 2]]) == 3
    # wrapping twice evaluates the operand twice
    run(interp, ["define", "y", 5], ["define", "x", ["quote", "y"]])
    assert run(interp, [["wrap", ["wrap", "id-op"]], "x"]) == 5
    assert run(interp, [["unwrap", "list"], "a", "b"]) == sx(["a", "b"])
    with pytest.raises(SoftmacsTypeError):
        run(interp, ["unwrap", "vau"])


def test_lambda_is_a_wrapped_compound(interp):
    f = run(interp, ["lambda", ["x"], "x"])
    assert isinstance(f, Applicative)
    assert isinstance(f.combiner, CompoundOperative)
    assert f.combiner.eparam is Ignore


def test_closures_capture_their_static_environment(interp):
    run(
        interp,
        ["define", "make-adder", ["lambda", ["n"], ["lambda", ["m"], ["+", "n", "m"]]]],
        ["define", "add5", ["make-adder", 5]],
    )
    assert run(interp, ["add5", 10]) == 15


def test_eval_and_make_environment(interp):
    run(interp, ["define", "e", ["make-environment"]])
    with pytest.raises(UnboundSymbol):
        run(interp, ["eval", ["quote", ["+", 1, 2]], "e"])
    run(interp, ["define", "here", ["vau", [], "env", "env"]])
    assert run(interp, ["eval", ["quote", ["+", 1, 2]], ["here"]]) == 3
    child = run(interp, ["make-environment", ["here"]])
    assert child.outer is interp.env
    with pytest.raises(SoftmacsTypeError):
        run(interp, ["eval", 1, 2])


def test_vau_shape_errors(interp):
    with pytest.raises(ArityOrShapeError):
        run(interp, ["vau", ["x"]])
    with pytest.raises(ArityOrShapeError):
        run(interp, ["vau", ["x", "x"], "#ignore", "x"])
    with pytest.raises(ArityOrShapeError):
        run(interp, [["lambda", ["x", "y"], "x"], 1])


def test_tail_loop_runs_in_constant_depth():
    store = TermStore()
    env = make_global_environment()
    machine = Machine(store)
    machine.evaluate(
        sx(["define", "loop", ["lambda", ["n", "acc"],
                               ["if", ["=", "n", 0], "acc", ["loop", ["-", "n", 1], ["+", "acc", 1]]]]]),
        env,
    )
    assert machine.evaluate(sx(["loop", 1_000_000, 0]), env) == 1_000_000
    assert machine.max_depth < 10


def test_tail_positions_of_operatives():
    machine = Machine()
    env = make_global_environment()
    machine.evaluate(
        sx(["define", "count-down", ["vau", ["n"], "e",
                                     ["begin",
                                      ["define", "m", ["eval", "n", "e"]],
                                      ["and", "#t", ["or", "#f",
                                                     ["if", ["=", "m", 0], ["quote", "done"],
                                                      ["eval", ["list", "count-down", ["-", "m", 1]], "e"]]]]]]]),
        env,
    )
    assert machine.evaluate(sx(["count-down", 20_000]), env) == Symbol("done")
    assert machine.max_depth < 20


def test_deeply_nested_data_does_not_recurse(interp):
    deep = Nil
    for i in range(50_000):
        deep = Pair(i, deep)
    assert interp.eval(make_list(Symbol("quote"), deep)) is deep


def test_refs_evaluate_as_their_referent(interp):
    code = interp.intern(sx(["+", 1, 2]))
    assert interp.eval(Ref(code)) == 3
    assert interp.eval(make_list(Symbol("list"), Ref(code))) == make_list(3)
    data = interp.intern(make_list(1, 2))
    assert run(interp, ["car", ["quote", Ref(data)]]) == 1
    assert run(interp, ["equal?", ["quote", Ref(data)], ["quote", [1, 2]]]) is True
    adder = interp.intern(sx(["lambda", ["x"], ["+", "x", 1]]))
    assert interp.eval(make_list(Ref(adder), 41)) == 42


def test_intern_and_resolve_primitives(interp):
    ref = run(interp, ["intern", ["quote", ["a", 1]]])
    assert isinstance(ref, Ref)
    assert interp.store.contains(ref.hash)
    assert run(interp, ["resolve", ["intern", ["quote", ["a", 1]]]]) == sx(["a", 1])
    assert run(interp, ["resolve", text(ref.hash)]) == sx(["a", 1])
    with pytest.raises(SoftmacsTypeError):
        run(interp, ["resolve", 5])


def test_refs_without_a_store():
    env = make_global_environment()
    with pytest.raises(UnresolvedReference):
        evaluate(Ref("0" * 64), env)
