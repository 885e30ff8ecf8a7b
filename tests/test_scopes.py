from types import SimpleNamespace

import pytest

from jsindex.errors import ScopeMismatchError
from jsindex.models import escape_path, unescape_path
from jsindex.scopes import Scope, ScopeStack, SymbolTable


def _node(node_id: int, node_type: str = "program", start: int = 0, end: int = 100):
    return SimpleNamespace(id=node_id, type=node_type, start_byte=start, end_byte=end)


def _stack(*node_ids: int) -> ScopeStack:
    stack = ScopeStack("test.js")
    for node_id in node_ids:
        stack.push(Scope(_node(node_id)))
    return stack


def test_symbol_table_first_occurrence_declares():
    table = SymbolTable()
    first = table.add("a.b", 0, 1)
    second = table.add("a.b", 5, 6)
    third = table.add("a.b", 9, 10)

    assert first.is_declaration
    assert not second.is_declaration and not third.is_declaration
    assert table.get("a.b") == [first, second, third]
    assert len(table) == 1


def test_symbol_table_escapes_constructor():
    table = SymbolTable()
    table.add("constructor", 0, 11)
    table.add("a.constructor.b", 20, 21)

    assert "constructor" in table
    assert "a.constructor.b" in table
    assert set(table.snapshot()) == {" constructor", "a. constructor.b"}
    assert sorted(table.paths()) == ["a.constructor.b", "constructor"]
    # Longer names that merely contain the word are untouched
    table.add("constructors", 30, 42)
    assert "constructors" in table.snapshot()


def test_snapshot_is_detached():
    table = SymbolTable()
    table.add("x", 0, 1)
    snap = table.snapshot()
    table.add("x", 2, 3)
    assert len(snap["x"]) == 1


def test_reference_attaches_to_innermost_holder():
    stack = _stack(1, 2, 3)
    outer, middle, inner = list(stack)
    outer.table.add("x", 0, 1)
    middle.table.add("x", 10, 11)

    stack.record("x", 20, 21)

    assert len(middle.table.get("x")) == 2
    assert len(outer.table.get("x")) == 1
    assert "x" not in inner.table


def test_unknown_reference_lands_in_innermost():
    stack = _stack(1, 2)
    outer, inner = list(stack)

    occ = stack.record("y", 5, 6)

    assert occ.is_declaration
    assert "y" in inner.table and "y" not in outer.table


def test_declaration_shadows_outer_entry():
    stack = _stack(1, 2)
    outer, inner = list(stack)
    outer.table.add("x", 0, 1)

    occ = stack.record("x", 10, 11, declaring=True)

    assert occ.is_declaration
    assert len(outer.table.get("x")) == 1
    assert len(inner.table.get("x")) == 1


def test_declaration_appends_in_innermost_when_known():
    stack = _stack(1)
    stack.record("x", 0, 1, declaring=True)
    occ = stack.record("x", 5, 6, declaring=True)

    assert not occ.is_declaration
    assert len(stack.innermost.table.get("x")) == 2


def test_push_assigns_depth():
    stack = _stack(1, 2, 3)
    assert [scope.depth for scope in stack] == [0, 1, 2]


def test_pop_validates_owner():
    stack = _stack(1, 2)
    with pytest.raises(ScopeMismatchError):
        stack.pop(_node(1))
    assert stack.pop(_node(2)).node_id == 2
    assert stack.pop(_node(1)).node_id == 1
    with pytest.raises(ScopeMismatchError):
        stack.pop(_node(1))


def test_record_without_open_scope():
    with pytest.raises(ScopeMismatchError):
        ScopeStack().record("x", 0, 1)


def test_freeze():
    scope = Scope(_node(7, "arrow_function", 3, 30))
    scope.table.add("n", 4, 5)
    frozen = scope.freeze()

    assert frozen.node_type == "arrow_function"
    assert (frozen.start_byte, frozen.end_byte) == (3, 30)
    assert frozen.lookup("n")[0].is_declaration


@pytest.mark.parametrize(
    "path, key",
    [
        ("a.b", "a.b"),
        ("constructor", " constructor"),
        (" constructor", "  constructor"),
        ("a. x.constructor", "a.  x. constructor"),
    ],
)
def test_escape_is_one_to_one(path, key):
    assert escape_path(path) == key
    assert unescape_path(key) == path


def test_record_skipping_innermost_scope():
    stack = _stack(1, 2)
    outer, inner = list(stack)

    occ = stack.record("o.f", 0, 1, declaring=True, skip=1)
    stack.record("o.f", 5, 6)

    assert occ.is_declaration
    assert "o.f" not in inner.table
    assert len(outer.table.get("o.f")) == 2
    with pytest.raises(ScopeMismatchError):
        stack.enclosing(2)
