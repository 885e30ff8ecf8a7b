from jsindex.context import Frame, ParentContext
from jsindex.models import NodeKind


def _context(*frames):
    ctx = ParentContext()
    for kind, field in frames:
        ctx.push(Frame(node=object(), kind=kind, field=field))
    return ctx


def test_queries_default_to_current_node():
    ctx = _context(
        (NodeKind.OTHER, None),
        (NodeKind.VARIABLE_BINDING, None),
        (NodeKind.IDENTIFIER, "name"),
    )

    assert ctx.is_child("name")
    assert not ctx.is_child("value")
    assert ctx.parent_kind_is(NodeKind.VARIABLE_BINDING)
    assert not ctx.parent_kind_is(NodeKind.PROPERTY)


def test_queries_with_offset():
    # binding > object(value) > pair > identifier(key)
    ctx = _context(
        (NodeKind.VARIABLE_BINDING, None),
        (NodeKind.OBJECT_LITERAL, "value"),
        (NodeKind.PROPERTY, None),
        (NodeKind.IDENTIFIER, "key"),
    )
    top = len(ctx) - 1

    assert ctx.parent_kind_is(NodeKind.PROPERTY)
    assert ctx.parent_kind_is(NodeKind.OBJECT_LITERAL, top - 1)
    assert ctx.is_child("value", top - 2)
    assert ctx.parent_kind_is(NodeKind.VARIABLE_BINDING, top - 2)


def test_root_has_no_parent():
    ctx = _context((NodeKind.OTHER, None))

    assert ctx.parent() is None
    assert not ctx.is_child("value")
    assert not ctx.parent_kind_is(NodeKind.OTHER)
    assert not ctx.is_child("value", -3)
    assert not ctx.parent_kind_is(NodeKind.OTHER, 10)


def test_push_pop():
    ctx = _context((NodeKind.OTHER, None), (NodeKind.MEMBER_ACCESS, "object"))
    frame = ctx.pop()

    assert frame.kind == NodeKind.MEMBER_ACCESS
    assert len(ctx) == 1
    assert ctx.current.kind == NodeKind.OTHER
