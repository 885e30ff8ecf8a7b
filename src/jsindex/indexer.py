import time
from pathlib import Path
from typing import Callable, Optional, Union

import tree_sitter as ts

from jsindex.context import Frame, ParentContext
from jsindex.errors import CollaboratorError, EmptySourceError, ScopeMismatchError
from jsindex.helpers import compute_content_hash
from jsindex.logger import file_logger
from jsindex.models import FileIndex, IndexedScope, NodeKind
from jsindex.parsers import (
    BINDING_INIT,
    BINDING_NAME,
    MEMBER_PROPERTY,
    METHOD_NAME,
    PROPERTY_KEY,
    PROPERTY_VALUE,
    classify,
    get_node_text,
    member_property,
    parse_source,
)
from jsindex.paths import PathResolver, join_path
from jsindex.scopes import Scope, ScopeManager, ScopeStack, TreeSitterScopeManager
from jsindex.settings import IndexSettings

CompletionCallback = Callable[[list[IndexedScope]], None]


class IndexContext:
    """
    State of a single indexing pass: the parsed tree, the scope manager and
    everything the walk accumulates. Created per call, never shared.
    """

    def __init__(
        self,
        tree: Optional[ts.Tree],
        scope_manager: Optional[ScopeManager],
        settings: IndexSettings,
        path: str = "<memory>",
    ) -> None:
        if tree is None or tree.root_node is None:
            raise CollaboratorError("unable to index without a syntax tree", path=path)
        if scope_manager is None:
            raise CollaboratorError(
                "unable to index without a scope manager", path=path
            )
        self.tree = tree
        self.scope_manager = scope_manager
        self.settings = settings
        self.path = path
        self.parents = ParentContext()
        self.scope_stack = ScopeStack(path)
        self.scopes: list[Scope] = []  # discovery order
        self.resolver = PathResolver(settings.paths.unresolved_marker, path)


class ScopeIndexer:
    """
    Single depth-first walk over a syntax tree that records every occurrence
    of every name into the symbol table of the scope that owns it.
    """

    def __init__(self, ctx: IndexContext) -> None:
        self.ctx = ctx
        self.parents = ctx.parents
        self.scope_stack = ctx.scope_stack
        self.resolver = ctx.resolver
        self._handlers: dict[NodeKind, Callable[[Frame], None]] = {
            NodeKind.IDENTIFIER: self._handle_identifier,
            NodeKind.MEMBER_ACCESS: self._handle_member_access,
            NodeKind.OBJECT_LITERAL: self._handle_object_literal,
            NodeKind.METHOD: self._handle_method,
        }

    def run(self) -> list[IndexedScope]:
        sm = self.ctx.scope_manager
        sm.open(self.ctx.tree)
        try:
            self._walk(self.ctx.tree.walk())
        finally:
            sm.close()

        if len(self.scope_stack):
            raise ScopeMismatchError(
                f"{len(self.scope_stack)} scope(s) left open", path=self.ctx.path
            )
        return [scope.freeze() for scope in self.ctx.scopes]

    # --- traversal --------------------------------------------------
    def _walk(self, cursor: ts.TreeCursor) -> None:
        self._enter(cursor.node, cursor.field_name)
        while True:
            if cursor.goto_first_child():
                self._enter(cursor.node, cursor.field_name)
                continue
            while True:
                self._leave(cursor.node)
                if cursor.goto_next_sibling():
                    self._enter(cursor.node, cursor.field_name)
                    break
                if not cursor.goto_parent():
                    return

    def _enter(self, node: ts.Node, field: Optional[str]) -> None:
        # Punctuation and keywords are leaves and never carry names
        if not node.is_named:
            return
        frame = Frame(node=node, kind=classify(node), field=field)
        self.parents.push(frame)

        scope = self.ctx.scope_manager.acquire(node)
        if scope is not None:
            self.ctx.scopes.append(scope)
            self.scope_stack.push(scope)

        handler = self._handlers.get(frame.kind)
        if handler is not None:
            handler(frame)

    def _leave(self, node: ts.Node) -> None:
        if not node.is_named:
            return
        frame = self.parents.pop()
        if frame.pushed_context:
            self.scope_stack.innermost.object_context.pop()
        if self.ctx.scope_manager.release(node):
            self.scope_stack.pop(node)

    # --- handlers ---------------------------------------------------
    def _handle_object_literal(self, frame: Frame) -> None:
        name: Optional[str] = None
        parent = self.parents.parent()
        if self.parents.is_child(BINDING_INIT) and self.parents.parent_kind_is(
            NodeKind.VARIABLE_BINDING
        ):
            name_node = parent.node.child_by_field_name(BINDING_NAME)
            # Destructuring patterns have no single name to nest under
            if name_node is not None and classify(name_node) == NodeKind.IDENTIFIER:
                name = get_node_text(name_node)
        elif self.parents.is_child(PROPERTY_VALUE) and self.parents.parent_kind_is(
            NodeKind.PROPERTY
        ):
            name = self.resolver.key_name(parent.node.child_by_field_name(PROPERTY_KEY))

        if name is not None:
            frame.pushed_context = True
            self.scope_stack.innermost.object_context.append(name)

    def _handle_member_access(self, frame: Frame) -> None:
        frame.name = self.resolver.resolve(frame.node)
        prop = member_property(frame.node)
        # A constant computed key is never visited as an identifier
        if prop is not None and classify(prop) == NodeKind.LITERAL:
            self._record(frame.name, prop, declaring=False)

    def _handle_method(self, frame: Frame) -> None:
        # Shorthand methods of object literals are keys like pair keys; class
        # methods are left to the identifier rules
        if not self.parents.parent_kind_is(NodeKind.OBJECT_LITERAL):
            return
        name_node = frame.node.child_by_field_name(METHOD_NAME)
        if name_node is None:
            return
        top = len(self.parents) - 1
        declaring = self.parents.is_child(
            BINDING_INIT, top - 1
        ) and self.parents.parent_kind_is(NodeKind.VARIABLE_BINDING, top - 1)
        # The key belongs to the scope holding the literal, not the method's own
        skip = 1 if self.scope_stack.innermost.node_id == frame.node.id else 0
        self._record(
            self.resolver.key_name(name_node), name_node, declaring, skip=skip
        )

    def _handle_identifier(self, frame: Frame) -> None:
        parent = self.parents.parent()
        if (
            parent is not None
            and parent.kind == NodeKind.MEMBER_ACCESS
            and self.parents.is_child(MEMBER_PROPERTY)
        ):
            self._record(parent.name or "", frame.node, declaring=False)
            return
        if (
            parent is not None
            and parent.kind == NodeKind.METHOD
            and self.parents.is_child(METHOD_NAME)
            and self.parents.parent_kind_is(
                NodeKind.OBJECT_LITERAL, len(self.parents) - 2
            )
        ):
            # Already recorded by _handle_method
            return
        self._record(get_node_text(frame.node), frame.node, self._is_declaring())

    def _is_declaring(self) -> bool:
        p = self.parents
        top = len(p) - 1
        if p.parent_kind_is(NodeKind.VARIABLE_BINDING) and p.is_child(BINDING_NAME):
            return True
        # Key of a property of an object literal that initializes a binding
        return (
            p.is_child(PROPERTY_KEY)
            and p.parent_kind_is(NodeKind.PROPERTY)
            and p.parent_kind_is(NodeKind.OBJECT_LITERAL, top - 1)
            and p.is_child(BINDING_INIT, top - 2)
            and p.parent_kind_is(NodeKind.VARIABLE_BINDING, top - 2)
        )

    def _record(
        self, suffix: str, node: ts.Node, declaring: bool, skip: int = 0
    ) -> None:
        scope = self.scope_stack.enclosing(skip)
        path = join_path(scope.object_context, suffix)
        self.scope_stack.record(
            path, node.start_byte, node.end_byte, declaring, skip=skip
        )


# --- entry points ---------------------------------------------------
def index_tree(
    tree: Optional[ts.Tree],
    path: str = "<memory>",
    settings: Optional[IndexSettings] = None,
    scope_manager: Optional[ScopeManager] = None,
) -> list[IndexedScope]:
    """
    Index an already parsed tree and return its scopes in the order they
    were opened.
    """
    settings = settings or IndexSettings()
    if scope_manager is None:
        scope_manager = TreeSitterScopeManager(settings.scopes.node_types)
    ctx = IndexContext(tree, scope_manager, settings, path)
    return ScopeIndexer(ctx).run()


def index_source(
    source: Union[str, bytes],
    path: str = "<memory>",
    settings: Optional[IndexSettings] = None,
    on_complete: Optional[CompletionCallback] = None,
    scope_manager: Optional[ScopeManager] = None,
) -> FileIndex:
    """
    Parse and index JavaScript *source*. *path* identifies the source in
    diagnostics only. *on_complete* receives the ordered scopes once the pass
    finishes; fatal errors raise ``IndexingError`` subclasses and produce no
    partial result.
    """
    settings = settings or IndexSettings()
    if isinstance(source, str):
        source = source.encode("utf-8")

    start = time.perf_counter()
    tree = parse_source(source, path=path, settings=settings.parser)
    scopes = index_tree(tree, path, settings=settings, scope_manager=scope_manager)

    file_logger(path).debug(
        "Indexed source",
        scopes=len(scopes),
        symbols=sum(len(s.symbols) for s in scopes),
        duration=f"{time.perf_counter() - start:.3f}s",
    )
    if on_complete is not None:
        on_complete(scopes)
    return FileIndex(path=path, file_hash=compute_content_hash(source), scopes=scopes)


def index_file(
    file_path: Union[str, Path],
    settings: Optional[IndexSettings] = None,
    on_complete: Optional[CompletionCallback] = None,
    rel_path: Optional[str] = None,
) -> FileIndex:
    """Read *file_path* from disk and index it."""
    file_path = Path(file_path)
    path = rel_path or str(file_path)
    with open(file_path, "rb") as file:
        source = file.read()
    if not source:
        raise EmptySourceError("nothing to index", path=path)
    return index_source(source, path=path, settings=settings, on_complete=on_complete)
