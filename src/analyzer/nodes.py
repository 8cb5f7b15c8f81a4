"""ESTree-style syntax node model for TypeScript sources.

Every node kind is its own dataclass that declares only the fields meaningful
to that kind. Optional parts (decorators, return types, implements lists) default
to None or an empty list, so "absent" is an ordinary state rather than an error.

The ``type`` class attribute is the kind tag rule handlers are registered under.
``parent``, ``line`` and ``column`` are filled in by the converter and are not
dataclass fields, so they never take part in traversal.
"""
from dataclasses import dataclass, field, fields
from typing import ClassVar, Iterator, List, Optional


class Node:
    """Base class for every syntax node."""
    type: ClassVar[str] = 'Node'
    parent: Optional['Node'] = None
    line: int = 0
    column: int = 0


@dataclass(eq=False)
class Program(Node):
    type: ClassVar[str] = 'Program'
    body: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class GenericNode(Node):
    """Any tree-sitter node without a dedicated kind, e.g. ``if_statement``."""
    type: ClassVar[str] = 'GenericNode'
    kind: str
    children: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class BlockStatement(Node):
    type: ClassVar[str] = 'BlockStatement'
    body: List[Node] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Type syntax
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class TypeAnnotation(Node):
    """The ``: T`` wrapper around a type."""
    type: ClassVar[str] = 'TypeAnnotation'
    type_annotation: Node


@dataclass(eq=False)
class TypeReference(Node):
    """A named type such as ``Foo`` or ``Map<K, V>``.

    ``type_name`` is normally an Identifier. Array types are encoded with an
    ArrayType in ``type_name`` (``Foo[]`` -> TypeReference(ArrayType(Foo))).
    """
    type: ClassVar[str] = 'TypeReference'
    type_name: Node
    type_arguments: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ArrayType(Node):
    type: ClassVar[str] = 'ArrayType'
    element_type: Node


@dataclass(eq=False)
class UnionType(Node):
    type: ClassVar[str] = 'UnionType'
    types: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class IntersectionType(Node):
    type: ClassVar[str] = 'IntersectionType'
    types: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class KeywordType(Node):
    """``string``, ``number``, ``void``, ``any`` and friends."""
    type: ClassVar[str] = 'KeywordType'
    keyword: str


@dataclass(eq=False)
class LiteralType(Node):
    type: ClassVar[str] = 'LiteralType'
    value: str


@dataclass(eq=False)
class TupleType(Node):
    type: ClassVar[str] = 'TupleType'
    element_types: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class QualifiedName(Node):
    """``ns.Foo`` in a type position."""
    type: ClassVar[str] = 'QualifiedName'
    left: Node
    right: str


@dataclass(eq=False)
class UnknownType(Node):
    """Type syntax the resolver does not decompose (object, function, conditional...)."""
    type: ClassVar[str] = 'UnknownType'
    kind: str
    children: List[Node] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Identifiers, patterns and parameters
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Identifier(Node):
    type: ClassVar[str] = 'Identifier'
    name: str
    type_annotation: Optional[TypeAnnotation] = None
    decorators: List[Node] = field(default_factory=list)
    optional: bool = False


@dataclass(eq=False)
class AssignmentPattern(Node):
    """``x = default`` in a parameter list or destructuring pattern."""
    type: ClassVar[str] = 'AssignmentPattern'
    left: Node
    right: Node
    decorators: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class RestElement(Node):
    type: ClassVar[str] = 'RestElement'
    argument: Node
    type_annotation: Optional[TypeAnnotation] = None
    decorators: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ObjectPattern(Node):
    type: ClassVar[str] = 'ObjectPattern'
    properties: List[Node] = field(default_factory=list)
    type_annotation: Optional[TypeAnnotation] = None
    decorators: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ArrayPattern(Node):
    type: ClassVar[str] = 'ArrayPattern'
    elements: List[Node] = field(default_factory=list)
    type_annotation: Optional[TypeAnnotation] = None
    decorators: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ParameterProperty(Node):
    """Constructor parameter with an accessibility modifier (``private svc: Service``)."""
    type: ClassVar[str] = 'ParameterProperty'
    parameter: Node
    accessibility: Optional[str] = None
    readonly: bool = False
    decorators: List[Node] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Decorator(Node):
    type: ClassVar[str] = 'Decorator'
    expression: Node


@dataclass(eq=False)
class CallExpression(Node):
    type: ClassVar[str] = 'CallExpression'
    callee: Node
    arguments: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class NewExpression(Node):
    type: ClassVar[str] = 'NewExpression'
    callee: Node
    arguments: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class MemberExpression(Node):
    """``object.property``; the property name is not a binding reference."""
    type: ClassVar[str] = 'MemberExpression'
    object: Node
    property: str


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class FunctionDeclaration(Node):
    type: ClassVar[str] = 'FunctionDeclaration'
    id: Optional[Identifier] = None
    params: List[Node] = field(default_factory=list)
    return_type: Optional[TypeAnnotation] = None
    body: Optional[Node] = None
    is_async: bool = False


@dataclass(eq=False)
class FunctionExpression(Node):
    type: ClassVar[str] = 'FunctionExpression'
    id: Optional[Identifier] = None
    params: List[Node] = field(default_factory=list)
    return_type: Optional[TypeAnnotation] = None
    body: Optional[Node] = None
    is_async: bool = False


@dataclass(eq=False)
class ArrowFunctionExpression(Node):
    type: ClassVar[str] = 'ArrowFunctionExpression'
    params: List[Node] = field(default_factory=list)
    return_type: Optional[TypeAnnotation] = None
    body: Optional[Node] = None
    is_async: bool = False


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class ClassImplements(Node):
    """One entry of an ``implements`` list; ``id`` is None for unusual shapes."""
    type: ClassVar[str] = 'ClassImplements'
    id: Optional[Node] = None
    type_arguments: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ClassBody(Node):
    type: ClassVar[str] = 'ClassBody'
    body: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ClassDeclaration(Node):
    type: ClassVar[str] = 'ClassDeclaration'
    id: Optional[Identifier]
    body: ClassBody
    super_class: Optional[Node] = None
    implements: List[ClassImplements] = field(default_factory=list)
    decorators: List[Node] = field(default_factory=list)
    abstract: bool = False


@dataclass(eq=False)
class ClassExpression(Node):
    type: ClassVar[str] = 'ClassExpression'
    id: Optional[Identifier]
    body: ClassBody
    super_class: Optional[Node] = None
    implements: List[ClassImplements] = field(default_factory=list)
    decorators: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ClassProperty(Node):
    type: ClassVar[str] = 'ClassProperty'
    key: str
    value: Optional[Node] = None
    type_annotation: Optional[TypeAnnotation] = None
    decorators: List[Node] = field(default_factory=list)
    static: bool = False


@dataclass(eq=False)
class MethodDefinition(Node):
    type: ClassVar[str] = 'MethodDefinition'
    key: str
    value: FunctionExpression
    kind: str = 'method'  # 'constructor', 'method', 'get', 'set'
    decorators: List[Node] = field(default_factory=list)
    static: bool = False


# ---------------------------------------------------------------------------
# Declarations and modules
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class VariableDeclarator(Node):
    type: ClassVar[str] = 'VariableDeclarator'
    id: Node
    init: Optional[Node] = None


@dataclass(eq=False)
class VariableDeclaration(Node):
    type: ClassVar[str] = 'VariableDeclaration'
    kind: str  # 'var', 'let', 'const'
    declarations: List[VariableDeclarator] = field(default_factory=list)


@dataclass(eq=False)
class ImportSpecifier(Node):
    type: ClassVar[str] = 'ImportSpecifier'
    local: Identifier
    imported: str


@dataclass(eq=False)
class ImportDefaultSpecifier(Node):
    type: ClassVar[str] = 'ImportDefaultSpecifier'
    local: Identifier


@dataclass(eq=False)
class ImportNamespaceSpecifier(Node):
    type: ClassVar[str] = 'ImportNamespaceSpecifier'
    local: Identifier


@dataclass(eq=False)
class ImportDeclaration(Node):
    type: ClassVar[str] = 'ImportDeclaration'
    source: str
    specifiers: List[Node] = field(default_factory=list)
    import_kind: str = 'value'  # 'value' or 'type'


@dataclass(eq=False)
class ExportNamedDeclaration(Node):
    type: ClassVar[str] = 'ExportNamedDeclaration'
    declaration: Optional[Node] = None
    specifiers: List[Node] = field(default_factory=list)


@dataclass(eq=False)
class ExportDefaultDeclaration(Node):
    type: ClassVar[str] = 'ExportDefaultDeclaration'
    declaration: Node


# Node kinds that may carry a decorator list.
DECORATED_NODES = (
    ClassDeclaration,
    ClassExpression,
    ClassProperty,
    MethodDefinition,
    Identifier,
    AssignmentPattern,
    RestElement,
    ObjectPattern,
    ArrayPattern,
    ParameterProperty,
)

FUNCTION_NODES = (FunctionDeclaration, FunctionExpression, ArrowFunctionExpression)


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield the direct children of ``node`` in field declaration order."""
    for node_field in fields(node):
        value = getattr(node, node_field.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Pre-order walk over ``node`` and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_child_nodes(current))))
