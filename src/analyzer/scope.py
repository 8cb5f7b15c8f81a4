"""Lexical scope analysis over the syntax node model.

Builds an eslint-scope style scope tree:

    global  (synthetic, opened by Program, declares nothing)
      module  (opened by Program as well; imports and top-level bindings)
        function / class / block scopes ...

Value-position identifiers are recorded as references and resolved to the
nearest declaring scope once the whole program has been walked, so hoisted
functions and later imports resolve the same way as earlier ones.

Type syntax is not walked for references (apart from `typeof value` queries),
and neither is the identifier a decorator is named by (`@Foo`, `@Foo()`);
decorator arguments are ordinary expressions. A binding used only in those
positions stays unreferenced here; recovering those uses is the job of the
annotation-usage rule.
"""
from typing import Dict, Iterator, List, Optional, Tuple

from .nodes import (
    ArrayPattern,
    ArrowFunctionExpression,
    AssignmentPattern,
    BlockStatement,
    CallExpression,
    ClassDeclaration,
    ClassExpression,
    DECORATED_NODES,
    Decorator,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    Node,
    ObjectPattern,
    ParameterProperty,
    Program,
    RestElement,
    UnknownType,
    VariableDeclaration,
    iter_child_nodes,
    walk,
)

# Scope kinds that own `var` declarations.
VAR_SCOPE_KINDS = ('function', 'module', 'global')

# Type-only node kinds; their identifiers are not value references.
TYPE_NODE_TYPES = {
    'TypeAnnotation',
    'TypeReference',
    'ArrayType',
    'UnionType',
    'IntersectionType',
    'KeywordType',
    'LiteralType',
    'TupleType',
    'QualifiedName',
    'ClassImplements',
    'UnknownType',
}


class Variable:
    """A declared binding.

    ``used`` is the annotation-usage flag. It only ever goes from False to True
    and is changed exclusively through :meth:`mark_used`.
    """

    def __init__(self, name: str, scope: 'Scope', kind: str):
        self.name = name
        self.scope = scope
        self.kind = kind  # ImportBinding, Variable, FunctionName, FunctionExpressionName, ClassName, Parameter
        self.defs: List[Node] = []
        self.references: List[Identifier] = []
        self.exported = False
        self._used = False

    @property
    def used(self) -> bool:
        return self._used

    def mark_used(self):
        self._used = True

    def __repr__(self) -> str:
        return (f"Variable(name={self.name!r}, kind={self.kind!r}, "
                f"references={len(self.references)}, used={self._used})")


class Scope:
    """One lexical region. ``upper`` is a plain back-reference used for lookups."""

    def __init__(self, kind: str, block: Node, upper: Optional['Scope'] = None):
        self.kind = kind  # global, module, function, class, block
        self.block = block
        self.upper = upper
        self.child_scopes: List['Scope'] = []
        self.variables: Dict[str, Variable] = {}
        self.references: List[Identifier] = []
        self.through: List[Identifier] = []
        if upper is not None:
            upper.child_scopes.append(self)

    @property
    def is_global(self) -> bool:
        return self.kind == 'global'

    def declare(self, name: str, node: Node, kind: str) -> Variable:
        """Declare ``name`` here; redeclarations (overloads, var) share one Variable."""
        variable = self.variables.get(name)
        if variable is None:
            variable = Variable(name, self, kind)
            self.variables[name] = variable
        variable.defs.append(node)
        return variable

    def resolve(self, name: str) -> Optional[Variable]:
        """Nearest declaration of ``name`` walking outward from this scope."""
        scope = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.upper
        return None

    def __repr__(self) -> str:
        return f"Scope(kind={self.kind!r}, variables={list(self.variables)})"


class ScopeManager:
    """Owns every scope of one program and maps opening nodes to their scopes."""

    def __init__(self):
        self.scopes: List[Scope] = []
        self.global_scope: Optional[Scope] = None
        self._node_scopes: Dict[Node, List[Scope]] = {}

    @classmethod
    def analyze(cls, program: Program) -> 'ScopeManager':
        """Build the scope tree for ``program``."""
        manager = cls()
        ScopeAnalyzer(manager).analyze(program)
        return manager

    def register(self, scope: Scope):
        if scope.is_global:
            self.global_scope = scope
        self.scopes.append(scope)
        self._node_scopes.setdefault(scope.block, []).append(scope)

    def acquire(self, node: Node) -> Optional[Scope]:
        """Return the outermost scope opened by ``node``, if any.

        For Program this is the synthetic global scope, not the module scope.
        """
        scopes = self._node_scopes.get(node)
        return scopes[0] if scopes else None

    def iter_variables(self, include_global: bool = False) -> Iterator[Variable]:
        for scope in self.scopes:
            if scope.is_global and not include_global:
                continue
            yield from scope.variables.values()


def pattern_identifiers(pattern: Node) -> List[Identifier]:
    """Binding identifiers introduced by a declaration pattern."""
    if isinstance(pattern, Identifier):
        return [pattern]
    if isinstance(pattern, AssignmentPattern):
        return pattern_identifiers(pattern.left)
    if isinstance(pattern, RestElement):
        return pattern_identifiers(pattern.argument)
    if isinstance(pattern, ParameterProperty):
        return pattern_identifiers(pattern.parameter)
    if isinstance(pattern, ObjectPattern):
        names = []
        for item in pattern.properties:
            names.extend(pattern_identifiers(item))
        return names
    if isinstance(pattern, ArrayPattern):
        names = []
        for item in pattern.elements:
            names.extend(pattern_identifiers(item))
        return names
    return []


class ScopeAnalyzer:
    """Single pass that opens scopes, declares bindings and records references."""

    def __init__(self, manager: ScopeManager):
        self.manager = manager
        self.current: Optional[Scope] = None
        self._pending: List[Tuple[Identifier, Scope]] = []

    def analyze(self, program: Program):
        self._open('global', program)
        self._open('module', program)
        for statement in program.body:
            self._visit(statement)
        self._close()
        self._close()
        self._resolve_references()

    # ------------------------------------------------------------------
    # Scope bookkeeping
    # ------------------------------------------------------------------

    def _open(self, kind: str, block: Node) -> Scope:
        scope = Scope(kind, block, upper=self.current)
        self.manager.register(scope)
        self.current = scope
        return scope

    def _close(self):
        self.current = self.current.upper

    def _var_scope(self) -> Scope:
        scope = self.current
        while scope.kind not in VAR_SCOPE_KINDS:
            scope = scope.upper
        return scope

    def _resolve_references(self):
        for identifier, scope in self._pending:
            variable = scope.resolve(identifier.name)
            if variable is not None:
                variable.references.append(identifier)
            else:
                self.manager.global_scope.through.append(identifier)

    # ------------------------------------------------------------------
    # Walking
    # ------------------------------------------------------------------

    def _visit(self, node: Optional[Node]):
        if node is None:
            return
        if node.type in TYPE_NODE_TYPES:
            self._visit_type_queries(node)
            return
        visitor = getattr(self, f'_visit_{node.type}', None)
        if visitor is not None:
            visitor(node)
        else:
            self._visit_children(node)

    def _visit_children(self, node: Node):
        for child in iter_child_nodes(node):
            self._visit(child)

    def _visit_decorators(self, node: Node):
        if isinstance(node, DECORATED_NODES):
            for decorator in node.decorators:
                if isinstance(decorator, Decorator):
                    self._visit(decorator)
                else:
                    self._visit_decorator_expression(decorator)

    def _visit_Identifier(self, node: Identifier):
        self.current.references.append(node)
        self._pending.append((node, self.current))
        self._visit_decorators(node)

    def _visit_Decorator(self, node):
        self._visit_decorator_expression(node.expression)

    def _visit_decorator_expression(self, expression: Node):
        if isinstance(expression, Identifier):
            return
        if isinstance(expression, CallExpression) and isinstance(expression.callee, Identifier):
            for argument in expression.arguments:
                self._visit(argument)
            return
        self._visit(expression)

    def _visit_type_queries(self, node: Node):
        # typeof value reads a binding from a type position
        for child in walk(node):
            if isinstance(child, UnknownType) and child.kind == 'type_query':
                self._visit_children(child)

    def _visit_MemberExpression(self, node):
        self._visit(node.object)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _declare_pattern(self, scope: Scope, pattern: Node, kind: str):
        for identifier in pattern_identifiers(pattern):
            scope.declare(identifier.name, identifier, kind)
        self._visit_pattern_values(pattern)

    def _visit_pattern_values(self, pattern: Node):
        """Visit default values, decorators and annotations nested in a binding pattern."""
        self._visit_decorators(pattern)
        self._visit(getattr(pattern, 'type_annotation', None))
        if isinstance(pattern, AssignmentPattern):
            self._visit_pattern_values(pattern.left)
            self._visit(pattern.right)
        elif isinstance(pattern, RestElement):
            self._visit_pattern_values(pattern.argument)
        elif isinstance(pattern, ParameterProperty):
            self._visit_pattern_values(pattern.parameter)
        elif isinstance(pattern, ObjectPattern):
            for item in pattern.properties:
                self._visit_pattern_values(item)
        elif isinstance(pattern, ArrayPattern):
            for item in pattern.elements:
                self._visit_pattern_values(item)
        elif not isinstance(pattern, Identifier):
            # member expressions used as assignment targets
            self._visit(pattern)

    def _visit_ImportDeclaration(self, node):
        for specifier in node.specifiers:
            self.current.declare(specifier.local.name, specifier, 'ImportBinding')

    def _visit_VariableDeclaration(self, node: VariableDeclaration):
        scope = self._var_scope() if node.kind == 'var' else self.current
        for declarator in node.declarations:
            self._declare_pattern(scope, declarator.id, 'Variable')
            self._visit(declarator.init)

    def _visit_FunctionDeclaration(self, node: FunctionDeclaration):
        if node.id is not None:
            self.current.declare(node.id.name, node, 'FunctionName')
        self._visit_function(node)

    def _visit_FunctionExpression(self, node):
        self._visit_function(node)

    def _visit_ArrowFunctionExpression(self, node: ArrowFunctionExpression):
        self._visit_function(node)

    def _visit_function(self, node):
        scope = self._open('function', node)
        if isinstance(node, FunctionExpression) and node.id is not None:
            scope.declare(node.id.name, node, 'FunctionExpressionName')
        for param in node.params:
            self._declare_pattern(scope, param, 'Parameter')
        self._visit(node.return_type)
        body = node.body
        # a function body shares the function scope
        if isinstance(body, BlockStatement):
            for statement in body.body:
                self._visit(statement)
        else:
            self._visit(body)
        self._close()

    def _visit_BlockStatement(self, node: BlockStatement):
        self._open('block', node)
        for statement in node.body:
            self._visit(statement)
        self._close()

    def _visit_ClassDeclaration(self, node: ClassDeclaration):
        self._visit_decorators(node)
        if node.id is not None:
            self.current.declare(node.id.name, node, 'ClassName')
        self._visit_class(node)

    def _visit_ClassExpression(self, node: ClassExpression):
        self._visit_decorators(node)
        self._visit_class(node)

    def _visit_class(self, node):
        self._visit(node.super_class)
        self._open('class', node)
        for member in node.body.body:
            self._visit(member)
        self._close()

    def _visit_ClassProperty(self, node):
        self._visit_decorators(node)
        self._visit(node.type_annotation)
        self._visit(node.value)

    def _visit_MethodDefinition(self, node):
        self._visit_decorators(node)
        self._visit(node.value)

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def _mark_exported(self, declaration: Optional[Node]):
        names: List[str] = []
        if isinstance(declaration, (FunctionDeclaration, ClassDeclaration)) and declaration.id is not None:
            names.append(declaration.id.name)
        elif isinstance(declaration, VariableDeclaration):
            for declarator in declaration.declarations:
                names.extend(identifier.name for identifier in pattern_identifiers(declarator.id))
        for name in names:
            variable = self.current.variables.get(name)
            if variable is not None:
                variable.exported = True

    def _visit_ExportNamedDeclaration(self, node: ExportNamedDeclaration):
        self._visit(node.declaration)
        self._mark_exported(node.declaration)
        for specifier in node.specifiers:
            self._visit(specifier)

    def _visit_ExportDefaultDeclaration(self, node: ExportDefaultDeclaration):
        self._visit(node.declaration)
        self._mark_exported(node.declaration)
