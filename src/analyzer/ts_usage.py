"""Prevent TypeScript-specific variables being falsely marked as unused.

Plain scope analysis only sees value-level reads. Bindings that are used only
in a type annotation, a return type, a decorator or an ``implements`` list look
unused to it. This rule walks those positions and flags the matching
declarations through :func:`mark_variable_as_used`.
"""
from typing import Callable, Dict

from .nodes import (
    ArrayType,
    CallExpression,
    ClassBody,
    ClassDeclaration,
    DECORATED_NODES,
    Decorator,
    Identifier,
    IntersectionType,
    MethodDefinition,
    Node,
    TypeAnnotation,
    TypeReference,
    UnionType,
)
from .usage_marker import mark_variable_as_used


class TypeScriptUsageRule:
    """Post-pass resolver for annotation-only and decorator-only references."""

    meta = {
        'docs': {
            'description': "Prevent TypeScript-specific variables being falsely marked as unused.",
            'category': 'TypeScript',
            'recommended': True,
        },
        'schema': [],
    }

    def __init__(self, context):
        """Initialize rule for one file.

        Args:
            context: RuleContext exposing get_scope() and get_ancestors()
        """
        self.context = context

    def _mark(self, name: str) -> bool:
        return mark_variable_as_used(self.context.get_scope(), name)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def mark_decorators_as_used(self, node: Node):
        """Checks if the given node has any decorators and marks them as used.

        Every shape is checked on its own; a decorator matching more than one
        shape is simply marked more than once.

        Args:
            node: Class, class member or parameter node
        """
        if not isinstance(node, DECORATED_NODES) or not node.decorators:
            return

        for decorator in node.decorators:
            # @Foo
            if isinstance(decorator, Identifier):
                self._mark(decorator.name)

            if isinstance(decorator, Decorator) and isinstance(decorator.expression, Identifier):
                self._mark(decorator.expression.name)

            # @Foo()
            if isinstance(decorator, CallExpression) and isinstance(decorator.callee, Identifier):
                self._mark(decorator.callee.name)

            if (isinstance(decorator, Decorator)
                    and isinstance(decorator.expression, CallExpression)
                    and isinstance(decorator.expression.callee, Identifier)):
                self._mark(decorator.expression.callee.name)

    def mark_implemented_interfaces_as_used(self, node: ClassDeclaration):
        """Checks if the given class implements any interfaces and marks them as used.

        Entries without a plain identifier (``implements ns.Foo``) are skipped.
        """
        if not node.implements:
            return

        for implemented in node.implements:
            if implemented is None or not isinstance(implemented.id, Identifier):
                continue
            self._mark(implemented.id.name)

    def mark_type_annotation_as_used(self, node: Node):
        """Marks every name referenced by a type as used.

        Only type references and union/intersection members are decomposed.
        Keyword, literal, tuple, object and function types contribute nothing.

        Args:
            node: A TypeAnnotation wrapper or a bare type node
        """
        annotation = node.type_annotation if isinstance(node, TypeAnnotation) else node

        if isinstance(annotation, TypeReference):
            if isinstance(annotation.type_name, ArrayType):
                self.mark_type_annotation_as_used(annotation.type_name.element_type)
            else:
                if isinstance(annotation.type_name, Identifier):
                    self._mark(annotation.type_name.name)
                for param in annotation.type_arguments:
                    self.mark_type_annotation_as_used(param)

        elif isinstance(annotation, (UnionType, IntersectionType)):
            for member in annotation.types:
                self.mark_type_annotation_as_used(member)

    def mark_function_return_type_as_used(self, node: Node):
        """Checks if the given function has a return type and marks it as used."""
        if node.return_type is not None:
            self.mark_type_annotation_as_used(node.return_type)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_identifier(self, node: Identifier):
        if node.type_annotation is not None:
            self.mark_type_annotation_as_used(node.type_annotation)

    def on_type_annotation(self, node: TypeAnnotation):
        if node.type_annotation is not None:
            self.mark_type_annotation_as_used(node.type_annotation)

    def on_class_declaration(self, node: ClassDeclaration):
        self.mark_decorators_as_used(node)
        self.mark_implemented_interfaces_as_used(node)

    def on_method_definition(self, node: MethodDefinition):
        # Decorators are only supported on class members; object literal methods
        # and partial trees are left alone.
        ancestors = self.context.get_ancestors()
        if not ancestors or not isinstance(ancestors[-1], ClassBody):
            return

        self.mark_decorators_as_used(node)

        value = node.value
        if value is None or not value.params:
            return
        for param in value.params:
            self.mark_decorators_as_used(param)

    def create(self) -> Dict[str, Callable[[Node], None]]:
        """Handler table keyed by node type."""
        return {
            'Identifier': self.on_identifier,
            'TypeAnnotation': self.on_type_annotation,
            'FunctionDeclaration': self.mark_function_return_type_as_used,
            'FunctionExpression': self.mark_function_return_type_as_used,
            'ArrowFunctionExpression': self.mark_function_return_type_as_used,
            'ClassProperty': self.mark_decorators_as_used,
            'ClassDeclaration': self.on_class_declaration,
            'MethodDefinition': self.on_method_definition,
        }
