"""Convert tree-sitter TypeScript trees into the ESTree-style node model.

Only the shapes the scope analyzer and the annotation-usage rule care about get
dedicated node kinds; everything else becomes a GenericNode that keeps its
converted children so nested declarations and references are not lost.
"""
from typing import List, Optional
from tree_sitter import Node as TSNode, Tree

from .nodes import (
    ArrayPattern,
    ArrayType,
    ArrowFunctionExpression,
    AssignmentPattern,
    BlockStatement,
    CallExpression,
    ClassBody,
    ClassDeclaration,
    ClassExpression,
    ClassImplements,
    ClassProperty,
    Decorator,
    ExportDefaultDeclaration,
    ExportNamedDeclaration,
    FunctionDeclaration,
    FunctionExpression,
    GenericNode,
    Identifier,
    ImportDeclaration,
    ImportDefaultSpecifier,
    ImportNamespaceSpecifier,
    ImportSpecifier,
    IntersectionType,
    KeywordType,
    LiteralType,
    MemberExpression,
    MethodDefinition,
    NewExpression,
    Node,
    ObjectPattern,
    ParameterProperty,
    Program,
    QualifiedName,
    RestElement,
    TupleType,
    TypeAnnotation,
    TypeReference,
    UnionType,
    UnknownType,
    VariableDeclaration,
    VariableDeclarator,
    iter_child_nodes,
)

# Leaves that never name a binding.
DROPPED_KINDS = {
    'comment',
    'hash_bang_line',
    'property_identifier',
    'private_property_identifier',
    'statement_identifier',
    'string',
    'number',
    'regex',
    'true',
    'false',
    'null',
    'undefined',
    'this',
    'super',
    'accessibility_modifier',
    'override_modifier',
    'string_fragment',
    'escape_sequence',
}

# Type kinds that do not end in "_type".
TYPE_KINDS = {
    'type_identifier',
    'nested_type_identifier',
    'type_query',
    'index_type_query',
    'type_predicate',
}

FUNCTION_DECLARATION_KINDS = {
    'function_declaration',
    'generator_function_declaration',
    'function_signature',
}

FUNCTION_EXPRESSION_KINDS = {
    'function_expression',
    'function',
    'generator_function',
}

METHOD_SIGNATURE_KINDS = {
    'method_signature',
    'abstract_method_signature',
}

PARAMETER_KINDS = {'required_parameter', 'optional_parameter'}

# Members that may receive decorators written as class_body siblings.
DECORATABLE_MEMBERS = (MethodDefinition, ClassProperty)


class TreeConverter:
    """Build a Program from a parsed tree-sitter TypeScript tree."""

    def __init__(self, source_code: bytes):
        """Initialize converter.

        Args:
            source_code: The exact bytes the tree was parsed from
        """
        if isinstance(source_code, str):
            source_code = source_code.encode('utf-8')
        self.source_code = source_code

    def convert(self, tree: Tree) -> Program:
        """Convert a whole tree and link every node to its parent.

        Args:
            tree: Parsed tree-sitter Tree

        Returns:
            Program node
        """
        root = tree.root_node
        program = self._at(Program(body=self._convert_children(root)), root)
        self._link_parents(program)
        return program

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _text(self, ts_node: TSNode) -> str:
        return self.source_code[ts_node.start_byte:ts_node.end_byte].decode('utf-8', errors='replace')

    @staticmethod
    def _at(node: Node, ts_node: TSNode) -> Node:
        node.line = ts_node.start_point[0] + 1
        node.column = ts_node.start_point[1]
        return node

    @staticmethod
    def _link_parents(program: Program):
        stack = [program]
        while stack:
            current = stack.pop()
            for child in iter_child_nodes(current):
                child.parent = current
                stack.append(child)

    @staticmethod
    def _has_token(ts_node: TSNode, token: str) -> bool:
        """Check for an anonymous keyword child such as 'static' or 'default'."""
        return any(not child.is_named and child.type == token for child in ts_node.children)

    @staticmethod
    def _children_of_type(ts_node: TSNode, kind: str) -> List[TSNode]:
        return [child for child in ts_node.named_children if child.type == kind]

    def _first_child_of_type(self, ts_node: TSNode, kind: str) -> Optional[TSNode]:
        children = self._children_of_type(ts_node, kind)
        return children[0] if children else None

    def _convert_children(self, ts_node: TSNode) -> List[Node]:
        converted = []
        for child in ts_node.named_children:
            node = self._convert(child)
            if node is not None:
                converted.append(node)
        return converted

    def _identifier(self, ts_node: TSNode) -> Identifier:
        return self._at(Identifier(name=self._text(ts_node)), ts_node)

    def _decorators(self, ts_node: TSNode) -> List[Node]:
        return [self._convert_decorator(child) for child in self._children_of_type(ts_node, 'decorator')]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _convert(self, ts_node: TSNode) -> Optional[Node]:
        kind = ts_node.type
        if kind in DROPPED_KINDS:
            return None
        if kind in TYPE_KINDS or kind.endswith('_type'):
            return self._convert_type(ts_node)
        if kind in FUNCTION_DECLARATION_KINDS:
            return self._convert_function_declaration(ts_node)
        if kind in FUNCTION_EXPRESSION_KINDS:
            return self._convert_function_expression(ts_node)
        if kind in METHOD_SIGNATURE_KINDS:
            return self._convert_method_definition(ts_node)
        if kind in PARAMETER_KINDS:
            return self._convert_parameter(ts_node)
        if kind in ('lexical_declaration', 'variable_declaration'):
            return self._convert_variable_declaration(ts_node)
        if kind in ('class_declaration', 'abstract_class_declaration'):
            return self._convert_class_node(ts_node, ClassDeclaration)

        converter = getattr(self, f'_convert_{kind}', None)
        if converter is not None:
            return converter(ts_node)
        return self._at(GenericNode(kind=kind, children=self._convert_children(ts_node)), ts_node)

    # ------------------------------------------------------------------
    # Identifiers and blocks
    # ------------------------------------------------------------------

    def _convert_identifier(self, ts_node: TSNode) -> Identifier:
        return self._identifier(ts_node)

    def _convert_shorthand_property_identifier(self, ts_node: TSNode) -> Identifier:
        # { value } in an object literal reads the binding "value"
        return self._identifier(ts_node)

    def _convert_statement_block(self, ts_node: TSNode) -> BlockStatement:
        return self._at(BlockStatement(body=self._convert_children(ts_node)), ts_node)

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def _convert_import_statement(self, ts_node: TSNode) -> ImportDeclaration:
        source_node = ts_node.child_by_field_name('source')
        source = self._text(source_node).strip('"\'`') if source_node else ''
        specifiers: List[Node] = []

        clause = self._first_child_of_type(ts_node, 'import_clause')
        if clause is not None:
            for child in clause.named_children:
                # import x from 'mod'
                if child.type == 'identifier':
                    specifiers.append(self._at(
                        ImportDefaultSpecifier(local=self._identifier(child)), child))

                # import * as ns from 'mod'
                elif child.type == 'namespace_import':
                    name_node = self._first_child_of_type(child, 'identifier')
                    if name_node is not None:
                        specifiers.append(self._at(
                            ImportNamespaceSpecifier(local=self._identifier(name_node)), child))

                # import { x, y as z } from 'mod'
                elif child.type == 'named_imports':
                    for specifier in self._children_of_type(child, 'import_specifier'):
                        name_node = specifier.child_by_field_name('name')
                        alias_node = specifier.child_by_field_name('alias')
                        if name_node is None:
                            continue
                        local_node = alias_node if alias_node is not None else name_node
                        specifiers.append(self._at(ImportSpecifier(
                            local=self._identifier(local_node),
                            imported=self._text(name_node).strip('"\''),
                        ), specifier))

        # import x = require('mod')
        require_clause = self._first_child_of_type(ts_node, 'import_require_clause')
        if require_clause is not None:
            name_node = self._first_child_of_type(require_clause, 'identifier')
            if name_node is not None:
                specifiers.append(self._at(
                    ImportDefaultSpecifier(local=self._identifier(name_node)), require_clause))
                string_node = self._first_child_of_type(require_clause, 'string')
                if string_node is not None and not source:
                    source = self._text(string_node).strip('"\'`')

        import_kind = 'type' if self._has_token(ts_node, 'type') else 'value'
        return self._at(ImportDeclaration(source=source, specifiers=specifiers,
                                          import_kind=import_kind), ts_node)

    def _convert_export_statement(self, ts_node: TSNode) -> Node:
        decorators = self._decorators(ts_node)
        declaration_node = ts_node.child_by_field_name('declaration')
        declaration = self._convert(declaration_node) if declaration_node is not None else None

        # @Component({...}) export class Foo {} puts the decorators on the export
        if decorators and isinstance(declaration, (ClassDeclaration, ClassExpression)):
            declaration.decorators = decorators + declaration.decorators

        if self._has_token(ts_node, 'default'):
            if declaration is None:
                value_node = ts_node.child_by_field_name('value')
                if value_node is None:
                    named = [c for c in ts_node.named_children if c.type != 'decorator']
                    value_node = named[0] if named else None
                declaration = self._convert(value_node) if value_node is not None else None
            if declaration is None:
                declaration = self._at(GenericNode(kind='export_default'), ts_node)
            return self._at(ExportDefaultDeclaration(declaration=declaration), ts_node)

        specifiers: List[Node] = []
        # export { a } from './mod' re-exports without touching local bindings
        if declaration is None and ts_node.child_by_field_name('source') is None:
            for clause in self._children_of_type(ts_node, 'export_clause'):
                for specifier in self._children_of_type(clause, 'export_specifier'):
                    name_node = specifier.child_by_field_name('name')
                    if name_node is not None and name_node.type == 'identifier':
                        specifiers.append(self._identifier(name_node))
            # export = value
            for child in ts_node.named_children:
                if child.type not in ('export_clause', 'decorator', 'string', 'comment'):
                    node = self._convert(child)
                    if node is not None:
                        specifiers.append(node)
        return self._at(ExportNamedDeclaration(declaration=declaration, specifiers=specifiers), ts_node)

    # ------------------------------------------------------------------
    # Variables and patterns
    # ------------------------------------------------------------------

    def _convert_variable_declaration(self, ts_node: TSNode) -> VariableDeclaration:
        kind_node = ts_node.child_by_field_name('kind')
        if kind_node is not None:
            kind = self._text(kind_node)
        else:
            kind = ts_node.children[0].type if ts_node.children else 'var'
            if kind not in ('let', 'const', 'var'):
                kind = 'var'

        declarations = []
        for declarator in self._children_of_type(ts_node, 'variable_declarator'):
            name_node = declarator.child_by_field_name('name')
            if name_node is None:
                continue
            binding = self._convert_pattern(name_node)
            type_node = declarator.child_by_field_name('type')
            if type_node is not None:
                self._attach_type_annotation(binding, self._convert_type_annotation(type_node))
            value_node = declarator.child_by_field_name('value')
            init = self._convert(value_node) if value_node is not None else None
            declarations.append(self._at(VariableDeclarator(id=binding, init=init), declarator))

        return self._at(VariableDeclaration(kind=kind, declarations=declarations), ts_node)

    @staticmethod
    def _attach_type_annotation(binding: Node, annotation: Optional[TypeAnnotation]):
        if annotation is None:
            return
        if isinstance(binding, (Identifier, ObjectPattern, ArrayPattern, RestElement)):
            binding.type_annotation = annotation
        elif isinstance(binding, AssignmentPattern):
            TreeConverter._attach_type_annotation(binding.left, annotation)

    def _convert_pattern(self, ts_node: TSNode) -> Node:
        """Convert a binding position (declarator name, parameter, nested pattern)."""
        kind = ts_node.type
        if kind in ('identifier', 'shorthand_property_identifier_pattern', 'this'):
            return self._identifier(ts_node)

        if kind == 'object_pattern':
            properties = []
            for child in ts_node.named_children:
                if child.type == 'pair_pattern':
                    value_node = child.child_by_field_name('value')
                    if value_node is not None:
                        properties.append(self._convert_pattern(value_node))
                elif child.type == 'object_assignment_pattern':
                    left_node = child.child_by_field_name('left')
                    right_node = child.child_by_field_name('right')
                    if left_node is not None:
                        properties.append(self._assignment_pattern(child, left_node, right_node))
                elif child.type != 'comment':
                    properties.append(self._convert_pattern(child))
            return self._at(ObjectPattern(properties=properties), ts_node)

        if kind == 'array_pattern':
            elements = [self._convert_pattern(child) for child in ts_node.named_children
                        if child.type != 'comment']
            return self._at(ArrayPattern(elements=elements), ts_node)

        if kind == 'assignment_pattern':
            left_node = ts_node.child_by_field_name('left')
            right_node = ts_node.child_by_field_name('right')
            if left_node is not None:
                return self._assignment_pattern(ts_node, left_node, right_node)

        if kind == 'rest_pattern':
            target = ts_node.named_children[0] if ts_node.named_children else None
            if target is not None:
                return self._at(RestElement(argument=self._convert_pattern(target)), ts_node)

        # member_expression targets and anything unexpected
        converted = self._convert(ts_node)
        if converted is None:
            converted = self._at(GenericNode(kind=kind), ts_node)
        return converted

    def _assignment_pattern(self, ts_node: TSNode, left_node: TSNode,
                            right_node: Optional[TSNode]) -> AssignmentPattern:
        right = self._convert(right_node) if right_node is not None else None
        if right is None:
            right = self._at(GenericNode(kind='default'), ts_node)
        return self._at(AssignmentPattern(left=self._convert_pattern(left_node), right=right), ts_node)

    # ------------------------------------------------------------------
    # Functions and parameters
    # ------------------------------------------------------------------

    def _parameters(self, ts_node: TSNode) -> List[Node]:
        single = ts_node.child_by_field_name('parameter')
        if single is not None:
            return [self._convert_pattern(single)]
        parameters_node = ts_node.child_by_field_name('parameters')
        if parameters_node is None:
            parameters_node = self._first_child_of_type(ts_node, 'formal_parameters')
        if parameters_node is None:
            return []
        return self._parameters_from_list(parameters_node)

    def _convert_formal_parameters(self, ts_node: TSNode) -> GenericNode:
        # Parameter lists outside functions, e.g. in function types
        return self._at(GenericNode(kind='formal_parameters', children=self._parameters_from_list(ts_node)), ts_node)

    def _parameters_from_list(self, parameters_node: TSNode) -> List[Node]:
        return [self._convert_parameter(child) if child.type in PARAMETER_KINDS else self._convert_pattern(child)
                for child in parameters_node.named_children if child.type != 'comment']

    def _convert_parameter(self, ts_node: TSNode) -> Node:
        """Convert required_parameter / optional_parameter.

        Decorators end up on the outermost parameter node so that
        ``@Inject(TOKEN) private readonly svc: Service`` keeps them on the
        ParameterProperty and ``@Body() dto: Dto`` keeps them on the Identifier.
        """
        decorators = self._decorators(ts_node)
        accessibility_node = self._first_child_of_type(ts_node, 'accessibility_modifier')
        readonly = self._has_token(ts_node, 'readonly')

        pattern_node = ts_node.child_by_field_name('pattern')
        if pattern_node is None:
            pattern_node = ts_node.child_by_field_name('name')
        if pattern_node is None:
            skipped = ('decorator', 'accessibility_modifier', 'override_modifier', 'type_annotation', 'comment')
            candidates = [child for child in ts_node.named_children if child.type not in skipped]
            pattern_node = candidates[0] if candidates else None
        if pattern_node is None:
            return self._at(GenericNode(kind=ts_node.type), ts_node)

        param = self._convert_pattern(pattern_node)
        type_node = ts_node.child_by_field_name('type')
        if type_node is None:
            type_node = self._first_child_of_type(ts_node, 'type_annotation')
        if type_node is not None:
            self._attach_type_annotation(param, self._convert_type_annotation(type_node))
        if ts_node.type == 'optional_parameter' and isinstance(param, Identifier):
            param.optional = True

        value_node = ts_node.child_by_field_name('value')
        if value_node is not None and not isinstance(param, AssignmentPattern):
            value = self._convert(value_node)
            if value is None:
                # literals, `this` and other dropped kinds
                value = self._at(GenericNode(kind='default'), value_node)
            param = self._at(AssignmentPattern(left=param, right=value), ts_node)

        if accessibility_node is not None or readonly:
            accessibility = self._text(accessibility_node) if accessibility_node is not None else None
            return self._at(ParameterProperty(parameter=param, accessibility=accessibility,
                                              readonly=readonly, decorators=decorators), ts_node)

        if decorators:
            param.decorators = decorators + param.decorators
        return param

    def _return_type(self, ts_node: TSNode) -> Optional[TypeAnnotation]:
        return_node = ts_node.child_by_field_name('return_type')
        if return_node is None:
            return None
        if return_node.type == 'type_annotation':
            return self._convert_type_annotation(return_node)
        # asserts / type predicate annotations: keep the subtree, resolve nothing in it
        return self._at(TypeAnnotation(type_annotation=self._at(
            UnknownType(kind=return_node.type, children=self._convert_children(return_node)), return_node)),
            return_node)

    def _body(self, ts_node: TSNode) -> Optional[Node]:
        body_node = ts_node.child_by_field_name('body')
        return self._convert(body_node) if body_node is not None else None

    def _convert_function_declaration(self, ts_node: TSNode) -> FunctionDeclaration:
        name_node = ts_node.child_by_field_name('name')
        return self._at(FunctionDeclaration(
            id=self._identifier(name_node) if name_node is not None else None,
            params=self._parameters(ts_node),
            return_type=self._return_type(ts_node),
            body=self._body(ts_node),
            is_async=self._has_token(ts_node, 'async'),
        ), ts_node)

    def _convert_function_expression(self, ts_node: TSNode) -> FunctionExpression:
        name_node = ts_node.child_by_field_name('name')
        return self._at(FunctionExpression(
            id=self._identifier(name_node) if name_node is not None else None,
            params=self._parameters(ts_node),
            return_type=self._return_type(ts_node),
            body=self._body(ts_node),
            is_async=self._has_token(ts_node, 'async'),
        ), ts_node)

    def _convert_arrow_function(self, ts_node: TSNode) -> ArrowFunctionExpression:
        return self._at(ArrowFunctionExpression(
            params=self._parameters(ts_node),
            return_type=self._return_type(ts_node),
            body=self._body(ts_node),
            is_async=self._has_token(ts_node, 'async'),
        ), ts_node)

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _convert_class_node(self, ts_node: TSNode, node_class) -> Node:
        name_node = ts_node.child_by_field_name('name')
        super_class = None
        implements: List[ClassImplements] = []

        heritage = self._first_child_of_type(ts_node, 'class_heritage')
        if heritage is not None:
            for clause in heritage.named_children:
                if clause.type == 'extends_clause':
                    value_node = clause.child_by_field_name('value')
                    if value_node is None and clause.named_children:
                        value_node = clause.named_children[0]
                    if value_node is not None:
                        super_class = self._convert(value_node)
                elif clause.type == 'implements_clause':
                    for entry in clause.named_children:
                        if entry.type != 'comment':
                            implements.append(self._implements_entry(entry))
                else:
                    # plain JavaScript heritage: class A extends B
                    super_class = self._convert(clause)

        body_node = ts_node.child_by_field_name('body')
        if body_node is None:
            body_node = self._first_child_of_type(ts_node, 'class_body')
        body = self._convert_class_body(body_node) if body_node is not None else ClassBody()

        node = node_class(
            id=self._identifier(name_node) if name_node is not None else None,
            body=body,
            super_class=super_class,
            implements=implements,
            decorators=self._decorators(ts_node),
        )
        if isinstance(node, ClassDeclaration):
            node.abstract = ts_node.type == 'abstract_class_declaration'
        return self._at(node, ts_node)

    def _convert_class(self, ts_node: TSNode) -> ClassExpression:
        return self._convert_class_node(ts_node, ClassExpression)

    def _implements_entry(self, ts_node: TSNode) -> ClassImplements:
        kind = ts_node.type
        if kind == 'type_identifier':
            return self._at(ClassImplements(id=self._identifier(ts_node)), ts_node)

        if kind == 'generic_type':
            name_node = ts_node.child_by_field_name('name')
            if name_node is None and ts_node.named_children:
                name_node = ts_node.named_children[0]
            arguments_node = ts_node.child_by_field_name('type_arguments')
            type_arguments = self._convert_children(arguments_node) if arguments_node is not None else []
            entry_id = None
            if name_node is not None:
                entry_id = (self._identifier(name_node) if name_node.type == 'type_identifier'
                            else self._qualified_name(name_node))
            return self._at(ClassImplements(id=entry_id, type_arguments=type_arguments), ts_node)

        if kind == 'nested_type_identifier':
            return self._at(ClassImplements(id=self._qualified_name(ts_node)), ts_node)

        # object types and other shapes carry no identifier
        return self._at(ClassImplements(id=None, type_arguments=[self._convert_type(ts_node)]), ts_node)

    def _convert_class_body(self, ts_node: TSNode) -> ClassBody:
        members: List[Node] = []
        pending: List[Node] = []
        for child in ts_node.named_children:
            # tree-sitter emits method decorators as siblings before the method
            if child.type == 'decorator':
                pending.append(self._convert_decorator(child))
                continue
            member = self._convert(child)
            if member is None:
                continue
            if pending and isinstance(member, DECORATABLE_MEMBERS):
                member.decorators = pending + member.decorators
                pending = []
            members.append(member)
        # decorators with nothing to attach to still hold value references
        members.extend(pending)
        return self._at(ClassBody(body=members), ts_node)

    def _convert_method_definition(self, ts_node: TSNode) -> MethodDefinition:
        name_node = ts_node.child_by_field_name('name')
        key = self._text(name_node) if name_node is not None else ''
        if key == 'constructor':
            kind = 'constructor'
        elif self._has_token(ts_node, 'get'):
            kind = 'get'
        elif self._has_token(ts_node, 'set'):
            kind = 'set'
        else:
            kind = 'method'

        value = self._at(FunctionExpression(
            params=self._parameters(ts_node),
            return_type=self._return_type(ts_node),
            body=self._body(ts_node),
            is_async=self._has_token(ts_node, 'async'),
        ), ts_node)
        return self._at(MethodDefinition(
            key=key,
            value=value,
            kind=kind,
            decorators=self._decorators(ts_node),
            static=self._has_token(ts_node, 'static'),
        ), ts_node)

    def _convert_public_field_definition(self, ts_node: TSNode) -> ClassProperty:
        name_node = ts_node.child_by_field_name('name')
        if name_node is None:
            name_node = ts_node.child_by_field_name('property')
        type_node = ts_node.child_by_field_name('type')
        if type_node is None:
            type_node = self._first_child_of_type(ts_node, 'type_annotation')
        value_node = ts_node.child_by_field_name('value')
        return self._at(ClassProperty(
            key=self._text(name_node) if name_node is not None else '',
            value=self._convert(value_node) if value_node is not None else None,
            type_annotation=self._convert_type_annotation(type_node) if type_node is not None else None,
            decorators=self._decorators(ts_node),
            static=self._has_token(ts_node, 'static'),
        ), ts_node)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _convert_decorator(self, ts_node: TSNode) -> Decorator:
        expression = None
        for child in ts_node.named_children:
            expression = self._convert(child)
            if expression is not None:
                break
        if expression is None:
            expression = self._at(GenericNode(kind='decorator_expression'), ts_node)
        return self._at(Decorator(expression=expression), ts_node)

    def _arguments(self, ts_node: TSNode) -> List[Node]:
        arguments_node = ts_node.child_by_field_name('arguments')
        if arguments_node is None:
            return []
        if arguments_node.type == 'arguments':
            return self._convert_children(arguments_node)
        # tagged template: tag`text ${value}`
        converted = self._convert(arguments_node)
        return [converted] if converted is not None else []

    def _convert_call_expression(self, ts_node: TSNode) -> Node:
        function_node = ts_node.child_by_field_name('function')
        callee = self._convert(function_node) if function_node is not None else None
        if callee is None:
            # import('./mod') and super(...)
            return self._at(GenericNode(kind='call_expression', children=self._arguments(ts_node)), ts_node)
        return self._at(CallExpression(callee=callee, arguments=self._arguments(ts_node)), ts_node)

    def _convert_new_expression(self, ts_node: TSNode) -> Node:
        constructor_node = ts_node.child_by_field_name('constructor')
        callee = self._convert(constructor_node) if constructor_node is not None else None
        if callee is None:
            return self._at(GenericNode(kind='new_expression', children=self._arguments(ts_node)), ts_node)
        return self._at(NewExpression(callee=callee, arguments=self._arguments(ts_node)), ts_node)

    def _convert_member_expression(self, ts_node: TSNode) -> Node:
        object_node = ts_node.child_by_field_name('object')
        property_node = ts_node.child_by_field_name('property')
        target = self._convert(object_node) if object_node is not None else None
        if target is None or property_node is None:
            # this.x, super.x
            children = [target] if target is not None else []
            return self._at(GenericNode(kind='member_expression', children=children), ts_node)
        return self._at(MemberExpression(object=target, property=self._text(property_node)), ts_node)

    def _convert_pair(self, ts_node: TSNode) -> GenericNode:
        # Only computed keys ({[key]: value}) can reference bindings
        children = []
        key_node = ts_node.child_by_field_name('key')
        if key_node is not None and key_node.type == 'computed_property_name':
            key = self._convert(key_node)
            if key is not None:
                children.append(key)
        value_node = ts_node.child_by_field_name('value')
        if value_node is not None:
            value = self._convert(value_node)
            if value is not None:
                children.append(value)
        return self._at(GenericNode(kind='pair', children=children), ts_node)

    # ------------------------------------------------------------------
    # Type-only declarations and type operands
    # ------------------------------------------------------------------

    def _convert_type_alias_declaration(self, ts_node: TSNode) -> GenericNode:
        # type Alias = Target; the alias name itself is not a value binding
        children = []
        value_node = ts_node.child_by_field_name('value')
        if value_node is not None:
            children.append(self._convert_type_annotation(value_node))
        return self._at(GenericNode(kind='type_alias_declaration', children=children), ts_node)

    def _convert_interface_declaration(self, ts_node: TSNode) -> GenericNode:
        children: List[Node] = []
        for child in ts_node.named_children:
            if child.type == 'extends_type_clause':
                children.extend(self._convert_type_annotation(entry)
                                for entry in child.named_children if entry.type != 'comment')
            elif child.type in ('interface_body', 'object_type'):
                children.append(self._convert_type(child))
        return self._at(GenericNode(kind='interface_declaration', children=children), ts_node)

    def _convert_as_expression(self, ts_node: TSNode) -> GenericNode:
        # value as Type / value satisfies Type
        named = [child for child in ts_node.named_children if child.type != 'comment']
        children: List[Node] = []
        if named:
            expression = self._convert(named[0])
            if expression is not None:
                children.append(expression)
            children.extend(self._convert_type_annotation(type_node) for type_node in named[1:])
        return self._at(GenericNode(kind=ts_node.type, children=children), ts_node)

    _convert_satisfies_expression = _convert_as_expression

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def _convert_type_annotation(self, ts_node: TSNode) -> Optional[TypeAnnotation]:
        if ts_node.type != 'type_annotation':
            return self._at(TypeAnnotation(type_annotation=self._convert_type(ts_node)), ts_node)
        inner = [child for child in ts_node.named_children if child.type != 'comment']
        if not inner:
            return None
        return self._at(TypeAnnotation(type_annotation=self._convert_type(inner[0])), ts_node)

    def _qualified_name(self, ts_node: TSNode) -> Node:
        """Convert nested_type_identifier / nested_identifier into QualifiedName chains."""
        if ts_node.type in ('identifier', 'type_identifier'):
            return self._identifier(ts_node)
        module_node = ts_node.child_by_field_name('module')
        name_node = ts_node.child_by_field_name('name')
        named = ts_node.named_children
        if module_node is None and named:
            module_node = named[0]
        if name_node is None and len(named) > 1:
            name_node = named[-1]
        left = self._qualified_name(module_node) if module_node is not None else self._at(
            GenericNode(kind='module'), ts_node)
        right = self._text(name_node) if name_node is not None else ''
        return self._at(QualifiedName(left=left, right=right), ts_node)

    def _convert_type(self, ts_node: TSNode) -> Node:
        kind = ts_node.type

        if kind == 'type_identifier':
            return self._at(TypeReference(type_name=self._identifier(ts_node)), ts_node)

        if kind == 'nested_type_identifier':
            return self._at(TypeReference(type_name=self._qualified_name(ts_node)), ts_node)

        if kind == 'generic_type':
            name_node = ts_node.child_by_field_name('name')
            if name_node is None and ts_node.named_children:
                name_node = ts_node.named_children[0]
            arguments_node = ts_node.child_by_field_name('type_arguments')
            if arguments_node is None:
                arguments_node = self._first_child_of_type(ts_node, 'type_arguments')
            type_arguments = self._convert_children(arguments_node) if arguments_node is not None else []
            if name_node is None:
                return self._at(UnknownType(kind=kind, children=type_arguments), ts_node)
            if name_node.type == 'type_identifier':
                type_name = self._identifier(name_node)
            else:
                type_name = self._qualified_name(name_node)
            return self._at(TypeReference(type_name=type_name, type_arguments=type_arguments), ts_node)

        if kind == 'array_type':
            inner = [child for child in ts_node.named_children if child.type != 'comment']
            if not inner:
                return self._at(UnknownType(kind=kind), ts_node)
            # Foo[] is encoded as a reference whose name is the array wrapper
            array = self._at(ArrayType(element_type=self._convert_type(inner[0])), ts_node)
            return self._at(TypeReference(type_name=array), ts_node)

        if kind in ('union_type', 'intersection_type'):
            node_class = UnionType if kind == 'union_type' else IntersectionType
            return self._at(node_class(types=self._flatten_members(ts_node, kind)), ts_node)

        if kind == 'parenthesized_type':
            inner = [child for child in ts_node.named_children if child.type != 'comment']
            if len(inner) == 1:
                return self._convert_type(inner[0])

        if kind == 'predefined_type':
            return self._at(KeywordType(keyword=self._text(ts_node)), ts_node)

        if kind == 'literal_type':
            return self._at(LiteralType(value=self._text(ts_node)), ts_node)

        if kind == 'tuple_type':
            return self._at(TupleType(element_types=self._convert_children(ts_node)), ts_node)

        return self._at(UnknownType(kind=kind, children=self._convert_children(ts_node)), ts_node)

    def _flatten_members(self, ts_node: TSNode, kind: str) -> List[Node]:
        """``A | B | C`` parses as nested binary nodes; collect them into one list."""
        members = []
        for child in ts_node.named_children:
            if child.type == kind:
                members.extend(self._flatten_members(child, kind))
            elif child.type != 'comment':
                members.append(self._convert_type(child))
        return members
