"""Integration tests: parse, build scopes, run the annotation rule, detect unused bindings.

CRITICAL: Bindings referenced only from type annotations, return types, decorators
or implements lists must end up PROTECTED, never reported as unused.
"""
import pytest

from src.analyzer.converter import TreeConverter
from src.analyzer.linter import Linter, RuleContext, RULES
from src.analyzer.nodes import CallExpression, ClassBody, Decorator, Identifier, MethodDefinition, Program, walk
from src.analyzer.parser import LanguageParser
from src.analyzer.scope import ScopeManager
from src.analyzer.ts_usage import TypeScriptUsageRule
from src.analyzer.unused_detector import PROTECTION_REASON, UnusedBindingDetector


def lint(code: bytes, annotation_pass: bool = True, file_path: str = 'sample.ts', **detector_options):
    linter = Linter(rules=None if annotation_pass else [])
    result = linter.verify(code, file_path)
    return result, UnusedBindingDetector(**detector_options).detect(result)


def module_variable(result, name):
    module = result.scope_manager.global_scope.child_scopes[0]
    assert module.kind == 'module'
    return module.variables[name]


def names(bindings):
    return {binding.name for binding in bindings}


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

SCENARIO_A = b"""
import { Component, OnInit } from '@angular/core';

@Component({ selector: 'app-widget' })
export class WidgetComponent implements OnInit {
  ngOnInit() {}
}
"""


def test_scenario_a_decorator_factory_and_implements():
    result, report = lint(SCENARIO_A)

    assert module_variable(result, 'Component').used
    assert module_variable(result, 'OnInit').used
    assert report.unused == [], f"Nothing should be unused: {report.unused}"
    assert names(report.protected) == {'Component', 'OnInit'}


def test_scenario_a_baseline_reports_both_imports():
    """Without the annotation rule both imports look unused."""
    _, report = lint(SCENARIO_A, annotation_pass=False)
    assert names(report.unused) == {'Component', 'OnInit'}
    assert report.protected == []


SCENARIO_B = b"""
import { Observable } from 'rxjs';
import { User } from './user';

export function loadUsers(): Observable<User[]> {
  return fetchAll();
}
"""


def test_scenario_b_generic_return_type_with_array_element():
    result, report = lint(SCENARIO_B)

    assert module_variable(result, 'Observable').used
    assert module_variable(result, 'User').used
    assert report.unused == []
    assert all(binding.protected_by == PROTECTION_REASON for binding in report.protected)


def test_top_level_annotation_resolves_through_global_scope():
    """`let x: Foo` at the top level starts from the synthetic global scope."""
    result, report = lint(b"""
import { Settings } from './settings';
export let current: Settings | null = null;
""")
    assert module_variable(result, 'Settings').used
    assert names(report.protected) == {'Settings'}


def test_shadowed_outer_import_is_also_marked():
    result, _ = lint(b"""
import { Item } from './item';

export function build() {
  interface Local {}
  const Item = 1;
  const make = (): Item => Item;
  return make;
}
""")
    assert module_variable(result, 'Item').used, \
        "The annotation pass marks every same-named binding up the chain"


def test_unrelated_function_binding_is_marked_from_the_top_level():
    """A top-level annotation descends from the global scope through first children only."""
    result, report = lint(b"""
import { Item } from './item';

function first() {
  const Item = 1;
}

export let current: Item;
""")
    first_scope = result.scope_manager.global_scope.child_scopes[0].child_scopes[0]
    assert first_scope.kind == 'function'

    assert module_variable(result, 'Item').used
    assert first_scope.variables['Item'].used, \
        "The first function scope lies on the descent path and is marked too"
    assert 'Item' not in names(report.unused)


# ---------------------------------------------------------------------------
# Type positions
# ---------------------------------------------------------------------------

def test_union_intersection_and_generic_annotations():
    _, report = lint(b"""
import { A, B, C, D, E } from './types';

export function pick(value: (A & B) | C, list: Array<D[]>): E {
  return value as any;
}
""")
    assert report.unused == []
    assert names(report.protected) == {'A', 'B', 'C', 'D', 'E'}


def test_class_property_type_and_parameter_property():
    _, report = lint(b"""
import { Logger } from './logger';
import { HttpClient } from './http';

export class Api {
  private logger: Logger;
  constructor(private readonly http: HttpClient) {}
}
""")
    assert report.unused == []
    assert names(report.protected) == {'Logger', 'HttpClient'}


def test_type_alias_and_as_expression_are_annotation_positions():
    _, report = lint(b"""
import { Foo } from './foo';
import { Bar } from './bar';

type Handler = Foo;
export const value = (input as Bar);
""")
    assert 'Foo' in names(report.protected)
    assert 'Bar' in names(report.protected)


def test_keyword_and_literal_types_do_not_protect_anything():
    _, report = lint(b"""
import { Unused } from './unused';
export let mode: 'on' | 'off' = 'on';
export let count: number = 0;
""")
    assert names(report.unused) == {'Unused'}


def test_qualified_type_name_does_not_protect_namespace_import():
    _, report = lint(b"""
import * as models from './models';
export let user: models.User;
""")
    assert names(report.unused) == {'models'}


# ---------------------------------------------------------------------------
# Decorators
# ---------------------------------------------------------------------------

def test_member_and_parameter_decorators():
    _, report = lint(b"""
import { Controller, Get, Param, Injectable, Inject, TOKEN } from './framework';

@Controller
export class UsersController {
  @Get('/:id')
  find(@Param('id') id: string) {}

  @Inject(TOKEN) token: string;
}
""")
    # TOKEN is a decorator argument, an ordinary value reference
    assert names(report.unused) == {'Injectable'}
    assert names(report.protected) == {'Controller', 'Get', 'Param', 'Inject'}


def test_object_literal_method_return_type_is_still_marked():
    """Object literal methods skip decorator marking but keep the return-type path."""
    result, report = lint(b"""
import { Helper } from './helper';
export const handlers = {
  run(input): Helper { return input; }
};
""")
    assert module_variable(result, 'Helper').used
    assert names(report.protected) == {'Helper'}


def test_object_literal_method_parameter_decorators_are_not_marked():
    """Only class members have their decorators marked, even when a parameter carries one."""
    code = b"""
import { Inject } from './di';
export const handlers = {
  run(input) { return input; }
};
"""
    program = TreeConverter(code).convert(LanguageParser('typescript').parse_source(code))
    scope_manager = ScopeManager.analyze(program)
    method = next(node for node in walk(program) if isinstance(node, MethodDefinition))
    assert not isinstance(method.parent, ClassBody)
    method.value.params[0].decorators.append(
        Decorator(expression=CallExpression(callee=Identifier(name='Inject'))))

    context = RuleContext(scope_manager, 'handlers.ts')
    handlers = {node_type: [handler] for node_type, handler in TypeScriptUsageRule(context).create().items()}
    Linter._traverse(program, handlers, context)

    inject = scope_manager.global_scope.child_scopes[0].variables['Inject']
    assert not inject.used, "Decorators outside a class body must be left alone"


def test_method_handler_checks_immediate_parent(monkeypatch):
    """The MethodDefinition handler sees the real ancestors from the traversal."""
    seen = []
    original = TypeScriptUsageRule.on_method_definition

    def spy(self, node):
        seen.append(type(self.context.get_ancestors()[-1]))
        return original(self, node)

    monkeypatch.setattr(TypeScriptUsageRule, 'on_method_definition', spy)
    lint(b"""
export class A { run() {} }
export const b = { run() {} };
""")
    assert ClassBody in seen
    assert len(seen) == 2


# ---------------------------------------------------------------------------
# Detector policy
# ---------------------------------------------------------------------------

def test_value_references_are_plain_uses():
    _, report = lint(b"""
import { format } from './format';
export const label = format('x');
""")
    assert report.unused == []
    assert report.protected == []


def test_exported_and_ignored_names_are_not_reported():
    _, report = lint(b"""
import { _internal } from './internal';
export const publicValue = 1;
const localValue = 2;
""")
    assert names(report.unused) == {'localValue'}


def test_parameters_only_reported_when_enabled():
    code = b"export function handle(event, context) { return event; }"
    _, default_report = lint(code)
    _, param_report = lint(code, report_parameters=True)

    assert default_report.unused == []
    assert names(param_report.unused) == {'context'}


def test_report_locations_are_sorted():
    _, report = lint(b"const first = 1;\nconst second = 2;\n")
    assert [(b.name, b.line) for b in report.unused] == [('first', 1), ('second', 2)]


def test_invalid_ignore_pattern():
    with pytest.raises(ValueError, match="Invalid ignore pattern"):
        UnusedBindingDetector(ignore_pattern='(')


# ---------------------------------------------------------------------------
# Host
# ---------------------------------------------------------------------------

def test_unknown_rule_id():
    with pytest.raises(ValueError, match="Unknown rule"):
        Linter(rules=['no-such-rule'])


def test_registry():
    assert RULES == {'typescript/no-unused-vars': TypeScriptUsageRule}


def test_rule_context_scope_lookup():
    program = Program(body=[])
    manager = ScopeManager.analyze(program)
    context = RuleContext(manager, 'a.ts')

    context._enter(program)
    identifier = Identifier(name='x')
    context._enter(identifier)

    assert context.get_scope() is manager.global_scope
    assert context.get_ancestors() == [program]


def test_verify_file(tmp_path):
    source = tmp_path / 'widget.tsx'
    source.write_text("import { Props } from './props';\n"
                      "export const View = (props: Props) => <div>{props.name}</div>;\n")

    result = Linter().verify_file(source)
    assert result is not None
    assert result.file_path == str(source)
    assert module_variable(result, 'Props').used
    assert result.has_syntax_errors is False


def test_verify_missing_file(tmp_path):
    assert Linter().verify_file(tmp_path / 'missing.ts') is None


def test_syntax_errors_are_flagged_but_analysis_continues():
    result, report = lint(b"import { Gone } from './gone';\nconst = ;\n")
    assert result.has_syntax_errors is True
    assert names(report.unused) == {'Gone'}, "Declarations before the error are still analyzed"
