"""CLI tests for the audit, scopes and version commands."""
import pytest
from typer.testing import CliRunner

import src.config as config_module
from src.main import app, discover_files

runner = CliRunner()

WIDGET = """import { Component, OnInit } from '@angular/core';
import { Unused } from './unused';

@Component({ selector: 'app-widget' })
export class WidgetComponent implements OnInit {
  ngOnInit() {}
}
"""


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch, tmp_path):
    """Fresh config singleton and a CI-like environment (no progress bar)."""
    monkeypatch.setattr(config_module, '_config', None)
    monkeypatch.setenv('CI', 'true')
    for name in ('TYPEMARK_IGNORE_PATTERN', 'TYPEMARK_REPORT_PARAMETERS',
                 'TYPEMARK_EXCLUDED_DIRS', 'TYPEMARK_VERBOSE'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project(tmp_path):
    (tmp_path / 'src').mkdir()
    (tmp_path / 'src' / 'widget.ts').write_text(WIDGET)
    (tmp_path / 'node_modules' / 'lib').mkdir(parents=True)
    (tmp_path / 'node_modules' / 'lib' / 'index.ts').write_text("const hidden = 1;\n")
    (tmp_path / 'types.d.ts').write_text("declare const ambient: number;\n")
    return tmp_path


def test_discover_files_skips_excluded_dirs_and_declarations(project):
    files = discover_files(project, ['node_modules'])
    assert [f.name for f in files] == ['widget.ts']


def test_audit_reports_unused_bindings(project):
    result = runner.invoke(app, ['audit', str(project)])

    assert result.exit_code == 0, result.output
    assert 'Unused' in result.output
    assert 'Unused bindings: 1' in result.output
    assert 'Protected by annotation usage: 2' in result.output
    assert 'hidden' not in result.output


def test_audit_show_protected(project):
    result = runner.invoke(app, ['audit', str(project), '--show-protected'])

    assert result.exit_code == 0, result.output
    assert 'Protected Bindings' in result.output
    assert 'Component' in result.output
    assert 'OnInit' in result.output


def test_audit_baseline_without_annotation_pass(project):
    result = runner.invoke(app, ['audit', str(project), '--no-annotation-pass'])

    assert result.exit_code == 0, result.output
    assert 'Unused bindings: 3' in result.output
    assert 'Protected by annotation usage' not in result.output


def test_audit_fail_on_unused(project):
    result = runner.invoke(app, ['audit', str(project), '--fail-on-unused'])
    assert result.exit_code == 1


def test_audit_clean_project_passes_fail_on_unused(tmp_path):
    (tmp_path / 'index.ts').write_text("import { run } from './run';\nrun();\n")
    result = runner.invoke(app, ['audit', str(tmp_path), '--fail-on-unused'])

    assert result.exit_code == 0, result.output
    assert 'No unused bindings found!' in result.output


def test_audit_ignore_pattern_option(project):
    result = runner.invoke(app, ['audit', str(project), '--ignore-pattern', '^Unused$'])

    assert result.exit_code == 0, result.output
    assert 'Unused bindings: 0' in result.output


def test_audit_invalid_ignore_pattern(project):
    result = runner.invoke(app, ['audit', str(project), '--ignore-pattern', '('])

    assert result.exit_code == 1
    assert 'Invalid ignore pattern' in result.output


def test_audit_invalid_environment_config(project, monkeypatch):
    monkeypatch.setenv('TYPEMARK_REPORT_PARAMETERS', 'sometimes')
    result = runner.invoke(app, ['audit', str(project)])

    assert result.exit_code == 1
    assert 'Configuration error' in result.output


def test_audit_missing_path(tmp_path):
    result = runner.invoke(app, ['audit', str(tmp_path / 'missing')])

    assert result.exit_code == 1
    assert 'does not exist' in result.output


def test_audit_include_params(tmp_path):
    (tmp_path / 'handler.ts').write_text("export function handle(event, context) { return event; }\n")

    default = runner.invoke(app, ['audit', str(tmp_path)])
    with_params = runner.invoke(app, ['audit', str(tmp_path), '--include-params'])

    assert 'Unused bindings: 0' in default.output
    assert 'Unused bindings: 1' in with_params.output
    assert 'context' in with_params.output


def test_scopes_command(project):
    result = runner.invoke(app, ['scopes', str(project / 'src' / 'widget.ts')])

    assert result.exit_code == 0, result.output
    assert 'global' in result.output
    assert 'module' in result.output
    assert 'Component' in result.output
    assert 'annotation usage' in result.output


def test_scopes_rejects_unsupported_file(tmp_path):
    script = tmp_path / 'script.py'
    script.write_text("print('hi')\n")
    result = runner.invoke(app, ['scopes', str(script)])

    assert result.exit_code == 1
    assert 'Unsupported file type' in result.output


def test_version():
    result = runner.invoke(app, ['version'])

    assert result.exit_code == 0
    assert config_module.__version__ in result.output


def test_audit_warns_about_syntax_errors_and_keeps_going(project):
    (project / 'src' / 'broken.ts').write_text("import { Gone } from './gone';\nconst = ;\n")

    result = runner.invoke(app, ['audit', str(project)])

    assert result.exit_code == 0, result.output
    assert 'Syntax errors' in result.output, "Recovered parses must be reported without --verbose"
    assert 'Files analyzed: 2' in result.output
