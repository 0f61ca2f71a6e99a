"""CLI tests using typer's CliRunner."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import write_prompt_file
from promptweave_cli import util
from promptweave_cli.cli import app

runner = CliRunner()

AGE = {"key": "age", "label": "Age", "type": "number", "default": "25"}
TONE = {"key": "tone", "label": "Tone", "type": "select", "options": ["formal", "casual"], "preview": "formal"}


@pytest.fixture(autouse=True)
def _reset_global_config(monkeypatch):
    monkeypatch.setattr(util, "_global_config_file", None)


class TestRender:
    def test_render_with_defaults_and_set(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{name}} is {{age}}.", variables=[AGE])
        result = runner.invoke(app, ["render", str(prompt), "--set", "name=Ada"])
        assert result.exit_code == 0, result.output
        assert result.stdout == "Ada is 25.\n"

    def test_set_value_may_contain_equals(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "Expr: {{expr}}")
        result = runner.invoke(app, ["render", str(prompt), "-s", "expr=a=b"])
        assert result.stdout == "Expr: a=b\n"

    def test_values_file_and_set_precedence(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{a}} {{b}}")
        values = tmp_path / "values.json"
        values.write_text(json.dumps({"a": "file-a", "b": "file-b"}), encoding="utf-8")
        result = runner.invoke(app, ["render", str(prompt), "--values", str(values), "--set", "b=cli-b"])
        assert result.exit_code == 0, result.output
        assert result.stdout == "file-a cli-b\n"

    def test_array_values_from_file(self, tmp_path: Path):
        items = {"key": "items", "label": "Items", "type": "array", "format": "bullet"}
        prompt = write_prompt_file(tmp_path, "Steps:\n{{items}}", variables=[items])
        values = tmp_path / "values.json"
        values.write_text(json.dumps({"items": ["one", "two"]}), encoding="utf-8")
        result = runner.invoke(app, ["render", str(prompt), "--values", str(values)])
        assert result.stdout == "Steps:\n- one\n- two\n"

    def test_preview_values(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, '{{#if (eq tone "formal")}}Dear Sir{{else}}Hey{{/if}}', variables=[TONE])
        assert runner.invoke(app, ["render", str(prompt)]).stdout == "Hey\n"
        assert runner.invoke(app, ["render", str(prompt), "--preview-values"]).stdout == "Dear Sir\n"

    def test_malformed_template_renders_verbatim(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{#if open}}never closed")
        result = runner.invoke(app, ["render", str(prompt)])
        assert result.exit_code == 0
        assert result.stdout == "{{#if open}}never closed\n"

    def test_malformed_template_fails_without_fallback(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{#if open}}never closed")
        config = tmp_path / "strict.toml"
        config.write_text("[engine]\nfallback_on_error = false\n", encoding="utf-8")
        result = runner.invoke(app, ["render", str(prompt), "--config", str(config)])
        assert result.exit_code == 1
        assert "UnmatchedBlockStart" in result.output

    def test_global_config_file_option(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{xs}}")
        config = tmp_path / "newline.toml"
        config.write_text('[engine]\ndefault_format = "newline"\n', encoding="utf-8")
        values = tmp_path / "values.json"
        values.write_text(json.dumps({"xs": ["a", "b"]}), encoding="utf-8")
        result = runner.invoke(
            app, ["--config-file", str(config), "render", str(prompt), "--values", str(values)]
        )
        assert result.exit_code == 0, result.output
        assert result.stdout == "a\nb\n"

    def test_output_file(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "Hi {{name}}")
        out = tmp_path / "out.txt"
        result = runner.invoke(app, ["render", str(prompt), "-s", "name=Bo", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8") == "Hi Bo"

    def test_bad_set_option(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "x")
        result = runner.invoke(app, ["render", str(prompt), "--set", "novalue"])
        assert result.exit_code != 0

    def test_invalid_definition_is_skipped(self, tmp_path: Path):
        bad = {"key": "tone", "label": "Tone", "type": "select"}
        prompt = write_prompt_file(tmp_path, "{{tone}} {{age}}", variables=[bad, AGE])
        result = runner.invoke(app, ["render", str(prompt)])
        assert result.exit_code == 0, result.output
        assert result.stdout == "{{tone}} 25\n"


class TestPreview:
    def test_json_output(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{#if name}}Hi {{name}}{{else}}Hello {{age}}{{/if}}", variables=[AGE])
        result = runner.invoke(app, ["preview", str(prompt), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        (block,) = data["children"]
        assert block["resolved_condition"] is False
        assert block["consequent"]["taken"] is False
        assert block["alternate"]["taken"] is True
        age = block["alternate"]["children"][1]
        assert age["display_state"] == "usingDefault"
        assert age["displayed_value"] == "25"
        assert age["label"] == "Age"

    def test_tree_output(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{#if name}}Hi {{name}}{{/if}}", name="greeting")
        result = runner.invoke(app, ["preview", str(prompt), "-s", "name=Ada"])
        assert result.exit_code == 0, result.output
        assert "greeting" in result.stdout
        assert "#if name" in result.stdout
        assert "hasExplicitValue" in result.stdout

    def test_tree_labels_logical_helper(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{#if (and name draft)}}x{{/if}}")
        result = runner.invoke(app, ["preview", str(prompt), "-s", "name=Ada"])
        assert result.exit_code == 0, result.output
        assert "#if (and name draft)" in result.stdout
        assert "-> false" in result.stdout

    def test_parse_error_exits_nonzero(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{#if a}}x{{else}}y{{else}}z{{/if}}")
        result = runner.invoke(app, ["preview", str(prompt)])
        assert result.exit_code == 1
        assert "Template has errors" in result.output
        assert "MultipleElse" in result.output


class TestVariables:
    def test_json_keys_and_undeclared(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{age}} {{#if city}}{{city}}{{/if}}", variables=[AGE])
        result = runner.invoke(app, ["variables", str(prompt), "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"keys": ["age", "city"], "undeclared": ["city"]}

    def test_sync_json(self, tmp_path: Path):
        stale = {"key": "stale", "label": "Stale"}
        prompt = write_prompt_file(tmp_path, "{{age}} {{new_key}}", variables=[AGE, stale])
        result = runner.invoke(app, ["variables", str(prompt), "--sync", "--json"])
        assert result.exit_code == 0, result.output
        synced = json.loads(result.stdout)
        assert [d["key"] for d in synced] == ["age", "new_key"]
        assert synced[1]["label"] == "New Key"
        assert synced[1]["type"] == "text"

    def test_table_output(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "{{topic}}")
        result = runner.invoke(app, ["variables", str(prompt)])
        assert result.exit_code == 0
        assert "topic" in result.stdout

    def test_no_variables(self, tmp_path: Path):
        prompt = write_prompt_file(tmp_path, "static text")
        result = runner.invoke(app, ["variables", str(prompt)])
        assert "No variables referenced" in result.stdout


class TestConfigCommands:
    def test_show_defaults(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["max_template_bytes"] == 102400

    def test_show_with_env_override(self, monkeypatch):
        monkeypatch.setenv("PROMPTWEAVE_MAX_NESTING_DEPTH", "7")
        result = runner.invoke(app, ["config", "show"])
        assert json.loads(result.stdout)["max_nesting_depth"] == 7

    def test_validate_ok(self, tmp_path: Path):
        config = tmp_path / "ok.toml"
        config.write_text("[engine]\nmax_nesting_depth = 12\n", encoding="utf-8")
        result = runner.invoke(app, ["config", "validate", "--config", str(config)])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.stdout
        assert "Max nesting depth: 12" in result.stdout

    def test_validate_invalid(self, tmp_path: Path):
        config = tmp_path / "bad.toml"
        config.write_text('[engine]\ndefault_format = "csv"\n', encoding="utf-8")
        result = runner.invoke(app, ["config", "validate", "--config", str(config)])
        assert result.exit_code == 1
        assert "validation failed" in result.output

    def test_init_writes_and_refuses_overwrite(self, tmp_path: Path):
        target = tmp_path / "promptweave.toml"
        first = runner.invoke(app, ["config", "init", str(target)])
        assert first.exit_code == 0, first.output
        assert "[engine]" in target.read_text(encoding="utf-8")

        second = runner.invoke(app, ["config", "init", str(target)])
        assert second.exit_code == 1
        assert runner.invoke(app, ["config", "init", str(target), "--force"]).exit_code == 0

    def test_example(self):
        result = runner.invoke(app, ["config", "example"])
        assert "[engine]" in result.stdout
