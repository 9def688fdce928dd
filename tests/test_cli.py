"""Tests for the command-line entry point."""

import json

import pytest

from finstatement import __main__ as cli
from finstatement.core.exceptions import RetrievalFailed
from finstatement.core.models import PipelineResult
from finstatement.infrastructure import config as config_module
from finstatement.pipeline import orchestrator


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "hood-10Q.json"
    path.write_text(json.dumps([
        {
            "type": "Table",
            "element_id": "tbl1",
            "text": "Total assets 500",
            "metadata": {
                "filename": "hood-10Q.pdf",
                "text_as_html": "<table><tr><td>Total assets</td><td>500</td></tr></table>",
            },
        }
    ]), encoding="utf-8")
    return path


@pytest.fixture
def captured(monkeypatch):
    """Replace run_pipeline and record what the CLI passes in."""
    calls = {}

    def fake_run_pipeline(elements, config, settings=None, observers=None):
        calls["elements"] = elements
        calls["config"] = config
        calls["settings"] = settings
        if calls.get("error"):
            raise calls["error"]
        return PipelineResult(
            original_content=elements[0].raw_content,
            reformatted_content="<table><tr><th>Total assets</th><td>500</td></tr></table>",
        )

    monkeypatch.setattr(orchestrator, "run_pipeline", fake_run_pipeline)
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
    return calls


ARGS = ["--company", "Robinhood", "--report-type", "Balance Sheet", "--doc-type", "10-Q"]


def test_prints_reformatted_content(export_file, captured, capsys):
    assert cli.main([str(export_file), *ARGS]) == 0
    out = capsys.readouterr().out
    assert "<th>Total assets</th>" in out
    assert captured["config"] == {
        "docName": "hood-10Q.pdf",
        "companyName": "Robinhood",
        "docType": "10-Q",
        "reportType": "Balance Sheet",
    }


def test_json_output_file(export_file, captured, tmp_path):
    output = tmp_path / "result.json"
    assert cli.main([str(export_file), *ARGS, "--json", "--output", str(output)]) == 0
    result = json.loads(output.read_text(encoding="utf-8"))
    assert set(result) == {"original_content", "reformatted_content"}


def test_top_k_override(export_file, captured):
    assert cli.main([str(export_file), *ARGS, "--top-k", "3", "--doc-name", "other.pdf"]) == 0
    assert captured["settings"].vector_index.top_k == 3
    assert captured["config"]["docName"] == "other.pdf"


def test_pipeline_error_exit_code(export_file, captured, capsys):
    captured["error"] = RetrievalFailed("Vector index returned no candidates")
    assert cli.main([str(export_file), *ARGS]) == 1
    assert "RetrievalFailed" in capsys.readouterr().err


def test_missing_file_exit_code(tmp_path, captured):
    assert cli.main([str(tmp_path / "absent.json"), *ARGS]) == 1


def test_invalid_settings_exit_code(export_file, captured, tmp_path, monkeypatch, capsys):
    """Test settings validation runs before the pipeline."""
    (tmp_path / "settings.yaml").write_text("llm:\n  timeout: 0\n", encoding="utf-8")
    app_config = config_module.AppConfig(env="test", config_dir=tmp_path)
    monkeypatch.setattr(config_module, "get_config", lambda env=None: app_config)
    monkeypatch.setattr(config_module, "get_settings", lambda: app_config.settings)

    assert cli.main([str(export_file), *ARGS]) == 1
    assert "ConfigurationError" in capsys.readouterr().err
    assert "config" not in captured
