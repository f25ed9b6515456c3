import logging
import sys
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from kup_batch.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger("kup_batch")
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in saved_handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(saved_level)


def _write_config(tmp_path: Path, fake_tools, **batch) -> Path:
    payload = {
        "paths": {"work_dir": str(tmp_path / "out"), "logs_root": str(tmp_path / "logs")},
        "generator": {"command": [sys.executable, str(fake_tools.generator_script)]},
        "converter": {"command": [sys.executable, str(fake_tools.converter_script)], "pdf_engine": "fake-tex"},
        "batch": {"periods": ["2025-01", "2025-02"], "name_prefix": "KUP", **batch},
    }
    config_file = tmp_path / "configs" / "settings.yaml"
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(yaml.safe_dump(payload), encoding="utf-8")
    return config_file


def test_run_command_produces_pdfs(tmp_path, fake_tools):
    config_file = _write_config(tmp_path, fake_tools)

    result = runner.invoke(app, ["run", "--config-file", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "periods_total: 2" in result.output
    assert "warnings: 0" in result.output
    assert (tmp_path / "out" / "KUP-2025-01.pdf").exists()
    assert (tmp_path / "out" / "KUP-2025-02.pdf").exists()
    assert not (tmp_path / "out" / "2025-01.txt").exists()
    assert (tmp_path / "logs" / "kup_batch.log").exists()


def test_run_command_exits_zero_when_children_fail(tmp_path, fake_tools):
    config_file = _write_config(tmp_path, fake_tools, periods=["fail-01"])

    result = runner.invoke(app, ["run", "--config-file", str(config_file), "--warn-exit-codes"])

    assert result.exit_code == 0, result.output
    assert "warnings: 2" in result.output
    assert "KUP-fail-01.pdf [missing]" in result.output


def test_run_command_prefix_override_and_dry_run(tmp_path, fake_tools):
    config_file = _write_config(tmp_path, fake_tools)

    result = runner.invoke(
        app,
        ["run", "--config-file", str(config_file), "--prefix", "ALT", "--dry-run"],
    )

    assert result.exit_code == 0, result.output
    assert "2025-01.txt -o ALT-2025-01.pdf --pdf-engine=fake-tex" in result.output
    assert not (tmp_path / "out").exists()
    assert fake_tools.events() == []


def test_run_command_rejects_unknown_log_level(tmp_path, fake_tools):
    config_file = _write_config(tmp_path, fake_tools)

    result = runner.invoke(app, ["run", "--config-file", str(config_file), "--log-level", "LOUD"])

    assert result.exit_code != 0


def test_show_config_dumps_yaml(tmp_path, fake_tools):
    config_file = _write_config(tmp_path, fake_tools)

    result = runner.invoke(app, ["show-config", "--config-file", str(config_file)])

    assert result.exit_code == 0, result.output
    rendered = yaml.safe_load(result.output)
    assert rendered["batch"]["periods"] == ["2025-01", "2025-02"]
    assert rendered["converter"]["pdf_engine"] == "fake-tex"


def test_check_tools_reports_missing_converter(tmp_path, fake_tools):
    config_file = _write_config(tmp_path, fake_tools)
    payload = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    payload["converter"]["command"] = ["definitely-not-an-installed-tool-kup"]
    config_file.write_text(yaml.safe_dump(payload), encoding="utf-8")

    result = runner.invoke(app, ["check-tools", "--config-file", str(config_file)])

    assert result.exit_code == 1
    assert "converter: definitely-not-an-installed-tool-kup [missing]" in result.output


def test_ignore_flag_overrides_warn_policy_from_settings(tmp_path, fake_tools):
    config_file = _write_config(tmp_path, fake_tools, periods=["fail-01"], exit_code_policy="warn")

    from_settings = runner.invoke(app, ["run", "--config-file", str(config_file)])
    overridden = runner.invoke(app, ["run", "--config-file", str(config_file), "--ignore-exit-codes"])

    assert from_settings.exit_code == 0, from_settings.output
    assert "warnings: 2" in from_settings.output
    assert overridden.exit_code == 0, overridden.output
    assert "warnings: 0" in overridden.output
