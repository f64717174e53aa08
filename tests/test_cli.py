from __future__ import annotations

import json
import subprocess

from typer.testing import CliRunner

import talan.cli
from talan.errors import InputDispatchError

MACRO = '/ac "Innovation" <wait.2>\n/ac "Basic Touch" <wait.2>\n/ac "Basic Synthesis" <wait.3>\n'


def _combined_output(result) -> str:
    try:
        return result.stdout + result.stderr
    except Exception:
        return result.stdout


def _completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(args=["x"], returncode=returncode, stdout=stdout, stderr=stderr)


def test_init_creates_config_and_refuses_overwrite(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()

    first = runner.invoke(talan.cli.app, ["init"])
    second = runner.invoke(talan.cli.app, ["init"])
    forced = runner.invoke(talan.cli.app, ["init", "--force"])

    assert first.exit_code == 0
    assert (tmp_path / ".talan_config" / "config.toml").is_file()
    assert second.exit_code == 2
    assert "already exists" in _combined_output(second)
    assert forced.exit_code == 0


def test_craft_requires_project_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "ingot.macro").write_text(MACRO, encoding="utf-8")

    result = CliRunner().invoke(talan.cli.app, ["craft", "ingot.macro", "Bronze Ingot", "--dry-run"])

    assert result.exit_code == 2
    assert "talan init" in _combined_output(result)


def test_craft_dry_run_prints_input_script(isolated_env):
    (isolated_env["workspace"] / "ingot.macro").write_text(MACRO, encoding="utf-8")

    result = CliRunner().invoke(
        talan.cli.app,
        [
            "craft",
            "ingot.macro",
            "Bronze Ingot",
            "-c",
            "2",
            "-g",
            "3",
            "-m",
            "Copper Ore:2",
            "-m",
            "Tin Ore:1",
            "-n",
        ],
    )

    assert result.exit_code == 0
    assert "# Dry run input script" in result.stdout
    assert '/gearset change 3' in result.stdout
    assert '/aaction "Innovation" on' in result.stdout
    assert result.stdout.count('/ac "Basic Synthesis"') == 2
    assert 'type "Bronze Ingot"' in result.stdout
    assert "Success: Done." in result.stdout

    log_file = isolated_env["config_root"] / "logs" / "debug.log.jsonl"
    assert "craft.task.finished" in log_file.read_text(encoding="utf-8")


def test_craft_rejects_bad_macro(isolated_env):
    (isolated_env["workspace"] / "empty.macro").write_text("/echo nothing\n", encoding="utf-8")

    result = CliRunner().invoke(talan.cli.app, ["craft", "empty.macro", "Bronze Ingot", "-n"])

    assert result.exit_code == 2
    assert "no actions found" in _combined_output(result)


def test_craft_rejects_bad_material(isolated_env):
    (isolated_env["workspace"] / "ingot.macro").write_text(MACRO, encoding="utf-8")

    result = CliRunner().invoke(
        talan.cli.app,
        ["craft", "ingot.macro", "Bronze Ingot", "-m", "Copper Ore:0", "-n"],
    )

    assert result.exit_code == 2
    assert "Error:" in _combined_output(result)


def test_craft_reports_missing_target(monkeypatch, isolated_env):
    (isolated_env["workspace"] / "ingot.macro").write_text(MACRO, encoding="utf-8")
    monkeypatch.setattr(
        "talan.input.system_events.subprocess.run",
        lambda *args, **kwargs: _completed(0, stdout="false"),
    )

    result = CliRunner().invoke(talan.cli.app, ["craft", "ingot.macro", "Bronze Ingot"])

    assert result.exit_code == 1
    output = _combined_output(result)
    assert "target window not found" in output
    assert "Success" not in output


def test_batch_dry_run_runs_every_task(isolated_env):
    workspace = isolated_env["workspace"]
    (workspace / "ingot.macro").write_text(MACRO, encoding="utf-8")
    (workspace / "batch.toml").write_text(
        "\n".join(
            [
                "[[tasks]]",
                'item = "Bronze Ingot"',
                'macro = "ingot.macro"',
                "gearset = 2",
                "",
                "[[tasks]]",
                'item = "Iron Ingot"',
                'macro = "ingot.macro"',
                "collectable = true",
                "",
            ]
        ),
        encoding="utf-8",
    )

    result = CliRunner().invoke(talan.cli.app, ["batch", "batch.toml", "--dry-run"])

    assert result.exit_code == 0
    assert 'type "Bronze Ingot"' in result.stdout
    assert 'type "Iron Ingot"' in result.stdout
    assert result.stdout.count('/ac "Collectable Synthesis"') == 2
    # Role actions stay slotted across tasks on the same gearset.
    assert result.stdout.count('/aaction "Innovation" on') == 1


def test_batch_rejects_invalid_task_file(isolated_env):
    (isolated_env["workspace"] / "batch.toml").write_text("[[tasks]]\n", encoding="utf-8")

    result = CliRunner().invoke(talan.cli.app, ["batch", "batch.toml", "-n"])

    assert result.exit_code == 2


def test_doctor_outputs_json(monkeypatch, isolated_env):
    fake_run = lambda *args, **kwargs: _completed(0, stdout="true")
    monkeypatch.setattr("talan.security.permission_probe.subprocess.run", fake_run)
    monkeypatch.setattr("talan.input.system_events.subprocess.run", fake_run)

    result = CliRunner().invoke(talan.cli.app, ["doctor"])

    assert result.exit_code == 0
    parsed = json.loads(result.stdout)
    assert parsed["ok"] is True
    assert parsed["checks"]["target"]["ok"] is True
    assert parsed["target"]["app_name"] == "FINAL FANTASY XIV"
    assert parsed["timings"]["long_action_ms"] == 2200
    assert parsed["logs"]["logs_enabled"] is True
    assert parsed["config_file"].endswith("config.toml")


def test_doctor_requires_project_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(talan.cli.app, ["doctor"])

    assert result.exit_code == 2


def _target_present_but_activate_fails(cmd, *args, **kwargs):
    script = "\n".join(cmd[2::2])
    if "exists" in script:
        return _completed(0, stdout="true")
    if "activate" in script:
        return _completed(1, stderr="application isn't running")
    return _completed(0)


def test_craft_reports_failed_activation(monkeypatch, isolated_env):
    (isolated_env["workspace"] / "ingot.macro").write_text(MACRO, encoding="utf-8")
    monkeypatch.setattr("talan.input.system_events.subprocess.run", _target_present_but_activate_fails)

    result = CliRunner().invoke(talan.cli.app, ["craft", "ingot.macro", "Bronze Ingot"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, InputDispatchError)
    output = _combined_output(result)
    assert "input dispatch failed" in output
    assert "application isn't running" in output


def test_doctor_reports_failed_activation(monkeypatch, isolated_env):
    # Both probes share subprocess.run; the permission query matches neither marker.
    monkeypatch.setattr("talan.input.system_events.subprocess.run", _target_present_but_activate_fails)

    result = CliRunner().invoke(talan.cli.app, ["doctor"])

    assert result.exit_code == 0
    parsed = json.loads(result.stdout)
    assert parsed["ok"] is False
    target = parsed["checks"]["target"]
    assert target["ok"] is False
    assert target["status"] == "error"
    assert "input dispatch failed" in target["detail"]
