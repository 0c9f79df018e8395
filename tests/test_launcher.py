"""
Launcher: command per file type, fire-and-forget, missing files
"""
from pathlib import Path

import pytest

from dma_admin.launcher import (
    build_command,
    launch,
    launch_simulator,
    restart_agent,
    start_agent,
    stop_agent,
)


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")
    return path


def test_powershell_script_runs_through_powershell(tmp_path, fake_popen):
    script = _touch(tmp_path / "Start.ps1")

    pid = launch(script)

    assert pid == 4242
    call = fake_popen.calls[0]
    assert call.cmd[0] == "powershell.exe"
    assert call.cmd[-2:] == ["-File", str(script)]
    assert call.cwd == str(tmp_path)


def test_batch_file_runs_through_cmd(tmp_path):
    script = _touch(tmp_path / "stop.BAT")

    assert build_command(script) == ["cmd.exe", "/c", str(script)]


def test_executable_runs_directly_with_args(tmp_path):
    exe = _touch(tmp_path / "Simulator.exe")

    assert build_command(exe, ["--port", 5000]) == [str(exe), "--port", "5000"]


def test_missing_file_raises_without_starting(tmp_path, fake_popen):
    with pytest.raises(FileNotFoundError):
        launch(tmp_path / "nope.ps1")

    assert fake_popen.calls == []


def test_agent_scripts_come_from_config(config, fake_popen):
    for script in (config.start_script, config.stop_script, config.restart_script):
        _touch(Path(script))

    start_agent(config)
    stop_agent(config)
    restart_agent(config)

    launched = [call.cmd[-1] for call in fake_popen.calls]
    assert launched == [config.start_script, config.stop_script, config.restart_script]


def test_simulator_path_override(config, tmp_path, fake_popen):
    _touch(Path(config.simulator_path))
    other = _touch(tmp_path / "Other.exe")

    launch_simulator(config)
    launch_simulator(config, other)

    assert fake_popen.calls[0].cmd == [config.simulator_path]
    assert fake_popen.calls[1].cmd == [str(other)]
