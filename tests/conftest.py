"""
pytest fixtures: temporary XML files, a fake PowerShell runner, a fake Popen
"""
import os
import sys
import xml.etree.ElementTree as ET

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dma_admin import adapters, launcher, signing
from dma_admin.config import ENV_PREFIX
from dma_admin.errors import PowerShellError
from dma_admin.schemas import AdminConfig, CommandResult


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep DMA_ADMIN_* variables from the host (or a loaded .env) out of tests"""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key)
    yield
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            del os.environ[key]


@pytest.fixture
def write_xml(tmp_path):
    def _write(text, name="config.xml"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def canonical():
    """Serialized root element, for structural comparison"""
    def _canonical(source):
        if isinstance(source, str) and source.lstrip().startswith("<"):
            return ET.tostring(ET.fromstring(source))
        return ET.tostring(ET.parse(source).getroot())
    return _canonical


@pytest.fixture
def config(tmp_path):
    return AdminConfig(install_dir=str(tmp_path), adapter_names=["Ethernet", "Wi-Fi"])


class FakePowerShell:
    """Records scripts; answers with the first handler whose marker occurs in the script"""

    def __init__(self):
        self.scripts = []
        self.handlers = []

    def respond(self, marker, output="", exit_code=0, error=None):
        self.handlers.append((marker, output, exit_code, error))

    def __call__(self, script, config=None, check=True):
        self.scripts.append(script)
        for marker, output, exit_code, error in self.handlers:
            if marker in script:
                if error is not None:
                    raise error
                result = CommandResult(success=exit_code == 0, output=output, exit_code=exit_code)
                if check and exit_code != 0:
                    raise PowerShellError(f"PowerShell exited with code {exit_code}", result)
                return result
        return CommandResult(success=True, output="", exit_code=0)


@pytest.fixture
def fake_powershell(monkeypatch):
    fake = FakePowerShell()
    monkeypatch.setattr(adapters, "run_powershell", fake)
    monkeypatch.setattr(signing, "run_powershell", fake)
    return fake


class FakePopen:
    calls = []

    def __init__(self, cmd, cwd=None, creationflags=0, **kwargs):
        self.cmd = cmd
        self.cwd = cwd
        self.pid = 4242
        FakePopen.calls.append(self)


@pytest.fixture
def fake_popen(monkeypatch):
    FakePopen.calls = []
    monkeypatch.setattr(launcher.subprocess, "Popen", FakePopen)
    return FakePopen
