"""
Named pipelines end to end, host calls faked
"""
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from dma_admin.errors import PipelineError, PowerShellError
from dma_admin.steps import ISOLATE_STEPS, PIPELINES, run_named_pipeline

DMS_NS = "http://www.skyline.be/config/dms"


@pytest.fixture
def agent_files(config):
    Path(config.dms_xml_path).write_text(
        f'<DMS xmlns="{DMS_NS}"><DMA id="1"/><DMA id="2"/><Cluster/></DMS>', encoding="utf-8")
    Path(config.slcloud_xml_path).write_text(
        "<SLCloud><NATSServer/><Identity/></SLCloud>", encoding="utf-8")
    restart = Path(config.restart_script)
    restart.parent.mkdir(parents=True, exist_ok=True)
    restart.write_text("", encoding="utf-8")
    return config


def test_isolate_order_and_policies():
    assert [s.name for s in ISOLATE_STEPS] == ["disable_adapters", "prune_dms", "prune_slcloud", "restart_agent"]
    assert [s.on_error.value for s in ISOLATE_STEPS] == ["continue", "propagate", "propagate", "propagate"]


def test_isolate_runs_every_step(agent_files, fake_powershell, fake_popen):
    fake_powershell.respond("'Wi-Fi'", output="NotFound")
    fake_powershell.respond("Disable-NetAdapter", output="Disabled")

    state = run_named_pipeline("isolate", agent_files)

    assert state["completed_steps"] == ["disable_adapters", "prune_dms", "prune_slcloud", "restart_agent"]
    assert state["errors"] == []
    assert len(fake_powershell.scripts) == 2
    assert ET.parse(agent_files.dms_xml_path).getroot().findall(f"{{{DMS_NS}}}DMA") == []
    assert [c.tag for c in ET.parse(agent_files.slcloud_xml_path).getroot()] == ["Identity"]
    assert fake_popen.calls[0].cmd[-1] == agent_files.restart_script


def test_isolate_continues_when_adapters_fail(agent_files, fake_powershell, fake_popen):
    fake_powershell.respond("Disable-NetAdapter", error=PowerShellError("access denied"))

    state = run_named_pipeline("isolate", agent_files)

    assert state["failed_steps"] == ["disable_adapters"]
    assert state["errors"] == ["disable_adapters: access denied"]
    assert state["completed_steps"] == ["prune_dms", "prune_slcloud", "restart_agent"]


def test_isolate_stops_on_malformed_dms(agent_files, fake_powershell, fake_popen):
    Path(agent_files.dms_xml_path).write_text("<DMS><DMA></DMS>", encoding="utf-8")
    slcloud_before = Path(agent_files.slcloud_xml_path).read_text(encoding="utf-8")

    with pytest.raises(ET.ParseError):
        run_named_pipeline("isolate", agent_files)

    assert Path(agent_files.slcloud_xml_path).read_text(encoding="utf-8") == slcloud_before
    assert fake_popen.calls == []


def test_reconnect_enables_then_restarts(agent_files, fake_powershell, fake_popen):
    state = run_named_pipeline("reconnect", agent_files)

    assert state["completed_steps"] == ["enable_adapters", "restart_agent"]
    assert all("Enable-NetAdapter" in s for s in fake_powershell.scripts)
    assert len(fake_popen.calls) == 1


def test_unknown_pipeline(config):
    with pytest.raises(PipelineError):
        run_named_pipeline("explode", config)
    assert set(PIPELINES) == {"isolate", "reconnect"}
