"""
Network adapter control
Enable / disable host adapters by name; a missing adapter is reported, not raised
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, Optional

from .powershell import quote, run_powershell
from .schemas import AdapterStatus, AdminConfig

logger = logging.getLogger(__name__)

_TOGGLE_TEMPLATE = """
$adapter = Get-NetAdapter -Name {name} -ErrorAction SilentlyContinue
if ($adapter -eq $null) {{
    Write-Output 'NotFound'
}}
else {{
    {cmdlet} -Name {name} -Confirm:$false -ErrorAction Stop
    Write-Output '{done}'
}}
"""


def _toggle(name: str, cmdlet: str, done: AdapterStatus, config: Optional[AdminConfig]) -> AdapterStatus:
    script = _TOGGLE_TEMPLATE.format(name=quote(name), cmdlet=cmdlet, done=done.value)
    result = run_powershell(script, config)
    if result.output.strip().endswith(AdapterStatus.NOT_FOUND.value):
        logger.warning("Adapter %r not found, skipped", name)
        return AdapterStatus.NOT_FOUND
    logger.info("Adapter %r %s", name, done.value.lower())
    return done


def disable_adapter(name: str, config: Optional[AdminConfig] = None) -> AdapterStatus:
    """Disable one adapter (no-op if already disabled)"""
    return _toggle(name, "Disable-NetAdapter", AdapterStatus.DISABLED, config)


def enable_adapter(name: str, config: Optional[AdminConfig] = None) -> AdapterStatus:
    """Enable one adapter (no-op if already enabled)"""
    return _toggle(name, "Enable-NetAdapter", AdapterStatus.ENABLED, config)


def disable_adapters(names: Iterable[str], config: Optional[AdminConfig] = None) -> Dict[str, AdapterStatus]:
    return {name: disable_adapter(name, config) for name in names}


def enable_adapters(names: Iterable[str], config: Optional[AdminConfig] = None) -> Dict[str, AdapterStatus]:
    return {name: enable_adapter(name, config) for name in names}
