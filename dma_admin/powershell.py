"""
PowerShell runner
Every host-facing collaborator (adapters, certificate store, signing) goes through here
"""
from __future__ import annotations
import logging
import subprocess
from typing import Optional

from .errors import PowerShellError
from .schemas import AdminConfig, CommandResult

logger = logging.getLogger(__name__)

# Windows-only flag, absent on other platforms
CREATE_NO_WINDOW = getattr(subprocess, "CREATE_NO_WINDOW", 0)


def quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal"""
    return "'" + str(value).replace("'", "''") + "'"


def run_powershell(script: str, config: Optional[AdminConfig] = None, check: bool = True) -> CommandResult:
    """
    Run a PowerShell fragment and capture its output

    Args:
        script: PowerShell source to execute
        config: supplies the executable and timeout (defaults if omitted)
        check: raise PowerShellError on a non-zero exit code

    Returns:
        CommandResult with stdout (or stderr when stdout is empty)
    """
    config = config or AdminConfig()
    cmd = [config.powershell_exe, "-NoProfile", "-NonInteractive",
           "-ExecutionPolicy", "Bypass", "-Command", script]
    logger.debug("Running PowerShell: %s", script.strip()[:120])

    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=config.powershell_timeout,
            encoding="utf-8",
            errors="replace",
            creationflags=CREATE_NO_WINDOW,
        )
    except subprocess.TimeoutExpired as e:
        result = CommandResult(success=False, output=f"Timeout after {config.powershell_timeout:g} seconds", exit_code=-1)
        raise PowerShellError(result.output, result) from e
    except OSError as e:
        result = CommandResult(success=False, output=str(e), exit_code=-1)
        raise PowerShellError(f"Could not start {config.powershell_exe}: {e}", result) from e

    stdout = (proc.stdout or "").strip()
    stderr = (proc.stderr or "").strip()
    result = CommandResult(
        success=proc.returncode == 0,
        output=stdout or stderr,
        exit_code=proc.returncode,
    )
    if check and not result.success:
        raise PowerShellError(f"PowerShell exited with code {result.exit_code}: {stderr or stdout}", result)
    return result
