"""
Process launcher
Fire-and-forget start of agent scripts and the simulator; exit codes are never awaited
"""
from __future__ import annotations
import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from .schemas import AdminConfig

logger = logging.getLogger(__name__)

# Windows-only flag, absent on other platforms
CREATE_NEW_CONSOLE = getattr(subprocess, "CREATE_NEW_CONSOLE", 0)


def build_command(path: Path, args: Sequence[str] = (), config: Optional[AdminConfig] = None) -> List[str]:
    """Pick the interpreter for the file type"""
    config = config or AdminConfig()
    suffix = path.suffix.lower()
    if suffix == ".ps1":
        cmd = [config.powershell_exe, "-NoProfile", "-ExecutionPolicy", "Bypass", "-File", str(path)]
    elif suffix in (".bat", ".cmd"):
        cmd = ["cmd.exe", "/c", str(path)]
    else:
        cmd = [str(path)]
    return cmd + [str(a) for a in args]


def launch(path, args: Sequence[str] = (), config: Optional[AdminConfig] = None) -> int:
    """
    Start a script or executable without waiting for it

    Returns:
        PID of the started process

    Raises:
        FileNotFoundError: path does not exist (nothing is started)
    """
    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(f"Cannot launch, file not found: {target}")

    cmd = build_command(target, args, config)
    # scripts get their own console so their output stays visible
    flags = 0 if target.suffix.lower() == ".exe" else CREATE_NEW_CONSOLE
    process = subprocess.Popen(
        cmd,
        cwd=str(target.parent),
        creationflags=flags,
    )
    logger.info("Launched %s (pid %d)", target, process.pid)
    return process.pid


def start_agent(config: AdminConfig) -> int:
    return launch(config.start_script, config=config)


def stop_agent(config: AdminConfig) -> int:
    return launch(config.stop_script, config=config)


def restart_agent(config: AdminConfig) -> int:
    return launch(config.restart_script, config=config)


def launch_simulator(config: AdminConfig, path=None) -> int:
    """Start the simulator executable (configured path unless one is given)"""
    return launch(path or config.simulator_path, config=config)
