"""
Configuration loading
Reads DMA_ADMIN_* variables (optionally from a .env file) into AdminConfig
"""
from __future__ import annotations
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from .errors import ConfigError
from .schemas import AdminConfig

ENV_PREFIX = "DMA_ADMIN_"

# field name -> environment variable suffix
ENV_FIELDS: Dict[str, str] = {
    "adapter_names": "ADAPTERS",
    "install_dir": "INSTALL_DIR",
    "dms_xml_path": "DMS_XML",
    "dms_namespace": "DMS_NAMESPACE",
    "dms_selector": "DMS_SELECTOR",
    "slcloud_xml_path": "SLCLOUD_XML",
    "slcloud_selector": "SLCLOUD_SELECTOR",
    "start_script": "START_SCRIPT",
    "stop_script": "STOP_SCRIPT",
    "restart_script": "RESTART_SCRIPT",
    "simulator_path": "SIMULATOR",
    "certificate_subject": "CERT_SUBJECT",
    "certificate_store": "CERT_STORE",
    "scripts_to_sign": "SIGN_SCRIPTS",
    "timestamp_server": "TIMESTAMP_SERVER",
    "powershell_exe": "POWERSHELL",
    "powershell_timeout": "POWERSHELL_TIMEOUT",
}


def env_overrides(environ=None) -> Dict[str, Any]:
    """Collect the configuration values present in the environment"""
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for field, suffix in ENV_FIELDS.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is not None and raw.strip() != "":
            values[field] = raw.strip()
    return values


def load_config(env_file: Optional[str] = None, **overrides: Any) -> AdminConfig:
    """
    Build the effective configuration

    Precedence: explicit overrides > environment > .env file > defaults.
    Variables already set in the environment are not replaced by the .env file.

    Raises:
        ConfigError: if a value fails validation
    """
    load_dotenv(dotenv_path=env_file, override=False)
    values = env_overrides()
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return AdminConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
