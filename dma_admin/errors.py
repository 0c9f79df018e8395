"""
Exception hierarchy for dma-admin
"""
from __future__ import annotations
from typing import Optional


class AdminError(Exception):
    """Base class for errors raised by dma-admin itself"""


class ConfigError(AdminError):
    """Configuration values could not be loaded or validated"""


class SelectorError(AdminError, ValueError):
    """An element selector could not be evaluated (unbound prefix, bad path)"""


class PowerShellError(AdminError):
    """A PowerShell fragment failed, timed out or could not be started"""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result

    @property
    def exit_code(self) -> Optional[int]:
        return self.result.exit_code if self.result is not None else None


class CertificateStoreError(PowerShellError):
    """The certificate store could not be opened or enumerated"""


class PipelineError(AdminError):
    """A pipeline definition is invalid or unknown"""
