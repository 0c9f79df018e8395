"""
Code signing
Certificate store lookup and Authenticode signing of the agent scripts
"""
from __future__ import annotations
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from pydantic import ValidationError

from .errors import CertificateStoreError, PowerShellError
from .powershell import quote, run_powershell
from .schemas import AdminConfig, Certificate, SigningStatus

logger = logging.getLogger(__name__)

_LIST_TEMPLATE = """
$certs = @(Get-ChildItem -Path {path} -CodeSigningCert -ErrorAction Stop |
    Select-Object Subject, Thumbprint, @{{Name='NotAfter'; Expression={{$_.NotAfter.ToString('o')}}}})
ConvertTo-Json -Compress -InputObject $certs
"""

_SIGN_TEMPLATE = """
$cert = Get-Item -LiteralPath {cert_path} -ErrorAction Stop
$sig = Set-AuthenticodeSignature -LiteralPath {file} -Certificate $cert{timestamp} -ErrorAction Stop
Write-Output $sig.Status
"""


class CertificateStore:
    """Code-signing certificates of one store, enumerated when opened"""

    def __init__(self, location: str = "CurrentUser", name: str = "My", config: Optional[AdminConfig] = None):
        self.location = location
        self.name = name
        self.config = config
        self._certificates: Optional[List[Certificate]] = None

    @property
    def path(self) -> str:
        return f"Cert:\\{self.location}\\{self.name}"

    @property
    def is_open(self) -> bool:
        return self._certificates is not None

    def open(self) -> "CertificateStore":
        try:
            result = run_powershell(_LIST_TEMPLATE.format(path=quote(self.path)), self.config)
        except PowerShellError as e:
            raise CertificateStoreError(f"Cannot open certificate store {self.path}: {e}", e.result) from e
        try:
            raw = json.loads(result.output or "[]")
        except json.JSONDecodeError as e:
            raise CertificateStoreError(f"Unexpected output from {self.path}: {result.output[:200]}", result) from e
        if raw is None:
            raw = []
        elif isinstance(raw, dict):
            raw = [raw]
        try:
            self._certificates = [Certificate.model_validate({**item, "store_path": self.path}) for item in raw]
        except (ValidationError, TypeError) as e:
            raise CertificateStoreError(f"Unexpected certificate data from {self.path}: {e}", result) from e
        logger.debug("Opened %s (%d code-signing certificates)", self.path, len(self._certificates))
        return self

    def close(self) -> None:
        """Release the enumeration; safe to call on a store that never opened"""
        self._certificates = None

    def certificates(self) -> List[Certificate]:
        if self._certificates is None:
            raise CertificateStoreError(f"Certificate store {self.path} is not open")
        return list(self._certificates)


@contextmanager
def open_certificate_store(location: str = "CurrentUser", name: str = "My",
                           config: Optional[AdminConfig] = None) -> Iterator[CertificateStore]:
    """Scoped store access; close() runs on every exit path, including a failed open()"""
    store = CertificateStore(location, name, config)
    try:
        store.open()
        yield store
    finally:
        store.close()


def find_certificate(subject_substring: str, store: CertificateStore) -> Optional[Certificate]:
    """First certificate (enumeration order) whose subject contains subject_substring, case-insensitive"""
    needle = subject_substring.lower()
    for cert in store.certificates():
        if needle in cert.subject.lower():
            return cert
    return None


def sign_script(script_path, certificate: Certificate, config: Optional[AdminConfig] = None) -> SigningStatus:
    """
    Attach an Authenticode signature to one script

    Returns:
        The signature status reported by the host (anything unknown maps to UnknownError)

    Raises:
        FileNotFoundError: script does not exist
        PowerShellError: the signing command itself failed
    """
    path = Path(script_path)
    if not path.exists():
        raise FileNotFoundError(f"Script not found: {path}")
    timestamp = ""
    if config is not None and config.timestamp_server:
        timestamp = f" -TimestampServer {quote(config.timestamp_server)}"
    script = _SIGN_TEMPLATE.format(cert_path=quote(certificate.provider_path), file=quote(str(path)),
                                   timestamp=timestamp)
    result = run_powershell(script, config)
    lines = [line for line in result.output.splitlines() if line.strip()]
    return SigningStatus.parse(lines[-1] if lines else "")


def sign_scripts(config: AdminConfig, scripts: Optional[Sequence[str]] = None) -> Dict[str, SigningStatus]:
    """
    Sign the configured scripts with the configured certificate

    Failures are reported and skipped, never raised: a missing certificate or
    store ends the flow, a failing script moves on to the next one.
    """
    scripts = list(scripts) if scripts else list(config.scripts_to_sign or [])
    try:
        with open_certificate_store(config.store_location, config.store_name, config) as store:
            certificate = find_certificate(config.certificate_subject, store)
    except CertificateStoreError as e:
        logger.error("%s", e)
        return {}

    if certificate is None:
        logger.warning("No code-signing certificate matching %r in Cert:\\%s",
                       config.certificate_subject, config.certificate_store)
        return {}

    logger.info("Signing with %s (%s)", certificate.subject, certificate.thumbprint)
    statuses: Dict[str, SigningStatus] = {}
    for script in scripts:
        try:
            status = sign_script(script, certificate, config)
        except (OSError, PowerShellError) as e:
            logger.error("Signing %s failed: %s", script, e)
            statuses[script] = SigningStatus.UNKNOWN_ERROR
            continue
        statuses[script] = status
        if status is SigningStatus.VALID:
            logger.info("Signed %s", script)
        else:
            logger.warning("Signing %s returned status %s", script, status.value)
    return statuses
