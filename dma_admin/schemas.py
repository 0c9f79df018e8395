from __future__ import annotations
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_INSTALL_DIR = r"C:\Skyline DataMiner"
DEFAULT_DMS_NAMESPACE = "http://www.skyline.be/config/dms"


class AdminConfig(BaseModel):
    """Explicit configuration handed to every operation.

    Path fields left as None are derived from ``install_dir``.
    """
    adapter_names: List[str] = Field(default_factory=lambda: ["Ethernet", "Wi-Fi"],
                                     description="Adapters toggled when isolating the agent")
    install_dir: str = Field(DEFAULT_INSTALL_DIR, description="Agent installation directory")
    dms_xml_path: Optional[str] = Field(None, description="DMS.xml (default: <install_dir>/DMS.xml)")
    dms_namespace: str = Field(DEFAULT_DMS_NAMESPACE, description="Namespace bound to the 'dms' prefix")
    dms_selector: str = Field(".//dms:DMA", description="Node entries removed from DMS.xml")
    slcloud_xml_path: Optional[str] = Field(None, description="SLCloud.xml (default: <install_dir>/SLCloud.xml)")
    slcloud_selector: str = Field(".//NATSServer", description="Entries removed from SLCloud.xml")
    start_script: Optional[str] = None
    stop_script: Optional[str] = None
    restart_script: Optional[str] = None
    simulator_path: Optional[str] = None
    certificate_subject: str = Field("Code Signing", description="Substring of the signing certificate subject")
    certificate_store: str = Field(r"CurrentUser\My", description="<location>\\<name> of the store to search")
    scripts_to_sign: Optional[List[str]] = Field(None, description="Defaults to the start and stop scripts")
    timestamp_server: Optional[str] = None
    powershell_exe: str = "powershell.exe"
    powershell_timeout: float = Field(60.0, gt=0)

    @field_validator("adapter_names", "scripts_to_sign", mode="before")
    @classmethod
    def _split_csv(cls, value):
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("certificate_store")
    @classmethod
    def _check_store(cls, value: str) -> str:
        if "\\" not in value.strip("\\"):
            raise ValueError("certificate_store must look like 'CurrentUser\\My'")
        return value.strip("\\")

    @model_validator(mode="after")
    def _derive_paths(self) -> "AdminConfig":
        root = Path(self.install_dir)
        tools = root / "Tools"
        if self.dms_xml_path is None:
            self.dms_xml_path = str(root / "DMS.xml")
        if self.slcloud_xml_path is None:
            self.slcloud_xml_path = str(root / "SLCloud.xml")
        if self.start_script is None:
            self.start_script = str(tools / "StartDataMiner.ps1")
        if self.stop_script is None:
            self.stop_script = str(tools / "StopDataMiner.ps1")
        if self.restart_script is None:
            self.restart_script = str(tools / "RestartDataMiner.ps1")
        if self.simulator_path is None:
            self.simulator_path = str(tools / "Simulator" / "Simulator.exe")
        if self.scripts_to_sign is None:
            self.scripts_to_sign = [self.start_script, self.stop_script]
        return self

    @property
    def store_location(self) -> str:
        return self.certificate_store.split("\\", 1)[0]

    @property
    def store_name(self) -> str:
        return self.certificate_store.split("\\", 1)[1]


class ElementSelector(BaseModel):
    """Path query plus the prefix -> namespace URI bindings it may use."""
    path: str
    namespaces: Dict[str, str] = Field(default_factory=dict)

    @field_validator("path")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("selector path must not be empty")
        return value.strip()

    @property
    def query(self) -> str:
        """Path in tree-relative form (``//X`` becomes ``.//X``)."""
        if self.path.startswith("//"):
            return "." + self.path
        return self.path


class CommandResult(BaseModel):
    success: bool
    output: str = ""
    exit_code: int


class Certificate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: str = Field(..., alias="Subject")
    thumbprint: str = Field(..., alias="Thumbprint")
    not_after: Optional[str] = Field(None, alias="NotAfter")
    store_path: str = ""

    @property
    def provider_path(self) -> str:
        return f"{self.store_path}\\{self.thumbprint}"


class SigningStatus(str, Enum):
    VALID = "Valid"
    UNKNOWN_ERROR = "UnknownError"
    INCOMPATIBLE = "Incompatible"
    NOT_SIGNED = "NotSigned"
    HASH_MISMATCH = "HashMismatch"
    NOT_TRUSTED = "NotTrusted"
    NOT_SUPPORTED_FILE_FORMAT = "NotSupportedFileFormat"

    @classmethod
    def parse(cls, text: str) -> "SigningStatus":
        value = (text or "").strip()
        for status in cls:
            if status.value.lower() == value.lower():
                return status
        return cls.UNKNOWN_ERROR


class AdapterStatus(str, Enum):
    ENABLED = "Enabled"
    DISABLED = "Disabled"
    NOT_FOUND = "NotFound"


class FailurePolicy(str, Enum):
    PROPAGATE = "propagate"
    CONTINUE = "continue"
