from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from contract_studio.core.artifacts import extract_metadata_hash


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class OffsetUnit(str, Enum):
    CHARACTER = "character"
    BYTE = "byte"


class SourceDocument(BaseModel):
    text: str = ""
    dirty: bool = False


class CompilerBuild(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    long_version: str
    is_release: bool = False
    download_url: str = ""
    ready: bool = False

    @property
    def label(self) -> str:
        return self.version if self.is_release else self.long_version


class CompileRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_id: int
    source_text: str
    build_index: int
    optimize: bool = False


class CompileResponse(BaseModel):
    request_id: int
    output: dict[str, Any] = Field(default_factory=dict)


class RawDiagnostic(BaseModel):
    """Compiler diagnostic before position mapping.

    Either ``offset`` (into the compiled source, counted in ``offset_unit``) or
    ``line``/``column`` is set; when neither is, the diagnostic applies to the
    whole file.
    """

    message: str
    severity: Severity = Severity.ERROR
    offset: int | None = None
    offset_unit: OffsetUnit = OffsetUnit.CHARACTER
    line: int | None = None
    column: int | None = None
    contract_name: str | None = None
    formal: bool = False


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: Severity
    message: str
    contract_name: str | None = None
    line: int
    column: int
    is_formal_verification: bool = False


class CompiledContract(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    abi_interface: str
    bytecode: str
    metadata: str | None = None

    @property
    def metadata_hash(self) -> str | None:
        return extract_metadata_hash(self.bytecode)


class SavedContract(BaseModel):
    id: str | None = None
    name: str
    sourcecode: str
    timestamp: int


class SavePayload(BaseModel):
    sourcecode: str
    name: str | None = None


class DeploymentPayload(BaseModel):
    abi: str
    bytecode_with_prefix: str
    sourcecode: str


class EditorState(BaseModel):
    text: str
    annotations: list[Diagnostic] = Field(default_factory=list)
