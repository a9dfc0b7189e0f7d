"""
Pydantic models for the Velero CR desired state and for log diagnostics.

Field names follow the CR's camelCase JSON keys so that model_dump() can be
sent to the API server as-is.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict
from enum import Enum


class DefaultPlugin(str, Enum):
    OPENSHIFT = "openshift"
    AWS = "aws"
    GCP = "gcp"
    AZURE = "azure"
    CSI = "csi"
    KUBEVIRT = "kubevirt"


class SecretKeySelector(BaseModel):
    """Reference to the key of a Secret holding provider credentials."""
    name: str
    key: str = "cloud"


class ObjectStorageLocation(BaseModel):
    bucket: str
    prefix: Optional[str] = None


class BackupStorageLocationSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    provider: str
    objectStorage: ObjectStorageLocation
    config: Dict[str, str] = {}
    default: bool = False
    credential: Optional[SecretKeySelector] = None


class VeleroSpec(BaseModel):
    """Desired state of a Velero CR. Unknown keys are kept and sent back unchanged."""
    model_config = ConfigDict(extra="allow")

    enableRestic: Optional[bool] = None
    backupStorageLocations: List[BackupStorageLocationSpec] = []
    defaultVeleroPlugins: List[DefaultPlugin] = []

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class FailureLine(BaseModel):
    """A `level=error` line found in container logs."""
    line_number: int = Field(..., ge=1, description="1-based line number in the log text")
    text: str
    pod: Optional[str] = None

    def __str__(self) -> str:
        if self.pod:
            return f"velero container error {self.pod} line#{self.line_number}: {self.text}"
        return f"velero container error line#{self.line_number}: {self.text}"
