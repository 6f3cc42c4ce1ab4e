"""
StorageGate Pydantic models.

Defines tree nodes and the results of structural operations.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class NodeType(str, Enum):
    """Kind of entry in the storage tree."""
    FILE = "file"
    FOLDER = "folder"


class _ApiModel(BaseModel):
    """Base for models serialized with camelCase keys."""
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Node(_ApiModel):
    """One file or folder in the storage tree."""
    name: str = Field(description="Final path segment")
    type: NodeType
    path: str = Field(description="Logical path relative to the storage root")
    size: int = 0
    modified_at: datetime = Field(alias="modifiedAt")
    children: Optional[List["Node"]] = Field(
        default=None,
        description="Ordered children, folders only"
    )
    download_ref: Optional[str] = Field(
        default=None,
        alias="downloadRef",
        description="Reference accepted by the download endpoint, files only"
    )

    @property
    def is_folder(self) -> bool:
        return self.type == NodeType.FOLDER

    def sort_key(self):
        """Folders first, then case-insensitive name, exact name as tie-break."""
        return (not self.is_folder, self.name.casefold(), self.name)


class StoredFile(_ApiModel):
    """Metadata of a persisted upload."""
    original_name: str = Field(alias="originalName")
    storage_ref: str = Field(alias="storageRef")
    path: str
    size: int
    mimetype: str


class FolderCreated(_ApiModel):
    """Result of creating a folder."""
    name: str
    path: str


class RenameResult(_ApiModel):
    """Result of renaming a file or folder."""
    old_path: str = Field(alias="oldPath")
    new_path: str = Field(alias="newPath")


class DeleteError(_ApiModel):
    """A batch item that could not be deleted."""
    path: str
    error: str


class DeleteResult(_ApiModel):
    """Result of a batch delete."""
    deleted_items: List[str] = Field(default_factory=list, alias="deletedItems")
    errors: List[DeleteError] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.deleted_items)


Node.model_rebuild()
