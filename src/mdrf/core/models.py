"""Object model for MDRF review documents and generation options"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator, model_validator


MDRF_VERSION = "3.0"
VERSION_KEY = "mdrf_version"


def is_supported_version(value: Any) -> bool:
    """True for the text '3.0' or the number 3 (YAML loads a bare 3.0 as a float)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == 3
    return value == MDRF_VERSION


class FileStatus(str, Enum):
    """Change kind of a reviewed file"""
    modified = "modified"
    added = "added"
    removed = "removed"
    renamed = "renamed"
    moved = "moved"


class Comment(BaseModel):
    """A single review comment inside a thread."""
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id:        Optional[str] = None
    username:  str = Field(..., min_length=1)
    timestamp: str = Field(..., min_length=1)
    reply_to:  Optional[str] = None     # free-form reference, never resolved
    body:      str = Field(..., min_length=1)


class Thread(BaseModel):
    """A conversation anchored to a file, optionally to one line."""
    model_config = ConfigDict(frozen=True)

    thread_number: Optional[StrictInt] = None   # checked by the generator unless auto-numbering
    line_number:   Optional[StrictInt] = None
    thread_meta:   Optional[dict[str, Any]] = None
    comments:      list[Comment]


class File(BaseModel):
    """A reviewed file: its diff and the threads attached to it."""
    model_config = ConfigDict(frozen=True)

    path:     str = Field(..., min_length=1)
    status:   FileStatus = FileStatus.modified
    old_path: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    diff:     StrictStr
    threads:  list[Thread]

    @model_validator(mode="after")
    def _check_metadata_path(self) -> "File":
        if self.metadata and self.metadata.get("file_path") != self.path:
            raise ValueError(f"metadata.file_path must equal path {self.path!r}")
        return self


class Group(BaseModel):
    """A top-level review unit (e.g. one pull request)."""
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    type:           str = Field(..., min_length=1)
    name_id:        str = Field(..., min_length=1)
    group_metadata: Optional[dict[str, Any]] = None
    files:          list[File]


class Document(BaseModel):
    """A complete MDRF document. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    title:        StrictStr = Field(..., min_length=1)
    front_matter: dict[str, Any]
    groups:       list[Group]

    @field_validator("front_matter")
    @classmethod
    def _normalize_version(cls, value: dict[str, Any]) -> dict[str, Any]:
        if not is_supported_version(value.get(VERSION_KEY)):
            raise ValueError(f"front_matter.{VERSION_KEY} must be '{MDRF_VERSION}'")
        return {**value, VERSION_KEY: MDRF_VERSION}


class GenerationOptions(BaseModel):
    """Options for rendering a Document back to MDRF text."""
    model_config = ConfigDict(frozen=True)

    yaml_indent:    int = Field(default=2, ge=0, description="Spaces per level in emitted YAML blocks")
    auto_numbering: bool = Field(default=False, description="Renumber threads and comment ids sequentially")
