"""
Pydantic models for the resource pack server.

This module defines the data model shared by the scanner, the registry and
the HTTP layer:
- Pack records (one per archive or directory pack found on disk)
- Manifest metadata parsed from pack.mcmeta
- Immutable index snapshots produced by a single scan

Pack records are frozen once built, so a published index can be shared
freely between request handlers and the background watcher.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field


MANIFEST_FILE_NAME = "pack.mcmeta"
ARCHIVE_EXTENSION = ".zip"
DEFAULT_PACK_FORMAT = 22


def default_description(name: str) -> str:
    return f"Resource Pack: {name}"


class PackKind(str, Enum):
    """How a pack is stored on disk."""

    ARCHIVE = "archive"
    DIRECTORY = "directory"


# ---------------------------------------------------------------------------
# Manifest metadata
# ---------------------------------------------------------------------------


class PackInfo(BaseModel):
    """
    Metadata declared in the `pack` object of a pack.mcmeta manifest.
    """

    model_config = ConfigDict(frozen=True)

    description: str = Field(
        default="",
        description="Human readable description from the manifest.",
    )
    pack_format: int = Field(
        default=DEFAULT_PACK_FORMAT,
        description="Declared pack format version.",
    )


# ---------------------------------------------------------------------------
# Pack records
# ---------------------------------------------------------------------------


class Pack(BaseModel):
    """
    A single resource pack discovered under the packs directory.

    The name is the registry key: the directory name for directory packs,
    or the archive file name without its .zip extension.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Unique pack name, used in URLs.")
    source_path: Path = Field(description="Absolute path of the directory or archive.")
    description: str = Field(description="Manifest description or a synthesized default.")
    pack_format: int = Field(
        default=DEFAULT_PACK_FORMAT,
        description="Manifest pack_format, or the default when absent.",
    )
    size: int = Field(
        ge=0,
        description="Archive size, or the sum of file sizes for a directory.",
    )
    hash: str = Field(description="Hex encoded MD5 fingerprint.")
    last_modified: datetime = Field(description="Modification time observed at scan time.")
    kind: PackKind

    @property
    def is_directory(self) -> bool:
        return self.kind is PackKind.DIRECTORY

    def to_api(self) -> Dict[str, Any]:
        """
        Public JSON representation used by the /api endpoints.
        """
        return {
            "name": self.name,
            "description": self.description,
            "pack_format": self.pack_format,
            "size": self.size,
            "hash": self.hash,
            "last_modified": int(self.last_modified.timestamp()),
            "is_directory": self.is_directory,
            "download_url": f"/download/{self.name}",
            "hash_url": f"/hash/{self.name}",
        }


class PackIndex(BaseModel):
    """
    Snapshot of every pack produced by one scan.

    An index is never modified after construction; the registry replaces it
    wholesale when a newer scan completes.
    """

    model_config = ConfigDict(frozen=True)

    packs: Mapping[str, Pack] = Field(default_factory=dict)
    built_at: datetime = Field(default_factory=datetime.now)

    def names(self) -> list[str]:
        return sorted(self.packs)
