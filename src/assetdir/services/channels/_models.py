"""
Models for transfer channels.
"""

from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UploadState(str, Enum):
    """Lifecycle of a multipart upload channel."""

    UPLOADING = "uploading"
    COMPLETING = "completing"
    CLOSED = "closed"
    FAILED = "failed"


class PartSpec(BaseModel):
    """One contiguous byte range of a multipart upload."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    offset: int = Field(ge=0)
    length: int = Field(gt=0)

    @property
    def end(self) -> int:
        """Exclusive end offset."""
        return self.offset + self.length


def count_parts(total_size: int, part_size: int) -> int:
    """Number of parts needed: ceil(total_size / part_size)."""
    if part_size <= 0:
        raise ValueError("part_size must be positive.")
    if total_size < 0:
        raise ValueError("total_size must not be negative.")
    return -(-total_size // part_size)


def plan_parts(total_size: int, part_size: int) -> list[PartSpec]:
    """
    Split total_size bytes into parts of part_size.

    Every part but the last is exactly part_size long; the last holds the
    remainder. A zero total yields no parts.

    Example:
        >>> [p.length for p in plan_parts(12_000_000, 5 * 1024 * 1024)]
        [5242880, 5242880, 1514240]
    """
    total_parts = count_parts(total_size, part_size)
    return [
        PartSpec(
            index=index,
            offset=index * part_size,
            length=min(part_size, total_size - index * part_size),
        )
        for index in range(total_parts)
    ]


def new_session_id() -> str:
    """Random token identifying a multipart session."""
    return uuid.uuid4().hex


class MultipartSession(BaseModel):
    """Server-side grouping of the parts of one multipart upload."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_session_id)
    total_size: int = Field(ge=0)
    part_size: int = Field(gt=0)

    @property
    def total_parts(self) -> int:
        return count_parts(self.total_size, self.part_size)

    def part(self, index: int) -> PartSpec | None:
        """Part at index, or None once every declared byte is covered."""
        offset = index * self.part_size
        length = min(self.part_size, self.total_size - offset)
        if length <= 0:
            return None
        return PartSpec(index=index, offset=offset, length=length)

    def upload_params(self, part: PartSpec) -> dict[str, str | int]:
        """Query parameters of a data part request."""
        return {
            "multipart": "upload",
            "id": self.id,
            "index": part.index,
            "offset": part.offset,
            "totalSize": self.total_size,
            "partSize": part.length,
            "totalParts": self.total_parts,
        }

    def complete_params(self) -> dict[str, str]:
        """Query parameters of the completion request."""
        return {"multipart": "complete", "id": self.id}


__all__ = [
    "UploadState",
    "PartSpec",
    "MultipartSession",
    "count_parts",
    "plan_parts",
    "new_session_id",
]
