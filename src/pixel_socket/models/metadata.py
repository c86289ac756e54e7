"""
Image Metadata Models
=====================

Output types of the payload decoder.

A decoded message is exactly one of:
    - DecodedImage: image bytes plus ImageMetadata
    - ControlResult: non-image traffic (acks, pings, status)

Invariant:
    When both ``format`` and ``mime_type`` are set they name the same
    image family (``format="png"`` implies ``mime_type="image/png"``).
    Both are derived from the declared MIME type or the byte signature,
    never guessed.

Example:
    from pixel_socket.models import DecodedImage, ImageMetadata

    image = DecodedImage(
        data=png_bytes,
        metadata=ImageMetadata(format="png", mime_type="image/png"),
    )
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Closed set of value kinds allowed in the open metadata mapping
MetadataValue = Union[bool, int, float, str, None, Dict[str, Any], List[Any]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GenerationParams(BaseModel):
    """
    Provenance parameters for AI-generated images.

    Accepts the wire's camelCase keys (``positivePrompt``) as well as
    snake_case. Unknown keys are kept as extra fields.
    """

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
    )

    positive_prompt: Optional[str] = Field(default=None, alias="positivePrompt")
    negative_prompt: Optional[str] = Field(default=None, alias="negativePrompt")
    seed: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    workflow_name: Optional[str] = Field(default=None, alias="workflowName")

    @field_validator("seed", mode="before")
    @classmethod
    def _stringify_seed(cls, value: Any) -> Any:
        # Servers send seeds as numbers or strings
        if value is None or isinstance(value, str):
            return value
        return str(value)


class ImageMetadata(BaseModel):
    """
    Metadata delivered alongside every decoded image.

    Attributes:
        timestamp: Generation time when declared, else receive time (UTC)
        format: Short format label ('png', 'jpeg', 'gif', 'webp')
        width: Image width when declared
        height: Image height when declared
        mime_type: MIME type of the image
        filename: Original filename when provided by the server
        params: Generation parameters for AI-generated images
        extra: Any other fields carried by the message
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utc_now)
    format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    mime_type: Optional[str] = None
    filename: Optional[str] = None
    params: Optional[GenerationParams] = None
    extra: Dict[str, MetadataValue] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DecodedImage:
    """
    Image bytes plus metadata.

    Ownership passes to the callback layer as soon as it is produced.
    """

    data: bytes
    metadata: ImageMetadata

    @property
    def size(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the image bytes."""
        return (
            f"DecodedImage(size={len(self.data)}, "
            f"format={self.metadata.format!r}, "
            f"filename={self.metadata.filename!r})"
        )


@dataclass(frozen=True, slots=True)
class ControlResult:
    """
    Non-image message carried by the transport.

    Attributes:
        message_type: Value of the ``type`` field, if the payload had one
        payload: Parsed JSON value
    """

    message_type: Optional[str]
    payload: Any
