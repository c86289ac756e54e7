"""
Inbound Message Schema
======================

Pydantic model for the structured ``image-generated`` event.

Wire Contract:
    {
        "type": "image-generated",
        "data": {
            "mode": "push",
            "promptId": "p1",
            "base64Data": "<base64 image>",
            "mimeType": "image/png",
            "imageInfo": {"filename": "a.png", "subfolder": "", "type": "output"},
            "params": {"positivePrompt": "...", "seed": "42"},
            "imageIdx": 0,
            "imageLength": 1,
            "timestamp": 1707321234567
        }
    }

``base64Data``, ``mimeType`` and ``imageInfo.filename`` are required. The
remaining fields default so that a partially populated event still yields
its image.

Example:
    from pixel_socket.models.input import ImageGeneratedMessage

    message = ImageGeneratedMessage.model_validate(json.loads(raw))
    print(message.data.image_info.filename)
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from pixel_socket.models.metadata import GenerationParams


IMAGE_GENERATED = "image-generated"


class ImageInfo(BaseModel):
    """Location of the image on the generating server."""

    model_config = ConfigDict(extra="ignore")

    filename: str = Field(..., min_length=1)
    subfolder: str = ""
    type: str = ""


class ImageGeneratedData(BaseModel):
    """Payload of an ``image-generated`` event."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    mode: str = ""
    prompt_id: str = Field(default="", alias="promptId")
    base64_data: str = Field(..., min_length=1, alias="base64Data")
    mime_type: str = Field(..., min_length=1, alias="mimeType")
    image_info: ImageInfo = Field(..., alias="imageInfo")
    params: Optional[GenerationParams] = None
    image_idx: int = Field(default=0, ge=0, alias="imageIdx")
    image_length: int = Field(default=1, ge=0, alias="imageLength")
    timestamp: Optional[float] = Field(
        default=None,
        description="Epoch milliseconds when the image was generated",
    )


class ImageGeneratedMessage(BaseModel):
    """
    Envelope of the structured image event.

    Attributes:
        type: Always "image-generated"
        data: Image payload and provenance
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "type": IMAGE_GENERATED,
                "data": {
                    "mode": "push",
                    "promptId": "p1",
                    "base64Data": "iVBORw0KGgo=",
                    "mimeType": "image/png",
                    "imageInfo": {
                        "filename": "a.png",
                        "subfolder": "",
                        "type": "output",
                    },
                    "imageIdx": 0,
                    "imageLength": 1,
                    "timestamp": 1000,
                },
            }
        },
    )

    type: Literal["image-generated"]
    data: ImageGeneratedData
