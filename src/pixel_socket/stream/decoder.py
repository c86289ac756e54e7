"""
Payload Decoder
===============

Turns one inbound WebSocket message into image bytes plus metadata.

Classification (first match wins):
    1. Binary frame          -> whole frame is the image, format sniffed
    2. Text frame, bad JSON  -> DecodeError
    3. "image-generated"     -> structured event, declared mimeType wins
    4. base64Data-bearing    -> generic image, format sniffed unless declared
    5. Anything else         -> ControlResult (acks, pings, status)

Design Rules:
    - This is the ONLY place in the codebase that decodes payloads
    - Base64 is decoded strictly; bad alphabet or padding is a DecodeError
    - Unrecognized binary payloads are delivered unchanged, never dropped
    - Multi-part fields (imageIdx / imageLength) are passed through in
      metadata.extra; no reassembly happens here
    - Decoding is synchronous and never touches connection state
"""

import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import ValidationError

from pixel_socket.errors import DecodeError
from pixel_socket.models.input import IMAGE_GENERATED, ImageGeneratedMessage
from pixel_socket.models.metadata import (
    ControlResult,
    DecodedImage,
    GenerationParams,
    ImageMetadata,
    utc_now,
)
from pixel_socket.stream.sniffing import (
    format_for_mime,
    mime_for_format,
    sniff_format,
)


logger = logging.getLogger(__name__)


InboundMessage = Union[str, bytes, bytearray, memoryview]
DecodeResult = Union[DecodedImage, ControlResult]

BASE64_FIELD = "base64Data"

# Keys of a generic image body that map onto ImageMetadata fields
_GENERIC_KEYS = frozenset({
    BASE64_FIELD,
    "mimeType",
    "filename",
    "width",
    "height",
    "params",
    "timestamp",
    "imageInfo",
})


def decode_base64(value: Any) -> bytes:
    """
    Strictly decode a base64 string.

    Args:
        value: Base64 text, optionally wrapped in surrounding whitespace

    Returns:
        Decoded bytes

    Raises:
        DecodeError: If the value is not a string or is not valid base64
    """
    if not isinstance(value, str):
        raise DecodeError(
            f"{BASE64_FIELD} must be a string, got {type(value).__name__}"
        )
    try:
        return base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Base64 decode failed: {e}") from e


def split_data_url(value: str) -> Tuple[Optional[str], str]:
    """
    Split a ``data:<mime>;base64,<payload>`` URL.

    Plain base64 strings are returned unchanged with no MIME type.
    """
    if not value.startswith("data:"):
        return None, value
    header, sep, encoded = value.partition(",")
    if not sep or ";base64" not in header:
        raise DecodeError("Data URL is not base64 encoded")
    mime_type = header[len("data:"):].split(";", 1)[0].strip() or None
    return mime_type, encoded


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class PayloadDecoder:
    """
    Stateless classifier and decoder for inbound messages.

    Attributes:
        clock: Source of receive timestamps (UTC)

    Example:
        decoder = PayloadDecoder()

        result = decoder.decode(message)
        if isinstance(result, DecodedImage):
            save(result.data, result.metadata)
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self.clock = clock

    def decode(self, message: InboundMessage) -> DecodeResult:
        """
        Decode a single inbound message.

        Args:
            message: Text or binary frame as yielded by the transport

        Returns:
            DecodedImage for image payloads, ControlResult otherwise

        Raises:
            DecodeError: If the payload is malformed
        """
        if isinstance(message, (bytes, bytearray, memoryview)):
            return self._decode_binary(bytes(message))
        if isinstance(message, str):
            return self._decode_text(message)
        raise DecodeError(
            f"Unsupported message type: {type(message).__name__}"
        )

    # -------------------------------------------------------------------------
    # Binary frames
    # -------------------------------------------------------------------------

    def _decode_binary(self, data: bytes) -> DecodedImage:
        fmt = sniff_format(data)
        if fmt is None:
            logger.debug(f"Unrecognized binary signature ({len(data)} bytes)")
        metadata = ImageMetadata(
            timestamp=self.clock(),
            format=fmt,
            mime_type=mime_for_format(fmt),
        )
        return DecodedImage(data=data, metadata=metadata)

    # -------------------------------------------------------------------------
    # Text frames
    # -------------------------------------------------------------------------

    def _decode_text(self, text: str) -> DecodeResult:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Invalid JSON message: {e}") from e

        if not isinstance(payload, dict):
            return ControlResult(message_type=None, payload=payload)

        message_type = payload.get("type")
        if message_type == IMAGE_GENERATED:
            return self._decode_structured(payload)

        body = self._find_base64_body(payload)
        if body is not None:
            return self._decode_generic(body)

        return ControlResult(
            message_type=message_type if isinstance(message_type, str) else None,
            payload=payload,
        )

    def _decode_structured(self, payload: Dict[str, Any]) -> DecodedImage:
        try:
            message = ImageGeneratedMessage.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(
                f"Corrupt {IMAGE_GENERATED} envelope: "
                f"{e.error_count()} validation error(s)"
            ) from e

        data = message.data
        image_bytes = decode_base64(data.base64_data)

        # Declared MIME type is authoritative over the byte signature
        fmt = format_for_mime(data.mime_type)
        sniffed = sniff_format(image_bytes)
        if sniffed is not None and fmt is not None and sniffed != fmt:
            logger.debug(
                f"Declared {data.mime_type} but bytes look like {sniffed} "
                f"({data.image_info.filename})"
            )

        params = data.params
        metadata = ImageMetadata(
            timestamp=self._timestamp_from(data.timestamp),
            format=fmt,
            width=params.width if params else None,
            height=params.height if params else None,
            mime_type=data.mime_type,
            filename=data.image_info.filename,
            params=params,
            extra={
                "mode": data.mode,
                "prompt_id": data.prompt_id,
                "subfolder": data.image_info.subfolder,
                "image_type": data.image_info.type,
                "image_idx": data.image_idx,
                "image_length": data.image_length,
            },
        )
        return DecodedImage(data=image_bytes, metadata=metadata)

    def _decode_generic(self, body: Dict[str, Any]) -> DecodedImage:
        raw = body[BASE64_FIELD]
        if not isinstance(raw, str):
            raise DecodeError(
                f"{BASE64_FIELD} must be a string, got {type(raw).__name__}"
            )
        url_mime, encoded = split_data_url(raw)
        image_bytes = decode_base64(encoded)
        if not image_bytes:
            raise DecodeError(f"Empty {BASE64_FIELD} payload")

        declared = body.get("mimeType")
        mime_type = declared if isinstance(declared, str) and declared else url_mime
        if mime_type:
            fmt = format_for_mime(mime_type)
        else:
            fmt = sniff_format(image_bytes)
            mime_type = mime_for_format(fmt)

        params = None
        if isinstance(body.get("params"), dict):
            try:
                params = GenerationParams.model_validate(body["params"])
            except ValidationError as e:
                raise DecodeError(f"Invalid generation params: {e}") from e

        filename = body.get("filename")
        info = body.get("imageInfo")
        if not isinstance(filename, str) and isinstance(info, dict):
            filename = info.get("filename")

        width = _as_int(body.get("width"))
        height = _as_int(body.get("height"))
        if params is not None:
            width = width if width is not None else params.width
            height = height if height is not None else params.height

        metadata = ImageMetadata(
            timestamp=self._timestamp_from(body.get("timestamp")),
            format=fmt,
            width=width,
            height=height,
            mime_type=mime_type,
            filename=filename if isinstance(filename, str) and filename else None,
            params=params,
            extra={k: v for k, v in body.items() if k not in _GENERIC_KEYS},
        )
        return DecodedImage(data=image_bytes, metadata=metadata)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _find_base64_body(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if BASE64_FIELD in payload:
            return payload
        nested = payload.get("data")
        if isinstance(nested, dict) and BASE64_FIELD in nested:
            return nested
        return None

    def _timestamp_from(self, epoch_ms: Any) -> datetime:
        """Convert epoch milliseconds, falling back to receive time."""
        if isinstance(epoch_ms, bool) or not isinstance(epoch_ms, (int, float)):
            return self.clock()
        try:
            return datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug(f"Ignoring out-of-range timestamp: {epoch_ms}")
            return self.clock()
