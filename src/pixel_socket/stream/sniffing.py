"""
Format Sniffing
===============

Infers an image's encoding from its leading bytes.

Known signatures:
    PNG   \\x89PNG
    JPEG  \\xFF\\xD8
    GIF   GIF8
    WebP  RIFF????WEBP

Unrecognized payloads sniff to ``None``. They are still delivered, only
unlabelled.
"""

from typing import Optional


PNG = "png"
JPEG = "jpeg"
GIF = "gif"
WEBP = "webp"

MIME_BY_FORMAT = {
    PNG: "image/png",
    JPEG: "image/jpeg",
    GIF: "image/gif",
    WEBP: "image/webp",
}

FORMAT_BY_MIME = {
    "image/png": PNG,
    "image/jpeg": JPEG,
    "image/jpg": JPEG,
    "image/pjpeg": JPEG,
    "image/gif": GIF,
    "image/webp": WEBP,
}

EXTENSION_BY_FORMAT = {
    PNG: ".png",
    JPEG: ".jpg",
    GIF: ".gif",
    WEBP: ".webp",
}


def sniff_format(data: bytes) -> Optional[str]:
    """
    Identify the image format from its magic number.

    Args:
        data: Raw image bytes

    Returns:
        Format label, or None for empty or unrecognized payloads
    """
    if data.startswith(b"\x89PNG"):
        return PNG
    if data.startswith(b"\xff\xd8"):
        return JPEG
    if data.startswith(b"GIF8"):
        return GIF
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return WEBP
    return None


def mime_for_format(fmt: Optional[str]) -> Optional[str]:
    if fmt is None:
        return None
    return MIME_BY_FORMAT.get(fmt)


def format_for_mime(mime_type: Optional[str]) -> Optional[str]:
    """
    Map a MIME type to a format label.

    Parameters such as ``; charset=...`` are ignored. MIME types outside
    the known image families map to None.
    """
    if not mime_type:
        return None
    base = mime_type.split(";", 1)[0].strip().lower()
    return FORMAT_BY_MIME.get(base)


def extension_for(fmt: Optional[str], mime_type: Optional[str] = None) -> str:
    """
    File extension for a format, falling back to the MIME subtype.

    Returns ".bin" when neither identifies the payload.
    """
    if fmt in EXTENSION_BY_FORMAT:
        return EXTENSION_BY_FORMAT[fmt]
    if mime_type and mime_type.lower().startswith("image/"):
        subtype = mime_type.split(";", 1)[0].split("/", 1)[1].strip().lower()
        subtype = subtype.split("+", 1)[0]
        if subtype.startswith("x-"):
            subtype = subtype[2:]
        if subtype.isalnum():
            return f".{subtype}"
    return ".bin"
