"""Decoding and normalisation of captured page images.

The extractor hands back whatever the browser produced: ``data:`` URLs from
``canvas.toDataURL``, raw JPEG bytes from element screenshots, and now and
then a bare base64 payload with no header at all.  Everything is turned into
JPEG (or JPEG-compatible) bytes plus its pixel size before it reaches the
PDF writer.
"""

from __future__ import annotations

import base64
import binascii
import io
from dataclasses import dataclass

from PIL import Image

from docpdf.errors import PerImageFailure

DEFAULT_MIME = "image/jpeg"

# Pillow JPEG quality (1-100) for re-encoded images; matches IMAGE_QUALITY=0.5.
DEFAULT_QUALITY = 50

# Modes a JPEG can carry straight into the PDF without re-encoding.
_PASSTHROUGH_MODES = {"RGB", "L", "CMYK"}


@dataclass
class ImageSource:
    """A decoded payload and the MIME type it was declared (or assumed) as."""

    mime: str
    data: bytes


@dataclass
class NormalizedImage:
    """JPEG bytes ready for embedding, with their intrinsic pixel size."""

    data: bytes
    width: int
    height: int
    original_format: str


def decode_image_source(value: str | bytes) -> ImageSource:
    """Turn a captured image representation into raw bytes.

    A value with no usable format header (a bare base64 string, or a ``data:``
    URL missing its MIME type) is assumed to be JPEG rather than rejected.

    Raises:
        PerImageFailure: If the payload is empty or not valid base64.
    """
    if isinstance(value, (bytes, bytearray)):
        if not value:
            raise PerImageFailure("Empty image payload")
        return ImageSource(mime=DEFAULT_MIME, data=bytes(value))

    if not isinstance(value, str):
        raise PerImageFailure(f"Unsupported image payload type: {type(value).__name__}")
    text = value.strip()
    mime = DEFAULT_MIME
    payload = text
    if text.startswith("data:"):
        header, sep, payload = text.partition(",")
        if not sep:
            raise PerImageFailure("Malformed data URL: no payload separator")
        declared = header[len("data:"):].split(";", 1)[0].strip()
        if declared:
            mime = declared

    if not payload:
        raise PerImageFailure("Empty image payload")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PerImageFailure(f"Invalid base64 image payload: {exc}") from exc
    if not data:
        raise PerImageFailure("Empty image payload")
    return ImageSource(mime=mime, data=data)


def _flatten(img: Image.Image) -> Image.Image:
    """Composite any transparency onto white and return an RGB image."""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")


def normalize_image(value: str | bytes, quality: int = DEFAULT_QUALITY) -> NormalizedImage:
    """Decode *value* and return JPEG bytes plus pixel dimensions.

    JPEGs in a colour mode the PDF can embed as-is pass through untouched;
    any other format (PNG, WebP, GIF, images with alpha) is re-encoded.

    Raises:
        PerImageFailure: If the bytes cannot be decoded or re-encoded as an image.
    """
    source = decode_image_source(value)
    try:
        with Image.open(io.BytesIO(source.data)) as img:
            img.load()
            fmt = img.format or "UNKNOWN"
            width, height = img.size
            if fmt == "JPEG" and img.mode in _PASSTHROUGH_MODES:
                return NormalizedImage(source.data, width, height, fmt)

            out = io.BytesIO()
            _flatten(img).save(out, format="JPEG", quality=quality)
    except Exception as exc:
        # Pillow signals corrupt files with SyntaxError, struct.error and others
        # besides OSError.
        raise PerImageFailure(f"Undecodable {source.mime} image: {exc}") from exc

    return NormalizedImage(out.getvalue(), width, height, fmt)
