from __future__ import annotations
from typing import Union
import base64
import binascii
import io
from PIL import Image, UnidentifiedImageError


def to_data_url(image_data: Union[str, bytes]) -> str:
    """Return a data URL for a data URL, a raw base64 string or raw image bytes."""
    if isinstance(image_data, str):
        payload = image_data.strip()
        if payload.startswith("data:"):
            return payload
        # line-wrapped (MIME style) base64
        payload = "".join(payload.split())
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("Image payload is not valid base64") from e

    elif isinstance(image_data, bytes):
        raw = image_data
        payload = base64.b64encode(image_data).decode('utf-8')

    else:
        raise ValueError(f"Unsupported image data type: {type(image_data)}")

    return f"data:{detect_mime_type(raw)};base64,{payload}"


def detect_mime_type(raw: bytes) -> str:
    try:
        with Image.open(io.BytesIO(raw)) as img:
            image_format = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError("Image payload is not a recognized image format") from e
    return Image.MIME.get(image_format) or f"image/{image_format.lower()}"
