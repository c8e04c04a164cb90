"""Helpers for the base64 data-URL envelope used for generated images."""

from __future__ import annotations

import base64
import io
from typing import Any, Tuple

from PIL import Image

DEFAULT_MIME_TYPE = "image/png"


def encode_data_url(payload: str, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    """Wrap a base64 payload into a self-contained ``data:`` locator."""
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{payload}"


def decode_data_url(locator: str) -> Tuple[str, str]:
    """Return ``(mime_type, base64_payload)``; bare payloads pass through."""
    text = (locator or "").strip()
    if not text.startswith("data:") or "," not in text:
        return DEFAULT_MIME_TYPE, text
    header, payload = text.split(",", 1)
    mime_type = header[len("data:"):].split(";", 1)[0] or DEFAULT_MIME_TYPE
    return mime_type, payload


def load_image(locator: str) -> Any:
    """Decode a data URL (or bare base64 string) into a PIL image."""
    _, payload = decode_data_url(locator)
    image = Image.open(io.BytesIO(base64.b64decode(payload)))
    image.load()
    return image
