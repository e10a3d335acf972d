"""Helpers for self-contained base64 data URIs."""

import base64
import binascii

DEFAULT_MIME_TYPE = "image/png"


def strip_data_uri(value: str) -> str:
    """Return the base64 payload of a data URI, or the value itself if it has no header."""
    _, sep, payload = value.partition(",")
    return payload if sep and payload else value


def mime_type_of(value: str) -> str:
    """Return the mime type declared in a data URI header (default image/png)."""
    if not value.startswith("data:"):
        return DEFAULT_MIME_TYPE
    header = value[len("data:") :].split(",", 1)[0]
    mime = header.split(";", 1)[0].strip()
    return mime or DEFAULT_MIME_TYPE


def decode_data_uri(value: str) -> bytes:
    """Decode the payload of a data URI to raw bytes.

    Raises:
        ValueError: If the payload is empty or not valid base64
    """
    payload = strip_data_uri(value).strip()
    if not payload:
        raise ValueError("Data URI has no payload")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def to_data_uri(data: bytes, mime_type: str = DEFAULT_MIME_TYPE) -> str:
    """Encode raw bytes as a data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
