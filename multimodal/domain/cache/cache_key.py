"""Deterministic cache keys for media references.

Path references are keyed by their normalized absolute path. Inline and buffer
references are keyed by a SHA-256 of the full payload, so the same bytes sent
base64 encoded or raw share one key. The canonical JSON of the effective
processing options is appended to every key.
"""
from typing import Optional
import base64
import binascii
import hashlib
import json
import os

from multimodal.domain.errors import MediaProcessingError
from multimodal.domain.models.media import (
    AudioProcessingOptions, BufferRef, InlineRef, MediaReference, Modality, PathRef
)


def normalize_mime_type(mime_type: str) -> str:
    """Lowercase a MIME type and drop parameters such as ';codecs=opus'"""
    return (mime_type or "").lower().split(";", 1)[0].strip()


def payload_bytes(ref: MediaReference) -> bytes:
    """Return the raw bytes carried by an inline or buffer reference"""
    if isinstance(ref, BufferRef):
        return bytes(ref.buffer)
    if isinstance(ref, InlineRef):
        data = ref.data
        # Accept data URLs as produced by browsers
        if data.startswith("data:") and "," in data:
            data = data.split(",", 1)[1]
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MediaProcessingError("read", e) from e
    raise TypeError(f"{type(ref).__name__} does not carry a payload")


def canonical_options(options: Optional[AudioProcessingOptions]) -> str:
    if options is None:
        return "{}"
    return json.dumps(options.canonical(), sort_keys=True, separators=(",", ":"))


def derive_cache_key(
    modality: Modality,
    ref: MediaReference,
    options: Optional[AudioProcessingOptions] = None
) -> str:
    if isinstance(ref, PathRef):
        source = f"path:{os.path.normpath(os.path.abspath(ref.path))}"
    elif isinstance(ref, (InlineRef, BufferRef)):
        digest = hashlib.sha256(payload_bytes(ref)).hexdigest()
        source = f"sha256:{digest}:{normalize_mime_type(ref.mime_type)}"
    else:
        raise TypeError(f"Unsupported media reference: {type(ref).__name__}")

    return f"{Modality(modality).value}|{source}|{canonical_options(options)}"
