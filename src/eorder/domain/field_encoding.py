"""Codec for the delimited form-field blob stored on each parent document.

The backend persists arbitrary named form values as a single string::

    name,value||county,~~Riverside||legal~~Lot 4, Block 2,||

Segments are separated by ``||``. A segment is normally ``key,value``: the
value is trimmed and any leading ``~`` is dropped. A value that would not
survive that (it holds a comma, has surrounding whitespace or starts with
``~``) is written as ``key~~value,`` and read back verbatim, minus the
trailing comma.
"""

from typing import Dict, Mapping, Optional

SEGMENT_DELIMITER = "||"
ESCAPE_MARKER = "~~"


def _decode_segment(segment: str):
    """Decode one segment, or return None when it has no value part."""
    parts = segment.split(",")
    if len(parts) < 2 and ESCAPE_MARKER not in segment:
        return None

    key = parts[0]
    if ESCAPE_MARKER in key:
        key, value = segment.split(ESCAPE_MARKER, 1)
        return key, value.rstrip(",")

    value = parts[1].strip().lstrip(ESCAPE_MARKER[0])
    return key, value


def decode(text: Optional[str]) -> Dict[str, str]:
    """Decode a form-field blob into an ordered mapping.

    Never raises: empty segments and segments without a value part are
    skipped. Duplicate keys keep their first position and the last value.
    """
    if not text:
        return {}

    decoded: Dict[str, str] = {}
    for segment in text.split(SEGMENT_DELIMITER):
        if not segment:
            continue
        pair = _decode_segment(segment)
        if pair is None:
            continue
        key, value = pair
        decoded[key] = value
    return decoded


def _needs_marker_form(value: str) -> bool:
    return "," in value or value != value.strip() or value.startswith(ESCAPE_MARKER[0])


def encode(values: Mapping[str, str]) -> str:
    """Encode a mapping so that ``decode`` returns it unchanged.

    Raises:
        ValueError: If a key holds a comma, a ``~`` or the segment
            delimiter, or a value holds ``~~``, the segment delimiter or
            ends with a comma
    """
    segments = []
    for key, value in values.items():
        key, value = str(key), str(value)
        if "," in key or ESCAPE_MARKER[0] in key or SEGMENT_DELIMITER in key:
            raise ValueError(f"Key cannot be encoded: {key!r}")
        if SEGMENT_DELIMITER in value or ESCAPE_MARKER in value or value.endswith(","):
            raise ValueError(f"Value for {key!r} cannot be encoded: {value!r}")

        if _needs_marker_form(value):
            segments.append(f"{key}{ESCAPE_MARKER}{value},")
        else:
            segments.append(f"{key},{ESCAPE_MARKER}{value}")
    return SEGMENT_DELIMITER.join(segments)
