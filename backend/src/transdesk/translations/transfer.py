"""JSON import/export of translation matrices.

Two layouts are accepted on import:

    KEY_FIRST:       {"home.title": {"en": "Home", "fr": "Accueil"}}
    LANGUAGE_FIRST:  {"en": {"home.title": "Home"}, "fr": {"home.title": "Accueil"}}

Parsing is an explicit sequence: a schema check (object of objects of
strings), then layout detection against the known language codes, then
the shape heuristic. Anything that passes none of them is rejected rather
than guessed at. A payload whose outer and inner keys are both language
codes is read as LANGUAGE_FIRST.
"""

from dataclasses import dataclass
from enum import Enum
import json
import re

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from transdesk.core.exceptions import ValidationError

SUPPORTED_FORMATS = ("json",)

_payload_adapter = TypeAdapter(dict[str, dict[str, str]])

# Short code made of letters, digits, hyphen or underscore: en, zh-CN, pt_BR
_LANGUAGE_CODE_SHAPE = re.compile(r"[A-Za-z0-9_-]{2,5}")


class ImportLayout(str, Enum):
    KEY_FIRST = "key_first"
    LANGUAGE_FIRST = "language_first"


@dataclass
class ImportDocument:
    layout: ImportLayout
    # key -> language code -> value
    values: dict[str, dict[str, str]]


def ensure_format(format: str) -> str:
    normalized = (format or "json").lower()
    if normalized not in SUPPORTED_FORMATS:
        raise ValidationError(f"Unsupported format: {format}", field="format")
    return normalized


def looks_like_language_code(code: str) -> bool:
    return bool(_LANGUAGE_CODE_SHAPE.fullmatch(code))


def detect_layout(
    data: dict[str, dict[str, str]], known_codes: set[str]
) -> ImportLayout:
    top_keys = list(data)
    if known_codes:
        if all(key in known_codes for key in top_keys):
            return ImportLayout.LANGUAGE_FIRST
        inner_keys = {key for inner in data.values() for key in inner}
        if inner_keys and all(key in known_codes for key in inner_keys):
            return ImportLayout.KEY_FIRST

    if all(looks_like_language_code(key) for key in top_keys):
        return ImportLayout.LANGUAGE_FIRST
    if any("." in key for key in top_keys):
        return ImportLayout.KEY_FIRST
    raise ValidationError("Unable to determine import layout", field="body")


def parse_import_payload(raw: bytes, known_codes: set[str]) -> ImportDocument:
    """Validate a JSON import body and normalize it to key -> language -> value.

    Raises:
        ValidationError: body is not UTF-8 JSON shaped as an object of
            objects of strings, is empty, or matches neither layout
    """
    try:
        data = _payload_adapter.validate_json(raw)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Import payload must be an object of objects of strings: "
            f"{first.get('msg', 'invalid JSON')}",
            field=location or "body",
        ) from e
    if not data:
        raise ValidationError("Import payload is empty", field="body")

    layout = detect_layout(data, known_codes)
    if layout is ImportLayout.KEY_FIRST:
        return ImportDocument(layout=layout, values=data)

    values: dict[str, dict[str, str]] = {}
    for code, entries in data.items():
        for key, value in entries.items():
            values.setdefault(key, {})[code] = value
    return ImportDocument(layout=layout, values=values)


def render_export(values: dict[str, dict[str, str]], format: str = "json") -> bytes:
    ensure_format(format)
    return json.dumps(values, ensure_ascii=False, indent=2).encode("utf-8")
