"""Field type registry.

Maps every `FieldKind` to its validation rule and rendering hints, so that
kind-specific behaviour lives in one place:
- `validate` turns a raw answer into its canonical value or a `FieldError`;
- `describe` tells callers how to render a field as input and in exports.
"""
# app/services/field_types.py
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from formdesk.db.models import FieldKind

MISSING_REQUIRED = "MISSING_REQUIRED"
NOT_NUMERIC = "NOT_NUMERIC"
NOT_A_URI = "NOT_A_URI"

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


@dataclass(frozen=True)
class UploadedAsset:
    """A file attached to an image field, before it reaches object storage."""
    filename: str
    content_type: str | None
    data: bytes

    @property
    def extension(self) -> str:
        if "." in self.filename:
            ext = self.filename.rsplit(".", 1)[-1].lower()
            if ext.isalnum():
                return ext
        return "bin"


@dataclass(frozen=True)
class FieldError:
    field_id: str
    label: str
    code: str


@dataclass(frozen=True)
class FieldCheck:
    """Outcome of validating one answer.

    `value` is None when the field is unanswered; `error` is set on failure.
    """
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class FieldKindSpec:
    kind: FieldKind
    render_hint: str
    export_hint: str  # "text" or "link"
    check: Callable[[Any, bool], FieldCheck]


def _as_text(raw: Any) -> str | None:
    if raw is None or isinstance(raw, UploadedAsset):
        return None
    text = str(raw)
    return text if text.strip() else None


def _check_text(raw, required: bool) -> FieldCheck:
    value = _as_text(raw)
    if value is None:
        return FieldCheck(error=MISSING_REQUIRED) if required else FieldCheck()
    return FieldCheck(value=value)


def _check_number(raw, required: bool) -> FieldCheck:
    value = _as_text(raw)
    if value is None:
        return FieldCheck(error=MISSING_REQUIRED) if required else FieldCheck()
    value = value.strip()
    if not _NUMERIC_RE.match(value):
        return FieldCheck(error=NOT_NUMERIC)
    return FieldCheck(value=value)


def _check_image(raw, required: bool) -> FieldCheck:
    # a fresh upload, or an already stored URI when an operator edits a response
    if isinstance(raw, UploadedAsset):
        return FieldCheck(value=raw)
    value = _as_text(raw)
    if value is None:
        return FieldCheck(error=MISSING_REQUIRED) if required else FieldCheck()
    value = value.strip()
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return FieldCheck(error=NOT_A_URI)
    if url.scheme not in ("http", "https") or not url.host:
        return FieldCheck(error=NOT_A_URI)
    return FieldCheck(value=value)


REGISTRY: dict[FieldKind, FieldKindSpec] = {
    FieldKind.text: FieldKindSpec(FieldKind.text, "text", "text", _check_text),
    FieldKind.email: FieldKindSpec(FieldKind.email, "email", "text", _check_text),
    FieldKind.number: FieldKindSpec(FieldKind.number, "number", "text", _check_number),
    FieldKind.date: FieldKindSpec(FieldKind.date, "date", "text", _check_text),
    FieldKind.textarea: FieldKindSpec(FieldKind.textarea, "textarea", "text", _check_text),
    FieldKind.select: FieldKindSpec(FieldKind.select, "select", "text", _check_text),
    FieldKind.image: FieldKindSpec(FieldKind.image, "file", "link", _check_image),
}

_missing = set(FieldKind) - set(REGISTRY)
if _missing:
    raise RuntimeError(f"Field kinds without a registry entry: {sorted(k.value for k in _missing)}")


def describe(kind: FieldKind) -> FieldKindSpec:
    return REGISTRY[FieldKind(kind)]


def is_asset(kind: FieldKind) -> bool:
    return describe(kind).export_hint == "link"


def validate(kind: FieldKind, raw_value: Any, required: bool) -> FieldCheck:
    """Validate a single answer against its field kind.

    Never raises. Format checks beyond numeric parsing and image URIs are
    left to the input widget, and select values are not checked against the
    configured options.
    """
    return describe(kind).check(raw_value, required)
