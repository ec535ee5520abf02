"""
Validation error formatting.

Pydantic does the schema checking (see schemas.py). This module turns its
error list into the message the web client understands: every entry reads
"<field> <message>", entries are joined with ", " and the whole string is
prefixed with "Validation Error: ". The client splits on ", " and takes the
first word as the field name, so neither part may contain that separator.
"""
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from pydantic import BaseModel

VALIDATION_PREFIX = "Validation Error: "
SEPARATOR = ", "

# Location segments FastAPI prepends to body/query errors
_LOCATION_ROOTS = {"body", "query", "path", "header"}


def error_field(loc: Sequence[Any]) -> str:
    parts = [str(p) for p in loc]
    if len(parts) > 1 and parts[0] in _LOCATION_ROOTS:
        parts = parts[1:]
    return ".".join(parts) if parts else "body"


def field_errors(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    out = []
    for err in errors:
        message = str(err.get("msg", "Invalid value")).replace(SEPARATOR, " / ")
        out.append({"field": error_field(err.get("loc", ())), "message": message})
    return out


def validation_message(items: List[Dict[str, str]]) -> str:
    return VALIDATION_PREFIX + SEPARATOR.join(f"{i['field']} {i['message']}" for i in items)


def format_validation_errors(errors: Iterable[Dict[str, Any]]) -> Tuple[str, List[Dict[str, str]]]:
    """Return the joined legacy message and the structured list."""
    items = field_errors(errors)
    return validation_message(items), items


def patch_fields(payload: BaseModel) -> Dict[str, Any]:
    """Fields the client actually sent on an update, keyed by wire name.

    Explicit nulls are dropped so a partial update can never blank a
    required field.
    """
    data = payload.model_dump(by_alias=True, exclude_unset=True)
    return {k: v for k, v in data.items() if v is not None}
