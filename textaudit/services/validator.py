from __future__ import annotations

import json
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel

from textaudit.core.errors import EmptyPayloadError, MalformedPayloadError, SchemaViolation
from textaudit.services.sanitizer import sanitize

ModelT = TypeVar("ModelT", bound=BaseModel)


def _describe(errors: list[dict[str, Any]]) -> str:
    parts = []
    for err in errors[:5]:
        loc = ".".join(str(item) for item in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def validate(parsed: Any, schema: type[ModelT]) -> ModelT:
    if not isinstance(parsed, dict):
        raise SchemaViolation(f"{schema.__name__} payload must be a JSON object, got {type(parsed).__name__}")
    try:
        return schema.model_validate(parsed)
    except pydantic.ValidationError as exc:
        errors = exc.errors(include_url=False)
        raise SchemaViolation(f"{schema.__name__} failed validation: {_describe(errors)}", errors=errors) from exc


def parse_payload(raw: str | None) -> Any:
    cleaned = sanitize(raw)
    if not cleaned:
        raise EmptyPayloadError("Completion backend returned an empty payload")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError(f"Completion payload is not valid JSON: {exc.msg} at position {exc.pos}") from exc


def parse_and_validate(raw: str | None, schema: type[ModelT]) -> ModelT:
    return validate(parse_payload(raw), schema)
