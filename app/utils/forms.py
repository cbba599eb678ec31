"""
Request body helpers for endpoints that accept either multipart forms or JSON.
"""

from typing import Any, Dict, List, Tuple, Type, TypeVar
from fastapi import Request
from pydantic import BaseModel, ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile
from app.utils.exceptions import BadRequestError, ValidationError
import json
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=BaseModel)


async def read_request_body(request: Request) -> Tuple[Dict[str, Any], Dict[str, List[StarletteUploadFile]]]:
    """
    Read a JSON or form body.

    Repeated form fields become lists. File parts without a filename are
    ignored, the way browsers send an untouched file input.

    Returns:
        Tuple of (plain fields, uploaded files grouped by field name)
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except json.JSONDecodeError:
            raise BadRequestError("Malformed JSON body")
        if not isinstance(body, dict):
            raise BadRequestError("Request body must be a JSON object")
        return body, {}

    if not content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        return {}, {}

    form = await request.form()
    fields: Dict[str, Any] = {}
    files: Dict[str, List[StarletteUploadFile]] = {}

    for key, value in form.multi_items():
        if isinstance(value, StarletteUploadFile):
            if value.filename:
                files.setdefault(key, []).append(value)
            continue
        if key in fields:
            existing = fields[key]
            fields[key] = existing + [value] if isinstance(existing, list) else [existing, value]
        else:
            fields[key] = value

    logger.debug(f"Parsed form with {len(fields)} fields and {sum(len(v) for v in files.values())} files")
    return fields, files


def parse_model(schema: Type[ModelType], data: Dict[str, Any]) -> ModelType:
    """
    Validate a normalized payload against a schema.

    Raises:
        ValidationError: With field-level details when validation fails
    """
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        field_errors = []
        for error in e.errors():
            field_errors.append({
                "field": ".".join(str(loc) for loc in error.get("loc", ())) or None,
                "message": error.get("msg"),
                "type": error.get("type"),
            })
        message = field_errors[0]["message"] if len(field_errors) == 1 else "Request validation failed"
        raise ValidationError(message, field_errors=field_errors)
