from __future__ import annotations
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError


def error_location(err: Dict[str, Any]) -> str:
    """`slings.0.length_ft` style dotted path of one pydantic error."""
    return ".".join(str(p) for p in err.get("loc", ())) or "<root>"


def format_validation_error(e: ValidationError) -> str:
    """One `path: message` line per failing field, in pydantic's order."""
    return "\n".join(f"{error_location(err)}: {err.get('msg', '')}" for err in e.errors())


def validate_inputs(model: Optional[Type[BaseModel]], raw: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
    """
    Returns (normalised_dict, error_message).

    The normalised dict is the JSON-mode dump of the model, so defaults are
    filled in and the input hash does not depend on how optional fields were
    spelled. If model is None, returns raw as-is.
    """
    if model is None:
        return raw, None
    try:
        obj = model.model_validate(raw)
    except ValidationError as e:
        return {}, format_validation_error(e)
    return obj.model_dump(mode="json"), None
