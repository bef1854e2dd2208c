"""
Payload validation with pydantic.
A Validation descriptor is compiled once into a model class; validate_payload() returns
structured field errors instead of raising.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from nile.core.errors import ConfigurationError

VALIDATION_MODES = ("auto", "strict", "partial")


@dataclass(frozen=True)
class Validation:
    model: Optional[Type[BaseModel]] = None
    omit_fields: Sequence[str] = ()
    custom_fields: Optional[Dict[str, Tuple[Any, Any]]] = None  # name -> (type, default)
    mode: str = "auto"
    modifier: Optional[Callable[[Type[BaseModel]], Type[BaseModel]]] = None
    operation: str = "other"  # create | update | other


def as_validation(value: Any) -> Optional[Validation]:
    if value is None:
        return None
    if isinstance(value, Validation):
        return value
    if isinstance(value, type) and issubclass(value, BaseModel):
        return Validation(model=value)
    raise ConfigurationError(f"Unsupported validation descriptor: {value!r}")


def _rebuild(model: Type[BaseModel], omit: Sequence[str], extra_fields: Dict[str, Tuple[Any, Any]]) -> Type[BaseModel]:
    fields: Dict[str, Any] = {
        name: (info.annotation, info) for name, info in model.model_fields.items() if name not in omit
    }
    fields.update(extra_fields)
    return create_model(model.__name__, __config__=ConfigDict(**model.model_config), **fields)


def _partial(model: Type[BaseModel]) -> Type[BaseModel]:
    fields = {name: (Optional[info.annotation], None) for name, info in model.model_fields.items()}
    return create_model(model.__name__, __base__=model, **fields)


def _strict(model: Type[BaseModel]) -> Type[BaseModel]:
    class StrictModel(model):
        model_config = ConfigDict(extra="forbid")

    StrictModel.__name__ = model.__name__
    StrictModel.__qualname__ = model.__qualname__
    return StrictModel


def _resolve_mode(mode: str, operation: str) -> Optional[str]:
    if mode not in VALIDATION_MODES:
        raise ConfigurationError(f"Unknown validation mode: {mode}")
    if mode != "auto":
        return mode
    if operation == "create":
        return "strict"
    if operation == "update":
        return "partial"
    return None


def build_validation_model(value: Any) -> Optional[Type[BaseModel]]:
    """Compile a validation descriptor: base -> omit/custom fields -> modifier -> mode."""
    validation = as_validation(value)
    if validation is None:
        return None

    model = validation.model or create_model("Payload")
    if validation.omit_fields or validation.custom_fields:
        model = _rebuild(model, validation.omit_fields, dict(validation.custom_fields or {}))
    if validation.modifier is not None:
        model = validation.modifier(model)

    mode = _resolve_mode(validation.mode, validation.operation)
    if mode == "partial":
        model = _partial(model)
    elif mode == "strict":
        model = _strict(model)
    return model


def format_errors(exc: ValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(p) for p in err.get("loc", ())),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


def validate_payload(model: Optional[Type[BaseModel]], payload: Any) -> List[Dict[str, Any]]:
    """Empty list when the payload is valid (or there is nothing to validate)."""
    if model is None:
        return []
    try:
        model.model_validate(payload if payload is not None else {})
    except ValidationError as e:
        return format_errors(e)
    return []


def json_schema(model: Optional[Type[BaseModel]]) -> Optional[Dict[str, Any]]:
    if model is None:
        return None
    return model.model_json_schema()
