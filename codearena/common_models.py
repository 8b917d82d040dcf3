from typing import Iterable

from pydantic import BaseModel


def reject_null_fields(model: BaseModel, fields: Iterable[str]) -> BaseModel:
    """
    Partial updates may omit a field but may not clear a required one

    Raises:
        ValueError: A listed field was sent explicitly as null
    """
    cleared = sorted(
        name for name in fields
        if name in model.model_fields_set and getattr(model, name) is None
    )
    if cleared:
        raise ValueError(f"Field(s) cannot be null: {', '.join(cleared)}")
    return model
