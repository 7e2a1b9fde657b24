"""Single JSON entry point for decoding wire payloads into models."""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from .errors import ErrorFactory

M = TypeVar("M", bound=BaseModel)


def decode(model: type[M], content: bytes | str, *, url: str | None = None) -> M:
    """Decode a JSON payload into ``model``.

    Raises:
        DecodeError: If the payload is not valid JSON or misses fields.
    """
    try:
        return model.model_validate_json(content)
    except ValidationError as e:
        raise ErrorFactory.decode_error(e, url=url, target=model.__name__) from e


def build(model: type[M], *, url: str | None = None, **fields: object) -> M:
    """Construct ``model`` from already-extracted values.

    Raises:
        DecodeError: If the values do not validate.
    """
    try:
        return model(**fields)
    except ValidationError as e:
        raise ErrorFactory.decode_error(e, url=url, target=model.__name__) from e
