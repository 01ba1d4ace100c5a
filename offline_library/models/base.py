"""Base models for serialization."""

import base64
from typing import Annotated

from pydantic import BaseModel
from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import PlainSerializer
from pydantic.alias_generators import to_camel


class CamelCaseModel(BaseModel):
    """Base model for API responses using camelCase JSON serialization."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


def _decode_body(value: object) -> object:
    # JSON carries bodies as base64 text; Python callers pass bytes
    if isinstance(value, str):
        return base64.b64decode(value.encode("ascii"), validate=True)
    return value


def _encode_body(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


Base64Body = Annotated[
    bytes,
    BeforeValidator(_decode_body),
    PlainSerializer(_encode_body, return_type=str, when_used="json"),
]
"""Raw bytes in Python, base64 text in JSON."""
