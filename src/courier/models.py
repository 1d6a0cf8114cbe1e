"""Data models for request templates and their rendered results."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BodyType(enum.StrEnum):
    """How a template body is encoded on the wire."""

    JSON = "json"
    FORM = "form"
    RAW = "raw"


class InputType(enum.StrEnum):
    """How a raw response body is decoded before the output is rendered."""

    JSON = "json"
    TEXT = "text"
    SPACE_SEPARATED = "space_separated"
    COMMA_SEPARATED = "comma_separated"


class OutputType(enum.StrEnum):
    """Common output tags. Any string is accepted as an output type."""

    TEXT = "text"
    JSON = "json"
    HTML = "html"
    MARKDOWN = "markdown"
    IMAGE = "image"


class TemplateBody(BaseModel):
    """Request body definition.

    ``content`` is a nested structure for ``json``, a flat mapping of
    field names to string templates for ``form``, and a string for ``raw``.
    """

    model_config = ConfigDict(frozen=True)

    type: BodyType = Field(default=BodyType.JSON, description="Body encoding: json, form, raw")
    content: Any = Field(default=None, description="Template value matching the body type")

    @model_validator(mode="after")
    def _check_content(self) -> TemplateBody:
        if self.type == BodyType.FORM and not isinstance(self.content, dict):
            raise ValueError("form body content must be a mapping")
        if self.type == BodyType.RAW and not isinstance(self.content, str):
            raise ValueError("raw body content must be a string")
        return self


class ResponseSpec(BaseModel):
    """Decode/render rules applied to one class of HTTP outcome."""

    model_config = ConfigDict(frozen=True)

    input_type: InputType = Field(default=InputType.JSON, description="How to parse the body")
    output: str = Field(default="{{.}}", description="Template rendered against the payload")
    output_type: str = Field(
        default=OutputType.TEXT.value,
        description="Opaque tag returned to the caller alongside the content",
    )


class ResponseSpecs(BaseModel):
    """Response rules for successful (``content``) and failed (``error``) calls."""

    model_config = ConfigDict(frozen=True)

    content: ResponseSpec | None = None
    error: ResponseSpec | None = None


class RequestTemplate(BaseModel):
    """A declarative HTTP call with templated URL, headers, query and body.

    Templates are immutable and reusable across calls; every templated
    field is rendered fresh against the data context of each call.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="URL template; substituted values are percent-encoded")
    method: str = Field(default="GET", description="HTTP method")
    query: dict[str, str] = Field(
        default_factory=dict, description="Query parameter templates, appended in order"
    )
    headers: dict[str, str | None] = Field(
        default_factory=dict,
        description="Header templates; headers rendering to null are omitted",
    )
    body: TemplateBody | None = Field(default=None, description="Optional request body")
    response: ResponseSpecs = Field(default_factory=ResponseSpecs)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()


class RenderedRequest(BaseModel):
    """A fully rendered request, ready to send."""

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = None


class RequestResult(BaseModel):
    """Outcome of executing a template: an output tag and rendered content."""

    type: str = Field(description="The output_type of the response spec used")
    content: str = Field(description="The rendered output template")
    status_code: int | None = Field(default=None, description="HTTP status of the response")
