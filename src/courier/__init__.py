"""Declarative HTTP request templates with a small embedded template language."""

from courier.config import load_config, load_template
from courier.expression import UNDEFINED, Scope, evaluate
from courier.interpolation import (
    interpolate,
    interpolate_object,
    interpolate_strict,
    process_conditional,
    process_loop,
)
from courier.models import (
    BodyType,
    InputType,
    OutputType,
    RenderedRequest,
    RequestResult,
    RequestTemplate,
    ResponseSpec,
    ResponseSpecs,
    TemplateBody,
)
from courier.request import (
    CourierError,
    MissingResponseSpecError,
    ResponseDecodeError,
    build_request,
    decode_response,
    execute_request,
    format_input,
)

__version__ = "0.1.0"

__all__ = [
    "UNDEFINED",
    "BodyType",
    "CourierError",
    "InputType",
    "MissingResponseSpecError",
    "OutputType",
    "RenderedRequest",
    "RequestResult",
    "RequestTemplate",
    "ResponseDecodeError",
    "ResponseSpec",
    "ResponseSpecs",
    "Scope",
    "TemplateBody",
    "build_request",
    "decode_response",
    "evaluate",
    "execute_request",
    "format_input",
    "interpolate",
    "interpolate_object",
    "interpolate_strict",
    "load_config",
    "load_template",
    "process_conditional",
    "process_loop",
]
