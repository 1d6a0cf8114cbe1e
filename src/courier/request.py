"""Request pipeline: render a template, send it, render the response.

A template is rendered against the caller's data context into a concrete
request, sent with httpx, and the decoded response body becomes the data
context for the template's output rules.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx

from courier.interpolation import (
    interpolate,
    interpolate_object,
    interpolate_strict,
    quote_component,
    to_text,
)
from courier.models import (
    BodyType,
    InputType,
    RenderedRequest,
    RequestResult,
    RequestTemplate,
    ResponseSpec,
)

if TYPE_CHECKING:
    from courier.config import HttpConfig

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    BodyType.JSON: "application/json",
    BodyType.FORM: "application/x-www-form-urlencoded",
}


class CourierError(Exception):
    """Base class for errors raised by the request pipeline."""


class ResponseDecodeError(CourierError, ValueError):
    """The response body could not be decoded with the selected input type."""


class MissingResponseSpecError(CourierError):
    """The template has no response rules for the outcome of the call."""

    def __init__(self, branch: str, status_code: int) -> None:
        self.branch = branch
        self.status_code = status_code
        super().__init__(f"Template has no response.{branch} spec for HTTP status {status_code}")


def format_input(text: str, input_type: InputType | str) -> Any:
    """Decode a raw response body according to ``input_type``.

    Args:
        text: The response body as text.
        input_type: json, text, space_separated or comma_separated.

    Returns:
        The parsed JSON value, a list of tokens, or the text itself.

    Raises:
        ResponseDecodeError: If ``input_type`` is json and the body is not
            valid JSON.
    """
    input_type = InputType(input_type)
    if input_type == InputType.JSON:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResponseDecodeError(f"Response body is not valid JSON: {exc}") from exc
    if input_type == InputType.SPACE_SEPARATED:
        return text.split()
    if input_type == InputType.COMMA_SEPARATED:
        return re.split(r"\s*,\s*", text)
    return text


def _append_query(url: str, params: list[tuple[str, str]]) -> str:
    if not params:
        return url
    parts = urlsplit(url)
    query = urlencode(params)
    query = f"{parts.query}&{query}" if parts.query else query
    return urlunsplit(parts._replace(query=query))


def _form_value(value: Any, data: Any) -> str:
    if isinstance(value, str):
        return interpolate(value, data)
    return to_text(value)


def _encode_body(template: RequestTemplate, data: Any) -> str | None:
    body = template.body
    if body is None:
        return None
    if body.type == BodyType.JSON:
        content = interpolate_object(body.content, data)
        return json.dumps(content, ensure_ascii=False, separators=(",", ":"))
    if body.type == BodyType.FORM:
        return urlencode(
            [(key, _form_value(value, data)) for key, value in body.content.items()]
        )
    return interpolate(body.content, data)


def build_request(template: RequestTemplate, data: Any) -> RenderedRequest:
    """Render a template into a concrete request without sending it.

    Args:
        template: The request template.
        data: Data context the template fields are rendered against.

    Returns:
        The rendered method, URL (with query appended), headers and body.
    """
    url = interpolate(template.url, data, quote_component)
    query = [(key, interpolate(value, data)) for key, value in template.query.items()]
    url = _append_query(url, query)

    headers: dict[str, str] = {}
    for name, value in template.headers.items():
        rendered = interpolate_strict(value, data)
        if rendered is None:
            logger.debug("Omitting header %s", name)
            continue
        headers[name] = rendered

    body = _encode_body(template, data)
    if template.body is not None and template.body.type in CONTENT_TYPES:
        if not any(name.lower() == "content-type" for name in headers):
            headers["Content-Type"] = CONTENT_TYPES[template.body.type]

    return RenderedRequest(method=template.method, url=url, headers=headers, body=body)


def select_response_spec(template: RequestTemplate, response: httpx.Response) -> ResponseSpec:
    """Return the response rules matching the outcome of ``response``."""
    branch = "content" if response.is_success else "error"
    spec = getattr(template.response, branch)
    if spec is None:
        raise MissingResponseSpecError(branch, response.status_code)
    return spec


def decode_response(template: RequestTemplate, response: httpx.Response) -> RequestResult:
    """Decode a received response and render the matching output template."""
    spec = select_response_spec(template, response)
    payload = format_input(response.text, spec.input_type)
    return RequestResult(
        type=spec.output_type,
        content=interpolate(spec.output, payload),
        status_code=response.status_code,
    )


def create_client(config: HttpConfig | None = None) -> httpx.AsyncClient:
    """Create an httpx client honouring the HTTP settings.

    Without a configured timeout the client waits indefinitely; callers
    wanting a deadline pass one in the config or wrap the call.
    """
    if config is None:
        return httpx.AsyncClient(follow_redirects=True, timeout=None)
    kwargs: dict[str, Any] = {
        "follow_redirects": config.follow_redirects,
        "timeout": config.timeout,
    }
    if config.user_agent:
        kwargs["headers"] = {"User-Agent": config.user_agent}
    return httpx.AsyncClient(**kwargs)


async def execute_request(
    template: RequestTemplate,
    data: Any,
    client: httpx.AsyncClient | None = None,
) -> RequestResult:
    """Render and send a templated request, then render its response.

    Args:
        template: The request template.
        data: Data context for rendering the request.
        client: Optional httpx client to send with. A short-lived client is
            created for the call when omitted.

    Returns:
        The output type and rendered content of the matching response spec.

    Raises:
        httpx.HTTPError: If the request cannot be sent.
        ResponseDecodeError: If a JSON response body is malformed.
        MissingResponseSpecError: If the template lacks rules for the outcome.
    """
    request = build_request(template, data)
    logger.debug("Sending %s %s", request.method, request.url)

    if client is None:
        async with create_client() as owned:
            response = await _send(owned, request)
    else:
        response = await _send(client, request)

    logger.info("%s %s -> %d", request.method, request.url, response.status_code)
    return decode_response(template, response)


async def _send(client: httpx.AsyncClient, request: RenderedRequest) -> httpx.Response:
    return await client.request(
        request.method,
        request.url,
        headers=request.headers,
        content=request.body.encode() if request.body is not None else None,
    )
