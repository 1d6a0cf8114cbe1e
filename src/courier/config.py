"""Configuration and template loading for courier."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from courier.models import RequestTemplate

TEMPLATE_SUFFIXES = (".yaml", ".yml", ".json")


class HttpConfig(BaseModel):
    """Settings for the HTTP client used to send requests."""

    follow_redirects: bool = True
    timeout: float | None = Field(
        default=None, gt=0, description="Request timeout in seconds (None waits indefinitely)"
    )
    user_agent: str | None = Field(default=None, description="Default User-Agent header")


class LoggingConfig(BaseModel):
    """Configuration for logging output."""

    level: str = "info"


class CourierConfig(BaseModel):
    """Top-level courier configuration."""

    http: HttpConfig = Field(default_factory=HttpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    templates_dir: str = Field(
        default="./templates",
        description="Directory searched for templates referenced by bare name",
    )


def _read_document(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        if path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_config(path: str | Path | None = None) -> CourierConfig:
    """Load courier configuration from a YAML file.

    Args:
        path: Path to the YAML config file. If None, uses 'courier.yaml'
              in the current directory, falling back to defaults.

    Returns:
        A validated CourierConfig instance.
    """
    path = Path("courier.yaml") if path is None else Path(path)

    if path.exists():
        raw: dict[str, Any] = _read_document(path) or {}
        return CourierConfig.model_validate(raw)

    return CourierConfig()


def resolve_template_path(name: str | Path, templates_dir: str | Path) -> Path:
    """Find a template file by path or by bare name inside ``templates_dir``."""
    path = Path(name)
    if path.exists():
        return path
    for suffix in TEMPLATE_SUFFIXES:
        candidate = Path(templates_dir) / f"{name}{suffix}"
        if candidate.exists():
            return candidate
    raise FileNotFoundError(f"Template not found: {name}")


def load_template(path: str | Path) -> RequestTemplate:
    """Load a request template from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the document is not a valid template.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Template not found: {path}")
    return RequestTemplate.model_validate(_read_document(path) or {})


def load_data(path: str | Path | None) -> Any:
    """Load a data context from a YAML or JSON file, or an empty mapping."""
    if path is None:
        return {}
    return _read_document(Path(path))
