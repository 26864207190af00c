"""Configuration management for Peqy Action.

Action inputs are supplied by the workflow runner as environment variables
named ``INPUT_<NAME>``: spaces in the input name become underscores, the name
is upper-cased and hyphens are kept (``api-key`` -> ``INPUT_API-KEY``).

Configuration loading priority (highest to lowest):
1. Programmatic overrides (CLI options)
2. Action inputs from the environment
3. Default values defined in this module

Logging is configured separately through ``PEQY_LOGGING__*`` variables:
    PEQY_LOGGING__LEVEL=DEBUG
    PEQY_LOGGING__FORMAT=json
"""

from __future__ import annotations

import os
from typing import Any, Literal, Mapping

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from peqy_action.exceptions import ConfigurationError
from peqy_action.models import DEFAULT_API_URL


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["json", "console"]


class LoggingConfig(BaseSettings):
    """Logging configuration for a single action run.

    Values are matched case-insensitively, so ``PEQY_LOGGING__LEVEL=debug``
    and ``--log-format JSON`` are both accepted.
    """

    model_config = SettingsConfigDict(
        env_prefix="PEQY_LOGGING__",
        extra="forbid",
    )

    level: LogLevel = "INFO"
    format: LogFormat = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class ActionInputs(BaseModel):
    """Raw action inputs after type coercion, before range checks.

    Range checks are deliberately not declared here: they run in a fixed
    order at the start of the action so the first failing check produces
    the reported message.

    Attributes:
        api_key: Peqy API key
        api_url: Review-trigger endpoint
        timeout: Per-attempt timeout in milliseconds
        max_retries: Total attempts allowed
        fail_on_error: Whether a failed API response fails the step
    """

    api_key: SecretStr
    api_url: str = Field(default=DEFAULT_API_URL)
    timeout: int = Field(default=30000)
    max_retries: int = Field(default=3)
    fail_on_error: bool = Field(default=True)


def input_env_name(name: str) -> str:
    """Return the environment variable the runner uses for input ``name``."""
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(
    name: str,
    environ: Mapping[str, str] | None = None,
    required: bool = False,
) -> str:
    """Read a single action input.

    Args:
        name: Input name as declared by the action (e.g. ``api-key``)
        environ: Environment mapping; defaults to ``os.environ``
        required: Raise if the input is empty or absent

    Returns:
        The whitespace-trimmed value, or an empty string if not supplied.

    Raises:
        ConfigurationError: If a required input is not supplied
    """
    env = os.environ if environ is None else environ
    value = env.get(input_env_name(name), "").strip()
    if required and not value:
        raise ConfigurationError(f"Input required and not supplied: {name}")
    return value


def _parse_int(name: str, raw: str, default: int) -> int:
    if not raw:
        return default
    try:
        return int(raw, 10)
    except ValueError as e:
        raise ConfigurationError(f"Input '{name}' must be an integer, got: {raw!r}") from e


def load_inputs(
    environ: Mapping[str, str] | None = None,
    overrides: dict[str, Any] | None = None,
) -> ActionInputs:
    """Load action inputs from the environment with optional overrides.

    Args:
        environ: Environment mapping; defaults to ``os.environ``
        overrides: Values that replace environment inputs; ``None`` values
            are ignored

    Returns:
        ActionInputs instance

    Raises:
        ConfigurationError: If the API key is missing or a numeric input
            does not parse
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    data: dict[str, Any] = {
        "api_key": get_input("api-key", environ, required="api_key" not in overrides),
        "api_url": get_input("api-url", environ) or DEFAULT_API_URL,
        "timeout": _parse_int("timeout", get_input("timeout", environ), 30000),
        "max_retries": _parse_int("max-retries", get_input("max-retries", environ), 3),
        # Anything but the literal "false" keeps the step failing on error
        "fail_on_error": get_input("fail-on-error", environ) != "false",
    }
    data.update(overrides)

    try:
        return ActionInputs(**data)
    except ValidationError as e:
        # Field names only; input values may contain the API key
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid action inputs: {fields}") from e
