"""
Configuration loading for the site archiver.

Reads the YAML scraper definitions and validates them before any network
activity takes place. Runtime tuning that is not part of the file lives in
:class:`ArchiverSettings`.
"""

from dataclasses import dataclass, field
from typing import Any, List, Tuple
from urllib.parse import urlsplit

import yaml
from soupsieve import SelectorSyntaxError

from .errors import ConfigError
from .models import STEP_TYPES, ScraperDefinition, Step
from .utils.constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_PAGE_TIMEOUT,
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_DOWNLOAD_DELAY,
    DEFAULT_MIN_REQUEST_DELAY,
    DEFAULT_MAX_REQUEST_DELAY,
)


@dataclass
class ArchiverSettings:
    """Timeouts, pacing, and politeness settings for a run."""

    user_agent: str = DEFAULT_USER_AGENT
    page_timeout: float = DEFAULT_PAGE_TIMEOUT
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT
    download_delay: float = DEFAULT_DOWNLOAD_DELAY
    min_request_delay: float = DEFAULT_MIN_REQUEST_DELAY
    max_request_delay: float = DEFAULT_MAX_REQUEST_DELAY
    respect_robots: bool = True

    def __post_init__(self) -> None:
        if self.download_delay < 0:
            raise ConfigError("download delay must not be negative")
        if self.min_request_delay < 0 or self.max_request_delay < self.min_request_delay:
            raise ConfigError(
                f"invalid request delay window: "
                f"[{self.min_request_delay}, {self.max_request_delay}]"
            )
        if self.page_timeout <= 0 or self.download_timeout <= 0:
            raise ConfigError("timeouts must be positive")


@dataclass
class Config:
    """Parsed configuration file."""

    scrapers: List[ScraperDefinition] = field(default_factory=list)


def load_config(path: str) -> Config:
    """
    Load and validate a configuration file.

    Args:
        path: Path to the YAML document

    Returns:
        Validated Config

    Raises:
        ConfigError: If the file cannot be read or does not validate
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Couldn't read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Couldn't parse config {path}: {e}") from e

    return parse_config(document)


def parse_config(document: Any) -> Config:
    """
    Validate an already-parsed document.

    Args:
        document: Result of ``yaml.safe_load``

    Returns:
        Validated Config
    """
    if not isinstance(document, dict) or 'scrapers' not in document:
        raise ConfigError("config must be a mapping with a 'scrapers' list")

    scrapers = document['scrapers']
    if not isinstance(scrapers, list):
        raise ConfigError("'scrapers' must be a list")

    return Config(scrapers=[
        _parse_definition(index, entry) for index, entry in enumerate(scrapers)
    ])


def _parse_definition(index: int, entry: Any) -> ScraperDefinition:
    where = f"scrapers[{index}]"
    if not isinstance(entry, dict):
        raise ConfigError(f"{where}: expected a mapping")

    unknown = set(entry) - {'dest', 'urls', 'domain_whitelist', 'steps'}
    if unknown:
        raise ConfigError(f"{where}: unknown keys: {', '.join(sorted(map(str, unknown)))}")

    dest = entry.get('dest')
    if not isinstance(dest, str) or not dest.strip():
        raise ConfigError(f"{where}.dest: expected a non-empty path")

    urls = tuple(_string_list(entry, 'urls', where))
    for url in urls:
        parts = urlsplit(url)
        if parts.scheme not in ('http', 'https') or not parts.netloc:
            raise ConfigError(f"{where}.urls: not an absolute http(s) URL: {url}")

    domains = tuple(_string_list(entry, 'domain_whitelist', where))

    steps = entry.get('steps')
    if not isinstance(steps, list):
        raise ConfigError(f"{where}.steps: expected a list")

    return ScraperDefinition(
        dest=dest,
        urls=urls,
        domain_whitelist=domains,
        steps=tuple(
            _parse_step(f"{where}.steps[{i}]", step) for i, step in enumerate(steps)
        ),
    )


def _string_list(entry: dict, key: str, where: str) -> List[str]:
    value = entry.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{where}.{key}: expected a list of strings")
    return value


def _parse_step(where: str, step: Any) -> Step:
    if not isinstance(step, dict) or len(step) != 1:
        raise ConfigError(
            f"{where}: expected exactly one of {', '.join(STEP_TYPES)}"
        )

    ((key, selector),) = step.items()
    step_type = STEP_TYPES.get(key)
    if step_type is None:
        raise ConfigError(f"{where}: unknown step '{key}'")

    if not isinstance(selector, str) or not selector.strip():
        raise ConfigError(f"{where}.{key}: expected a selector string")

    try:
        return step_type.from_selector(selector)
    except SelectorSyntaxError as e:
        raise ConfigError(f"{where}.{key}: invalid selector '{selector}': {e}") from e


def describe(definition: ScraperDefinition) -> Tuple[str, ...]:
    """Human-readable step summary used in log lines."""
    return tuple(f"{step.config_key}({step.selector})" for step in definition.steps)
