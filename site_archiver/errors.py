"""
Exception types for the site archiver.

Every exception here is fatal: it aborts the whole run. Failures that are
recovered locally (a single resource that cannot be fetched) never raise.
"""


class ArchiverError(Exception):
    """Base class for fatal archiver errors."""


class ConfigError(ArchiverError):
    """The configuration file is unreadable, malformed, or invalid."""


class SelectorContractError(ArchiverError):
    """A matched element lacks the attribute its step reads."""

    def __init__(self, selector: str, attribute: str, element: str):
        self.selector = selector
        self.attribute = attribute
        self.element = element
        super().__init__(
            f"Failed to find {attribute} on element matched by '{selector}': {element}"
        )


class UrlResolutionError(ArchiverError):
    """A link or resource reference could not be resolved to a URL."""
