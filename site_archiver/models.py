"""
Data model shared by the pipeline, the task source, and the downloader.
"""

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Tuple, Union

import soupsieve
from soupsieve import SoupSieve


@dataclass(frozen=True)
class Step:
    """
    One stage of a scrape pipeline.

    Holds the selector as written in the configuration and its compiled
    form. Subclasses name the element attribute they read.
    """

    selector: str
    pattern: SoupSieve = field(compare=False, repr=False)

    # Key used for this step in the configuration file
    config_key: ClassVar[str] = ""

    # Attribute read from every matched element
    attribute: ClassVar[str] = ""

    @classmethod
    def from_selector(cls, selector: str) -> "Step":
        """
        Compile a CSS selector into a step.

        Raises:
            soupsieve.SelectorSyntaxError: If the selector is invalid
        """
        return cls(selector=selector, pattern=soupsieve.compile(selector))


@dataclass(frozen=True)
class ExtractLinks(Step):
    """Follow every matched link into a sub-directory named after its text."""

    config_key: ClassVar[str] = "ExtractHrefsFromHTML"
    attribute: ClassVar[str] = "href"


@dataclass(frozen=True)
class DownloadResource(Step):
    """Download every matched resource into the current directory."""

    config_key: ClassVar[str] = "DownloadImage"
    attribute: ClassVar[str] = "src"


STEP_TYPES = {step_type.config_key: step_type for step_type in (ExtractLinks, DownloadResource)}


@dataclass(frozen=True)
class ScraperDefinition:
    """One scrape job: where to write, where to start, and what to do."""

    dest: str
    urls: Tuple[str, ...]
    domain_whitelist: Tuple[str, ...]
    steps: Tuple[Step, ...]


@dataclass(frozen=True)
class CrawlState:
    """
    State carried alongside a crawl task.

    ``steps`` is an immutable tuple; every derived state holds its own
    slice of it.
    """

    dest: str
    steps: Tuple[Step, ...]

    def split_first(self) -> Optional[Tuple[Step, Tuple[Step, ...]]]:
        """Return the next step and the remaining ones, or None when exhausted."""
        if not self.steps:
            return None
        return self.steps[0], self.steps[1:]


@dataclass(frozen=True)
class PageResponse:
    """A fetched page as handed over by the task source."""

    request_url: str
    status: int
    text: str


@dataclass(frozen=True)
class DownloadTask:
    """A resolved resource awaiting fetch-and-write."""

    src: str
    dest: str


@dataclass
class NewTasks:
    """Link expansion result: crawl tasks to submit."""

    tasks: List[Tuple[str, CrawlState]] = field(default_factory=list)


@dataclass
class Output:
    """Download result: resources to fetch, in document order."""

    batch: List[DownloadTask] = field(default_factory=list)


@dataclass
class Terminal:
    """Nothing left to do for this page."""


AdvanceResult = Union[NewTasks, Output, Terminal]
