"""
Step pipeline engine.

Consumes one fetched page together with its crawl state and runs exactly the
first remaining step on it. Link expansion produces new crawl tasks carrying
the tail of the step list; resource download produces a batch of download
tasks and ends the branch.
"""

import os
from typing import List, Tuple

from .extractor import Element, HtmlDocument
from ..errors import SelectorContractError
from ..models import (
    AdvanceResult,
    CrawlState,
    DownloadResource,
    DownloadTask,
    ExtractLinks,
    NewTasks,
    Output,
    PageResponse,
    Step,
    Terminal,
)
from ..utils.log import get_logger
from ..utils.paths import (
    filename_from_url,
    indexed_filename,
    resolve_url,
    sanitize,
)


class StepPipeline:
    """
    Forward-only state machine over a definition's step list.

    Holds no per-page state; every call to :meth:`advance` depends only on
    its arguments and on which destination paths already exist.
    """

    def __init__(self):
        self.logger = get_logger("pipeline")

    def advance(self, state: CrawlState, response: PageResponse) -> AdvanceResult:
        """
        Run the next step of ``state`` against a fetched page.

        Args:
            state: Destination and remaining steps for this page
            response: The fetched page

        Returns:
            NewTasks for link expansion, Output for resource download,
            Terminal when no steps remain

        Raises:
            SelectorContractError: If a matched element lacks its attribute
            UrlResolutionError: If a reference cannot be resolved
        """
        split = state.split_first()
        if split is None:
            self.logger.debug(f"No steps left for {response.request_url}")
            return Terminal()

        step, remaining = split
        if isinstance(step, ExtractLinks):
            return NewTasks(self._extract_links(step, remaining, state.dest, response))
        if isinstance(step, DownloadResource):
            return Output(self._collect_downloads(step, state.dest, response))

        raise TypeError(f"Unsupported step: {step!r}")

    def _extract_links(
        self,
        step: ExtractLinks,
        remaining: Tuple[Step, ...],
        dest: str,
        response: PageResponse
    ) -> List[Tuple[str, CrawlState]]:
        tasks = []
        document = HtmlDocument(response.text)

        for element in document.select(step.pattern):
            href = _required_attr(step, element)
            name = element.text()
            path = os.path.join(dest, sanitize(name))

            if os.path.exists(path):
                self.logger.info(f"Skipping: {name} (Already exists)")
                continue

            self.logger.info(f"Found: {name}")
            url = resolve_url(response.request_url, href)
            tasks.append((url, CrawlState(dest=path, steps=remaining)))

        return tasks

    def _collect_downloads(
        self,
        step: DownloadResource,
        dest: str,
        response: PageResponse
    ) -> List[DownloadTask]:
        batch = []
        document = HtmlDocument(response.text)

        for index, element in enumerate(document.select(step.pattern)):
            src = resolve_url(response.request_url, _required_attr(step, element))
            name = filename_from_url(src)
            path = os.path.join(dest, indexed_filename(index, name))

            if os.path.exists(path):
                self.logger.info(f"Skipping: {name} (Already exists)")
                continue

            self.logger.info(f"To download: {src}")
            batch.append(DownloadTask(src=src, dest=path))

        return batch


def _required_attr(step: Step, element: Element) -> str:
    value = element.attr(step.attribute)
    if value is None:
        raise SelectorContractError(step.selector, step.attribute, repr(element))
    return value
