"""
Main archiver module.

Runs each scraper definition to completion, one after another: pages come
out of the task source, go through the step pipeline, and either feed new
crawl tasks back in or hand a download batch to the executor.
"""

import os
import time
from dataclasses import dataclass
from typing import Iterable, List, Optional

import aiohttp

from .downloader import DownloadExecutor
from .pipeline import StepPipeline
from .task_source import TaskSource
from ..config import ArchiverSettings, describe
from ..models import CrawlState, NewTasks, Output, ScraperDefinition
from ..utils.log import get_logger
from ..utils.robots import RobotsHandler


@dataclass
class ArchiveResult:
    """Counters for a whole run."""

    definitions: int = 0
    pages_processed: int = 0
    pages_failed: int = 0
    tasks_submitted: int = 0
    files_downloaded: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    duration_seconds: float = 0.0


class SiteArchiver:
    """
    Drives scraper definitions through the pipeline.

    Fatal errors (selector contract violations, unresolvable URLs,
    filesystem errors) propagate out of :meth:`run` and end the run.
    """

    def __init__(
        self,
        definitions: Iterable[ScraperDefinition],
        settings: Optional[ArchiverSettings] = None
    ):
        """
        Initialize the archiver.

        Args:
            definitions: Scraper definitions, processed in order
            settings: Timeouts and pacing; defaults when omitted
        """
        self.definitions: List[ScraperDefinition] = list(definitions)
        self.settings = settings or ArchiverSettings()
        self.pipeline = StepPipeline()
        self.logger = get_logger("crawler")

    async def run(self) -> ArchiveResult:
        """
        Process every definition to exhaustion.

        Returns:
            ArchiveResult with statistics for the run
        """
        start_time = time.time()
        result = ArchiveResult()

        for definition in self.definitions:
            await self._run_definition(definition, result)
            result.definitions += 1

        result.duration_seconds = time.time() - start_time
        return result

    async def _run_definition(
        self,
        definition: ScraperDefinition,
        result: ArchiveResult
    ) -> None:
        self.logger.info(f"Processing scraper: {os.path.abspath(definition.dest)}")
        self.logger.debug(f"Steps: {', '.join(describe(definition))}")

        async with aiohttp.ClientSession(
            headers={"User-Agent": self.settings.user_agent}
        ) as session:
            robots = None
            if self.settings.respect_robots:
                robots = RobotsHandler(session, self.settings.user_agent)

            source = TaskSource(
                session,
                definition.domain_whitelist,
                page_timeout=self.settings.page_timeout,
                min_delay=self.settings.min_request_delay,
                max_delay=self.settings.max_request_delay,
                robots=robots
            )
            executor = DownloadExecutor(
                session,
                timeout=self.settings.download_timeout,
                delay=self.settings.download_delay
            )

            for url in definition.urls:
                source.visit(url, CrawlState(dest=definition.dest, steps=definition.steps))

            try:
                async for response, state in source:
                    result.pages_processed += 1
                    outcome = self.pipeline.advance(state, response)

                    if isinstance(outcome, NewTasks):
                        for url, child in outcome.tasks:
                            if source.visit(url, child):
                                result.tasks_submitted += 1
                    elif isinstance(outcome, Output):
                        await executor.execute(outcome.batch)
            finally:
                result.pages_failed += source.pages_failed
                result.files_downloaded += executor.stats.downloaded
                result.files_skipped += executor.stats.skipped
                result.files_failed += executor.stats.failed

        self.logger.info(
            f"Finished {definition.dest}: {source.pages_fetched} pages, "
            f"{executor.stats.downloaded} downloaded, "
            f"{executor.stats.failed} failed"
        )
