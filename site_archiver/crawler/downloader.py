"""
Download executor for fetching and saving resources.

Downloads run strictly one at a time with a fixed courtesy delay after every
fetch. Files are written to a partial sibling first and only renamed into
place once the whole body has arrived.
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Iterable

import aiohttp
from aiohttp import ClientError

from ..models import DownloadTask
from ..utils.constants import DOWNLOAD_CHUNK_SIZE, PARTIAL_SUFFIX
from ..utils.log import get_logger
from ..utils.paths import ensure_parent_dir


@dataclass
class DownloadStats:
    """Counters for one executor."""

    downloaded: int = 0
    skipped: int = 0
    failed: int = 0


class DownloadExecutor:
    """
    Fetches download batches sequentially.

    Transport failures are logged and leave the task unfulfilled; filesystem
    errors propagate to the caller.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float,
        delay: float
    ):
        """
        Initialize the download executor.

        Args:
            session: Open aiohttp session to fetch with
            timeout: Connect and per-read timeout in seconds
            delay: Pause after every fetch attempt, in seconds
        """
        self.session = session
        self.timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=timeout,
            sock_read=timeout
        )
        self.delay = delay
        self.stats = DownloadStats()
        self.logger = get_logger("downloader")

    async def execute(self, batch: Iterable[DownloadTask]) -> None:
        """
        Process one batch in order.

        Args:
            batch: Download tasks from a single page
        """
        batch = list(batch)
        self.logger.info(f"Got {len(batch)} resources")

        for task in batch:
            if await self.download(task):
                await self._pause()

    async def download(self, task: DownloadTask) -> bool:
        """
        Fetch a single resource unless its destination already exists.

        Args:
            task: Resource to fetch

        Returns:
            True if a fetch was attempted, False if the task was skipped

        Raises:
            OSError: If the destination cannot be created or written
        """
        if os.path.exists(task.dest):
            self.logger.warning(f"{task.dest} already exists")
            self.stats.skipped += 1
            return False

        ensure_parent_dir(task.dest)
        partial = task.dest + PARTIAL_SUFFIX

        try:
            with open(partial, 'wb') as f:
                async with self.session.get(task.src, timeout=self.timeout) as response:
                    response.raise_for_status()
                    async for chunk in response.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
        except (ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Failed to get {task.src}: {e!r}")
            _remove(partial)
            self.stats.failed += 1
            return True
        except OSError:
            _remove(partial)
            raise

        os.replace(partial, task.dest)
        self.stats.downloaded += 1
        self.logger.info(f"Downloaded: {task.dest}")
        return True

    async def _pause(self) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
