"""
Task source: fetches crawl tasks and hands back pages with their state.

Enforces the domain allow-list, robots.txt, URL de-duplication, and a random
per-domain delay between page requests. Fetch failures drop the page and are
never fatal.
"""

import asyncio
import random
from collections import deque
from typing import AsyncIterator, Deque, Dict, Iterable, Optional, Set, Tuple

import aiohttp
from aiohttp import ClientError

from ..models import CrawlState, PageResponse
from ..utils.log import get_logger
from ..utils.paths import get_domain, is_allowed_domain, strip_fragment
from ..utils.robots import RobotsHandler


class TaskSource:
    """
    Queue of crawl tasks backed by an aiohttp session.

    Tasks may be submitted with :meth:`visit` at any time, including while
    the source is being iterated; iteration ends once the queue is empty.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        allowed_domains: Iterable[str],
        page_timeout: float,
        min_delay: float,
        max_delay: float,
        robots: Optional[RobotsHandler] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the task source.

        Args:
            session: Open aiohttp session used for page fetches
            allowed_domains: Hosts (and their subdomains) that may be fetched
            page_timeout: Total timeout per page fetch in seconds
            min_delay: Lower bound of the per-domain delay in seconds
            max_delay: Upper bound of the per-domain delay in seconds
            robots: robots.txt handler, or None to ignore robots.txt
            rng: Random source for delays
        """
        self.session = session
        self.allowed_domains = tuple(allowed_domains)
        self.timeout = aiohttp.ClientTimeout(total=page_timeout)
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.robots = robots
        self.rng = rng or random.Random()
        self.logger = get_logger("tasks")

        self._queue: Deque[Tuple[str, CrawlState]] = deque()
        self._seen: Set[str] = set()
        self._last_request: Dict[str, float] = {}

        self.pages_fetched = 0
        self.pages_failed = 0

    def visit(self, url: str, state: CrawlState) -> bool:
        """
        Submit a crawl task.

        Args:
            url: Absolute page URL
            state: State to hand back with the fetched page

        Returns:
            True if queued, False if filtered out or already seen
        """
        if not is_allowed_domain(url, self.allowed_domains):
            self.logger.debug(f"Skipping (domain not allowed): {url}")
            return False

        key = strip_fragment(url)
        if key in self._seen:
            self.logger.debug(f"Skipping (already visited): {url}")
            return False

        self._seen.add(key)
        self._queue.append((url, state))
        return True

    @property
    def pending(self) -> int:
        """Number of tasks waiting to be fetched."""
        return len(self._queue)

    async def __aiter__(self) -> AsyncIterator[Tuple[PageResponse, CrawlState]]:
        while self._queue:
            url, state = self._queue.popleft()

            if self.robots is not None and not await self.robots.is_allowed(url):
                self.logger.info(f"Skipping (robots.txt): {url}")
                continue

            await self._wait_for_domain(url)
            response = await self._fetch(url)
            if response is None:
                continue

            yield response, state

    async def _wait_for_domain(self, url: str) -> None:
        domain = get_domain(url)
        loop = asyncio.get_running_loop()

        delay = self.rng.uniform(self.min_delay, self.max_delay)
        if self.robots is not None:
            crawl_delay = (await self.robots.rules_for(url)).crawl_delay
            if crawl_delay is not None:
                delay = max(delay, crawl_delay)

        last = self._last_request.get(domain)
        if last is not None:
            remaining = last + delay - loop.time()
            if remaining > 0:
                await asyncio.sleep(remaining)

        self._last_request[domain] = loop.time()

    async def _fetch(self, url: str) -> Optional[PageResponse]:
        self.logger.debug(f"Fetching: {url}")
        try:
            async with self.session.get(url, timeout=self.timeout) as response:
                if response.status >= 400:
                    self.logger.warning(f"HTTP {response.status} for page: {url}")
                    self.pages_failed += 1
                    return None

                final_url = str(response.url)
                if final_url != url and not is_allowed_domain(final_url, self.allowed_domains):
                    self.logger.info(f"Skipping external redirect: {final_url}")
                    return None

                text = await response.text(errors='replace')
        except (ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Error fetching {url}: {e!r}")
            self.pages_failed += 1
            return None

        self.pages_fetched += 1
        return PageResponse(request_url=final_url, status=response.status, text=text)
