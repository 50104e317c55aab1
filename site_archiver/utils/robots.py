"""
Robots.txt handling for the site archiver.

Fetches robots.txt once per host and answers allow/disallow queries using
longest-match precedence with ``*`` and ``$`` wildcards.
"""

import asyncio
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import aiohttp

from .constants import DEFAULT_ROBOTS_TIMEOUT
from .log import get_logger


logger = get_logger("robots")


class RobotsRules:
    """Parsed rules of one robots.txt file for our user agent."""

    def __init__(self, content: str = "", user_agent: str = "*"):
        """
        Parse robots.txt content.

        Args:
            content: robots.txt file content (empty allows everything)
            user_agent: User agent token to match groups against
        """
        self.user_agent = user_agent.lower()
        self.crawl_delay: Optional[float] = None
        # (pattern, allowed) pairs of the best matching group
        self._rules: List[Tuple[str, bool]] = []
        self._parse(content)

    def _parse(self, content: str) -> None:
        groups: Dict[str, List[Tuple[str, bool]]] = {}
        delays: Dict[str, float] = {}
        agents: List[str] = []
        reading_user_agents = False

        for line in content.splitlines():
            line = line.split('#', 1)[0].strip()
            if ':' not in line:
                continue

            directive, value = line.split(':', 1)
            directive = directive.strip().lower()
            value = value.strip()

            if directive == 'user-agent':
                if not reading_user_agents:
                    # A new group starts
                    agents = []
                    reading_user_agents = True
                agents.append(value.lower())
                groups.setdefault(value.lower(), [])
                continue

            reading_user_agents = False
            if directive in ('allow', 'disallow') and value:
                for agent in agents:
                    groups[agent].append((value, directive == 'allow'))
            elif directive == 'crawl-delay':
                try:
                    delay = float(value)
                except ValueError:
                    continue
                for agent in agents:
                    delays[agent] = delay

        agent = self._best_agent(groups)
        if agent is not None:
            self._rules = groups[agent]
            self.crawl_delay = delays.get(agent)

    def _best_agent(self, groups: Dict[str, List[Tuple[str, bool]]]) -> Optional[str]:
        for agent in groups:
            if agent and agent != '*' and agent in self.user_agent:
                return agent
        if '*' in groups:
            return '*'
        return None

    def is_allowed(self, url: str) -> bool:
        """
        Check if a URL may be fetched.

        The longest matching pattern wins; allow wins a tie.

        Args:
            url: URL to check

        Returns:
            True if allowed, False if disallowed
        """
        parts = urlsplit(url)
        path = parts.path or '/'
        if parts.query:
            path += '?' + parts.query

        best_length = -1
        allowed = True
        for pattern, is_allow in self._rules:
            if not _matches_pattern(path, pattern):
                continue
            if len(pattern) > best_length or (len(pattern) == best_length and is_allow):
                best_length = len(pattern)
                allowed = is_allow
        return allowed


def _matches_pattern(path: str, pattern: str) -> bool:
    """Check if a path matches a robots.txt pattern."""
    if '*' not in pattern and not pattern.endswith('$'):
        return path.startswith(pattern)

    anchored = pattern.endswith('$')
    if anchored:
        pattern = pattern[:-1]
    regex = '.*'.join(re.escape(part) for part in pattern.split('*'))
    if anchored:
        regex += '$'
    return re.match(regex, path) is not None


class RobotsHandler:
    """
    Per-host cache of robots.txt rules.

    A robots.txt that is missing or cannot be fetched allows everything.
    """

    def __init__(self, session: aiohttp.ClientSession, user_agent: str = "*"):
        """
        Initialize the robots.txt handler.

        Args:
            session: Open aiohttp session used to fetch robots.txt
            user_agent: User agent string to check rules for
        """
        self.session = session
        self.user_agent = user_agent
        self._rules: Dict[str, RobotsRules] = {}

    async def is_allowed(self, url: str) -> bool:
        """
        Check a URL against its host's robots.txt, fetching it on first use.

        Args:
            url: URL to check

        Returns:
            True if allowed, False if disallowed
        """
        rules = await self.rules_for(url)
        allowed = rules.is_allowed(url)
        if not allowed:
            logger.debug(f"URL disallowed by robots.txt: {url}")
        return allowed

    async def rules_for(self, url: str) -> RobotsRules:
        """Return the cached rules for a URL's origin."""
        parts = urlsplit(url)
        origin = f"{parts.scheme}://{parts.netloc}"
        if origin not in self._rules:
            self._rules[origin] = await self._load(f"{origin}/robots.txt")
        return self._rules[origin]

    async def _load(self, robots_url: str) -> RobotsRules:
        try:
            async with self.session.get(
                robots_url,
                timeout=aiohttp.ClientTimeout(total=DEFAULT_ROBOTS_TIMEOUT),
                allow_redirects=True
            ) as response:
                if response.status == 200:
                    content = await response.text(errors='replace')
                    logger.info(f"Loaded robots.txt from {robots_url}")
                    return RobotsRules(content, self.user_agent)
                if response.status == 404:
                    logger.info(f"No robots.txt at {robots_url} - all URLs allowed")
                else:
                    logger.warning(
                        f"Failed to load {robots_url}: HTTP {response.status} - all URLs allowed"
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            logger.warning(f"Error fetching {robots_url}: {e!r} - all URLs allowed")
        return RobotsRules()
