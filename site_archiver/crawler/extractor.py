"""
HTML element extraction for scrape steps.

Uses BeautifulSoup for HTML parsing and soupsieve selectors for matching.
The rest of the package only sees :class:`HtmlDocument` and
:class:`Element`, so the parser can be swapped without touching the pipeline.
"""

from typing import Iterator, Optional

from bs4 import BeautifulSoup, Tag
from soupsieve import SoupSieve

from ..utils.log import get_logger


logger = get_logger("extractor")


class Element:
    """A matched element with attribute and text access."""

    def __init__(self, tag: Tag):
        self._tag = tag

    def attr(self, name: str) -> Optional[str]:
        """
        Read an attribute.

        Args:
            name: Attribute name

        Returns:
            The attribute value, or None when absent
        """
        value = self._tag.get(name)
        if isinstance(value, list):
            # multi-valued attributes such as class
            return ' '.join(value)
        return value

    def text(self) -> str:
        """Concatenate the text content of the element and its descendants."""
        return ''.join(self._tag.strings)

    def __repr__(self) -> str:
        markup = str(self._tag)
        if len(markup) > 200:
            markup = markup[:200] + '...'
        return markup


class HtmlDocument:
    """A parsed HTML page."""

    def __init__(self, html: str):
        """
        Parse HTML content.

        Args:
            html: Raw page body
        """
        try:
            self._soup = BeautifulSoup(html, 'lxml')
        except Exception as e:
            # Fallback to html.parser if lxml fails
            logger.debug(f"lxml failed to parse document, using html.parser: {e}")
            self._soup = BeautifulSoup(html, 'html.parser')

    def select(self, pattern: SoupSieve) -> Iterator[Element]:
        """
        Yield elements matching a compiled selector, in document order.

        Args:
            pattern: Compiled selector from a step
        """
        for tag in pattern.iselect(self._soup):
            yield Element(tag)
