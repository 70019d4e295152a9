from __future__ import annotations

from urllib.parse import unquote, urlsplit

from bs4 import BeautifulSoup

from maven_mirror.mirror.utils import is_safe_segment

PARENT_LINK = "../"


def is_child_href(href: str) -> bool:
    """True when ``href`` names an entry directly inside the listed directory."""
    if not href or href == PARENT_LINK:
        return False
    if "?" in href or "#" in href:
        return False
    parts = urlsplit(href)
    if parts.scheme or parts.netloc or href.startswith("/"):
        return False
    segments = href.rstrip("/").split("/")
    # Check decoded too: "%2e%2e%2f" is "../" once it reaches the file system.
    return all(is_safe_segment(segment) and is_safe_segment(unquote(segment)) for segment in segments)


class LinkExtractor:
    """Pull child entries out of an auto-generated index page."""

    def __init__(self, parser: str = "html.parser") -> None:
        self._parser = parser

    def extract_links(self, html: bytes | str) -> list[str]:
        soup = BeautifulSoup(html, self._parser)
        links: list[str] = []
        for anchor in soup.find_all("a"):
            if anchor.get_text(strip=True) == PARENT_LINK:
                continue
            href = anchor.get("href")
            if not isinstance(href, str):
                continue
            href = href.strip()
            if is_child_href(href):
                links.append(href)
        return links
