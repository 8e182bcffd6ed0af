"""Link extraction from an index page.

WHY: With link following, the fetched page is treated as a table of
contents: each anchor in its active span is a page to read in turn.

HOW: A plain byte scan for the literal opening sequence <a href=" up to
the next double quote, with the anchor text taken from the following
'>' up to the next </a>. This is deliberately not an HTML parser; it
finds the links a typical hand-written index page contains.

RULES:
- Links are returned in order of appearance within the span
- Empty hrefs and hrefs of URL_SIZE bytes or more are skipped
- Relative links that would not fit in URL_SIZE - 1 bytes are skipped
- Titles are truncated to TITLE_SIZE - 1 bytes
- Scanning stops at the first anchor missing its '>' or </a>
"""

from __future__ import annotations

import logging
from typing import List, Optional

from morsefeed.config import TITLE_SIZE, URL_SIZE
from morsefeed.core.ir import ByteSpan, LinkEntry

logger = logging.getLogger(__name__)

BEGIN_URL = b'<a href="'
END_URL = b'"'
END_TAG = b">"
END_ANCHOR = b"</a>"

_ABSOLUTE_PREFIXES = ("http://", "https://")


def resolve_link(base_url: str, href: str) -> Optional[str]:
    """Resolve href against the page it was found on.

    HOW:
    - http:// and https:// links are used as-is
    - A leading '/' replaces everything after the base URL's host
    - Anything else is appended to the base URL with one '/' between

    Args:
        base_url: URL of the index page.
        href: Raw attribute value.

    Returns:
        The absolute URL, or None when the link is too long to keep.
    """
    if not href or len(href) >= URL_SIZE:
        return None
    if href.startswith(_ABSOLUTE_PREFIXES):
        return href
    if len(base_url) + 1 + len(href) > URL_SIZE - 1:
        logger.debug("link too long, skipped: %s", href)
        return None

    if href.startswith("/"):
        root = base_url
        scheme_end = base_url.find("//")
        if scheme_end >= 0 and scheme_end + 2 < len(base_url):
            slash = base_url.find("/", scheme_end + 2)
            if slash >= 0:
                root = base_url[:slash]
        return root + href

    separator = "" if base_url.endswith("/") else "/"
    return base_url + separator + href


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="ignore")


def extract_links(base_url: str, data: bytes, span: ByteSpan) -> List[LinkEntry]:
    """Collect (url, title) pairs from the active span of an index page.

    Args:
        base_url: URL the page was fetched from, for relative links.
        data: The whole page.
        span: Active span; nothing outside it is scanned.

    Returns:
        Resolved links in page order (possibly empty).
    """
    links: List[LinkEntry] = []
    end = span.end
    position = span.start

    while True:
        found = data.find(BEGIN_URL, position, end)
        if found < 0:
            break
        href_start = found + len(BEGIN_URL)
        href_end = data.find(END_URL, href_start, end)
        if href_end < 0:
            break
        position = href_end

        url = resolve_link(base_url, _decode(data[href_start:href_end]))
        if url is None:
            continue

        tag_end = data.find(END_TAG, href_end, end)
        if tag_end < 0:
            links.append(LinkEntry(url))
            break
        title_start = tag_end + 1
        title_end = data.find(END_ANCHOR, title_start, end)
        if title_end < 0:
            links.append(LinkEntry(url))
            break

        title = data[title_start:title_end][:TITLE_SIZE - 1]
        links.append(LinkEntry(url, _decode(title)))
        position = title_end

    logger.debug("found %d links on %s", len(links), base_url)
    return links
