"""Unit tests for index-page link extraction.

WHY: With link following, a missed or mis-resolved link means a whole
chapter is skipped or a fetch fails halfway through a session.

HOW: extract_links() is run on small hand-written pages; resolve_link()
is tested against each resolution rule.

RULES:
- Only the active span is scanned
- Order of appearance is preserved
"""

from morsefeed.config import TITLE_SIZE, URL_SIZE
from morsefeed.core.ir import ByteSpan, LinkEntry
from morsefeed.core.links import extract_links, resolve_link

BASE = "https://example.com/x/y"


def whole(data: bytes) -> ByteSpan:
    return ByteSpan(0, len(data))


class TestResolveLink:
    def test_root_relative(self):
        assert resolve_link(BASE, "/a/b") == "https://example.com/a/b"

    def test_relative(self):
        assert resolve_link(BASE, "c") == "https://example.com/x/y/c"

    def test_relative_to_base_with_trailing_slash(self):
        assert resolve_link("https://example.com/x/", "c") == "https://example.com/x/c"

    def test_absolute_kept(self):
        assert resolve_link(BASE, "http://other.org/p") == "http://other.org/p"
        assert resolve_link(BASE, "https://other.org/p") == "https://other.org/p"

    def test_root_relative_on_bare_host(self):
        assert resolve_link("https://example.com", "/a") == "https://example.com/a"

    def test_empty_href(self):
        assert resolve_link(BASE, "") is None

    def test_oversized_href(self):
        assert resolve_link(BASE, "https://e.com/" + "a" * URL_SIZE) is None

    def test_oversized_after_resolution(self):
        href = "a" * (URL_SIZE - len(BASE) - 1)
        assert resolve_link(BASE, href) is None
        assert resolve_link(BASE, href[:-1]) == BASE + "/" + href[:-1]


class TestExtractLinks:
    def test_links_in_order(self):
        page = (
            b'<ul><li><a href="one.html">Chapter One</a></li>'
            b'<li><a href="/two.html">Chapter Two</a></li></ul>'
        )
        assert extract_links(BASE, page, whole(page)) == [
            LinkEntry("https://example.com/x/y/one.html", "Chapter One"),
            LinkEntry("https://example.com/two.html", "Chapter Two"),
        ]

    def test_attributes_after_href(self):
        page = b'<a href="p" class="nav">Next</a>'
        assert extract_links(BASE, page, whole(page)) == [LinkEntry(BASE + "/p", "Next")]

    def test_only_active_span(self):
        page = b'<a href="a">A</a> MARK <a href="b">B</a>'
        start = page.index(b"MARK")
        links = extract_links(BASE, page, ByteSpan(start, len(page)))
        assert [link.title for link in links] == ["B"]

    def test_title_truncated(self):
        page = b'<a href="p">' + b"t" * 300 + b"</a>"
        (link,) = extract_links(BASE, page, whole(page))
        assert len(link.title) == TITLE_SIZE - 1

    def test_empty_href_skipped(self):
        page = b'<a href="">nothing</a><a href="q">Q</a>'
        assert extract_links(BASE, page, whole(page)) == [LinkEntry(BASE + "/q", "Q")]

    def test_missing_anchor_close_ends_scan(self):
        page = b'<a href="p">dangling <a href="q">Q'
        assert extract_links(BASE, page, whole(page)) == [LinkEntry(BASE + "/p", "")]

    def test_no_links(self):
        page = b"<p>plain page</p>"
        assert extract_links(BASE, page, whole(page)) == []
