"""Link relation search over profile pages.

Discovery only needs the ``<link rel=...>`` elements of the document head
and the HTTP ``Link`` header, so a small ``html.parser`` pass is enough.
"""

from __future__ import annotations

from dataclasses import dataclass
from html.parser import HTMLParser
from typing import TYPE_CHECKING, Self
from urllib.parse import urljoin

if TYPE_CHECKING:
    import httpx


class _HeadLinkParser(HTMLParser):
    """Collects ``<link>`` elements that appear before the document body."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.links: list[tuple[frozenset[str], str]] = []
        self.base_href: str | None = None
        self._in_head = True

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "body":
            self._in_head = False
        if not self._in_head:
            return
        values = {name: value for name, value in attrs if value is not None}
        if tag == "base" and self.base_href is None and "href" in values:
            self.base_href = values["href"]
        elif tag == "link" and "href" in values and "rel" in values:
            rels = frozenset(values["rel"].lower().split())
            self.links.append((rels, values["href"].strip()))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag: str) -> None:
        if tag == "head":
            self._in_head = False


def _parse(html: str) -> _HeadLinkParser:
    parser = _HeadLinkParser()
    parser.feed(html)
    parser.close()
    return parser


def find_links(html: str, relation: str, base_url: str | None = None) -> list[str]:
    """Return the hrefs of head ``<link>`` elements with the given relation.

    Args:
        html: Document markup.
        relation: Link relation to match, e.g. ``indieauth-metadata``.
        base_url: Document URL used to resolve relative hrefs.

    Returns:
        Matching hrefs in document order.
    """
    parser = _parse(html)
    base = _resolve(base_url, parser.base_href) if parser.base_href else base_url
    relation = relation.lower()
    return [
        _resolve(base, href) for rels, href in parser.links if relation in rels
    ]


def _resolve(base: str | None, href: str) -> str:
    return urljoin(base, href) if base else href


@dataclass(frozen=True)
class ProfileDocument:
    """An already-fetched profile page.

    Holding the document lets modern and legacy discovery run against a
    single fetch.
    """

    url: str
    html: str
    header_links: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_response(cls, response: httpx.Response) -> Self:
        """Build a document from a fetched response, keeping its Link header."""
        url = str(response.url)
        header_links: list[tuple[str, str]] = []
        for link in response.links.values():
            target = link.get("url")
            if not target:
                continue
            for rel in link.get("rel", "").lower().split():
                header_links.append((rel, urljoin(url, target)))
        return cls(url=url, html=response.text, header_links=tuple(header_links))

    def search(self, relation: str) -> list[str]:
        """Return URLs for ``relation``; HTTP Link headers come first."""
        relation = relation.lower()
        from_headers = [url for rel, url in self.header_links if rel == relation]
        return from_headers + find_links(self.html, relation, self.url)
