"""
Change filtering by plain text or by a selector query.

Selector queries run against the original baseline/current HTML through a
``FragmentSelector``; a change is kept when one of the matched fragments
contains either side of the change. XPath goes through lxml, CSS through
selectolax.
"""

# pyright: reportMissingImports=false
import logging
from typing import List, Optional, Protocol, Sequence

import lxml.html
from lxml import etree
from selectolax.parser import HTMLParser

from pagediff.core.group import Change

logger = logging.getLogger(__name__)

CSS_PREFIX = "css:"


class FragmentSelector(Protocol):
    def select(self, query: str, html: str) -> List[str]:
        """Return lower-cased serialized fragments matching ``query``."""
        ...


class XPathSelector:
    def select(self, query: str, html: str) -> List[str]:
        if not html or not html.strip():
            return []
        try:
            doc = lxml.html.document_fromstring(html)
            result = doc.xpath(query)
        except (etree.XPathError, etree.ParserError) as e:
            logger.warning("xpath query %r failed: %s", query, e)
            return []
        if not isinstance(result, list):
            # scalar results (count(), string()) carry no fragments
            return []
        matches = []
        for node in result:
            if isinstance(node, str):
                matches.append(node.lower())
            else:
                matches.append(
                    lxml.html.tostring(node, encoding="unicode", with_tail=False).lower()
                )
        return matches


class CssSelector:
    def select(self, query: str, html: str) -> List[str]:
        if not html:
            return []
        try:
            nodes = HTMLParser(html).css(query)
        except Exception as e:
            logger.warning("css query %r failed: %s", query, e)
            return []
        return [(n.html or "").lower() for n in nodes]


def selector_for(query: str) -> Optional[FragmentSelector]:
    if query.startswith(CSS_PREFIX):
        return CssSelector()
    if query.startswith("/") or query.startswith("("):
        return XPathSelector()
    return None


def _matches_text(change: Change, term: str) -> bool:
    return term in change.deleted.lower() or term in change.inserted.lower()


def _matches_fragments(change: Change, fragments: Sequence[str]) -> bool:
    sides = [s.lower() for s in (change.deleted, change.inserted) if s]
    return any(side in frag for frag in fragments for side in sides)


def filter_changes(
    changes: Sequence[Change],
    query: str,
    baseline_html: str = "",
    current_html: str = "",
    selector: Optional[FragmentSelector] = None,
) -> List[Change]:
    query = (query or "").strip()
    if not query:
        return list(changes)

    if selector is None:
        selector = selector_for(query)
    if selector is None:
        term = query.lower()
        return [c for c in changes if _matches_text(c, term)]

    if query.startswith(CSS_PREFIX):
        query = query[len(CSS_PREFIX):].strip()
    fragments = selector.select(query, baseline_html) + selector.select(
        query, current_html
    )
    if not fragments:
        return []
    return [c for c in changes if _matches_fragments(c, fragments)]
