"""
Comparison entry points used by the web host.

Runs tokenize -> align -> group (or the merged renderer) for one
baseline/current pair. Empty inputs are rejected up front with
``InvalidInput``; any failure inside the diff engine is logged and replaced
by an escaped, unmodified rendering of both inputs so the caller never ends
up with a half-built view.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pagediff.core.align import Operation, align
from pagediff.core.errors import DiffTooLarge, InvalidInput, RenderingFailure
from pagediff.core.group import Change, escape, group
from pagediff.core.merge import render_merged
from pagediff.core.stats import DiffStats, compute_stats, summarize_changes
from pagediff.core.tokenize import tokenize

logger = logging.getLogger(__name__)


@dataclass
class Comparison:
    left: str
    right: str
    stats: DiffStats
    changes: List[Change] = field(default_factory=list)
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "left": self.left,
            "right": self.right,
            "changes": [c.as_dict() for c in self.changes],
            "summary": summarize_changes(self.changes),
            "stats": self.stats.as_dict(),
            "error": self.error,
        }


@dataclass
class MergedComparison:
    html: str
    stats: DiffStats
    url: Optional[str] = None
    error: Optional[str] = None


def check_inputs(baseline_html: Optional[str], current_html: Optional[str]) -> None:
    if not baseline_html:
        raise InvalidInput("No baseline HTML was found for this URL.")
    if not current_html:
        raise InvalidInput("No current HTML captured in this session.")


def diff_operations(
    baseline_html: str,
    current_html: str,
    detect_modify: bool = False,
    max_tokens: Optional[int] = None,
) -> List[Operation]:
    a = tokenize(baseline_html)
    b = tokenize(current_html)
    if max_tokens and (len(a) > max_tokens or len(b) > max_tokens):
        raise DiffTooLarge(len(a), len(b), max_tokens)
    logger.debug("aligning %d baseline tokens against %d current tokens", len(a), len(b))
    return align(a, b, detect_modify=detect_modify)


def _failure(exc: Exception, url: Optional[str]) -> RenderingFailure:
    if isinstance(exc, RenderingFailure):
        logger.warning("comparison skipped for %s: %s", url or "<input>", exc)
        return exc
    logger.exception("diff rendering failed for %s", url or "<input>")
    failure = RenderingFailure(f"Diff rendering error: {exc}")
    failure.__cause__ = exc
    return failure


def compare(
    baseline_html: Optional[str],
    current_html: Optional[str],
    url: Optional[str] = None,
    *,
    detect_modify: bool = False,
    max_tokens: Optional[int] = None,
    strict: bool = False,
) -> Comparison:
    check_inputs(baseline_html, current_html)
    stats = compute_stats(baseline_html, current_html)
    try:
        ops = diff_operations(baseline_html, current_html, detect_modify, max_tokens)
        grouped = group(ops)
    except Exception as e:
        failure = _failure(e, url)
        if strict:
            raise failure
        return Comparison(
            left=escape(baseline_html),
            right=escape(current_html),
            stats=stats,
            url=url,
            error=str(failure),
        )
    logger.debug("%d operations grouped into %d changes", len(ops), len(grouped.changes))
    return Comparison(grouped.left, grouped.right, stats, grouped.changes, url)


def compare_merged(
    baseline_html: Optional[str],
    current_html: Optional[str],
    url: Optional[str] = None,
    *,
    detect_modify: bool = False,
    max_tokens: Optional[int] = None,
) -> MergedComparison:
    check_inputs(baseline_html, current_html)
    stats = compute_stats(baseline_html, current_html)
    try:
        ops = diff_operations(baseline_html, current_html, detect_modify, max_tokens)
        html = render_merged(ops, base_url=url)
    except Exception as e:
        failure = _failure(e, url)
        return MergedComparison(
            html=f"<pre>{escape(current_html)}</pre>",
            stats=stats,
            url=url,
            error=str(failure),
        )
    return MergedComparison(html, stats, url)
