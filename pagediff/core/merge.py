"""
Merged single-document view.

Unlike the side-by-side panes, payloads are kept as live markup so the page
renders as itself, with deletions and insertions wrapped in ``<del>``/``<ins>``.
The result must only be displayed inside a sandboxed frame.
"""

import html
import re
from typing import Optional, Sequence

from pagediff.core.align import DELETE, EQUAL, INSERT, MODIFY, Operation
from pagediff.core.attributes import changed_attributes, parse_tag

HIGHLIGHT_CSS = (
    "del.diff-deleted > *, .diff-deleted {"
    " background-color: rgba(255, 82, 82, 0.15) !important;"
    " outline: 1px dashed rgba(255, 82, 82, 0.8) !important; }\n"
    "ins.diff-added > *, .diff-added {"
    " background-color: rgba(77, 208, 88, 0.15) !important;"
    " outline: 1px dashed rgba(77, 208, 88, 0.8) !important; }\n"
    ".diff-modified {"
    " outline: 1px dashed rgba(255, 171, 0, 0.9) !important; }\n"
)

_HEAD_RE = re.compile(r"<head(?:\s[^>]*)?>", re.I)


def annotate_modified(original: str, current: str) -> str:
    """Re-serialize ``current`` with a marker class and the old attribute values."""
    tag = parse_tag(current)
    if tag is None:
        return current
    for name, old in changed_attributes(original, current).items():
        tag.attrs[f"data-diff-old-{name}"] = old if old is not None else ""
    tag.add_class("diff-modified")
    return tag.render()


def _head_extras(base_url: Optional[str]) -> str:
    parts = []
    if base_url:
        parts.append(f'<base href="{html.escape(base_url)}">')
    parts.append(f"<style>{HIGHLIGHT_CSS}</style>")
    return "".join(parts)


def render_merged(ops: Sequence[Operation], base_url: Optional[str] = None) -> str:
    out = []
    for op in ops:
        if op.kind == EQUAL:
            out.append(op.payload)
        elif op.kind == DELETE:
            out.append(f'<del class="diff-deleted">{op.payload}</del>')
        elif op.kind == INSERT:
            out.append(f'<ins class="diff-added">{op.payload}</ins>')
        elif op.kind == MODIFY:
            out.append(annotate_modified(op.original or "", op.payload))
    merged = "".join(out)

    extras = _head_extras(base_url)
    m = _HEAD_RE.search(merged)
    if m:
        return merged[: m.end()] + extras + merged[m.end():]
    return extras + merged
