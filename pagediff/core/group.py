"""
Turn an operation list into side-by-side panes and a change list.

Both panes are escaped text with ``<span>`` markers around changed runs. A
side without content for a change gets a placeholder span so the two panes
stay positionally paired for navigation.
"""

import html
from dataclasses import dataclass, field
from typing import List, Sequence

from pagediff.core.align import DELETE, EQUAL, INSERT, MODIFY, Operation

CHANGE = "change"

PLACEHOLDER = "&nbsp;"


def escape(s: str) -> str:
    if not s:
        return ""
    return html.escape(s, quote=False)


@dataclass
class Change:
    index: int
    kind: str
    delete_id: str
    insert_id: str
    deleted: str = ""
    inserted: str = ""

    def as_dict(self) -> dict:
        return {
            "index": self.index,
            "kind": self.kind,
            "delete_id": self.delete_id,
            "insert_id": self.insert_id,
            "deleted": self.deleted,
            "inserted": self.inserted,
        }


@dataclass
class GroupedDiff:
    left: str
    right: str
    changes: List[Change] = field(default_factory=list)


def change_ids(n: int):
    return f"change-{n}-del", f"change-{n}-add"


def _span(cls: str, ident: str, body: str) -> str:
    return f'<span class="{cls}" id="{ident}">{body}</span>'


def group(ops: Sequence[Operation]) -> GroupedDiff:
    left: List[str] = []
    right: List[str] = []
    changes: List[Change] = []
    counter = 0
    i = 0
    while i < len(ops):
        op = ops[i]
        if op.kind == EQUAL:
            text = escape(op.payload)
            left.append(text)
            right.append(text)
            i += 1
            continue

        del_id, add_id = change_ids(counter)
        if op.kind == DELETE and i + 1 < len(ops) and ops[i + 1].kind == INSERT:
            inserted = ops[i + 1].payload
            left.append(_span("diff-deleted", del_id, escape(op.payload)))
            right.append(_span("diff-added", add_id, escape(inserted)))
            changes.append(Change(counter, CHANGE, del_id, add_id, op.payload, inserted))
            i += 2
        elif op.kind == DELETE:
            left.append(_span("diff-deleted", del_id, escape(op.payload)))
            right.append(_span("diff-placeholder", add_id, PLACEHOLDER))
            changes.append(Change(counter, DELETE, del_id, add_id, deleted=op.payload))
            i += 1
        elif op.kind == INSERT:
            left.append(_span("diff-placeholder", del_id, PLACEHOLDER))
            right.append(_span("diff-added", add_id, escape(op.payload)))
            changes.append(Change(counter, INSERT, del_id, add_id, inserted=op.payload))
            i += 1
        elif op.kind == MODIFY:
            original = op.original or ""
            left.append(_span("diff-modified", del_id, escape(original)))
            right.append(_span("diff-modified", add_id, escape(op.payload)))
            changes.append(Change(counter, MODIFY, del_id, add_id, original, op.payload))
            i += 1
        else:
            raise ValueError(f"unknown operation kind: {op.kind!r}")
        counter += 1
    return GroupedDiff("".join(left), "".join(right), changes)
