"""
LCS alignment of two token streams.

``align`` fills the classic (n+1) x (m+1) table where ``dp[i][j]`` is the
LCS length of ``A[i:]`` and ``B[j:]`` and walks it from ``(0, 0)``. When the
current tokens differ the walk moves toward the larger neighbour, preferring
the insert side (``j``) on ties. In the default coalescing mode a whole
differing block is walked first and emitted as one ``delete`` followed by one
``insert``, which keeps ``<p>A</p>`` -> ``<p>B</p>`` as a single change
instead of interleaved fragments.

    >>> [op.kind for op in align('<p>A</p>', '<p>B</p>')]
    ['equal', 'delete', 'insert', 'equal']
"""

import logging
from typing import Iterable, List, NamedTuple, Optional, Sequence, Union

from pagediff.core.tokenize import TAG_OPEN, Token, tokenize

logger = logging.getLogger(__name__)

EQUAL = "equal"
DELETE = "delete"
INSERT = "insert"
MODIFY = "modify"


class Operation(NamedTuple):
    kind: str
    payload: str
    # baseline text of a modified tag; payload holds the current text
    original: Optional[str] = None


TokenInput = Union[str, Sequence[Token]]


def _as_tokens(value: TokenInput) -> List[Token]:
    if isinstance(value, str):
        return tokenize(value)
    return list(value)


def _is_modify_pair(a: Token, b: Token) -> bool:
    return (
        a.kind == TAG_OPEN
        and b.kind == TAG_OPEN
        and a.tag_name is not None
        and a.tag_name == b.tag_name
        and a.content != b.content
    )


def lcs_table(a: Sequence[str], b: Sequence[str]) -> List[List[int]]:
    n, m = len(a), len(b)
    dp = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row = dp[i]
        below = dp[i + 1]
        ai = a[i]
        for j in range(m - 1, -1, -1):
            if ai == b[j]:
                row[j] = below[j + 1] + 1
            else:
                down = below[j]
                right = row[j + 1]
                row[j] = down if down > right else right
    return dp


def align(
    a: TokenInput,
    b: TokenInput,
    *,
    coalesce: bool = True,
    detect_modify: bool = False,
) -> List[Operation]:
    """Align baseline ``a`` against current ``b``.

    ``a`` and ``b`` may be token lists or raw strings (tokenized here).
    With ``detect_modify`` two opening tags with the same name but different
    text become one ``modify`` operation rather than a delete/insert pair.
    """
    A = _as_tokens(a)
    B = _as_tokens(b)
    ops: List[Operation] = []

    # A shared prefix always aligns as equal; skip it before building the table.
    start = 0
    limit = min(len(A), len(B))
    while start < limit and A[start].content == B[start].content:
        ops.append(Operation(EQUAL, A[start].content))
        start += 1
    A = A[start:]
    B = B[start:]

    # Same for a shared suffix; it is emitted after the differing middle.
    tail = 0
    limit = min(len(A), len(B))
    while tail < limit and A[-1 - tail].content == B[-1 - tail].content:
        tail += 1
    suffix = [Operation(EQUAL, t.content) for t in A[len(A) - tail:]]
    A = A[:len(A) - tail]
    B = B[:len(B) - tail]

    n, m = len(A), len(B)
    a_text = [t.content for t in A]
    b_text = [t.content for t in B]
    logger.debug(
        "lcs table %dx%d (prefix %d, suffix %d)", n + 1, m + 1, start, tail
    )
    dp = lcs_table(a_text, b_text)

    i = j = 0
    while i < n and j < m:
        if a_text[i] == b_text[j]:
            ops.append(Operation(EQUAL, a_text[i]))
            i += 1
            j += 1
            continue
        if detect_modify and _is_modify_pair(A[i], B[j]):
            ops.append(Operation(MODIFY, b_text[j], a_text[i]))
            i += 1
            j += 1
            continue
        if not coalesce:
            if dp[i][j + 1] >= dp[i + 1][j]:
                ops.append(Operation(INSERT, b_text[j]))
                j += 1
            else:
                ops.append(Operation(DELETE, a_text[i]))
                i += 1
            continue

        i_end, j_end = i, j
        while i_end < n and j_end < m and a_text[i_end] != b_text[j_end]:
            if detect_modify and _is_modify_pair(A[i_end], B[j_end]):
                break
            if dp[i_end][j_end + 1] >= dp[i_end + 1][j_end]:
                j_end += 1
            else:
                i_end += 1
        # Nothing left to match once either side runs out: keep the block whole.
        if j_end == m:
            i_end = n
        elif i_end == n:
            j_end = m
        if i_end > i:
            ops.append(Operation(DELETE, "".join(a_text[i:i_end])))
        if j_end > j:
            ops.append(Operation(INSERT, "".join(b_text[j:j_end])))
        i, j = i_end, j_end

    if i < n:
        ops.append(Operation(DELETE, "".join(a_text[i:])))
    if j < m:
        ops.append(Operation(INSERT, "".join(b_text[j:])))
    ops.extend(suffix)
    return ops


def baseline_text(ops: Iterable[Operation]) -> str:
    parts = []
    for op in ops:
        if op.kind in (EQUAL, DELETE):
            parts.append(op.payload)
        elif op.kind == MODIFY:
            parts.append(op.original or "")
    return "".join(parts)


def current_text(ops: Iterable[Operation]) -> str:
    return "".join(op.payload for op in ops if op.kind != DELETE)
