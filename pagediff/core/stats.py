from dataclasses import asdict, dataclass
from typing import Dict, Iterable


@dataclass(frozen=True)
class DiffStats:
    baseline_size: int
    current_size: int
    size_difference: int
    baseline_lines: int
    current_lines: int
    line_difference: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def _line_count(s: str) -> int:
    return s.count("\n") + 1


def compute_stats(baseline: str, current: str) -> DiffStats:
    baseline = baseline or ""
    current = current or ""
    b_lines = _line_count(baseline)
    c_lines = _line_count(current)
    return DiffStats(
        baseline_size=len(baseline),
        current_size=len(current),
        size_difference=len(current) - len(baseline),
        baseline_lines=b_lines,
        current_lines=c_lines,
        line_difference=c_lines - b_lines,
    )


def summarize_changes(changes: Iterable) -> Dict[str, int]:
    """Count changes per kind, plus a ``total``."""
    counts = {"change": 0, "delete": 0, "insert": 0, "modify": 0}
    total = 0
    for c in changes:
        counts[c.kind] = counts.get(c.kind, 0) + 1
        total += 1
    counts["total"] = total
    return counts


def signed(n: int) -> str:
    return f"+{n:,}" if n > 0 else f"{n:,}"
