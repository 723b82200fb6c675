"""
Navigation state for one rendered comparison.

All state (the change list, the active filter and the selected change) lives
on the session object; views ask it what to show instead of keeping globals.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set

from pagediff.core.filtering import FragmentSelector, filter_changes
from pagediff.core.group import Change


@dataclass
class ViewerSession:
    changes: List[Change]
    baseline_html: str = ""
    current_html: str = ""
    selector: Optional[FragmentSelector] = None
    query: str = ""
    filtered: List[Change] = field(default_factory=list)
    index: int = -1

    def __post_init__(self):
        self.filtered = list(self.changes)

    def apply_filter(self, query: str) -> List[Change]:
        self.query = (query or "").strip()
        self.filtered = filter_changes(
            self.changes,
            self.query,
            self.baseline_html,
            self.current_html,
            selector=self.selector,
        )
        self.index = -1
        return self.filtered

    @property
    def current(self) -> Optional[Change]:
        if 0 <= self.index < len(self.filtered):
            return self.filtered[self.index]
        return None

    @property
    def can_previous(self) -> bool:
        return self.index > 0

    @property
    def can_next(self) -> bool:
        return self.index < len(self.filtered) - 1

    def next(self) -> Optional[Change]:
        if self.can_next:
            self.index += 1
        return self.current

    def previous(self) -> Optional[Change]:
        if self.can_previous:
            self.index -= 1
        return self.current

    def go_to(self, index: int) -> Optional[Change]:
        if 0 <= index < len(self.filtered):
            self.index = index
        return self.current

    @property
    def counter(self) -> str:
        shown = self.index + 1 if self.index >= 0 else 0
        return f"{shown} / {len(self.filtered)}"

    def visible_ids(self) -> Set[str]:
        ids = set()
        for c in self.filtered:
            ids.add(c.delete_id)
            ids.add(c.insert_id)
        return ids
