"""
Tag attribute parsing.

Works on a single tag token's text. Nothing here raises on malformed markup:
missing quotes, duplicate names and unterminated tags all produce best-effort
results.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from pagediff.core.tokenize import Token

_NAME_RE = re.compile(r"^<(/?)\s*([A-Za-z][\w:.-]*)")
_ATTR_RE = re.compile(
    r"""
    ([^\s"'<>/=]+)              # name
    (?:\s*=\s*
        (?:"([^"]*)(?:"|$)      # double quoted, closing quote optional
        |'([^']*)(?:'|$)        # single quoted
        |([^\s"'>]+)            # unquoted
        )
    )?
    """,
    re.X,
)

TagLike = Union[Token, str]


def _text(tag: TagLike) -> str:
    return tag.content if isinstance(tag, Token) else (tag or "")


def tag_name(tag: TagLike) -> Optional[str]:
    m = _NAME_RE.match(_text(tag))
    if not m:
        return None
    return m.group(2).lower()


def _attr_body(text: str) -> str:
    m = _NAME_RE.match(text)
    if not m:
        return ""
    body = text[m.end():]
    if body.endswith(">"):
        body = body[:-1]
    return body


def attributes(tag: TagLike) -> Dict[str, str]:
    text = _text(tag)
    attrs: Dict[str, str] = {}
    for m in _ATTR_RE.finditer(_attr_body(text)):
        name = m.group(1).lower()
        dq, sq, bare = m.group(2), m.group(3), m.group(4)
        value = dq if dq is not None else sq if sq is not None else bare
        attrs[name] = value if value is not None else ""
    return attrs


def _quote(value: str) -> str:
    if '"' in value and "'" not in value:
        return "'" + value + "'"
    return '"' + value.replace('"', "&quot;") + '"'


@dataclass
class ParsedTag:
    """A tag broken into name and attribute map, re-serializable after edits."""

    name: str
    attrs: Dict[str, str] = field(default_factory=dict)
    closing: bool = False
    self_closing: bool = False

    def add_class(self, cls: str) -> None:
        classes = self.attrs.get("class", "").split()
        if cls not in classes:
            classes.append(cls)
        self.attrs["class"] = " ".join(classes)

    def render(self) -> str:
        if self.closing:
            return f"</{self.name}>"
        parts = [self.name]
        for k, v in self.attrs.items():
            parts.append(f"{k}={_quote(v)}" if v != "" else k)
        tail = " />" if self.self_closing else ">"
        return "<" + " ".join(parts) + tail


def parse_tag(tag: TagLike) -> Optional[ParsedTag]:
    text = _text(tag)
    m = _NAME_RE.match(text)
    if not m:
        return None
    return ParsedTag(
        name=m.group(2).lower(),
        attrs=attributes(text),
        closing=bool(m.group(1)),
        self_closing=text.rstrip(">").rstrip().endswith("/"),
    )


def changed_attributes(old: TagLike, new: TagLike) -> Dict[str, Optional[str]]:
    """Map each attribute whose value differs to its old value (None if added)."""
    before = attributes(old)
    after = attributes(new)
    out: Dict[str, Optional[str]] = {}
    for k in sorted(set(before) | set(after)):
        if before.get(k) != after.get(k):
            out[k] = before.get(k)
    return out
