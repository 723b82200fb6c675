"""
HTML-aware tokenizer.

Splits serialized markup into tags, words (with an optional quoted
``=value``), whitespace runs and punctuation runs. Every character of the
input ends up in exactly one token, so joining the token contents gives back
the original string.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

TAG_OPEN = "tag-open"
TAG_CLOSE = "tag-close"
WORD = "word-or-attr"
WHITESPACE = "whitespace"
PUNCTUATION = "punctuation"

_TAG_RE = re.compile(r"<[^>]+>")
_TEXT_RE = re.compile(
    r"""
    (?P<word>\w+(?:=(?:"[^"]*"|'[^']*'))?)
    |(?P<ws>\s+)
    |(?P<punct>[^\w\s<>]+)
    |(?P<bracket>[<>])
    """,
    re.X | re.U,
)
_TAG_NAME_RE = re.compile(r"^</?\s*([A-Za-z][\w:.-]*)")


@dataclass(frozen=True)
class Token:
    content: str
    kind: str
    tag_name: Optional[str] = None

    @property
    def is_tag(self) -> bool:
        return self.kind in (TAG_OPEN, TAG_CLOSE)


def _tag_token(text: str) -> Token:
    kind = TAG_CLOSE if text.startswith("</") else TAG_OPEN
    m = _TAG_NAME_RE.match(text)
    return Token(text, kind, m.group(1).lower() if m else None)


def tokenize(s: str) -> List[Token]:
    if not s:
        return []
    tokens: List[Token] = []
    # A "<" after the last ">" can never close; trying the tag pattern there
    # would rescan the rest of the input for every such "<".
    last_close = s.rfind(">")
    pos, end = 0, len(s)
    while pos < end:
        m = None
        if s[pos] == "<" and pos < last_close:
            m = _TAG_RE.match(s, pos)
        if m is not None:
            tokens.append(_tag_token(m.group()))
        else:
            m = _TEXT_RE.match(s, pos)
            group = m.lastgroup
            text = m.group()
            if group == "word":
                tokens.append(Token(text, WORD))
            elif group == "ws":
                tokens.append(Token(text, WHITESPACE))
            else:
                # stray "<" or ">" from unterminated markup counts as punctuation
                tokens.append(Token(text, PUNCTUATION))
        pos = m.end()
    return tokens


def join_tokens(tokens) -> str:
    return "".join(t.content for t in tokens)
