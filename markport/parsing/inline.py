"""
Inline markdown parser for markport.

Converts the text of a single block into text nodes carrying marks (bold,
italic, strike, code, link) and atomic inline nodes (tags, wiki-links, hard
breaks). The scan is cursor based; delimited spans are parsed recursively
with the new mark added to an immutable tuple of active marks.
"""

import re
from typing import List, Optional, Tuple

from ..models.document import (
    LINK_REL,
    LINK_TARGET,
    HardBreak,
    LinkAttrs,
    Mark,
    Node,
    Tag,
    TagAttrs,
    Text,
    WikiLink,
    WikiLinkAttrs,
)
from ..models.results import ParseOptions

ESCAPABLE = set("\\`*_~[](){}#+-!|>.")

# Envelopes written by the exporter when semantics are preserved
SEMANTIC_TAG_RE = re.compile(
    r"<!-- tag:([^:]*):?(.*?) -->#([a-zA-Z0-9][a-zA-Z0-9_-]*)<!-- /tag -->"
)
SEMANTIC_WIKILINK_RE = re.compile(
    r"<!-- wikilink:([^ ]*) -->\[\[([^\]]+)\]\]<!-- /wikilink -->"
)
PLAIN_WIKILINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
# '#' followed by 2-50 word characters, hyphens allowed after the first
PLAIN_TAG_RE = re.compile(r"#([a-zA-Z0-9][a-zA-Z0-9_-]{1,49})\b", re.ASCII)

BOLD = Mark(type="bold")
ITALIC = Mark(type="italic")
STRIKE = Mark(type="strike")
CODE = Mark(type="code")

ActiveMarks = Tuple[Mark, ...]


def _with_mark(active: ActiveMarks, mark: Mark) -> ActiveMarks:
    """Return ``active`` plus ``mark``; a mark type is never applied twice."""
    if any(existing.type == mark.type for existing in active):
        return active
    return active + (mark,)


def _find_closing_delimiter(text: str, start: int, delimiter: str) -> int:
    """Find the next unescaped ``delimiter`` at or after ``start``, or -1."""
    i = start
    while i < len(text):
        if text[i] == "\\" and i + 1 < len(text):
            i += 2
            continue
        if text.startswith(delimiter, i):
            return i
        i += 1
    return -1


def _split_wiki_target(inner: str) -> Tuple[str, Optional[str]]:
    """Split ``Target|Display`` on the first pipe."""
    target, sep, display = inner.partition("|")
    return target, (display if sep else None)


def _parse_link_at(text: str, i: int) -> Optional[Tuple[str, str, int]]:
    """
    Parse ``[text](href)`` starting at ``i``.

    Brackets and parentheses are matched by depth, so nested brackets in the
    text and parentheses in the URL are kept intact.

    Returns:
        (link text, href, index after the closing parenthesis), or None
    """
    if i >= len(text) or text[i] != "[":
        return None

    depth = 1
    j = i + 1
    while j < len(text) and depth > 0:
        if text[j] == "[":
            depth += 1
        elif text[j] == "]":
            depth -= 1
        j += 1
    if depth != 0:
        return None

    link_text = text[i + 1:j - 1]
    if j >= len(text) or text[j] != "(":
        return None

    depth = 1
    k = j + 1
    while k < len(text) and depth > 0:
        if text[k] == "(":
            depth += 1
        elif text[k] == ")":
            depth -= 1
        k += 1
    if depth != 0:
        return None

    return link_text, text[j + 1:k - 1], k


def _mark_set(node: Node) -> Optional[frozenset]:
    if not isinstance(node, Text):
        return None
    return frozenset(node.marks or [])


def merge_text_nodes(nodes: List[Node]) -> List[Node]:
    """Merge adjacent text nodes whose mark sets are equal."""
    merged: List[Node] = []
    for node in nodes:
        last = merged[-1] if merged else None
        if (
            last is not None
            and isinstance(last, Text)
            and isinstance(node, Text)
            and _mark_set(last) == _mark_set(node)
        ):
            merged[-1] = Text(text=last.text + node.text, marks=last.marks)
        else:
            merged.append(node)
    return merged


class InlineParser:
    """
    Parses the inline content of one block.

    A parser holds only its options, so one instance can serve every block of
    a document.
    """

    def __init__(self, options: Optional[ParseOptions] = None):
        self.options = options or ParseOptions()

    def parse(self, text: str) -> List[Node]:
        """
        Parse ``text`` into inline nodes.

        Returns:
            Text nodes and atomic inline nodes, with adjacent text nodes of
            equal mark sets merged
        """
        if not text:
            return []
        return merge_text_nodes(self._parse_segment(text, (), 0))

    def _parse_segment(self, text: str, active: ActiveMarks, depth: int) -> List[Node]:
        nodes: List[Node] = []
        buffer: List[str] = []
        can_nest = depth < self.options.max_nesting_depth
        semantics = self.options.parse_semantics

        def flush() -> None:
            if buffer:
                nodes.append(Text(text="".join(buffer), marks=list(active) or None))
                buffer.clear()

        i = 0
        length = len(text)
        while i < length:
            char = text[i]

            if char == "\\" and i + 1 < length and text[i + 1] in ESCAPABLE:
                buffer.append(text[i + 1])
                i += 2
                continue

            if semantics and text.startswith("<!-- tag:", i):
                match = SEMANTIC_TAG_RE.match(text, i)
                if match:
                    flush()
                    tag_id, color, tag_name = match.groups()
                    nodes.append(Tag(attrs=TagAttrs(
                        tag_id=tag_id or "",
                        tag_name=tag_name,
                        slug=tag_name.lower(),
                        color=color or None,
                    )))
                    i = match.end()
                    continue

            if semantics and text.startswith("<!-- wikilink:", i):
                match = SEMANTIC_WIKILINK_RE.match(text, i)
                if match:
                    flush()
                    content_id, inner = match.groups()
                    target, display = _split_wiki_target(inner)
                    nodes.append(WikiLink(attrs=WikiLinkAttrs(
                        target_title=target,
                        display_text=display,
                        content_id=content_id or None,
                    )))
                    i = match.end()
                    continue

            if text.startswith("[[", i):
                match = PLAIN_WIKILINK_RE.match(text, i)
                if match:
                    flush()
                    target, display = _split_wiki_target(match.group(1))
                    nodes.append(WikiLink(attrs=WikiLinkAttrs(
                        target_title=target,
                        display_text=display,
                    )))
                    i = match.end()
                    continue

            if char == "#" and (i == 0 or text[i - 1].isspace()):
                match = PLAIN_TAG_RE.match(text, i)
                if match:
                    flush()
                    tag_name = match.group(1)
                    nodes.append(Tag(attrs=TagAttrs(
                        tag_id="",
                        tag_name=tag_name,
                        slug=tag_name.lower(),
                    )))
                    i = match.end()
                    continue

            if char == "`":
                close = text.find("`", i + 1)
                # an empty span stays literal
                if close > i + 1:
                    flush()
                    marks = _with_mark(active, CODE)
                    nodes.append(Text(text=text[i + 1:close], marks=list(marks)))
                    i = close + 1
                    continue

            if can_nest and text.startswith("**", i):
                close = _find_closing_delimiter(text, i + 2, "**")
                if close != -1:
                    flush()
                    nodes.extend(self._parse_segment(
                        text[i + 2:close], _with_mark(active, BOLD), depth + 1
                    ))
                    i = close + 2
                    continue

            if can_nest and text.startswith("~~", i):
                close = _find_closing_delimiter(text, i + 2, "~~")
                if close != -1:
                    flush()
                    nodes.extend(self._parse_segment(
                        text[i + 2:close], _with_mark(active, STRIKE), depth + 1
                    ))
                    i = close + 2
                    continue

            if can_nest and char in "*_" and not text.startswith(char * 2, i):
                close = _find_closing_delimiter(text, i + 1, char)
                if close != -1:
                    flush()
                    nodes.extend(self._parse_segment(
                        text[i + 1:close], _with_mark(active, ITALIC), depth + 1
                    ))
                    i = close + 1
                    continue

            if can_nest and char == "[":
                link = _parse_link_at(text, i)
                if link:
                    flush()
                    link_text, href, end = link
                    mark = Mark(type="link", attrs=LinkAttrs(href=href, target=LINK_TARGET, rel=LINK_REL))
                    nodes.extend(self._parse_segment(link_text, _with_mark(active, mark), depth + 1))
                    i = end
                    continue

            if text.startswith("  \n", i):
                flush()
                nodes.append(HardBreak())
                i += 3
                continue

            buffer.append(char)
            i += 1

        flush()
        return nodes


def parse_inline_content(text: str, options: Optional[ParseOptions] = None) -> List[Node]:
    """Parse inline markdown into nodes using a one-off ``InlineParser``."""
    return InlineParser(options).parse(text)
