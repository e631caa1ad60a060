"""Markdown parsing for markport."""

from .blocks import BlockParser
from .frontmatter import split_frontmatter, strip_frontmatter
from .inline import InlineParser, merge_text_nodes, parse_inline_content
from .markdown import parse_markdown

__all__ = [
    "BlockParser",
    "InlineParser",
    "merge_text_nodes",
    "parse_inline_content",
    "parse_markdown",
    "split_frontmatter",
    "strip_frontmatter",
]
