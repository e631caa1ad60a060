"""
Markdown parser entry point for markport.
"""

import logging
import time
from typing import List, Optional

from ..models.document import Document, HardBreak, Tag, Text, WikiLink, iter_nodes
from ..models.results import ImportWarning, ParseOptions, ParseResult, ParseStats
from .blocks import BlockParser
from .frontmatter import split_frontmatter

INLINE_NODE_TYPES = (Text, HardBreak, Tag, WikiLink)


def parse_markdown(markdown: str, options: Optional[ParseOptions] = None) -> ParseResult:
    """
    Parse a markdown document into a document tree.

    Malformed input never raises; anomalies are reported as warnings in the
    result instead.

    Args:
        markdown: The raw markdown text
        options: Parser options; defaults come from the ``parser`` config section

    Returns:
        ParseResult with the tree, warnings, statistics and frontmatter

    Raises:
        TypeError: If ``markdown`` is not a string
    """
    if not isinstance(markdown, str):
        raise TypeError(f"markdown must be a string, not {type(markdown).__name__}")
    if options is not None and not isinstance(options, ParseOptions):
        raise TypeError(f"options must be ParseOptions, not {type(options).__name__}")

    started = time.perf_counter()
    opts = options or ParseOptions.from_config()

    if not markdown.strip():
        return ParseResult()

    lines = markdown.replace("\r\n", "\n").split("\n")
    warnings: List[ImportWarning] = []
    frontmatter = {}
    offset = 0

    if opts.strip_frontmatter:
        body, frontmatter = split_frontmatter(lines, warnings)
        offset = len(lines) - len(body)
        lines = body

    blocks = BlockParser(opts, warnings).parse(lines, offset)
    tree = Document(content=blocks)

    inline_count = sum(1 for node in iter_nodes(tree) if isinstance(node, INLINE_NODE_TYPES))
    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

    logging.debug(
        f"Parsed {len(blocks)} blocks and {inline_count} inline nodes "
        f"in {elapsed_ms}ms with {len(warnings)} warnings"
    )

    return ParseResult(
        tree=tree,
        warnings=warnings,
        stats=ParseStats(
            block_count=len(blocks),
            inline_node_count=inline_count,
            parse_time_ms=elapsed_ms,
        ),
        frontmatter=frontmatter,
    )
