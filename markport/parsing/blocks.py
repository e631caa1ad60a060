"""
Block-level markdown parser for markport.

Scans lines with a cursor and classifies each position as a code fence,
heading, horizontal rule, blockquote or callout, table, task list, bullet or
ordered list, or paragraph, in that priority order. The inline content of
every block goes through the InlineParser; blockquotes, callouts and nested
lists recurse into the block algorithm.
"""

import logging
import re
from typing import List, Optional, Tuple, Type, Union

from ..models.document import (
    Blockquote,
    BulletList,
    Callout,
    CalloutAttrs,
    CodeBlock,
    CodeBlockAttrs,
    Heading,
    HeadingAttrs,
    HorizontalRule,
    ListItem,
    Node,
    OrderedList,
    Paragraph,
    Table,
    TableCell,
    TableHeader,
    TableRow,
    TaskItem,
    TaskItemAttrs,
    TaskList,
    Text,
    empty_paragraph,
)
from ..models.results import (
    ImportWarning,
    ParseOptions,
    MAX_DEPTH_EXCEEDED,
    TABLE_COLUMN_MISMATCH,
    UNCLOSED_CODE_BLOCK,
)
from .inline import InlineParser

FENCE_RE = re.compile(r"^(`{3,})(.*)$")
CLOSING_FENCE_RE = re.compile(r"^`{3,}$")
HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
HEADING_START_RE = re.compile(r"^#{1,6}\s")
HORIZONTAL_RULE_RE = re.compile(r"^(-{3,}|\*{3,}|_{3,})$")
CALLOUT_RE = re.compile(
    r"^> \[!(note|tip|warning|danger|info|success)\]\s*(.*)$",
    re.IGNORECASE,
)
TABLE_SEPARATOR_RE = re.compile(r"^\|[\s\-:|]+\|$")
CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
TASK_ITEM_RE = re.compile(r"^\s*[-*]\s\[([ xX])\]\s(.*)$")
BULLET_ITEM_RE = re.compile(r"^(\s*)[-*]\s(.*)$")
ORDERED_ITEM_RE = re.compile(r"^(\s*)\d+\.\s(.*)$")

BULLET = "bullet"
ORDERED = "ordered"

ParsedBlock = Tuple[Node, int]


def _list_item(line: str) -> Optional[Tuple[str, int, str]]:
    """Classify a list item line as (list kind, indent level, item text)."""
    # task items always start their own task list
    if TASK_ITEM_RE.match(line):
        return None
    match = BULLET_ITEM_RE.match(line)
    if match:
        return BULLET, len(match.group(1)) // 2, match.group(2)
    match = ORDERED_ITEM_RE.match(line)
    if match:
        return ORDERED, len(match.group(1)) // 2, match.group(2)
    return None


def _is_table_start(lines: List[str], i: int) -> bool:
    return (
        lines[i].rstrip().startswith("|")
        and i + 1 < len(lines)
        and TABLE_SEPARATOR_RE.match(lines[i + 1].strip()) is not None
    )


def _starts_block(lines: List[str], i: int) -> bool:
    """Whether line ``i`` opens a block that interrupts a paragraph."""
    line = lines[i]
    trimmed = line.rstrip()
    return bool(
        trimmed.startswith("```")
        or HEADING_START_RE.match(trimmed)
        or HORIZONTAL_RULE_RE.match(trimmed)
        or trimmed.startswith("> ")
        or trimmed == ">"
        or BULLET_ITEM_RE.match(line)
        or ORDERED_ITEM_RE.match(line)
        or _is_table_start(lines, i)
    )


def _split_cells(line: str) -> List[str]:
    """Split a table row on unescaped pipes, ignoring the outer ones."""
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [cell.strip() for cell in CELL_SPLIT_RE.split(row)]


class BlockParser:
    """
    Builds block nodes from lines of markdown.

    Warnings are appended to the list given at construction; their line
    numbers are 1-based positions in the original input.
    """

    def __init__(self, options: Optional[ParseOptions] = None, warnings: Optional[List[ImportWarning]] = None):
        self.options = options or ParseOptions()
        self.warnings: List[ImportWarning] = warnings if warnings is not None else []
        self.inline = InlineParser(self.options)

    def parse(self, lines: List[str], offset: int = 0, depth: int = 0) -> List[Node]:
        """
        Parse lines into block nodes.

        Args:
            lines: The lines to parse
            offset: Index of ``lines[0]`` in the original input
            depth: Current container nesting depth

        Returns:
            Block nodes in document order
        """
        blocks: List[Node] = []
        i = 0

        while i < len(lines):
            line = lines[i]
            trimmed = line.rstrip()

            if trimmed == "":
                i += 1
                continue

            if trimmed.startswith("```"):
                node, i = self._parse_code_block(lines, i, offset)
            elif HEADING_RE.match(trimmed):
                node, i = self._parse_heading(lines, i)
            elif HORIZONTAL_RULE_RE.match(trimmed):
                node, i = HorizontalRule(), i + 1
            elif trimmed.startswith("> ") or trimmed == ">":
                if CALLOUT_RE.match(trimmed):
                    node, i = self._parse_callout(lines, i, offset, depth)
                else:
                    node, i = self._parse_blockquote(lines, i, offset, depth)
            elif _is_table_start(lines, i):
                node, i = self._parse_table(lines, i, offset)
            elif TASK_ITEM_RE.match(line):
                node, i = self._parse_task_list(lines, i)
            elif BULLET_ITEM_RE.match(line):
                node, i = self._parse_list(lines, i, BULLET, offset, depth)
            elif ORDERED_ITEM_RE.match(line):
                node, i = self._parse_list(lines, i, ORDERED, offset, depth)
            else:
                node, i = self._parse_paragraph(lines, i)
                if not node.content:
                    continue

            blocks.append(node)

        return blocks

    def _warn(self, code: str, message: str, line: int) -> None:
        logging.debug(f"{code} at line {line}: {message}")
        self.warnings.append(ImportWarning(code=code, message=message, line=line))

    def _parse_code_block(self, lines: List[str], start: int, offset: int) -> ParsedBlock:
        fence = FENCE_RE.match(lines[start].rstrip())
        fence_length = len(fence.group(1))
        language = fence.group(2).strip()

        code_lines: List[str] = []
        closed = False
        i = start + 1
        while i < len(lines):
            candidate = lines[i].rstrip()
            if CLOSING_FENCE_RE.match(candidate) and len(candidate) >= fence_length:
                closed = True
                i += 1
                break
            code_lines.append(lines[i])
            i += 1

        if not closed:
            self._warn(
                UNCLOSED_CODE_BLOCK,
                "Code block is not closed (missing closing ```)",
                offset + start + 1,
            )

        code = "\n".join(code_lines)
        node = CodeBlock(
            attrs=CodeBlockAttrs(language=language),
            content=[Text(text=code)] if code else [],
        )
        return node, i

    def _parse_heading(self, lines: List[str], start: int) -> ParsedBlock:
        match = HEADING_RE.match(lines[start].rstrip())
        node = Heading(
            attrs=HeadingAttrs(level=len(match.group(1))),
            content=self.inline.parse(match.group(2)),
        )
        return node, start + 1

    @staticmethod
    def _collect_quoted(lines: List[str], start: int) -> Tuple[List[str], int]:
        """Collect consecutive quoted lines from ``start`` with the prefix removed."""
        body: List[str] = []
        i = start
        while i < len(lines):
            line = lines[i]
            if line.rstrip() == ">":
                body.append("")
            elif line.startswith("> "):
                body.append(line[2:])
            else:
                break
            i += 1
        return body, i

    def _parse_container_body(self, body: List[str], offset: int, depth: int) -> List[Node]:
        """Recursively parse a dedented container body, honouring the depth cap."""
        if depth + 1 > self.options.max_nesting_depth:
            self._warn(
                MAX_DEPTH_EXCEEDED,
                f"Nesting deeper than {self.options.max_nesting_depth} levels kept as plain text",
                offset + 1,
            )
            text = "\n".join(body).strip()
            return [Paragraph(content=[Text(text=text)])] if text else []
        return self.parse(body, offset, depth + 1)

    def _parse_blockquote(self, lines: List[str], start: int, offset: int, depth: int) -> ParsedBlock:
        body, end = self._collect_quoted(lines, start)
        content = self._parse_container_body(body, offset + start, depth)
        return Blockquote(content=content or [empty_paragraph()]), end

    def _parse_callout(self, lines: List[str], start: int, offset: int, depth: int) -> ParsedBlock:
        match = CALLOUT_RE.match(lines[start].rstrip())
        callout_type = match.group(1).lower()
        title = match.group(2).strip() or None

        body, end = self._collect_quoted(lines, start + 1)
        content = self._parse_container_body(body, offset + start + 1, depth)
        node = Callout(
            attrs=CalloutAttrs(type=callout_type, title=title),
            content=content or [empty_paragraph()],
        )
        return node, end

    def _table_row(self, line: str, cell_type: Type[Union[TableHeader, TableCell]]) -> List[Node]:
        return [
            cell_type(content=[Paragraph(content=self.inline.parse(text))])
            for text in _split_cells(line)
        ]

    def _parse_table(self, lines: List[str], start: int, offset: int) -> ParsedBlock:
        header = self._table_row(lines[start], TableHeader)
        width = len(header)
        rows = [TableRow(content=header)]

        # skip the separator row
        i = start + 2
        while i < len(lines) and lines[i].strip().startswith("|"):
            cells = self._table_row(lines[i], TableCell)
            if len(cells) < width:
                cells.extend(TableCell(content=[empty_paragraph()]) for _ in range(width - len(cells)))
            elif len(cells) > width:
                self._warn(
                    TABLE_COLUMN_MISMATCH,
                    f"Table row has {len(cells)} cells but the header has {width}; extra cells dropped",
                    offset + i + 1,
                )
                cells = cells[:width]
            rows.append(TableRow(content=cells))
            i += 1

        return Table(content=rows), i

    def _parse_task_list(self, lines: List[str], start: int) -> ParsedBlock:
        items: List[TaskItem] = []
        i = start
        while i < len(lines):
            match = TASK_ITEM_RE.match(lines[i])
            if not match:
                break
            items.append(TaskItem(
                attrs=TaskItemAttrs(checked=match.group(1).lower() == "x"),
                content=[Paragraph(content=self.inline.parse(match.group(2)))],
            ))
            i += 1
        return TaskList(content=items), i

    def _parse_list(self, lines: List[str], start: int, kind: str, offset: int, depth: int) -> ParsedBlock:
        """
        Parse a bullet or ordered list starting at ``start``.

        Items deeper than the list's own indentation open a nested list that
        is appended to the content of the preceding item.
        """
        items: List[ListItem] = []
        base = _list_item(lines[start])[1]
        i = start

        while i < len(lines):
            line = lines[i]

            if line.strip() == "":
                # Continue past blank lines only when more items follow
                j = i + 1
                while j < len(lines) and lines[j].strip() == "":
                    j += 1
                following = _list_item(lines[j]) if j < len(lines) else None
                if following and following[1] >= base:
                    i = j
                    continue
                break

            item = _list_item(line)
            if item is None:
                break
            item_kind, indent, text = item
            if indent < base:
                break

            if indent > base:
                if depth + 1 <= self.options.max_nesting_depth:
                    nested, i = self._parse_list(lines, i, item_kind, offset, depth + 1)
                    if items:
                        items[-1].content.append(nested)
                    else:
                        items.append(ListItem(content=[empty_paragraph(), nested]))
                    continue
                self._warn(
                    MAX_DEPTH_EXCEEDED,
                    f"List nesting deeper than {self.options.max_nesting_depth} levels flattened",
                    offset + i + 1,
                )
            elif item_kind != kind:
                break

            items.append(ListItem(content=[Paragraph(content=self.inline.parse(text))]))
            i += 1

        if not items:
            items = [ListItem(content=[empty_paragraph()])]
        list_type = BulletList if kind == BULLET else OrderedList
        return list_type(content=items), i

    def _parse_paragraph(self, lines: List[str], start: int) -> ParsedBlock:
        collected: List[str] = []
        i = start
        while i < len(lines):
            if lines[i].strip() == "":
                break
            if i > start and _starts_block(lines, i):
                break
            collected.append(lines[i])
            i += 1

        # Lines stay joined by newlines; trailing double spaces become hard breaks inline
        return Paragraph(content=self.inline.parse("\n".join(collected))), i
