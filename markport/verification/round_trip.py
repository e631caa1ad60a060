"""
Round-trip verification for markport.

Compares an original document tree with the tree obtained by exporting it to
markdown and importing it again, and classifies every difference:

- lossless: structurally identical
- cosmetic: whitespace, mark order, empty attrs, extra marks (no data loss)
- semantic: missing nodes, changed key attrs, lost marks (actual data loss)
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from ..export.markdown import ExportSettings, MarkdownSerializer
from ..models.document import Document, Node
from ..models.results import NodeDifference, ParseOptions, RoundTripReport
from ..parsing.markdown import parse_markdown

# Attributes whose change means data was lost
SEMANTIC_ATTRS = {"tagId", "color", "level", "checked"}
# Code block languages that all mean "no language"
PLAIN_LANGUAGES = (None, "", "plaintext")

TreeLike = Union[Node, Dict[str, Any]]


def _as_dict(node: Any) -> Dict[str, Any]:
    if isinstance(node, Node):
        return node.to_dict()
    if isinstance(node, dict):
        return node
    return {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _canonical(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def _mark_type(mark: Any) -> str:
    return str(mark.get("type", "")) if isinstance(mark, dict) else ""


def verify_round_trip(original: TreeLike, reimported: TreeLike) -> RoundTripReport:
    """
    Compare an original tree with its export-then-reimport copy.

    Both trees may be given as models or as their JSON dictionaries. This
    function never raises; malformed input shows up as differences.

    Args:
        original: The tree before export
        reimported: The tree after reimport

    Returns:
        RoundTripReport listing every difference with its category
    """
    differences: List[NodeDifference] = []
    _compare_nodes(_as_dict(original), _as_dict(reimported), "doc", differences)

    counts = {"lossless": 0, "cosmetic": 0, "semantic": 0}
    for difference in differences:
        counts[difference.category] += 1

    return RoundTripReport(
        identical=not differences,
        lossless_count=counts["lossless"],
        cosmetic_count=counts["cosmetic"],
        semantic_count=counts["semantic"],
        differences=differences,
    )


def _compare_nodes(
    original: Dict[str, Any],
    reimported: Dict[str, Any],
    path: str,
    differences: List[NodeDifference]
) -> None:
    original_type = original.get("type")
    reimported_type = reimported.get("type")

    if original_type != reimported_type:
        differences.append(NodeDifference(
            path=f"{path}.type",
            category="semantic",
            original=original_type,
            imported=reimported_type,
            message=f'Node type mismatch: "{original_type}" vs "{reimported_type}"',
        ))
        # Nothing below a type mismatch is comparable
        return

    if original_type == "text":
        _compare_text(original, reimported, path, differences)
        _compare_marks(_as_list(original.get("marks")), _as_list(reimported.get("marks")), path, differences)
        return

    _compare_attrs(original.get("attrs"), reimported.get("attrs"), path, differences)

    original_content = _as_list(original.get("content"))
    reimported_content = _as_list(reimported.get("content"))

    if len(original_content) != len(reimported_content):
        differences.append(NodeDifference(
            path=f"{path}.content.length",
            category="semantic",
            original=len(original_content),
            imported=len(reimported_content),
            message=f"Child count mismatch: {len(original_content)} vs {len(reimported_content)}",
        ))

    for i, (original_child, reimported_child) in enumerate(zip(original_content, reimported_content)):
        _compare_nodes(
            _as_dict(original_child),
            _as_dict(reimported_child),
            f"{path}.content[{i}]",
            differences,
        )


def _compare_text(
    original: Dict[str, Any],
    reimported: Dict[str, Any],
    path: str,
    differences: List[NodeDifference]
) -> None:
    original_text = str(original.get("text") or "")
    reimported_text = str(reimported.get("text") or "")
    if original_text == reimported_text:
        return

    whitespace_only = original_text.strip() == reimported_text.strip()
    differences.append(NodeDifference(
        path=f"{path}.text",
        category="cosmetic" if whitespace_only else "semantic",
        original=original_text,
        imported=reimported_text,
        message=(
            "Whitespace difference in text" if whitespace_only
            else f'Text content changed: "{original_text[:50]}" vs "{reimported_text[:50]}"'
        ),
    ))


def _compare_attrs(
    original_attrs: Any,
    reimported_attrs: Any,
    path: str,
    differences: List[NodeDifference]
) -> None:
    original = original_attrs if isinstance(original_attrs, dict) else {}
    reimported = reimported_attrs if isinstance(reimported_attrs, dict) else {}

    if not original and not reimported:
        return

    for key in sorted(set(original) | set(reimported)):
        original_value = original.get(key)
        reimported_value = reimported.get(key)

        if original_value == reimported_value:
            continue
        if key == "language" and original_value in PLAIN_LANGUAGES and reimported_value in PLAIN_LANGUAGES:
            continue

        differences.append(NodeDifference(
            path=f"{path}.attrs.{key}",
            category="semantic" if key in SEMANTIC_ATTRS else "cosmetic",
            original=original_value,
            imported=reimported_value,
            message=f'Attr "{key}" changed: {_canonical(original_value)} -> {_canonical(reimported_value)}',
        ))


def _compare_marks(
    original: List[Any],
    reimported: List[Any],
    path: str,
    differences: List[NodeDifference]
) -> None:
    if not original and not reimported:
        return

    sorted_original = sorted(original, key=_mark_type)
    sorted_reimported = sorted(reimported, key=_mark_type)

    if _canonical(sorted_original) == _canonical(sorted_reimported):
        if _canonical(original) != _canonical(reimported):
            differences.append(NodeDifference(
                path=f"{path}.marks",
                category="cosmetic",
                original=[_mark_type(mark) for mark in original],
                imported=[_mark_type(mark) for mark in reimported],
                message="Mark order differs (no data loss)",
            ))
        return

    original_marks = {_mark_type(mark): mark for mark in original}
    reimported_marks = {_mark_type(mark): mark for mark in reimported}

    for mark_type, mark in original_marks.items():
        if mark_type not in reimported_marks:
            differences.append(NodeDifference(
                path=f"{path}.marks",
                category="semantic",
                original=mark_type,
                imported=None,
                message=f'Mark "{mark_type}" lost during round-trip',
            ))
        elif _canonical(mark) != _canonical(reimported_marks[mark_type]):
            differences.append(NodeDifference(
                path=f"{path}.marks",
                category="semantic",
                original=mark,
                imported=reimported_marks[mark_type],
                message=f'Mark "{mark_type}" attributes changed during round-trip',
            ))

    for mark_type in reimported_marks:
        if mark_type not in original_marks:
            differences.append(NodeDifference(
                path=f"{path}.marks",
                category="cosmetic",
                original=None,
                imported=mark_type,
                message=f'Extra mark "{mark_type}" added during round-trip',
            ))


def round_trip_markdown(
    tree: Document,
    settings: Optional[ExportSettings] = None,
    options: Optional[ParseOptions] = None
) -> Tuple[str, Document, RoundTripReport]:
    """
    Export a tree to markdown, parse it back and verify the result.

    Args:
        tree: The original document
        settings: ExportSettings for the export step
        options: ParseOptions for the reimport step

    Returns:
        Tuple of (markdown, reimported tree, report)
    """
    markdown = MarkdownSerializer(settings or ExportSettings.from_config()).serialize(tree)
    reimported = parse_markdown(markdown, options).tree
    report = verify_round_trip(tree, reimported)

    logging.info(
        f"Round trip: {report.semantic_count} semantic, "
        f"{report.cosmetic_count} cosmetic differences"
    )
    return markdown, reimported, report
