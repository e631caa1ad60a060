"""
Frontmatter handling for markport.

A document may start with a ``---`` delimited YAML block. The parser strips
it before block parsing; malformed input is never discarded.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..models.results import ImportWarning, INVALID_FRONTMATTER, UNCLOSED_FRONTMATTER

DELIMITER = "---"


def _closing_index(lines: List[str]) -> Optional[int]:
    """Index of the closing delimiter, or None when there is no frontmatter block."""
    if len(lines) < 2 or lines[0].strip() != DELIMITER:
        return None
    for i in range(1, len(lines)):
        if lines[i].strip() == DELIMITER:
            return i
    return -1


def strip_frontmatter(lines: List[str], warnings: List[ImportWarning]) -> List[str]:
    """
    Remove a leading frontmatter block.

    Args:
        lines: The document split into lines
        warnings: Receives ``UNCLOSED_FRONTMATTER`` when the block never closes

    Returns:
        The lines after the closing delimiter, or all lines unmodified when the
        document has no (or an unclosed) frontmatter block
    """
    remaining, _ = split_frontmatter(lines, warnings, parse=False)
    return remaining


def split_frontmatter(
    lines: List[str],
    warnings: List[ImportWarning],
    parse: bool = True
) -> Tuple[List[str], Dict[str, Any]]:
    """
    Split the frontmatter block from the body and parse it as YAML.

    A block that is not valid YAML, or not a mapping, is still stripped but
    yields an empty dictionary and an ``INVALID_FRONTMATTER`` warning.
    """
    end = _closing_index(lines)
    if end is None:
        return lines, {}

    if end == -1:
        warnings.append(ImportWarning(
            code=UNCLOSED_FRONTMATTER,
            message="YAML frontmatter block is not closed (missing closing ---)",
            line=1,
        ))
        return lines, {}

    remaining = lines[end + 1:]
    if not parse:
        return remaining, {}

    block = "\n".join(lines[1:end])
    try:
        metadata = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logging.warning(f"Ignoring unparseable frontmatter: {e}")
        warnings.append(ImportWarning(
            code=INVALID_FRONTMATTER,
            message="Frontmatter is not valid YAML and was ignored",
            line=1,
        ))
        return remaining, {}

    if metadata is None:
        return remaining, {}

    if not isinstance(metadata, dict):
        warnings.append(ImportWarning(
            code=INVALID_FRONTMATTER,
            message="Frontmatter is not a key/value mapping and was ignored",
            line=1,
        ))
        return remaining, {}

    return remaining, {str(key): value for key, value in metadata.items()}
