"""
Sidecar reader for markport.

Parses ``.meta.json`` sidecar files and enriches parsed document trees with
the metadata of the original export (tag ids and colors). The sidecar is
optional: without it tags keep an empty ``tagId`` and are resolved by the
persistence layer on first save.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, Field, ValidationError

from ..models.document import Document, Tag, iter_nodes
from ..models.results import (
    ImportWarning,
    SIDECAR_INVALID_CALLOUTS,
    SIDECAR_INVALID_ENTRY,
    SIDECAR_INVALID_TAGS,
    SIDECAR_INVALID_WIKILINKS,
    SIDECAR_MISSING_SCHEMA_VERSION,
    SIDECAR_MISSING_VERSION,
    SIDECAR_NO_VALID_TAGS,
    SIDECAR_TAG_NOT_FOUND,
)
from ..models.sidecar import MetadataSidecar, SchemaSnapshot, SidecarCallout, SidecarTag, SidecarWikiLink


class SidecarParseResult(BaseModel):
    sidecar: MetadataSidecar
    warnings: List[ImportWarning] = Field(default_factory=list)


class SidecarEnrichmentResult(BaseModel):
    """An enriched copy of the input tree plus the warnings raised while enriching."""

    tree: Document
    warnings: List[ImportWarning] = Field(default_factory=list)


def _string_field(data: Dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return value if isinstance(value, str) and value else default


def _entry_list(
    data: Dict[str, Any],
    key: str,
    model: Type[BaseModel],
    invalid_code: str,
    warnings: List[ImportWarning]
) -> List[Any]:
    """
    Validate one array field of the sidecar.

    A present but non-array value is replaced by an empty list with
    ``invalid_code``; entries that fail validation are dropped one by one.
    """
    raw = data.get(key)
    # an empty object still counts as a wrong-typed value
    if not raw and not isinstance(raw, dict):
        return []

    if not isinstance(raw, list):
        warnings.append(ImportWarning(
            code=invalid_code,
            message=f"Sidecar '{key}' field is not an array",
        ))
        return []

    entries = []
    for index, item in enumerate(raw):
        try:
            entries.append(model.model_validate(item))
        except ValidationError as e:
            logging.debug(f"Dropping sidecar {key}[{index}]: {e}")
            warnings.append(ImportWarning(
                code=SIDECAR_INVALID_ENTRY,
                message=f"Sidecar '{key}' entry {index} is malformed and was ignored",
            ))
    return entries


def parse_sidecar(content: str) -> Optional[SidecarParseResult]:
    """
    Parse and validate the text of a ``.meta.json`` sidecar.

    Args:
        content: The raw sidecar text

    Returns:
        SidecarParseResult, or None if the content is not a JSON object

    Raises:
        TypeError: If ``content`` is not a string
    """
    if not isinstance(content, str):
        raise TypeError(f"sidecar content must be a string, not {type(content).__name__}")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logging.warning(f"Sidecar is not valid JSON: {e}")
        return None

    if not isinstance(data, dict):
        logging.warning("Sidecar is not a JSON object")
        return None

    warnings: List[ImportWarning] = []

    if not _string_field(data, "version"):
        warnings.append(ImportWarning(
            code=SIDECAR_MISSING_VERSION,
            message="Sidecar is missing 'version' field",
        ))

    if not _string_field(data, "schemaVersion"):
        warnings.append(ImportWarning(
            code=SIDECAR_MISSING_SCHEMA_VERSION,
            message="Sidecar is missing 'schemaVersion' field",
            suggestion="Tag enrichment will still work but schema compatibility cannot be verified",
        ))

    tags = _entry_list(data, "tags", SidecarTag, SIDECAR_INVALID_TAGS, warnings)
    wiki_links = _entry_list(data, "wikiLinks", SidecarWikiLink, SIDECAR_INVALID_WIKILINKS, warnings)
    callouts = _entry_list(data, "callouts", SidecarCallout, SIDECAR_INVALID_CALLOUTS, warnings)

    schema_snapshot = None
    if isinstance(data.get("schema"), dict):
        try:
            schema_snapshot = SchemaSnapshot.model_validate(data["schema"])
        except ValidationError as e:
            logging.debug(f"Dropping sidecar schema snapshot: {e}")
            warnings.append(ImportWarning(
                code=SIDECAR_INVALID_ENTRY,
                message="Sidecar 'schema' snapshot is malformed and was ignored",
            ))

    custom = data.get("custom")

    sidecar = MetadataSidecar(
        version=_string_field(data, "version", "1.0"),
        schema_version=_string_field(data, "schemaVersion", "1.0.0"),
        content_id=_string_field(data, "contentId"),
        title=_string_field(data, "title"),
        slug=_string_field(data, "slug"),
        created_at=_string_field(data, "createdAt"),
        updated_at=_string_field(data, "updatedAt"),
        tags=tags,
        wiki_links=wiki_links,
        callouts=callouts,
        schema_snapshot=schema_snapshot,
        custom=custom if isinstance(custom, dict) else {},
    )
    return SidecarParseResult(sidecar=sidecar, warnings=warnings)


def _tag_lookup(sidecar: MetadataSidecar) -> Dict[str, Tuple[str, Optional[str]]]:
    """Map tag slug to (id, color) for the sidecar tags carrying both a slug and an id."""
    return {tag.slug: (tag.id, tag.color) for tag in sidecar.tags if tag.slug and tag.id}


def enrich_with_sidecar(tree: Document, sidecar: MetadataSidecar) -> SidecarEnrichmentResult:
    """
    Copy ``tree`` and fill in tag ids and colors from the sidecar.

    Tags are matched by slug. Wiki-links are left untouched. The input tree
    is never modified, and enriching an enriched tree changes nothing.
    """
    warnings: List[ImportWarning] = []
    lookup = _tag_lookup(sidecar)

    if not lookup and sidecar.tags:
        warnings.append(ImportWarning(
            code=SIDECAR_NO_VALID_TAGS,
            message=f"Sidecar has {len(sidecar.tags)} tags but none have valid slug + id",
        ))

    enriched = tree.model_copy(deep=True)
    matched = 0

    for node in iter_nodes(enriched):
        if not isinstance(node, Tag):
            continue
        slug = node.attrs.slug
        if slug in lookup:
            tag_id, color = lookup[slug]
            node.attrs = node.attrs.model_copy(update={"tag_id": tag_id, "color": color})
            matched += 1
        elif slug:
            warnings.append(ImportWarning(
                code=SIDECAR_TAG_NOT_FOUND,
                message=f'Tag "{slug}" not found in sidecar; it will be created as new on save',
            ))

    logging.debug(f"Sidecar enrichment matched {matched} tags with {len(warnings)} warnings")
    return SidecarEnrichmentResult(tree=enriched, warnings=warnings)
