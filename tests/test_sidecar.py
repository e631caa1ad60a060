import json
from datetime import datetime

import pytest

from markport.models import Tag, iter_nodes
from markport.parsing import parse_markdown
from markport.sidecar import (
    enrich_with_sidecar,
    extract_callouts,
    extract_schema_snapshot,
    extract_tags,
    extract_wiki_links,
    generate_sidecar,
    parse_sidecar,
)


@pytest.fixture
def sidecar_json():
    return json.dumps({
        "version": "1.0",
        "schemaVersion": "1.0.0",
        "contentId": "c1",
        "title": "Weekly Notes",
        "slug": "weekly-notes",
        "createdAt": "2024-05-22T10:00:00Z",
        "updatedAt": "2024-05-23T10:00:00Z",
        "tags": [
            {"id": "t1", "name": "Work", "slug": "work", "color": "#ff0000"},
            {"id": "t2", "name": "Home", "slug": "home", "color": None},
        ],
        "wikiLinks": [{"targetTitle": "Project Phoenix", "contentId": "c9"}],
        "callouts": [{"type": "tip", "title": "Hint", "position": 3}],
        "schema": {"nodes": ["doc", "paragraph"], "marks": [], "extensions": []},
        "custom": {"source": "test"},
    })


def tags_of(tree):
    return [node for node in iter_nodes(tree) if isinstance(node, Tag)]


def codes(warnings):
    return [warning.code for warning in warnings]


def test_parse_valid_sidecar(sidecar_json):
    result = parse_sidecar(sidecar_json)
    assert result is not None
    assert result.warnings == []
    sidecar = result.sidecar
    assert sidecar.title == "Weekly Notes"
    assert [tag.slug for tag in sidecar.tags] == ["work", "home"]
    assert sidecar.wiki_links[0].target_title == "Project Phoenix"
    assert sidecar.wiki_links[0].content_id == "c9"
    assert sidecar.callouts[0].position == 3
    assert sidecar.schema_snapshot.nodes == ["doc", "paragraph"]
    assert sidecar.custom == {"source": "test"}


@pytest.mark.parametrize("content", ["not json", "[1, 2]", '"text"', "null", "42"])
def test_unparseable_sidecar_returns_none(content):
    assert parse_sidecar(content) is None


def test_non_string_sidecar_raises():
    with pytest.raises(TypeError):
        parse_sidecar({"version": "1.0"})


def test_missing_fields_get_defaults_and_warnings():
    result = parse_sidecar("{}")
    assert codes(result.warnings) == ["SIDECAR_MISSING_VERSION", "SIDECAR_MISSING_SCHEMA_VERSION"]
    assert result.warnings[1].suggestion
    assert result.sidecar.version == "1.0"
    assert result.sidecar.schema_version == "1.0.0"
    assert result.sidecar.content_id == ""
    assert result.sidecar.tags == []
    assert result.sidecar.custom == {}


def test_non_array_fields_are_coerced():
    content = json.dumps({
        "version": "1.0",
        "schemaVersion": "1.0.0",
        "tags": "oops",
        "wikiLinks": {"a": 1},
        "callouts": 7,
    })
    result = parse_sidecar(content)
    assert codes(result.warnings) == [
        "SIDECAR_INVALID_TAGS",
        "SIDECAR_INVALID_WIKILINKS",
        "SIDECAR_INVALID_CALLOUTS",
    ]
    assert result.sidecar.tags == []
    assert result.sidecar.wiki_links == []
    assert result.sidecar.callouts == []


def test_empty_object_fields_warn():
    content = json.dumps({
        "version": "1.0",
        "schemaVersion": "1.0.0",
        "tags": {},
        "wikiLinks": {},
        "callouts": [],
    })
    result = parse_sidecar(content)
    assert codes(result.warnings) == ["SIDECAR_INVALID_TAGS", "SIDECAR_INVALID_WIKILINKS"]
    assert result.sidecar.tags == []
    assert result.sidecar.wiki_links == []


def test_malformed_entries_are_dropped():
    content = json.dumps({
        "version": "1.0",
        "schemaVersion": "1.0.0",
        "tags": [{"id": "t1", "name": "Work", "slug": "work", "color": None}, "bad"],
    })
    result = parse_sidecar(content)
    assert codes(result.warnings) == ["SIDECAR_INVALID_ENTRY"]
    assert len(result.sidecar.tags) == 1


def test_enrichment_fills_tag_ids(sidecar_json):
    tree = parse_markdown("Notes about #work and #home").tree
    sidecar = parse_sidecar(sidecar_json).sidecar

    result = enrich_with_sidecar(tree, sidecar)

    assert result.warnings == []
    work, home = tags_of(result.tree)
    assert work.attrs.tag_id == "t1"
    assert work.attrs.color == "#ff0000"
    assert home.attrs.tag_id == "t2"
    assert home.attrs.color is None


def test_enrichment_does_not_mutate_input(sidecar_json):
    tree = parse_markdown("#work").tree
    before = tree.to_dict()
    enrich_with_sidecar(tree, parse_sidecar(sidecar_json).sidecar)
    assert tree.to_dict() == before


def test_enrichment_is_idempotent(sidecar_json):
    sidecar = parse_sidecar(sidecar_json).sidecar
    once = enrich_with_sidecar(parse_markdown("#work #other").tree, sidecar).tree
    twice = enrich_with_sidecar(once, sidecar).tree
    assert twice.to_dict() == once.to_dict()


def test_unknown_tag_warns(sidecar_json):
    tree = parse_markdown("#unknown").tree
    result = enrich_with_sidecar(tree, parse_sidecar(sidecar_json).sidecar)
    assert codes(result.warnings) == ["SIDECAR_TAG_NOT_FOUND"]
    assert tags_of(result.tree)[0].attrs.tag_id == ""


def test_sidecar_without_usable_tags_warns():
    sidecar = parse_sidecar(json.dumps({
        "version": "1.0",
        "schemaVersion": "1.0.0",
        "tags": [{"name": "Work"}],
    })).sidecar
    result = enrich_with_sidecar(parse_markdown("plain text").tree, sidecar)
    assert codes(result.warnings) == ["SIDECAR_NO_VALID_TAGS"]


def test_wiki_links_are_not_enriched(sidecar_json):
    tree = parse_markdown("[[Project Phoenix]]").tree
    result = enrich_with_sidecar(tree, parse_sidecar(sidecar_json).sidecar)
    assert result.tree.to_dict() == tree.to_dict()


def test_extractors():
    tree = parse_markdown(
        "Meet [[Jane|J]] about #work\n\n> [!tip] Hint\n> text\n\n| a |\n| --- |\n\n- [ ] task"
    ).tree

    links = extract_wiki_links(tree)
    assert [(link.target_title, link.display_text) for link in links] == [("Jane", "J")]

    callouts = extract_callouts(tree)
    assert len(callouts) == 1
    assert callouts[0].type == "tip"
    assert callouts[0].title == "Hint"
    # doc, paragraph and its four inline nodes come first
    assert callouts[0].position == 6

    assert [tag.slug for tag in extract_tags(tree)] == ["work"]

    snapshot = extract_schema_snapshot(tree)
    assert snapshot.nodes[0] == "doc"
    assert "callout" in snapshot.nodes
    assert snapshot.marks == []
    assert snapshot.extensions == ["WikiLink", "Tag", "Callout", "TaskList", "Table"]


def test_generated_sidecar_reads_back_cleanly():
    tree = parse_markdown("# Title\n\nSome **bold** #work and [[Other]]").tree
    sidecar = generate_sidecar(
        tree,
        content_id="c1",
        title="Title",
        slug="title",
        created_at=datetime(2024, 1, 1),
        updated_at="2024-01-02T00:00:00",
    )
    assert sidecar.created_at == "2024-01-01T00:00:00"
    assert sidecar.schema_snapshot.marks == ["bold"]

    result = parse_sidecar(sidecar.to_json())
    assert result.warnings == []
    assert result.sidecar.title == "Title"
    assert [tag.slug for tag in result.sidecar.tags] == ["work"]
    assert result.sidecar.wiki_links[0].target_title == "Other"
