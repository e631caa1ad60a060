"""
Tests for the markdown exporter and the round-trip verifier.
"""

import unittest

from markport.export import ExportSettings, MarkdownSerializer, export_markdown
from markport.models import (
    CodeBlock,
    CodeBlockAttrs,
    Document,
    Heading,
    HeadingAttrs,
    Mark,
    Paragraph,
    Tag,
    TagAttrs,
    Text,
    WikiLink,
    WikiLinkAttrs,
)
from markport.parsing import parse_markdown
from markport.sidecar import generate_sidecar
from markport.verification import round_trip_markdown, verify_round_trip

RICH_MARKDOWN = """# Project Notes

Some **bold** and *italic* text with `code` and a [link](https://example.com).

- first
  - nested
- second

1. one
2. two

- [ ] todo
- [x] done

> quoted text

> [!warning] Careful
> Body

| Name | Value |
| --- | --- |
| a | b |

```python
print("hi")
```

---

Tagged #work and [[Other Page|see]]."""


def doc(*blocks):
    return Document(content=list(blocks))


def paragraph(*inline):
    return Paragraph(content=list(inline))


class TestVerifyRoundTrip(unittest.TestCase):
    """Test difference classification."""

    def test_identical_trees(self):
        tree = parse_markdown(RICH_MARKDOWN).tree
        report = verify_round_trip(tree, tree.model_copy(deep=True))
        self.assertTrue(report.identical)
        self.assertEqual(report.differences, [])
        self.assertEqual(report.semantic_count, 0)

    def test_heading_level_change_is_semantic(self):
        original = doc(Heading(attrs=HeadingAttrs(level=1), content=[Text(text="T")]))
        changed = doc(Heading(attrs=HeadingAttrs(level=2), content=[Text(text="T")]))
        report = verify_round_trip(original, changed)
        self.assertFalse(report.identical)
        self.assertEqual(report.semantic_count, 1)
        self.assertEqual(report.differences[0].path, "doc.content[0].attrs.level")

    def test_whitespace_change_is_cosmetic(self):
        report = verify_round_trip(
            doc(paragraph(Text(text="hello"))),
            doc(paragraph(Text(text="hello "))),
        )
        self.assertEqual(report.cosmetic_count, 1)
        self.assertEqual(report.semantic_count, 0)
        self.assertEqual(report.differences[0].path, "doc.content[0].content[0].text")

    def test_text_change_is_semantic(self):
        report = verify_round_trip(doc(paragraph(Text(text="a"))), doc(paragraph(Text(text="b"))))
        self.assertEqual(report.semantic_count, 1)

    def test_mark_order_is_cosmetic(self):
        bold, italic = Mark(type="bold"), Mark(type="italic")
        report = verify_round_trip(
            doc(paragraph(Text(text="x", marks=[bold, italic]))),
            doc(paragraph(Text(text="x", marks=[italic, bold]))),
        )
        self.assertEqual(report.cosmetic_count, 1)
        self.assertEqual(report.semantic_count, 0)

    def test_lost_mark_is_semantic_and_added_mark_cosmetic(self):
        bold, italic = Mark(type="bold"), Mark(type="italic")
        lost = verify_round_trip(
            doc(paragraph(Text(text="x", marks=[bold]))),
            doc(paragraph(Text(text="x"))),
        )
        self.assertEqual(lost.semantic_count, 1)

        added = verify_round_trip(
            doc(paragraph(Text(text="x", marks=[bold]))),
            doc(paragraph(Text(text="x", marks=[bold, italic]))),
        )
        self.assertEqual(added.semantic_count, 0)
        self.assertEqual(added.cosmetic_count, 1)

    def test_type_mismatch_stops_descent(self):
        report = verify_round_trip(
            doc(paragraph(Text(text="a"))),
            doc(Heading(content=[Text(text="b")])),
        )
        self.assertEqual(len(report.differences), 1)
        self.assertEqual(report.differences[0].path, "doc.content[0].type")
        self.assertEqual(report.differences[0].category, "semantic")

    def test_child_count_mismatch(self):
        report = verify_round_trip(
            doc(paragraph(Text(text="a")), paragraph(Text(text="b"))),
            doc(paragraph(Text(text="a"))),
        )
        self.assertEqual(report.semantic_count, 1)
        self.assertEqual(report.differences[0].path, "doc.content.length")

    def test_code_language_normalization(self):
        report = verify_round_trip(
            doc(CodeBlock(attrs=CodeBlockAttrs(language=""))),
            doc(CodeBlock(attrs=CodeBlockAttrs(language="plaintext"))),
        )
        self.assertTrue(report.identical)

    def test_lost_tag_id_is_semantic(self):
        original = doc(paragraph(Tag(attrs=TagAttrs(tag_id="t1", tag_name="work", slug="work", color="#f00"))))
        reimported = doc(paragraph(Tag(attrs=TagAttrs(tag_id="", tag_name="work", slug="work"))))
        report = verify_round_trip(original, reimported)
        self.assertEqual(report.semantic_count, 2)
        paths = sorted(difference.path for difference in report.differences)
        self.assertEqual(paths, [
            "doc.content[0].content[0].attrs.color",
            "doc.content[0].content[0].attrs.tagId",
        ])

    def test_other_attr_change_is_cosmetic(self):
        report = verify_round_trip(
            doc(paragraph(WikiLink(attrs=WikiLinkAttrs(target_title="A", display_text="x")))),
            doc(paragraph(WikiLink(attrs=WikiLinkAttrs(target_title="A")))),
        )
        self.assertEqual(report.cosmetic_count, 1)
        self.assertEqual(report.semantic_count, 0)

    def test_accepts_dicts_and_never_raises(self):
        self.assertTrue(verify_round_trip({"type": "doc", "content": []}, {"type": "doc"}).identical)
        report = verify_round_trip({"type": "doc", "content": [1]}, None)
        self.assertEqual(report.semantic_count, 1)

    def test_summary(self):
        report = verify_round_trip(doc(paragraph(Text(text="a"))), doc())
        self.assertIn("semantic=1", report.summary)
        self.assertIn("[semantic] doc.content.length", report.summary)


class TestMarkdownExport(unittest.TestCase):
    """Test the markdown serializer."""

    def setUp(self):
        self.settings = ExportSettings()

    def export(self, tree, **overrides):
        settings = self.settings.model_copy(update=overrides)
        return MarkdownSerializer(settings).serialize(tree)

    def test_basic_blocks(self):
        tree = parse_markdown("# Title\n\n- a\n  - b\n\n> [!tip] Hint\n> body").tree
        self.assertEqual(
            self.export(tree),
            "# Title\n\n- a\n  - b\n\n> [!tip] Hint\n> body"
        )

    def test_marks_nest_in_parse_order(self):
        tree = doc(paragraph(Text(text="x", marks=[Mark(type="bold"), Mark(type="italic")])))
        self.assertEqual(self.export(tree), "**_x_**")

    def test_code_span_wraps_text_directly(self):
        code = Mark(type="code")
        self.assertEqual(self.export(doc(paragraph(Text(text="x", marks=[code, Mark(type="bold")])))), "**`x`**")
        self.assertEqual(self.export(doc(paragraph(Text(text="x", marks=[code, Mark(type="strike")])))), "~~`x`~~")

    def test_text_is_escaped(self):
        tree = doc(paragraph(Text(text="2 * 3 = 6_ #1")))
        markdown = self.export(tree)
        self.assertEqual(markdown, "2 \\* 3 = 6\\_ \\#1")
        self.assertEqual(parse_markdown(markdown).tree.to_dict(), tree.to_dict())

    def test_semantic_envelopes(self):
        tag = Tag(attrs=TagAttrs(tag_id="t1", tag_name="work", slug="work", color="#f00"))
        link = WikiLink(attrs=WikiLinkAttrs(target_title="Page", content_id="c1"))
        tree = doc(paragraph(tag, Text(text=" "), link))
        self.assertEqual(
            self.export(tree),
            "<!-- tag:t1:#f00 -->#work<!-- /tag --> <!-- wikilink:c1 -->[[Page]]<!-- /wikilink -->"
        )
        self.assertEqual(self.export(tree, preserve_semantics=False), "#work [[Page]]")

    def test_markdown_wiki_link_style(self):
        link = WikiLink(attrs=WikiLinkAttrs(target_title="Page", display_text="shown"))
        self.assertEqual(self.export(doc(paragraph(link)), wiki_link_style="markdown"), "[shown](Page)")

    def test_code_block_fence_grows_with_content(self):
        tree = doc(CodeBlock(attrs=CodeBlockAttrs(language="md"), content=[Text(text="```\ninner\n```")]))
        markdown = self.export(tree)
        self.assertTrue(markdown.startswith("````md\n"))
        self.assertEqual(parse_markdown(markdown).tree.to_dict(), tree.to_dict())

    def test_code_block_language_prefix_setting(self):
        tree = doc(CodeBlock(attrs=CodeBlockAttrs(language="js"), content=[Text(text="x")]))
        self.assertEqual(self.export(tree, code_block_language_prefix=False), "```\nx\n```")

    def test_frontmatter_and_sidecar(self):
        tree = parse_markdown("# Title\n\nBody #work").tree
        settings = ExportSettings(include_frontmatter=True)
        sidecar = generate_sidecar(tree, content_id="c1", title="Title")

        markdown, sidecar_json = export_markdown(tree, settings, sidecar)

        self.assertTrue(markdown.startswith("---\ntitle: Title\n"))
        reparsed = parse_markdown(markdown)
        self.assertEqual(reparsed.frontmatter["title"], "Title")
        self.assertEqual(reparsed.tree.to_dict(), tree.to_dict())
        self.assertIn('"contentId": "c1"', sidecar_json)

    def test_export_without_sidecar(self):
        _, sidecar_json = export_markdown(doc(paragraph(Text(text="x"))), ExportSettings())
        self.assertIsNone(sidecar_json)


class TestMarkdownRoundTrip(unittest.TestCase):
    """Test export followed by reimport."""

    def test_rich_document_survives(self):
        tree = parse_markdown(RICH_MARKDOWN).tree
        markdown, reimported, report = round_trip_markdown(tree, ExportSettings())
        self.assertEqual(report.semantic_count, 0, report.summary)
        self.assertTrue(report.identical, report.summary)
        self.assertEqual(reimported.to_dict(), tree.to_dict())
        self.assertIn("- [x] done", markdown)

    def test_code_mark_listed_first_survives(self):
        code = Mark(type="code")
        for other in (Mark(type="bold"), Mark(type="strike")):
            with self.subTest(mark=other.type):
                tree = doc(paragraph(Text(text="x", marks=[code, other])))
                _, reimported, report = round_trip_markdown(tree, ExportSettings())
                self.assertEqual(report.semantic_count, 0, report.summary)
                self.assertEqual(reimported.content[0].content[0].text, "x")
                self.assertEqual(sorted(reimported.content[0].content[0].mark_types), sorted(["code", other.type]))

    def test_paragraphs_that_look_like_blocks_survive(self):
        cases = [
            "\\- not a list",
            "1\\. not a list",
            "\\> not a quote",
            "\\---",
            "\\| a |\n\\| --- |",
        ]
        for markdown in cases:
            with self.subTest(markdown=markdown):
                tree = parse_markdown(markdown).tree
                self.assertEqual([node.type for node in tree.content], ["paragraph"])

                exported, reimported, report = round_trip_markdown(tree, ExportSettings())
                self.assertEqual(exported, markdown)
                self.assertTrue(report.identical, report.summary)
                self.assertEqual(reimported.to_dict(), tree.to_dict())

    def test_enriched_tags_survive_with_semantics(self):
        tag = Tag(attrs=TagAttrs(tag_id="t1", tag_name="work", slug="work", color="#f00"))
        tree = doc(paragraph(Text(text="see "), tag))
        _, _, report = round_trip_markdown(tree, ExportSettings())
        self.assertTrue(report.identical, report.summary)

    def test_plain_export_loses_tag_ids(self):
        tag = Tag(attrs=TagAttrs(tag_id="t1", tag_name="work", slug="work", color="#f00"))
        tree = doc(paragraph(Text(text="see "), tag))
        _, _, report = round_trip_markdown(tree, ExportSettings(preserve_semantics=False))
        self.assertEqual(report.semantic_count, 2)

    def test_markdown_style_wiki_links_change_node_type(self):
        tree = doc(paragraph(WikiLink(attrs=WikiLinkAttrs(target_title="Page"))))
        _, _, report = round_trip_markdown(tree, ExportSettings(wiki_link_style="markdown"))
        self.assertEqual(report.differences[0].path, "doc.content[0].content[0].type")


if __name__ == "__main__":
    unittest.main()
