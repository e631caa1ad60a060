"""
Unit tests for core markport components.

Tests configuration management, the document data models and the small
utility functions shared by the importers.
"""

import os
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from markport.config import ConfigManager
from markport.export import ExportSettings
from markport.importers import calculate_content_hash, slugify
from markport.models import (
    Document,
    Heading,
    HeadingAttrs,
    LinkAttrs,
    Mark,
    Paragraph,
    ParseOptions,
    Tag,
    TagAttrs,
    Text,
    iter_nodes,
    parse_node,
)


class TestConfigManager(unittest.TestCase):
    """Test configuration management functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.config_path = Path(self.temp_dir) / "test_config.yaml"

    def tearDown(self):
        """Clean up test fixtures."""
        if self.config_path.exists():
            self.config_path.unlink()
        os.rmdir(self.temp_dir)

    def test_config_creation_with_defaults(self):
        """Test config manager falls back to defaults when file missing."""
        config = ConfigManager(str(self.config_path))

        self.assertTrue(config.parse_semantics)
        self.assertTrue(config.strip_frontmatter)
        self.assertEqual(config.max_nesting_depth, 64)
        self.assertEqual(config.default_title, "Imported Note")
        self.assertEqual(config.words_per_minute, 200)
        self.assertIsNone(config.log_filename)

    def test_config_loading_from_file(self):
        """Test loading configuration from YAML file."""
        test_config = """
parser:
  parse_semantics: false
  max_nesting_depth: 10

import:
  default_title: "Untitled"

paths:
  log_file: "markport.log"
"""
        with open(self.config_path, 'w') as f:
            f.write(test_config)

        config = ConfigManager(str(self.config_path))

        self.assertFalse(config.parse_semantics)
        self.assertEqual(config.max_nesting_depth, 10)
        self.assertEqual(config.default_title, "Untitled")
        self.assertEqual(config.log_filename, "markport.log")
        # Keys missing from the file keep their defaults
        self.assertTrue(config.strip_frontmatter)
        self.assertEqual(config.title_max_length, 100)

    def test_dot_notation_access(self):
        """Test accessing config values with dot notation."""
        config = ConfigManager(str(self.config_path))

        self.assertEqual(config.get("export.wiki_link_style"), "[[]]")
        self.assertEqual(config.get("parser.max_nesting_depth"), 64)
        self.assertIsNone(config.get("nonexistent.key"))
        self.assertEqual(config.get("nonexistent.key", "fallback"), "fallback")
        self.assertIn("preserve_semantics", config.get_section("export"))

    def test_config_reload(self):
        """Test configuration reloading."""
        config = ConfigManager(str(self.config_path))
        self.assertEqual(config.max_nesting_depth, 64)

        with open(self.config_path, 'w') as f:
            f.write("parser:\n  max_nesting_depth: 5\n")

        config.reload()
        self.assertEqual(config.max_nesting_depth, 5)

    def test_invalid_yaml_falls_back_to_defaults(self):
        with open(self.config_path, 'w') as f:
            f.write("parser: [unclosed\n")

        config = ConfigManager(str(self.config_path))
        self.assertEqual(config.max_nesting_depth, 64)

    def test_options_from_config(self):
        with open(self.config_path, 'w') as f:
            f.write("parser:\n  strip_frontmatter: false\nexport:\n  wiki_link_style: markdown\n")

        config = ConfigManager(str(self.config_path))
        options = ParseOptions.from_config(config)
        settings = ExportSettings.from_config(config)

        self.assertFalse(options.strip_frontmatter)
        self.assertTrue(options.parse_semantics)
        self.assertEqual(settings.wiki_link_style, "markdown")
        self.assertTrue(settings.preserve_semantics)


class TestDataModels(unittest.TestCase):
    """Test document tree models."""

    def test_text_serialization_omits_empty_fields(self):
        self.assertEqual(Text(text="x").to_dict(), {"type": "text", "text": "x"})

    def test_link_mark_serialization(self):
        mark = Mark(type="link", attrs=LinkAttrs(href="https://example.com"))
        data = Text(text="x", marks=[mark]).to_dict()
        self.assertEqual(data["marks"], [{
            "type": "link",
            "attrs": {
                "href": "https://example.com",
                "target": "_blank",
                "rel": "noopener noreferrer nofollow",
            },
        }])

    def test_tag_uses_editor_attribute_names(self):
        tag = Tag(attrs=TagAttrs(tag_id="t1", tag_name="Work", slug="work"))
        self.assertEqual(tag.to_dict()["attrs"], {"tagId": "t1", "tagName": "Work", "slug": "work"})

    def test_parse_node_roundtrip(self):
        data = {
            "type": "doc",
            "content": [
                {"type": "heading", "attrs": {"level": 2}, "content": [{"type": "text", "text": "Hi"}]},
                {"type": "paragraph", "content": [
                    {"type": "text", "text": "bold", "marks": [{"type": "bold"}]},
                    {"type": "tag", "attrs": {"tagId": "", "tagName": "x1", "slug": "x1"}},
                ]},
            ],
        }
        node = parse_node(data)
        self.assertIsInstance(node, Document)
        self.assertIsInstance(node.content[0], Heading)
        self.assertEqual(node.to_dict(), data)

    def test_unknown_node_type_rejected(self):
        with self.assertRaises(ValidationError):
            parse_node({"type": "mystery"})

    def test_heading_level_bounds(self):
        with self.assertRaises(ValidationError):
            HeadingAttrs(level=7)

    def test_iter_nodes_is_depth_first(self):
        tree = Document(content=[
            Paragraph(content=[Text(text="a"), Text(text="b")]),
            Heading(content=[Text(text="c")]),
        ])
        self.assertEqual(
            [node.type for node in iter_nodes(tree)],
            ["doc", "paragraph", "text", "text", "heading", "text"]
        )


class TestUtilityFunctions(unittest.TestCase):
    """Test utility functions."""

    def test_slug_generation(self):
        test_cases = [
            ("Weekly Notes", "weekly-notes"),
            ("  Hello, World!  ", "hello-world"),
            ("C++ & Rust", "c-rust"),
            ("!!!", "untitled"),
        ]

        for title, expected in test_cases:
            self.assertEqual(slugify(title), expected)

    def test_content_hash_ignores_key_order(self):
        first = parse_node({"type": "doc", "content": [{"type": "paragraph", "content": []}]})
        second = Document(content=[Paragraph()])
        self.assertEqual(calculate_content_hash(first), calculate_content_hash(second))
        self.assertNotEqual(calculate_content_hash(first), calculate_content_hash(Document()))


if __name__ == "__main__":
    unittest.main()
