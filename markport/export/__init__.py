"""Markdown export for markport."""

from .markdown import ExportSettings, MarkdownSerializer, export_markdown

__all__ = ["ExportSettings", "MarkdownSerializer", "export_markdown"]
