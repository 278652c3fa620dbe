from __future__ import annotations
"""YAML → validated document loader.

Example YAML::

    provider: openai
    model: gpt-4o-mini
    inputs: [topic]
    messages:
      - system: You write haiku.
      - user: "A haiku about {{ topic }}"
      - output

Usage:
    from yapl.yaml_loader import load_document
    doc = load_document("haiku.yml")
"""
from pathlib import Path
from typing import Tuple

import yaml

from yapl.core.schema import Document, parse_document
from yapl.core.validation import validate_document
from yapl.exceptions import InvalidDocumentError

__all__ = ["STRING_PATH", "parse_yaml", "load_document"]

# Pseudo-path used in error messages for documents loaded from a string.
STRING_PATH = "(yapl:load_string)"


def parse_yaml(text: str, path: str = STRING_PATH) -> Document:  # noqa: D401
    """Parse and validate YAML *text*; *path* only labels errors."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidDocumentError(path, f"invalid YAML: {exc}") from exc
    doc = parse_document(data, path)
    validate_document(doc, path)
    return doc


def load_document(path: str | Path) -> Tuple[str, Document]:  # noqa: D401
    """Load the YAML file at *path*; return ``(display_path, document)``."""
    p = Path(path)
    try:
        display = str(p.resolve().relative_to(Path.cwd()))
    except ValueError:
        display = str(p)
    return display, parse_yaml(p.read_text(encoding="utf-8"), display)
