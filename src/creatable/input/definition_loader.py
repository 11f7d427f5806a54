import os
import sys
from typing import Any, Dict, Iterable, Optional, TextIO

import yaml

from creatable.utils.exceptions import DefinitionFormatError

TAB_SIZE = 8


def expand_tabs(text: str) -> str:
    """
    Expand tab characters to spaces, line by line.

    YAML forbids tabs in indentation, but definition files are often
    edited with them.
    """
    return "".join(
        line.expandtabs(TAB_SIZE) for line in text.splitlines(keepends=True)
    )


def parse_definition(text: str) -> Dict[str, Any]:
    try:
        document = yaml.safe_load(expand_tabs(text))
    except yaml.YAMLError as e:
        raise DefinitionFormatError(f"Invalid YAML definition: {e}") from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise DefinitionFormatError(
            f"Definition must be a mapping, got: {type(document).__name__}"
        )

    tables = document.get("tables")
    if tables is not None and not isinstance(tables, list):
        raise DefinitionFormatError("'tables' must be a list of table definitions")

    defaults = document.get("defaults")
    if defaults is not None and not isinstance(defaults, dict):
        raise DefinitionFormatError("'defaults' must be a mapping")

    return document


def read_definition_text(
    paths: Optional[Iterable[str]] = None, stdin: Optional[TextIO] = None
) -> str:
    """
    Concatenate the given definition files, or read stdin when none are given.
    """
    paths = list(paths or [])
    if not paths:
        return (stdin or sys.stdin).read()

    chunks = []
    for path in paths:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Definition file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        if text and not text.endswith("\n"):
            text += "\n"
        chunks.append(text)
    return "".join(chunks)


def load_definition(
    paths: Optional[Iterable[str]] = None, stdin: Optional[TextIO] = None
) -> Dict[str, Any]:
    return parse_definition(read_definition_text(paths, stdin))
