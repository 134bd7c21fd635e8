"""Normalization of raw BibTeX field tokens."""

import re

_LATEX_ESCAPES = (
    ("\\{", "{"),
    ("\\}", "}"),
    ("\\%", "%"),
    ("\\&", "&"),
    ("\\_", "_"),
    ("\\$", "$"),
)

_WHITESPACE = re.compile(r"\s+")
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_\-]")
_UNDERSCORE_RUNS = re.compile(r"_+")


def clean_value(raw: str) -> str:
    """Normalize a raw field value.

    Strips protective braces and quotes, unescapes the small set of
    LaTeX escapes that show up in exported bibliographies, and collapses
    whitespace. ``clean_value("{{Title}}") == "Title"``.

    Args:
        raw: Field value exactly as it appeared between its delimiters.

    Returns:
        The cleaned single-line value.
    """
    value = raw.strip()

    while len(value) >= 2 and value.startswith("{") and value.endswith("}"):
        value = value[1:-1]

    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]

    for escaped, char in _LATEX_ESCAPES:
        value = value.replace(escaped, char)

    value = value.strip()
    if value.endswith(","):
        value = value[:-1]

    # Inline case-protection braces, e.g. "A {Mathematical} Theory"
    value = value.replace("{", " ").replace("}", " ")

    return _WHITESPACE.sub(" ", value).strip()


def sanitize_name(text: str) -> str:
    """Reduce text to a file-system safe directory name.

    Every character outside ``[A-Za-z0-9_-]`` becomes an underscore and
    runs of underscores are collapsed.
    """
    return _UNDERSCORE_RUNS.sub("_", _UNSAFE_NAME_CHARS.sub("_", text))
