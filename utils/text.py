"""Naming helpers for generated file and component names."""

import re

_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def slugify(value: str, default: str = "item") -> str:
    """Lower-case, dash-separated identifier."""
    return "-".join(w.lower() for w in _WORD_RE.findall(value)) or default


def pascal_case(value: str, default: str = "Item") -> str:
    """PascalCase identifier suitable for a React component name."""
    words = _WORD_RE.findall(value)
    name = "".join(w[:1].upper() + w[1:] for w in words)
    if not name:
        return default
    if name[0].isdigit():
        name = f"{default}{name}"
    return name
