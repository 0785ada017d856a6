"""Markdown link extraction: wiki-links and inline file links."""

import re

# Match [[target]], [[target|alias]], [[target#section]], [[target#section|alias]]
WIKILINK_PATTERN = re.compile(r"(?<!\\)\[\[([^\[\]|#\n]*)(?:#[^\[\]|\n]*)?(?:\|[^\[\]\n]*)?\]\]")


def _inline_pattern(extension: str) -> re.Pattern[str]:
    # [label](path/to/target.md); the label itself may not contain brackets
    return re.compile(r"(?<![\\\[])\[[^\[\]\n]*\]\(([^()\n]+?)" + re.escape(extension) + r"\)")


_INLINE_PATTERNS: dict[str, re.Pattern[str]] = {}


def _stem(target: str) -> str:
    return target.replace("\\", "/").rsplit("/", 1)[-1]


def extract_wikilinks(content: str) -> list[str]:
    """Extract [[wiki-link]] targets in text order, trimmed, aliases dropped."""
    result = []
    for match in WIKILINK_PATTERN.findall(content):
        target = match.strip()
        if target:
            result.append(target)
    return result


def extract_inline_links(content: str, extension: str = ".md") -> list[str]:
    """Extract [label](target.md) targets as base names without the extension."""
    pattern = _INLINE_PATTERNS.get(extension)
    if pattern is None:
        pattern = _INLINE_PATTERNS[extension] = _inline_pattern(extension)

    result = []
    for match in pattern.findall(content):
        target = _stem(match).strip()
        if target:
            result.append(target)
    return result


def extract_links(content: str, source_id: str, extension: str = ".md") -> list[str]:
    """Extract all link targets from a note.

    Wiki-links come first, then inline links, each in text order. Duplicates
    are kept (each occurrence becomes an edge); links back to ``source_id``
    are dropped.

    Args:
        content: Raw note text
        source_id: Identifier of the note being scanned
        extension: Document extension recognised in inline links

    Returns:
        Target identifiers, possibly naming notes that do not exist
    """
    targets = extract_wikilinks(content) + extract_inline_links(content, extension)
    return [t for t in targets if t != source_id]


def extract_title(content: str) -> str | None:
    """Return the text of the first H1 header, if any."""
    for line in content.split("\n"):
        if line.startswith("# "):
            return line[2:].strip()
    return None
