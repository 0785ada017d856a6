"""Document corpus: vault enumeration with path exclusions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import frontmatter

from ..errors import BuildError
from .parser import extract_title

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """One readable note. Content is read lazily, once, during graph build."""

    identifier: str  # filename without extension
    path: Path
    _content: bytes | None = field(default=None, repr=False)

    def read_bytes(self) -> bytes:
        if self._content is not None:
            return self._content
        return self.path.read_bytes()


class Corpus(Protocol):
    """Anything that can list documents for the graph builder."""

    root: Path | None
    extension: str

    def enumerate(self) -> list[Document]: ...


def should_exclude(rel_path: str, exclude: tuple[str, ...] | list[str]) -> bool:
    """True if any exclusion substring occurs in the vault-relative path."""
    return any(part and part in rel_path for part in exclude)


class VaultCorpus:
    """Markdown notes under a vault directory."""

    def __init__(
        self,
        root: Path,
        exclude: tuple[str, ...] | list[str] = (".git", "img", "templates"),
        extension: str = ".md",
    ):
        self.root = root
        self.exclude = tuple(exclude)
        self.extension = extension

    def enumerate(self) -> list[Document]:
        """List eligible notes, sorted by vault-relative path.

        Raises:
            BuildError: if the vault directory is missing or unreadable
        """
        if not self.root.is_dir():
            raise BuildError(f"Notes directory not found: {self.root}")

        try:
            candidates = sorted(self.root.rglob(f"*{self.extension}"))
        except OSError as e:
            raise BuildError(f"Cannot read notes directory {self.root}: {e}") from e

        docs = []
        for path in candidates:
            if not path.is_file():
                continue
            rel = path.relative_to(self.root).as_posix()
            if should_exclude(rel, self.exclude):
                continue
            docs.append(Document(identifier=path.stem, path=path))

        logger.debug("Found %d notes in %s (%d excluded)", len(docs), self.root, len(candidates) - len(docs))
        return docs


class InMemoryCorpus:
    """Notes held in memory, keyed by filename: ``{"Alpha.md": "See [[Beta]]"}``."""

    root: Path | None = None

    def __init__(
        self,
        files: dict[str, str | bytes],
        exclude: tuple[str, ...] | list[str] = (),
        extension: str = ".md",
    ):
        self.files = files
        self.exclude = tuple(exclude)
        self.extension = extension

    def enumerate(self) -> list[Document]:
        docs = []
        for name in sorted(self.files):
            if not name.endswith(self.extension) or should_exclude(name, self.exclude):
                continue
            raw = self.files[name]
            content = raw.encode("utf-8") if isinstance(raw, str) else raw
            path = Path(name)
            docs.append(Document(identifier=path.stem, path=path, _content=content))
        return docs


@dataclass
class NoteText:
    """Decoded note text plus the display metadata pulled from frontmatter."""

    text: str
    title: str = ""
    tags: list[str] = field(default_factory=list)


def read_note(doc: Document) -> NoteText | None:
    """Read and decode a document.

    Returns None when the content cannot be read or decoded; the caller
    treats such a note as having no outbound links.
    """
    try:
        text = doc.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping links from %s: %s", doc.path, e)
        return None

    # Links are scanned over the full text; frontmatter only feeds display metadata.
    try:
        post = frontmatter.loads(text)
        meta, body = post.metadata, post.content
    except Exception as e:
        logger.debug("Unparseable frontmatter in %s: %s", doc.path, e)
        meta, body = {}, text

    title = meta.get("title")
    if not isinstance(title, str) or not title.strip():
        title = extract_title(body) or doc.identifier

    tags = meta.get("tags", [])
    if isinstance(tags, str):
        tags = [tags]
    if not isinstance(tags, list):
        tags = []

    return NoteText(text=text, title=title.strip(), tags=[str(t) for t in tags])
