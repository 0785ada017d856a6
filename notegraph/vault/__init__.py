"""Vault loading and link graph construction."""

from .graph import build_graph
from .loader import Document, InMemoryCorpus, VaultCorpus
from .parser import extract_links

__all__ = [
    "build_graph",
    "Document",
    "InMemoryCorpus",
    "VaultCorpus",
    "extract_links",
]
