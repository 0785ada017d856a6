"""notegraph - link graph viewer for markdown vaults."""

__version__ = "0.3.0"
