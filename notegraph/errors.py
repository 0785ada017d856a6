"""Error taxonomy for graph sessions."""

from __future__ import annotations


class NoteGraphError(Exception):
    """Base class for errors reported to the user."""


class BuildError(NoteGraphError):
    """The vault directory is missing or cannot be read. The session does not open."""


class EmptyGraphWarning(NoteGraphError):
    """No eligible documents were found. The session does not open."""


class EmptyViewWarning(NoteGraphError):
    """Filters and thresholds removed every node.

    Not raised: the canvas renderer attaches it to the frame and draws an
    informational message instead.
    """


class RenderTargetError(NoteGraphError):
    """The web document could not be written or opened. The session stays in canvas mode."""


class SessionClosedError(NoteGraphError):
    """A command was sent to a session that is not open."""


class ConfigError(ValueError):
    """Invalid configuration file or value."""
