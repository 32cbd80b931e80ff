class RosterError(Exception):
    """Base class for every error raised by the roster core."""


class ValidationError(RosterError):
    """A single record is missing a required field. Rejects that record only."""


class FormatError(RosterError):
    """An import document is malformed. Rejects the whole batch."""


class PersistenceError(RosterError):
    """Writing to the local store failed. In-memory data stays valid."""


class SyncError(RosterError):
    """Google Drive authentication, network or content failure."""


class StateError(RosterError):
    """An operation was attempted from the wrong state."""
