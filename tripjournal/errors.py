"""Exceptions raised by the journal core.

None of these are fatal to an editing session: range errors reject a single
operation, decode and persistence failures are recovered where they happen.
"""


class JournalError(Exception):
    """Base class for journal errors."""


class InvalidRange(JournalError, ValueError):
    """A selection lies outside the document bounds."""


class OutOfRange(JournalError, IndexError):
    """A character index lies outside the document."""


class LinkOverlapError(InvalidRange):
    """A new link region would overlap an existing one."""


class DecodeFailure(JournalError, ValueError):
    """Persisted document bytes could not be parsed."""


class PersistenceFailure(JournalError, OSError):
    """The store rejected a save or fetch."""


class UnsupportedLinkScheme(JournalError, ValueError):
    """A tapped URL is not an image-group link.

    Callers treat this as "let the default handler open it".
    """
