"""Exceptions raised by the document core and its clients."""


class ClientNotConnectedError(RuntimeError):
    """The Google Workspace client was used before connect()."""


class TableNotFoundError(RuntimeError):
    """The table inserted at a placeholder could not be found on re-fetch."""


class DocumentGenerationError(RuntimeError):
    """The LLM did not produce a usable document."""
