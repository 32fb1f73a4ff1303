"""Exceptions raised by the collector core."""


class CollectorError(Exception):
    """Base class for collector failures."""


class CollaboratorError(CollectorError):
    """A host collaborator raised while being read or subscribed to."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause!r}")
        self.operation = operation
        self.cause = cause


class SerializationError(CollectorError):
    """A payload could not be serialized for hashing or emission."""
