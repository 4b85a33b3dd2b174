"""Base exception types for the CRM."""


class CRMError(Exception):
    """Base class for errors raised by CRM services."""


class NotFoundError(CRMError, LookupError):
    """A referenced quarter or transactional row does not exist."""


class UnknownCollectionError(CRMError, KeyError):
    """The row store has no model registered for a collection name."""

    def __str__(self):
        # KeyError repr-quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""
