"""Error kinds raised by the board pipeline."""


class CrmbanError(Exception):
    """Base class for failures surfaced to the user."""

    @property
    def display(self) -> str:
        """Named message shown in place of the progress indicator."""
        return f"{type(self).__name__}: {self}"


class ConfigurationMissingError(CrmbanError):
    """The current user has no default board."""


class ConfigurationParseError(CrmbanError):
    """The stored board configuration could not be decoded."""


class AttributeNotFoundError(CrmbanError):
    """The entity has no attribute with the requested logical name."""


class UnsupportedSeparatorTypeError(CrmbanError):
    """The attribute type cannot split records into lanes."""


class QueryExecutionError(CrmbanError):
    """The data store rejected a query."""


class RemoteUnavailableError(CrmbanError):
    """Network or service failure while talking to the data store."""
