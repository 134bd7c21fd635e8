"""Storage-layer exceptions."""


class StorageError(Exception):
    """Base class for record store and attachment storage errors."""


class StoreWriteError(StorageError):
    """A store rejected an insert, update or collection write."""


class RecordNotFoundError(StorageError, KeyError):
    """No record exists under the requested identifier."""

    def __init__(self, record_id: str):
        super().__init__(record_id)
        self.record_id = record_id

    def __str__(self) -> str:
        return f"Record not found: {self.record_id}"


class UnsupportedFormatError(ValueError):
    """The import source has an extension no importer handles."""


class ConnectorRequestError(ValueError):
    """A browser-connector request body could not be decoded."""
