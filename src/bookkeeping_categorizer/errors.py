class CategorizerError(Exception):
    """Base class for errors raised by the categorizer and its stores."""


class InvalidTransactionError(CategorizerError):
    """The transaction cannot be scored, e.g. its amount is not a finite number."""

    def __init__(self, message: str, transaction_id: str | None = None):
        super().__init__(message)
        self.transaction_id = transaction_id


class StorageUnavailableError(CategorizerError):
    """The transaction store could not be read or written.

    Callers should treat this as retryable and never confuse it with a
    transaction that simply does not exist.
    """

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
