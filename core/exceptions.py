"""Exception hierarchy raised by the inventory view core."""


class InventoryViewError(Exception):
    pass


class FetchError(InventoryViewError):
    """The fetch collaborator failed; the last good collection stays displayed."""


class MutationError(InventoryViewError):
    def __init__(self, operation: str, record_id: str, cause: Exception):
        super().__init__(f"{operation} failed for record '{record_id}': {cause}")
        self.operation = operation
        self.record_id = record_id
        self.cause = cause
