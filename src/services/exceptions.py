"""Shared exceptions for service layer operations."""


class NotFoundError(Exception):
    """Raised when no active (or, for restore, recycled) record matches owner and id."""

    def __init__(self, entity_name: str) -> None:
        self.entity_name = entity_name
        super().__init__(f"{entity_name} not found")


class EditConflictError(Exception):
    """
    Raised when an edit targets a record that is not the owner's newest active record.

    Only the latest surviving onward note is editable; older notes are read-only.
    """

    def __init__(self, entity_name: str) -> None:
        self.entity_name = entity_name
        super().__init__(f"Only the latest {entity_name.lower()} can be edited")


class RestoreExpiredError(Exception):
    """
    Raised when a restore is attempted after the restore window elapsed.

    The record has already been permanently deleted when this is raised.
    """

    def __init__(self, entity_name: str) -> None:
        self.entity_name = entity_name
        super().__init__(f"{entity_name} can no longer be restored")
