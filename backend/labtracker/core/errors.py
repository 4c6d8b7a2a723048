from fastapi import status


class LabTrackerError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RecordNotFound(LabTrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Record not found"


class DuplicateRecord(LabTrackerError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Record already exists"


class AttachmentRejected(LabTrackerError):
    """Upload refused before any record was written (bad type, size or count)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Attachment rejected"


class StoreWriteError(LabTrackerError):
    default_message = "Failed to save data"


class StoreReadError(LabTrackerError):
    """A document exists but cannot be parsed, so it must not be overwritten."""

    default_message = "Stored data is unreadable"
