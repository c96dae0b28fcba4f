"""Error taxonomy of the rotation scheduler."""
from fastapi import status


class RotationError(Exception):
    """Base class for scheduler failures surfaced to the operator."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoEligibleClinicians(RotationError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "No clinicians are eligible for today's rotation"):
        super().__init__(message)


class ConcurrentUpdateConflict(RotationError):
    """The conditional cursor update kept losing to other writers."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, attempts: int):
        super().__init__(
            f"Rotation queue was changed by other operators {attempts} times in a row; "
            "refresh and try again"
        )
        self.attempts = attempts


class PersistenceFailure(RotationError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ResetNotConfirmed(RotationError):
    def __init__(self, message: str = "Queue reset must be explicitly confirmed"):
        super().__init__(message)


class ClinicianNotFound(RotationError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, clinician_id: int):
        super().__init__(f"Clinician {clinician_id} not found")
        self.clinician_id = clinician_id


class QueueAlreadyExists(Exception):
    """Storage-level signal: a record for the date was created concurrently."""

    def __init__(self, queue_date):
        super().__init__(f"Rotation queue for {queue_date} already exists")
        self.queue_date = queue_date
