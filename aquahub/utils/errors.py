class AquaHubError(Exception):
    """Base class for errors a caller can act on. Carries the HTTP status the API renders."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AquaHubError):
    status_code = 422


class NotFoundError(AquaHubError):
    status_code = 404


class NotParticipantError(AquaHubError):
    status_code = 403


class PollEndedError(AquaHubError):
    status_code = 409

    def __init__(self, message: str = "poll ended") -> None:
        super().__init__(message)


class InvalidVoteError(AquaHubError):
    status_code = 422


class TransactionConflictError(AquaHubError):
    status_code = 409
