"""Exception taxonomy for the settlement pipeline and bet service."""


class TipLeagueError(Exception):
    """Base class for all application errors."""


class ExternalFetchError(TipLeagueError):
    """Provider answered with a non-success status or could not be reached."""

    def __init__(self, endpoint: str, status_code: int | None = None, detail: str = ""):
        self.endpoint = endpoint
        self.status_code = status_code
        self.detail = detail
        message = f"Fetch of {endpoint} failed"
        if status_code is not None:
            message += f" with status {status_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class MalformedItemError(TipLeagueError):
    """A single provider item is missing required fields."""


class KickoffPassedError(TipLeagueError):
    """Bet rejected because the match has already started."""

    def __init__(self, fixture_id: int):
        self.fixture_id = fixture_id
        super().__init__(f"Match {fixture_id} has already started")


class MatchNotFoundError(TipLeagueError):
    def __init__(self, fixture_id: int):
        self.fixture_id = fixture_id
        super().__init__(f"Match {fixture_id} not found")


class TokenNotFoundError(TipLeagueError):
    def __init__(self):
        super().__init__("Token not found")


class InvalidPredictionError(TipLeagueError):
    def __init__(self, prediction: str):
        self.prediction = prediction
        super().__init__(f"Invalid prediction {prediction!r}, expected home, draw or away")


class AggregationFailure(TipLeagueError):
    """Store error during a rebuild; the transaction was rolled back."""

    def __init__(self, table: str, cause: Exception):
        self.table = table
        self.cause = cause
        super().__init__(f"Rebuild of {table} failed: {cause}")


class DispatchError(TipLeagueError):
    """One channel send for one recipient failed."""

    def __init__(self, channel: str, recipient: str, detail: str = ""):
        self.channel = channel
        self.recipient = recipient
        super().__init__(f"{channel} send to {recipient} failed: {detail}")
