"""Exceptions for Opportunity Radar."""


class OpportunityRadarError(Exception):
    """Base exception for discovery engine errors."""

    pass


class ConnectorError(OpportunityRadarError):
    """Base exception for a single source connector failure.

    Never propagated out of ``discover``; the orchestrator records it in
    ``CrawlMeta.errors`` under ``kind``.
    """

    kind: str = "Unreachable"

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"{source}: {message}")


class ConnectorTimeout(ConnectorError):
    """Raised when a connector exceeds its time budget."""

    kind = "Timeout"


class ConnectorUnreachable(ConnectorError):
    """Raised when a source cannot be reached or answers with an error status."""

    kind = "Unreachable"


class ConnectorParseError(ConnectorError):
    """Raised when a source responds with data that cannot be parsed."""

    kind = "ParseError"


class ConnectorRateLimited(ConnectorError):
    """Raised when a source rejects the request with HTTP 429."""

    kind = "RateLimited"


class ScoringServiceUnavailable(OpportunityRadarError):
    """Raised inside the AI scorer when the remote scorer fails.

    Always caught by the scorer itself, which falls back to rule scores.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"AI scoring unavailable: {reason}")


class FeedbackDeliveryFailure(OpportunityRadarError):
    """Raised inside the feedback worker when an event cannot be delivered."""

    def __init__(self, opportunity_id: str, reason: str):
        self.opportunity_id = opportunity_id
        self.reason = reason
        super().__init__(f"Feedback for {opportunity_id} not delivered: {reason}")


class CatalogUnavailableError(OpportunityRadarError):
    """Raised when the curated catalog cannot be read at all."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Curated catalog unavailable: {reason}")


class SessionEndedError(OpportunityRadarError):
    """Raised when discovery is requested on a session that has ended."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Session for {email} has ended")
