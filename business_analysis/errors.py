"""Exception hierarchy surfaced by the analysis engine."""

from typing import Optional


class BusinessAnalysisError(Exception):
    """Base class for errors raised from ``BusinessAnalyzer.analyze``.

    Attributes:
        status_code: HTTP-equivalent status for callers that map errors to
            responses.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.message, "status_code": self.status_code}


class BusinessNotFoundError(BusinessAnalysisError):
    """The business profile could not be resolved."""

    status_code = 404

    def __init__(self, message: str = "Business not found"):
        super().__init__(message)


class AnalysisFailedError(BusinessAnalysisError):
    """Any unexpected orchestrator-level failure."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(f"Business analysis failed: {detail}")
        self.detail = detail


class ProfileNotFoundError(LookupError):
    """Raised by profile resolvers when a lookup yields nothing."""
