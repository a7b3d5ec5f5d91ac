"""Error taxonomy shared by the backend client, resolver and dashboard loader."""


class MarketplaceError(Exception):
    pass


class NetworkFailure(MarketplaceError):
    """Transport error or unexpected backend status. Surfaced, never dropped."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class AuthorizationPending(MarketplaceError):
    """Backend rejected the call because the user is not (yet) host-entitled."""

    def __init__(self, message: str = "host onboarding not completed", status_code: int = 403) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedInput(MarketplaceError, ValueError):
    """Unparsable coordinates or dates. Callers disable the affected filter."""
