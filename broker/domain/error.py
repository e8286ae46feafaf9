"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class DuplicateEmailError(DomainError):
    """Raised when signing up with an email that already has a local account."""

    def __init__(self) -> None:
        super().__init__("Email address already exists")


class InvalidCredentialsError(DomainError):
    """Raised when a local login fails.

    Unknown email and wrong password are deliberately indistinguishable.
    """

    def __init__(self) -> None:
        super().__init__("Email not found or password incorrect")


class TokenNotFoundError(DomainError):
    """Raised when a refresh token is unknown, consumed or expired."""

    def __init__(self) -> None:
        super().__init__("Refresh token not found")


class FederationExchangeError(DomainError):
    """Raised when the federated identity provider rejects or cannot process an assertion."""

    def __init__(self, message: str = "Federated identity exchange failed"):
        super().__init__(message)


class ConcurrentModificationError(DomainError):
    """Raised when a write is attempted against stale identity state."""

    def __init__(self, identity_id: str):
        self.identity_id = identity_id
        super().__init__(f"Identity {identity_id} was modified concurrently")


class InvariantViolationError(DomainError):
    """Raised when a write would break an identity store invariant."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")
