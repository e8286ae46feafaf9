"""Authentication use cases."""

from .federated_login import FederatedLoginUseCase
from .login_local import LoginLocalUseCase
from .refresh_login import RefreshLoginUseCase
from .session import LoginResult, SessionIssuer
from .sign_up import SignUpUseCase

__all__ = [
    "FederatedLoginUseCase",
    "LoginLocalUseCase",
    "LoginResult",
    "RefreshLoginUseCase",
    "SessionIssuer",
    "SignUpUseCase",
]
