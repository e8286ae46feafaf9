"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from broker.config import AuthSettings, FederationSettings, Settings
from broker.util.di.base import ProviderBase
from broker.util.locks import KeyedLock


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_auth_settings(self, settings: Settings) -> AuthSettings:
        """Provide auth settings."""
        return settings.auth

    @provide(scope=Scope.APP)
    def provide_federation_settings(self, settings: Settings) -> FederationSettings:
        """Provide federation settings."""
        return settings.federation

    @provide(scope=Scope.APP)
    def provide_identity_locks(self) -> KeyedLock:
        """Provide the process-wide per-identity lock table."""
        return KeyedLock()
