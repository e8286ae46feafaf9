"""Application layer DI providers."""

from dishka import Scope, provide

from broker.application.usecase.auth import (
    FederatedLoginUseCase,
    LoginLocalUseCase,
    RefreshLoginUseCase,
    SessionIssuer,
    SignUpUseCase,
)
from broker.application.usecase.identity import (
    DeleteIdentityUseCase,
    GetProfileUseCase,
    ListIdentitiesUseCase,
)
from broker.domain.service import (
    CredentialHasher,
    FederationService,
    IdentityService,
    TokenService,
)
from broker.util.di.base import ProviderBase
from broker.util.locks import KeyedLock


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    scope = Scope.REQUEST

    @provide
    def get_session_issuer(
        self, token_service: TokenService, identity_service: IdentityService
    ) -> SessionIssuer:
        """Provide session issuer shared by the login use cases."""
        return SessionIssuer(
            token_service=token_service, identity_service=identity_service
        )

    # Auth use cases
    @provide
    def get_sign_up_use_case(
        self,
        identity_service: IdentityService,
        credential_hasher: CredentialHasher,
        identity_locks: KeyedLock,
    ) -> SignUpUseCase:
        """Provide sign up use case."""
        return SignUpUseCase(
            identity_service=identity_service,
            credential_hasher=credential_hasher,
            identity_locks=identity_locks,
        )

    @provide
    def get_login_local_use_case(
        self,
        identity_service: IdentityService,
        credential_hasher: CredentialHasher,
        session_issuer: SessionIssuer,
        identity_locks: KeyedLock,
    ) -> LoginLocalUseCase:
        """Provide local login use case."""
        return LoginLocalUseCase(
            identity_service=identity_service,
            credential_hasher=credential_hasher,
            session_issuer=session_issuer,
            identity_locks=identity_locks,
        )

    @provide
    def get_refresh_login_use_case(
        self,
        identity_service: IdentityService,
        token_service: TokenService,
        session_issuer: SessionIssuer,
        identity_locks: KeyedLock,
    ) -> RefreshLoginUseCase:
        """Provide refresh login use case."""
        return RefreshLoginUseCase(
            identity_service=identity_service,
            token_service=token_service,
            session_issuer=session_issuer,
            identity_locks=identity_locks,
        )

    @provide
    def get_federated_login_use_case(
        self,
        federation_service: FederationService,
        identity_service: IdentityService,
        session_issuer: SessionIssuer,
        identity_locks: KeyedLock,
    ) -> FederatedLoginUseCase:
        """Provide federated login use case."""
        return FederatedLoginUseCase(
            federation_service=federation_service,
            identity_service=identity_service,
            session_issuer=session_issuer,
            identity_locks=identity_locks,
        )

    # Identity administration use cases
    @provide
    def get_list_identities_use_case(
        self, identity_service: IdentityService
    ) -> ListIdentitiesUseCase:
        """Provide list identities use case."""
        return ListIdentitiesUseCase(identity_service=identity_service)

    @provide
    def get_delete_identity_use_case(
        self,
        identity_service: IdentityService,
        federation_service: FederationService,
        identity_locks: KeyedLock,
    ) -> DeleteIdentityUseCase:
        """Provide delete identity use case."""
        return DeleteIdentityUseCase(
            identity_service=identity_service,
            federation_service=federation_service,
            identity_locks=identity_locks,
        )

    @provide
    def get_get_profile_use_case(
        self,
        identity_service: IdentityService,
        federation_service: FederationService,
    ) -> GetProfileUseCase:
        """Provide get profile use case."""
        return GetProfileUseCase(
            identity_service=identity_service,
            federation_service=federation_service,
        )
