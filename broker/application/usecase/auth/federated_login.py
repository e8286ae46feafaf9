"""Federated login use case."""

import logfire
from pydantic import BaseModel

from broker.application.usecase.auth.session import LoginResult, SessionIssuer
from broker.application.usecase.base import BaseUseCase
from broker.domain.error import ConcurrentModificationError
from broker.domain.model.identity import Identity
from broker.domain.service import (
    FederationService,
    IdentityService,
    ReconciliationDecision,
    ReconciliationOutcome,
    apply_decision,
    reconcile,
)
from broker.domain.value import FederatedProfile
from broker.util.locks import KeyedLock

# Access token claim naming the federated issuer behind a session
IDP_CLAIM = "idp"


class FederatedLoginRequest(BaseModel):
    """Federated login request.

    ``should_link`` is set once the caller has been through the link
    prompt; ``confirm_link`` is the user's answer and is only read then.
    """

    assertion: str
    should_link: bool = False
    confirm_link: bool = False


class FederatedLoginUseCase(BaseUseCase):
    """Use case for signing in with a federated assertion."""

    def __init__(
        self,
        federation_service: FederationService,
        identity_service: IdentityService,
        session_issuer: SessionIssuer,
        identity_locks: KeyedLock,
    ) -> None:
        """Initialize federated login use case.

        Args:
            federation_service: Federated identity domain service
            identity_service: Identity domain service
            session_issuer: Issues and persists the session
            identity_locks: Per-key locks serializing identity writes
        """
        self.federation_service = federation_service
        self.identity_service = identity_service
        self.session_issuer = session_issuer
        self.identity_locks = identity_locks

    async def execute(self, request: FederatedLoginRequest) -> LoginResult:
        """Exchange the assertion, reconcile it with the store and sign in.

        Steps:
        1. Exchange the assertion for a federation-scoped token and profile
        2. Look up identities by federated subject and by email
        3. Reconcile into Reuse / Link / Decline / Create / RequireConfirmation
        4. Apply the decision under the affected identity's lock and issue a session

        Args:
            request: Assertion plus the caller's link intent and confirmation

        Returns:
            Login result; ``require_link`` with no session tokens when the
            caller must confirm linking first

        Raises:
            FederationExchangeError: If the provider rejects the assertion
            ConcurrentModificationError: If the store changed under the login
        """
        exchange = await self.federation_service.exchange(request.assertion)
        profile = exchange.profile

        with logfire.span(
            "federated_login",
            issuer_id=profile.subject.issuer_id,
            should_link=request.should_link,
            confirm_link=request.confirm_link,
        ):
            subject = profile.subject
            subject_key = ("subject", subject.issuer_id, subject.subject_id)
            async with self.identity_locks.hold(subject_key):
                decision = await self._reconcile(profile, request)

                logfire.info(
                    "Federated login reconciled",
                    outcome=decision.outcome.value,
                    identity_id=(
                        str(decision.identity.id) if decision.identity else None
                    ),
                )

                if not decision.establishes_session:
                    return LoginResult(
                        display_name=decision.identity.display_name,
                        graph_access_token=exchange.access_token,
                        require_link=True,
                    )

                if decision.creates_identity:
                    identity = apply_decision(decision, profile)
                    saved, result = await self._issue(
                        identity, profile, exchange.access_token
                    )
                else:
                    saved, result = await self._apply_to_existing(
                        decision, profile, exchange.access_token
                    )

            await self.federation_service.remember_token(
                saved.id, exchange.access_token
            )

            logfire.info(
                "Federated login succeeded",
                identity_id=str(saved.id),
                outcome=decision.outcome.value,
            )
            return result

    async def _apply_to_existing(
        self,
        decision: ReconciliationDecision,
        profile: FederatedProfile,
        graph_access_token: str,
    ) -> tuple[Identity, LoginResult]:
        """Re-read the decided identity under its lock, then apply and sign in.

        A LINK replaces whatever subject the identity was bound to before.

        Raises:
            ConcurrentModificationError: If the identity was deleted since
                reconciliation, or a reused identity was rebound meanwhile
        """
        async with self.identity_locks.hold(decision.identity.id):
            current = await self.identity_service.find_by_id(decision.identity.id)
            if current is None:
                raise ConcurrentModificationError(str(decision.identity.id))
            if (
                decision.outcome is ReconciliationOutcome.REUSE
                and current.federated_subject != profile.subject
            ):
                raise ConcurrentModificationError(str(decision.identity.id))

            identity = apply_decision(
                ReconciliationDecision(outcome=decision.outcome, identity=current),
                profile,
            )
            return await self._issue(identity, profile, graph_access_token)

    async def _reconcile(
        self, profile: FederatedProfile, request: FederatedLoginRequest
    ) -> ReconciliationDecision:
        by_subject = await self.identity_service.get_by_federated_subject(
            profile.subject
        )
        email_matches = (
            []
            if by_subject is not None
            else await self.identity_service.get_all_by_email(profile.email)
        )
        return reconcile(
            profile,
            by_subject=by_subject,
            email_matches=email_matches,
            should_link=request.should_link,
            confirm_link=request.confirm_link,
        )

    async def _issue(
        self, identity: Identity, profile: FederatedProfile, graph_access_token: str
    ) -> tuple[Identity, LoginResult]:
        return await self.session_issuer.issue(
            identity,
            extra_claims={IDP_CLAIM: profile.subject.issuer_id},
            graph_access_token=graph_access_token,
        )
