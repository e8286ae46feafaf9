"""Identity reconciliation.

Decides what a federated login does to the identity store, given what the
store already holds. The decision is pure: callers perform the lookups,
call ``reconcile`` and apply the returned decision.

    by subject/issuer found                    -> REUSE
    else credentialed email match:
        should_link false                      -> REQUIRE_CONFIRMATION
        should_link true,  confirm_link true   -> LINK
        should_link true,  confirm_link false  -> DECLINE (new identity)
    else                                       -> CREATE (new identity)
"""

from collections.abc import Iterable
from enum import Enum

from pydantic import model_validator

from broker.domain.model.identity import Identity
from broker.domain.value import FederatedProfile, normalize_email
from broker.domain.value.common import ValueObject


class ReconciliationOutcome(str, Enum):
    """What a federated login does to the store."""

    REUSE = "reuse"
    LINK = "link"
    DECLINE = "decline"
    CREATE = "create"
    REQUIRE_CONFIRMATION = "require_confirmation"


class ReconciliationDecision(ValueObject):
    """Outcome of reconciling a federated profile against the store.

    ``identity`` is the existing identity the outcome refers to: the session
    identity for REUSE, the identity to link for LINK, the link candidate
    for REQUIRE_CONFIRMATION and DECLINE, and None for CREATE.
    """

    outcome: ReconciliationOutcome
    identity: Identity | None = None

    @model_validator(mode="after")
    def check_identity_presence(self) -> "ReconciliationDecision":
        if self.outcome is ReconciliationOutcome.CREATE:
            if self.identity is not None:
                raise ValueError("CREATE does not refer to an existing identity")
        elif self.identity is None:
            raise ValueError(f"{self.outcome.value} requires an existing identity")
        return self

    @property
    def establishes_session(self) -> bool:
        """Whether session tokens may be issued for this outcome."""
        return self.outcome is not ReconciliationOutcome.REQUIRE_CONFIRMATION

    @property
    def creates_identity(self) -> bool:
        """Whether a new identity is synthesized from the federated profile."""
        return self.outcome in (
            ReconciliationOutcome.CREATE,
            ReconciliationOutcome.DECLINE,
        )


def select_link_candidate(
    profile: FederatedProfile, email_matches: Iterable[Identity]
) -> Identity | None:
    """Pick the identity a federated profile could be linked to.

    Only identities with a local credential qualify; federation-only
    identities sharing the email never do. A credentialed identity already
    linked to another subject still qualifies; linking rebinds it. The first
    qualifying match wins.
    """
    wanted = normalize_email(profile.email)
    for identity in email_matches:
        if identity.has_local_credential and identity.normalized_email == wanted:
            return identity
    return None


def reconcile(
    profile: FederatedProfile,
    by_subject: Identity | None,
    email_matches: Iterable[Identity],
    should_link: bool,
    confirm_link: bool,
) -> ReconciliationDecision:
    """Decide how a federated login maps onto the identity store.

    Args:
        profile: Federated profile returned by the provider
        by_subject: Identity already bound to the profile's subject/issuer
        email_matches: Identities found by the profile's email
        should_link: Caller has been through the link prompt
        confirm_link: Caller agreed to link (only read when should_link)

    Returns:
        Reconciliation decision
    """
    if by_subject is not None:
        return ReconciliationDecision(
            outcome=ReconciliationOutcome.REUSE, identity=by_subject
        )

    candidate = select_link_candidate(profile, email_matches)
    if candidate is None:
        return ReconciliationDecision(outcome=ReconciliationOutcome.CREATE)

    if not should_link:
        outcome = ReconciliationOutcome.REQUIRE_CONFIRMATION
    elif confirm_link:
        outcome = ReconciliationOutcome.LINK
    else:
        outcome = ReconciliationOutcome.DECLINE

    return ReconciliationDecision(outcome=outcome, identity=candidate)


def apply_decision(
    decision: ReconciliationDecision, profile: FederatedProfile
) -> Identity | None:
    """Produce the session identity a decision calls for.

    Args:
        decision: Decision from ``reconcile``
        profile: Federated profile the decision was made for

    Returns:
        The identity to persist and issue a session for, or None when the
        caller must confirm the link first
    """
    if decision.outcome is ReconciliationOutcome.REQUIRE_CONFIRMATION:
        return None
    if decision.creates_identity:
        return Identity.create_federated(profile)
    if decision.outcome is ReconciliationOutcome.LINK:
        return decision.identity.link(profile.subject)
    return decision.identity
