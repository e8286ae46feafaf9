"""Identity views shared by the identity administration use cases."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from broker.domain.model.identity import Identity
from broker.domain.value import IdentityKind


class IdentitySummary(BaseModel):
    """Identity as exposed to authenticated callers. Never carries credentials."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    display_name: str
    federation_linked: bool
    has_local_account: bool
    kind: IdentityKind

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentitySummary":
        return cls(
            id=str(identity.id),
            email=identity.email,
            display_name=identity.display_name,
            federation_linked=identity.federation_linked,
            has_local_account=identity.has_local_credential,
            kind=identity.kind,
        )
