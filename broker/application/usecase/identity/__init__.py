"""Identity administration use cases."""

from .delete_identity import DeleteIdentityUseCase
from .get_profile import GetProfileUseCase
from .list_identities import ListIdentitiesUseCase

__all__ = ["DeleteIdentityUseCase", "GetProfileUseCase", "ListIdentitiesUseCase"]
