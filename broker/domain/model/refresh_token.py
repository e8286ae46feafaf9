"""Refresh token entity."""

from datetime import datetime

from broker.domain.model.common import DomainModel


class RefreshToken(DomainModel):
    """Opaque, single-use refresh token owned by exactly one identity.

    A token is usable while ``absolute_expiry`` is strictly after the current
    time and it has not been consumed by a rotation.
    """

    token: str
    absolute_expiry: datetime

    def is_live(self, now: datetime) -> bool:
        """Whether the token is still valid at ``now``."""
        return self.absolute_expiry > now

    @property
    def expiry_epoch_seconds(self) -> int:
        """Expiry as whole seconds since the Unix epoch."""
        return int(self.absolute_expiry.timestamp())
