"""PostgreSQL repository implementations."""

from broker.persistence.repository.identity import PostgresIdentityRepository

__all__ = ["PostgresIdentityRepository"]
