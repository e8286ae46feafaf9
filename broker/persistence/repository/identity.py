"""PostgreSQL implementation of Identity repository."""

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Optional

import logfire
from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from broker.domain.error import (
    ConcurrentModificationError,
    DuplicateEmailError,
    InvariantViolationError,
)
from broker.domain.model import Identity
from broker.domain.repository import IdentityRepository
from broker.domain.value import FederatedSubject, IdentityId, normalize_email
from broker.persistence.mappers import (
    identity_to_dict,
    refresh_tokens_to_rows,
    row_to_identity,
)
from broker.persistence.tables import (
    UQ_CREDENTIALED_EMAIL,
    UQ_FEDERATED_SUBJECT,
    identities_table,
    refresh_tokens_table,
)

# Insertion order; ties broken by id for a stable result
_STORE_ORDER = (identities_table.c.created_at, identities_table.c.id)


class PostgresIdentityRepository(IdentityRepository):
    """PostgreSQL implementation of IdentityRepository.

    Refresh tokens live in their own table keyed by token value, so lookup by
    token is a primary key hit. Every write is conditioned on the version the
    identity was read at.
    """

    def __init__(
        self,
        session: AsyncSession,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            session_factory: Factory for units of work that commit on their
                own, independent of the request session
        """
        self.session = session
        self.session_factory = session_factory

    async def find_by_id(self, identity_id: IdentityId) -> Optional[Identity]:
        """Find an identity by ID."""
        stmt = select(identities_table).where(identities_table.c.id == identity_id)
        return await self._fetch_one(stmt)

    async def find_local_by_email(self, email: str) -> Optional[Identity]:
        """Find the credentialed identity for an email."""
        stmt = (
            select(identities_table)
            .where(identities_table.c.email_normalized == normalize_email(email))
            .where(identities_table.c.credential_verifier.is_not(None))
            .order_by(*_STORE_ORDER)
            .limit(1)
        )
        return await self._fetch_one(stmt)

    async def find_all_by_email(self, email: str) -> list[Identity]:
        """Find every identity with an email."""
        stmt = (
            select(identities_table)
            .where(identities_table.c.email_normalized == normalize_email(email))
            .order_by(*_STORE_ORDER)
        )
        return await self._fetch_all(stmt)

    async def find_by_federated_subject(
        self, subject: FederatedSubject
    ) -> Optional[Identity]:
        """Find identity by federated subject/issuer pair."""
        stmt = (
            select(identities_table)
            .where(identities_table.c.federated_subject_id == subject.subject_id)
            .where(identities_table.c.federated_issuer_id == subject.issuer_id)
        )
        return await self._fetch_one(stmt)

    async def find_by_refresh_token(
        self, token: str, now: datetime
    ) -> Optional[Identity]:
        """Find the owner of a live refresh token, pruning it if expired."""
        stmt = select(
            refresh_tokens_table.c.identity_id, refresh_tokens_table.c.absolute_expiry
        ).where(refresh_tokens_table.c.token == token)
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return None

        if row.absolute_expiry <= now:
            await self._prune_expired_tokens(row.identity_id, now)
            return None

        return await self.find_by_id(IdentityId(row.identity_id))

    async def _prune_expired_tokens(self, identity_id: Any, now: datetime) -> None:
        """Delete an identity's expired refresh tokens.

        The committed rows are pruned in a unit of work of their own, so the
        delete survives the rollback of a request that ends in "not found".
        Rows locked by another transaction are skipped and left for the next
        lookup or save.
        """
        expired = and_(
            refresh_tokens_table.c.identity_id == identity_id,
            refresh_tokens_table.c.absolute_expiry <= now,
        )

        if self.session_factory is not None:
            unlocked = (
                select(refresh_tokens_table.c.token)
                .where(expired)
                .with_for_update(skip_locked=True)
            )
            async with self.session_factory.begin() as prune_session:
                result = await prune_session.execute(
                    delete(refresh_tokens_table).where(
                        refresh_tokens_table.c.token.in_(unlocked)
                    )
                )
            logfire.debug(
                "Expired refresh tokens pruned",
                identity_id=str(identity_id),
                count=result.rowcount,
            )

        # Rows written but not yet committed by the request session itself
        await self.session.execute(delete(refresh_tokens_table).where(expired))
        await self.session.flush()

    async def list_all(self) -> list[Identity]:
        """List all identities in insertion order."""
        stmt = select(identities_table).order_by(*_STORE_ORDER)
        return await self._fetch_all(stmt)

    async def save(self, identity: Identity) -> Identity:
        """Save an identity and replace its refresh tokens.

        Raises:
            ConcurrentModificationError: If the stored version differs
            DuplicateEmailError: If another credentialed identity has the email
            InvariantViolationError: If the federated subject or a refresh token
                belongs to another identity
        """
        values = identity_to_dict(identity)
        new_version = identity.version + 1

        try:
            async with self.session.begin_nested():
                if identity.version == 0:
                    await self.session.execute(
                        insert(identities_table).values(**values, version=new_version)
                    )
                else:
                    result = await self.session.execute(
                        update(identities_table)
                        .where(identities_table.c.id == identity.id)
                        .where(identities_table.c.version == identity.version)
                        .values(**values, version=new_version)
                    )
                    if result.rowcount != 1:
                        raise ConcurrentModificationError(str(identity.id))

                    await self.session.execute(
                        delete(refresh_tokens_table).where(
                            refresh_tokens_table.c.identity_id == identity.id
                        )
                    )

                token_rows = refresh_tokens_to_rows(identity)
                if token_rows:
                    await self.session.execute(
                        insert(refresh_tokens_table), token_rows
                    )
        except IntegrityError as e:
            raise self._translate_integrity_error(identity, e) from e

        return identity.model_copy(update={"version": new_version})

    async def delete(self, identity_id: IdentityId) -> None:
        """Delete identity; its refresh tokens cascade."""
        await self.session.execute(
            delete(identities_table).where(identities_table.c.id == identity_id)
        )
        await self.session.flush()

    async def _fetch_one(self, stmt: Any) -> Optional[Identity]:
        result = await self.session.execute(stmt)
        row = result.mappings().first()
        if row is None:
            return None
        tokens = await self._load_tokens([row["id"]])
        return row_to_identity(dict(row), tokens.get(row["id"], []))

    async def _fetch_all(self, stmt: Any) -> list[Identity]:
        result = await self.session.execute(stmt)
        rows = [dict(row) for row in result.mappings().all()]
        if not rows:
            return []
        tokens = await self._load_tokens([row["id"] for row in rows])
        return [row_to_identity(row, tokens.get(row["id"], [])) for row in rows]

    async def _load_tokens(self, identity_ids: list[Any]) -> Dict[Any, list[dict]]:
        """Load refresh tokens for identities, grouped by identity id.

        Tokens share one lifetime, so expiry order is issue order.
        """
        stmt = (
            select(refresh_tokens_table)
            .where(refresh_tokens_table.c.identity_id.in_(identity_ids))
            .order_by(
                refresh_tokens_table.c.absolute_expiry, refresh_tokens_table.c.token
            )
        )
        result = await self.session.execute(stmt)
        grouped: Dict[Any, list[dict]] = defaultdict(list)
        for row in result.mappings().all():
            grouped[row["identity_id"]].append(dict(row))
        return grouped

    @staticmethod
    def _translate_integrity_error(
        identity: Identity, error: IntegrityError
    ) -> Exception:
        message = str(error.orig)
        if UQ_CREDENTIALED_EMAIL in message:
            return DuplicateEmailError()
        if UQ_FEDERATED_SUBJECT in message:
            return InvariantViolationError(
                "Federated subject is already bound to another identity"
            )
        if "refresh_tokens_pkey" in message:
            return InvariantViolationError("Refresh token is held by another identity")
        # Primary key clash on insert: someone else created this identity first
        return ConcurrentModificationError(str(identity.id))
