"""Strongly typed identifiers for identity broker entities."""

from typing import NewType
from uuid import UUID

IdentityId = NewType("IdentityId", UUID)
