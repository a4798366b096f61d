"""Per-request resolution context."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.security.utils import Identity
from app.repos.loaders import Loaders, create_loaders


@dataclass(slots=True)
class RequestContext:
    """Identity, database handle and loaders for one inbound request."""

    identity: Identity | None
    db: AsyncIOMotorDatabase
    loaders: Loaders


@asynccontextmanager
async def request_scope(
    identity: Identity | None, db: AsyncIOMotorDatabase
) -> AsyncIterator[RequestContext]:
    """Open a context with fresh loaders; their caches are dropped on exit."""
    context = RequestContext(identity=identity, db=db, loaders=create_loaders(db))
    try:
        yield context
    finally:
        context.loaders.clear_all()
