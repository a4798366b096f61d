"""Per-request loader bundle."""

from dataclasses import dataclass
from functools import partial
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.dataloader import BatchLoader
from app.repos.user_repo import batch_load_users


@dataclass(slots=True)
class Loaders:
    user_loader: BatchLoader[str, dict[str, Any]]

    def clear_all(self) -> None:
        self.user_loader.clear_all()


def create_loaders(db: AsyncIOMotorDatabase) -> Loaders:
    """Build fresh loaders bound to ``db``; call once per request."""
    return Loaders(
        user_loader=BatchLoader(partial(batch_load_users, db), name="user"),
    )
