"""Tests for user repository functions and the user batch function."""

import asyncio
import time

import pytest
from bson import ObjectId
from pydantic import ValidationError
from pymongo.errors import NetworkTimeout

from app.api.schemas.user import LoginInput, RegisterInput, UserUpdate
from app.core.errors import ForbiddenError, InvalidInputError, NotFoundError, UpstreamError
from app.core.security.passwords import verify_password
from app.repos import user_repo
from app.repos.loaders import create_loaders
from tests.conftest import TEST_PASSWORD


class TestBatchLoadUsers:
    @pytest.mark.anyio
    async def test_results_follow_request_order(self, fake_db, seed_user):
        alice, bob = seed_user(first_name="Alice"), seed_user(first_name="Bob")

        users = await user_repo.batch_load_users(fake_db, [str(bob["_id"]), str(alice["_id"])])

        assert [u["first_name"] for u in users] == ["Bob", "Alice"]
        assert len(fake_db["users"].calls) == 1

    @pytest.mark.anyio
    async def test_unknown_and_malformed_ids_yield_none(self, fake_db, seed_user):
        alice = seed_user()

        users = await user_repo.batch_load_users(
            fake_db, [str(ObjectId()), "garbage", str(alice["_id"])]
        )

        assert users[0] is None
        assert users[1] is None
        assert users[2]["_id"] == alice["_id"]

    @pytest.mark.anyio
    async def test_all_malformed_skips_storage(self, fake_db):
        assert await user_repo.batch_load_users(fake_db, ["x", "y"]) == [None, None]
        assert fake_db["users"].calls == []

    @pytest.mark.anyio
    async def test_loader_bundle_batches_user_lookups(self, fake_db, seed_user):
        alice, bob = seed_user(), seed_user()
        loaders = create_loaders(fake_db)

        first, second, again = await loaders.user_loader.load_many(
            [str(alice["_id"]), str(bob["_id"]), str(alice["_id"])]
        )

        assert first["_id"] == alice["_id"]
        assert second["_id"] == bob["_id"]
        assert again is first
        assert [op for op, _ in fake_db["users"].calls] == ["find"]

    @pytest.mark.anyio
    async def test_storage_failure_reaches_every_waiter(self, fake_db, seed_user):
        alice = seed_user()
        fake_db["users"].fail_with = NetworkTimeout("timed out")
        loaders = create_loaders(fake_db)

        with pytest.raises(UpstreamError):
            await loaders.user_loader.load(str(alice["_id"]))


class TestRegisterAndLogin:
    @pytest.mark.anyio
    async def test_register_creates_employee_with_hashed_password(self, fake_db):
        data = RegisterInput.model_validate(
            {
                "email": "  New.User@Example.com ",
                "password": "hunter22",
                "firstName": "New",
                "lastName": "User",
            }
        )

        user = await user_repo.register_user(fake_db, data)

        assert user["email"] == "new.user@example.com"
        assert user["role"] == "EMPLOYEE"
        assert user["department"] == "General"
        assert user["is_active"] is True
        assert user["password_hash"] != "hunter22"
        assert verify_password("hunter22", user["password_hash"])

    @pytest.mark.anyio
    async def test_register_duplicate_email(self, fake_db, seed_user):
        seed_user(email="taken@example.com")
        data = RegisterInput(
            email="Taken@example.com", password="hunter22", first_name="A", last_name="B"
        )

        with pytest.raises(InvalidInputError, match="Email already registered"):
            await user_repo.register_user(fake_db, data)

    @pytest.mark.anyio
    async def test_login_success(self, fake_db, seed_user):
        seeded = seed_user(email="pat@example.com")

        user = await user_repo.authenticate_user(
            fake_db, LoginInput(email="PAT@example.com", password=TEST_PASSWORD)
        )

        assert user["_id"] == seeded["_id"]

    @pytest.mark.anyio
    async def test_login_wrong_password(self, fake_db, seed_user):
        seed_user(email="pat@example.com")

        with pytest.raises(InvalidInputError, match="Invalid credentials"):
            await user_repo.authenticate_user(
                fake_db, LoginInput(email="pat@example.com", password="wrong")
            )

    @pytest.mark.anyio
    async def test_login_unknown_email(self, fake_db):
        with pytest.raises(InvalidInputError, match="Invalid credentials"):
            await user_repo.authenticate_user(
                fake_db, LoginInput(email="ghost@example.com", password="whatever")
            )

    @pytest.mark.anyio
    async def test_login_inactive_account_is_forbidden(self, fake_db, seed_user):
        seed_user(email="gone@example.com", is_active=False)

        with pytest.raises(ForbiddenError):
            await user_repo.authenticate_user(
                fake_db, LoginInput(email="gone@example.com", password=TEST_PASSWORD)
            )

    @pytest.mark.anyio
    async def test_password_hashing_does_not_block_the_loop(self, fake_db, monkeypatch):
        def slow_hash(password: str) -> str:
            time.sleep(0.2)
            return "pbkdf2_sha256$1$salt$digest"

        monkeypatch.setattr(user_repo, "hash_password", slow_hash)
        gaps: list[float] = []
        done = asyncio.Event()

        async def ticker() -> None:
            last = time.perf_counter()
            while not done.is_set():
                await asyncio.sleep(0.005)
                now = time.perf_counter()
                gaps.append(now - last)
                last = now

        ticking = asyncio.create_task(ticker())
        await asyncio.sleep(0)
        data = RegisterInput(
            email="slow@example.com", password="hunter22", first_name="S", last_name="L"
        )
        try:
            await user_repo.register_user(fake_db, data)
        finally:
            done.set()
            await ticking

        assert len(gaps) > 10
        assert max(gaps) < 0.1

    @pytest.mark.anyio
    async def test_password_check_does_not_block_the_loop(self, fake_db, seed_user, monkeypatch):
        seed_user(email="pat@example.com")

        def slow_verify(password: str, encoded: str) -> bool:
            time.sleep(0.2)
            return True

        monkeypatch.setattr(user_repo, "verify_password", slow_verify)
        ticks = 0

        async def ticker() -> None:
            nonlocal ticks
            while True:
                await asyncio.sleep(0.005)
                ticks += 1

        ticking = asyncio.create_task(ticker())
        try:
            await user_repo.authenticate_user(
                fake_db, LoginInput(email="pat@example.com", password="any")
            )
        finally:
            ticking.cancel()

        assert ticks > 10


class TestUserQueriesAndUpdates:
    @pytest.mark.anyio
    async def test_list_active_users_newest_first(self, fake_db, seed_user):
        from datetime import UTC, datetime

        older = seed_user(created_at=datetime(2024, 1, 1, tzinfo=UTC))
        newer = seed_user(created_at=datetime(2024, 2, 1, tzinfo=UTC))
        seed_user(is_active=False)

        users = await user_repo.list_active_users(fake_db)

        assert [u["_id"] for u in users] == [newer["_id"], older["_id"]]

    @pytest.mark.anyio
    async def test_find_user_missing_is_none(self, fake_db):
        assert await user_repo.find_user(fake_db, str(ObjectId())) is None

    @pytest.mark.anyio
    async def test_update_user_profile(self, fake_db, seed_user):
        user = seed_user(department="General")

        updated = await user_repo.update_user(
            fake_db, str(user["_id"]), UserUpdate(department="Logistics")
        )

        assert updated["department"] == "Logistics"
        assert updated["first_name"] == "Test"

    @pytest.mark.anyio
    async def test_update_role(self, fake_db, seed_user):
        user = seed_user()
        updated = await user_repo.update_user_role(fake_db, str(user["_id"]), "ADMIN")
        assert updated["role"] == "ADMIN"

    @pytest.mark.anyio
    async def test_update_role_unknown_value(self, fake_db, seed_user):
        user = seed_user()
        with pytest.raises(InvalidInputError):
            await user_repo.update_user_role(fake_db, str(user["_id"]), "OWNER")

    @pytest.mark.anyio
    async def test_deactivate(self, fake_db, seed_user):
        user = seed_user()
        updated = await user_repo.deactivate_user(fake_db, str(user["_id"]))
        assert updated["is_active"] is False

    @pytest.mark.anyio
    async def test_update_missing_user_raises_not_found(self, fake_db):
        with pytest.raises(NotFoundError):
            await user_repo.deactivate_user(fake_db, str(ObjectId()))

    def test_update_rejects_null_names(self):
        with pytest.raises(ValidationError):
            UserUpdate.model_validate({"firstName": None})

    @pytest.mark.anyio
    async def test_update_can_clear_avatar(self, fake_db, seed_user):
        user = seed_user(avatar="https://cdn.example.com/a.png")

        updated = await user_repo.update_user(
            fake_db, str(user["_id"]), UserUpdate.model_validate({"avatar": None})
        )

        assert updated["avatar"] is None
        assert updated["first_name"] == "Test"
