"""Unit tests for PostgresUserRepository with mocked asyncpg database."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from uuid import UUID, uuid4

import asyncpg
import pytest

from user_api.exceptions import DuplicateKeyError, InternalFailureError, RepositoryError
from user_api.models.user import User
from user_api.repositories.user_repository import PostgresUserRepository
from user_api.services.user_service import UserService


# ---------------------------------------------------------------------------
# asyncpg mock helpers
# ---------------------------------------------------------------------------

class MockConnection:
    """Mock asyncpg connection with common query methods."""

    def __init__(self):
        self.execute = AsyncMock()
        self.fetchrow = AsyncMock()
        self.fetchval = AsyncMock()
        self.fetch = AsyncMock()


class MockPool:
    """Mock asyncpg pool with acquire() context manager."""

    def __init__(self, conn: MockConnection):
        self._conn = conn

    def acquire(self):
        return _MockPoolAcquire(self._conn)


class _MockPoolAcquire:
    def __init__(self, conn):
        self._conn = conn

    async def __aenter__(self):
        return self._conn

    async def __aexit__(self, *args):
        pass


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_pool():
    """Return (pool, connection) pair for database mocking."""
    conn = MockConnection()
    pool = MockPool(conn)
    return pool, conn


@pytest.fixture
def repo(mock_pool):
    """Repository whose get_pool returns the mock pool."""
    pool, _ = mock_pool
    with patch(
        "user_api.repositories.user_repository.get_pool", new_callable=AsyncMock
    ) as mock_get_pool:
        mock_get_pool.return_value = pool
        yield PostgresUserRepository()


def _make_user_row(
    user_id=None,
    email="ada@example.com",
    name="Ada",
    password_hash="$2b$12$hashedpasswordhere000000000000000000000000000000000000",
    is_active=True,
):
    """Create a dict mimicking an asyncpg Record for a user row."""
    now = datetime.now(timezone.utc)
    return {
        "id": user_id or uuid4(),
        "email": email,
        "name": name,
        "last_name": "Lovelace",
        "password_hash": password_hash,
        "is_active": is_active,
        "roles": ["user"],
        "company": None,
        "profile_image": None,
        "position": None,
        "created_at": now,
        "updated_at": now,
    }


# ---------------------------------------------------------------------------
# insert
# ---------------------------------------------------------------------------

class TestInsert:
    """Tests for PostgresUserRepository.insert."""

    async def test_insert_executes_and_returns_user(self, repo, mock_pool):
        _, conn = mock_pool

        user = await repo.insert(
            email="ada@example.com",
            name="Ada",
            last_name="Lovelace",
            password_hash="$2b$12$abc",
        )

        assert isinstance(user, User)
        assert isinstance(user.id, UUID)
        assert user.is_active is True
        assert user.roles == ["user"]

        conn.execute.assert_awaited_once()
        args = conn.execute.call_args[0]
        assert "INSERT INTO users" in args[0]
        assert args[2] == "ada@example.com"
        assert args[5] == "$2b$12$abc"

    async def test_unique_violation_becomes_duplicate_key(self, repo, mock_pool):
        _, conn = mock_pool
        conn.execute.side_effect = asyncpg.UniqueViolationError("duplicate key value")

        with pytest.raises(DuplicateKeyError) as exc_info:
            await repo.insert(email="ada@example.com", name="Ada", password_hash="h")

        assert exc_info.value.field == "email"

    async def test_other_database_errors_become_repository_error(self, repo, mock_pool):
        _, conn = mock_pool
        conn.execute.side_effect = asyncpg.PostgresError("boom")

        with pytest.raises(RepositoryError):
            await repo.insert(email="ada@example.com", name="Ada", password_hash="h")


# ---------------------------------------------------------------------------
# lookups
# ---------------------------------------------------------------------------

class TestLookups:
    """Tests for get_by_id, get_by_email and list_all."""

    async def test_get_by_id_found(self, repo, mock_pool):
        _, conn = mock_pool
        row = _make_user_row()
        conn.fetchrow.return_value = row

        user = await repo.get_by_id(str(row["id"]))

        assert user.id == row["id"]
        assert "password_hash" not in user.model_dump()
        assert conn.fetchrow.call_args[0][1] == row["id"]

    async def test_get_by_id_not_found(self, repo, mock_pool):
        _, conn = mock_pool
        conn.fetchrow.return_value = None

        assert await repo.get_by_id(uuid4()) is None

    async def test_get_by_id_non_uuid_skips_query(self, repo, mock_pool):
        _, conn = mock_pool

        assert await repo.get_by_id("507f1f77bcf86cd799439011") is None
        conn.fetchrow.assert_not_awaited()

    async def test_get_by_email_returns_user_and_hash(self, repo, mock_pool):
        _, conn = mock_pool
        row = _make_user_row(password_hash="$2b$12$stored")
        conn.fetchrow.return_value = row

        user, password_hash = await repo.get_by_email("ADA@example.com")

        assert user.email == "ada@example.com"
        assert password_hash == "$2b$12$stored"
        assert "LOWER(email) = LOWER($1)" in conn.fetchrow.call_args[0][0]

    async def test_get_by_email_not_found(self, repo, mock_pool):
        _, conn = mock_pool
        conn.fetchrow.return_value = None

        assert await repo.get_by_email("nobody@example.com") is None

    async def test_list_all(self, repo, mock_pool):
        _, conn = mock_pool
        conn.fetch.return_value = [_make_user_row(), _make_user_row(email="b@example.com")]

        users = await repo.list_all()

        assert [u.email for u in users] == ["ada@example.com", "b@example.com"]
        assert "ORDER BY created_at" in conn.fetch.call_args[0][0]


# ---------------------------------------------------------------------------
# update / delete
# ---------------------------------------------------------------------------

class TestMutations:
    """Tests for update_by_id and delete_by_id."""

    async def test_update_builds_set_clause(self, repo, mock_pool):
        _, conn = mock_pool
        user_id = uuid4()
        conn.fetchrow.return_value = _make_user_row(user_id=user_id, name="Augusta")

        user = await repo.update_by_id(user_id, {"name": "Augusta", "position": "Lead"})

        assert user.name == "Augusta"
        args = conn.fetchrow.call_args[0]
        sql = args[0]
        assert "name = $1" in sql
        assert "position = $2" in sql
        assert "updated_at = $3" in sql
        assert "WHERE id = $4" in sql
        assert args[1] == "Augusta"
        assert args[2] == "Lead"
        assert args[4] == user_id

    async def test_update_not_found(self, repo, mock_pool):
        _, conn = mock_pool
        conn.fetchrow.return_value = None

        assert await repo.update_by_id(uuid4(), {"name": "Ghost"}) is None

    async def test_update_rejects_unknown_columns(self, repo):
        with pytest.raises(ValueError, match="Cannot update"):
            await repo.update_by_id(uuid4(), {"id": uuid4()})

    async def test_update_email_collision(self, repo, mock_pool):
        _, conn = mock_pool
        conn.fetchrow.side_effect = asyncpg.UniqueViolationError("duplicate key value")

        with pytest.raises(DuplicateKeyError):
            await repo.update_by_id(uuid4(), {"email": "taken@example.com"})

    async def test_empty_update_reads_current_row(self, repo, mock_pool):
        _, conn = mock_pool
        user_id = uuid4()
        conn.fetchrow.return_value = _make_user_row(user_id=user_id)

        user = await repo.update_by_id(user_id, {})

        assert user.id == user_id
        assert conn.fetchrow.call_args[0][0].strip().startswith("SELECT")

    async def test_delete_returns_deleted_user(self, repo, mock_pool):
        _, conn = mock_pool
        row = _make_user_row()
        conn.fetchrow.return_value = row

        user = await repo.delete_by_id(row["id"])

        assert user.id == row["id"]
        assert "DELETE FROM users" in conn.fetchrow.call_args[0][0]

    async def test_delete_not_found(self, repo, mock_pool):
        _, conn = mock_pool
        conn.fetchrow.return_value = None

        assert await repo.delete_by_id(uuid4()) is None


# ---------------------------------------------------------------------------
# connection failures
# ---------------------------------------------------------------------------

class TestConnectionFailures:
    """Client-side asyncpg failures surface as RepositoryError."""

    async def test_insert_on_closing_pool(self, repo, mock_pool):
        _, conn = mock_pool
        conn.execute.side_effect = asyncpg.InterfaceError("pool is closing")

        with pytest.raises(RepositoryError):
            await repo.insert(email="ada@example.com", name="Ada", password_hash="h")

    async def test_lookup_on_closing_pool(self, repo, mock_pool):
        _, conn = mock_pool
        conn.fetchrow.side_effect = asyncpg.InterfaceError("pool is closing")

        with pytest.raises(RepositoryError):
            await repo.get_by_id(uuid4())

    async def test_list_on_closing_pool(self, repo, mock_pool):
        _, conn = mock_pool
        conn.fetch.side_effect = asyncpg.InterfaceError("pool is closing")

        with pytest.raises(RepositoryError):
            await repo.list_all()

    async def test_service_maps_closing_pool_to_internal_failure(
        self, repo, mock_pool, auth_service
    ):
        _, conn = mock_pool
        conn.fetchrow.side_effect = asyncpg.InterfaceError("pool is closing")
        service = UserService(repository=repo, auth_service=auth_service)

        with pytest.raises(InternalFailureError):
            await service.find_by_id(uuid4())
