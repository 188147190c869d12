"""
VIA Backend — Storage Collaborator Tests
==========================================

What we test:
    ✅ Vote upsert compiles to ON CONFLICT (route_id, user_id) DO UPDATE
    ✅ Tag insert runs in a SAVEPOINT, de-duplicates ids, skips empty lists
    ✅ Friend request conflicts on uq_friends_pair and does nothing
    ✅ Driver errors surface as StorageError
    ✅ A failed stat counter does not poison the counters after it

How:   Statements are captured from a mocked AsyncSession and compiled with the
       PostgreSQL dialect. The counter tests use a session double that refuses
       every statement after an error until a savepoint rolls back, the way
       Postgres treats an aborted transaction.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import InternalError, OperationalError

from via_api.exceptions import StorageError
from via_api.repositories.route_repository import RouteRepository
from via_api.repositories.user_repository import UserRepository
from via_api.services.user_service import UserService


def mock_session():
    session = AsyncMock()
    # begin_nested() is a sync call returning an async context manager
    session.begin_nested = MagicMock()
    return session


def executed_sql(session):
    statement = session.execute.call_args.args[0]
    return statement.compile(dialect=postgresql.dialect())


class AbortingSession:
    """
    Hands out queued results; an exception in the queue aborts the
    transaction and every later statement fails until a savepoint unwinds.
    """

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.aborted = False
        self.savepoints = 0

    async def execute(self, statement):
        if self.aborted:
            raise InternalError(
                "SELECT", {}, Exception("current transaction is aborted")
            )
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            self.aborted = True
            raise outcome
        result = MagicMock()
        result.scalar.return_value = outcome
        result.scalar_one_or_none.return_value = outcome
        return result

    def begin_nested(self):
        return Savepoint(self)


class Savepoint:
    def __init__(self, session):
        self.session = session

    async def __aenter__(self):
        self.session.savepoints += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.session.aborted = False
        return False


class TestUpsertVote:

    @pytest.mark.asyncio
    async def test_conflict_overwrites_type_and_context(self):
        session = mock_session()
        await RouteRepository(session).upsert_vote(uuid.uuid4(), uuid.uuid4(), "up", "safety")

        sql = str(executed_sql(session))
        assert "INSERT INTO votes" in sql
        assert "ON CONFLICT (route_id, user_id) DO UPDATE SET" in sql
        assert "vote_type = excluded.vote_type" in sql
        assert "context = excluded.context" in sql
        assert "updated_at = now()" in sql

    @pytest.mark.asyncio
    async def test_driver_error_becomes_storage_error(self):
        session = mock_session()
        session.execute.side_effect = OperationalError("INSERT", {}, Exception("connection reset"))

        with pytest.raises(StorageError) as exc_info:
            await RouteRepository(session).upsert_vote(uuid.uuid4(), uuid.uuid4(), "down", "scenery")
        assert exc_info.value.context["operation"] == "upsert_vote"
        assert "connection reset" in exc_info.value.details


class TestAddRouteTags:

    @pytest.mark.asyncio
    async def test_insert_inside_savepoint(self):
        session = mock_session()
        await RouteRepository(session).add_route_tags(uuid.uuid4(), [uuid.uuid4(), uuid.uuid4()])

        session.begin_nested.assert_called_once()
        assert "ON CONFLICT DO NOTHING" in str(executed_sql(session))

    @pytest.mark.asyncio
    async def test_duplicate_ids_inserted_once(self):
        session = mock_session()
        shade = uuid.uuid4()
        await RouteRepository(session).add_route_tags(uuid.uuid4(), [shade, shade])

        params = executed_sql(session).params
        tag_params = [value for key, value in params.items() if key.startswith("tag_id")]
        assert tag_params == [shade]

    @pytest.mark.asyncio
    async def test_no_tags_no_statement(self):
        session = mock_session()
        await RouteRepository(session).add_route_tags(uuid.uuid4(), [])

        session.execute.assert_not_called()
        session.begin_nested.assert_not_called()

    @pytest.mark.asyncio
    async def test_foreign_key_failure_becomes_storage_error(self):
        session = mock_session()
        session.execute.side_effect = InternalError(
            "INSERT", {}, Exception("violates foreign key constraint")
        )

        with pytest.raises(StorageError) as exc_info:
            await RouteRepository(session).add_route_tags(uuid.uuid4(), [uuid.uuid4()])
        assert exc_info.value.context["operation"] == "add_route_tags"


class TestCreateFriendRequest:

    @pytest.mark.asyncio
    async def test_repeat_request_does_nothing(self):
        session = mock_session()
        await UserRepository(session).create_friend_request(uuid.uuid4(), uuid.uuid4())

        compiled = executed_sql(session)
        assert "INSERT INTO friends" in str(compiled)
        assert "ON CONFLICT ON CONSTRAINT uq_friends_pair DO NOTHING" in str(compiled)
        assert compiled.params["status"] == "pending"


class TestStatCounters:

    @pytest.mark.asyncio
    async def test_each_counter_runs_in_savepoint(self, user_id):
        session = AbortingSession([3, 1, 4])
        repo = UserRepository(session)

        assert await repo.count_routes_created(user_id) == 3
        assert await repo.count_route_usage(user_id) == 1
        assert await repo.count_friends(user_id) == 4
        assert session.savepoints == 3

    @pytest.mark.asyncio
    async def test_empty_count_is_zero(self, user_id):
        repo = UserRepository(AbortingSession([None]))
        assert await repo.count_friends(user_id) == 0

    @pytest.mark.asyncio
    async def test_failed_counter_leaves_later_counters_intact(self, make_profile, user_id):
        session = AbortingSession([
            make_profile(user_id),
            OperationalError("SELECT count", {}, Exception("statement timeout")),
            5,
            2,
        ])

        profile = await UserService(UserRepository(session)).get_profile(user_id)

        assert profile.stats.routes_created == 0
        assert profile.stats.routes_saved == 5
        assert profile.stats.friends_count == 2
        assert session.outcomes == []
