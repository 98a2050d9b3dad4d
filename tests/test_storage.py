import asyncio
from types import SimpleNamespace

import pytest

from learning_profile.config import settings
from learning_profile.models.database import RiskFactor, TeacherAccount
from learning_profile.services.consolidation_service import ProfileConsolidator
from learning_profile.services.data_source import create_data_source
from learning_profile.services.memory_store import InMemoryFallbackStore
from learning_profile.services.supabase_service import (
    PROFILES_TABLE,
    RECORDS_TABLE,
    SupabaseStore,
)
from learning_profile.utils.cache import Cache, profile_cache_key
from learning_profile.utils.constants import RiskType, Severity
from learning_profile.utils.error_handler import ConflictError, InternalError

from conftest import make_record


class FakeQuery:
    """Just enough of the PostgREST builder chain, backed by a list of dict rows"""

    def __init__(self, rows, name=None, client=None):
        self.rows = rows
        self.name = name
        self.client = client
        self.operation = "select"
        self.payload = None
        self.filters = []
        self.max_rows = None
        self.order_by = None
        self.descending = False

    def select(self, *columns):
        return self

    def insert(self, payload):
        self.operation, self.payload = "insert", payload
        return self

    def upsert(self, payload):
        self.operation, self.payload = "upsert", payload
        return self

    def update(self, payload):
        self.operation, self.payload = "update", payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by, self.descending = column, desc
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def execute(self):
        if self.client is not None:
            self.client.before_execute(self.name, self.operation)

        matching = [row for row in self.rows if all(f(row) for f in self.filters)]

        if self.operation == "select":
            if self.order_by:
                matching.sort(key=lambda row: row[self.order_by], reverse=self.descending)
            data = [dict(row) for row in matching[:self.max_rows]]
        elif self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            existing = {row["id"] for row in self.rows}
            if any(item["id"] in existing for item in items):
                raise Exception("duplicate key value violates unique constraint")
            self.rows.extend(dict(item) for item in items)
            data = [dict(item) for item in items]
        elif self.operation == "upsert":
            self.rows[:] = [row for row in self.rows if row["id"] != self.payload["id"]]
            self.rows.append(dict(self.payload))
            data = [dict(self.payload)]
        elif self.operation == "update":
            for row in matching:
                row.update(self.payload)
            data = [dict(row) for row in matching]
        else:
            for row in matching:
                self.rows.remove(row)
            data = matching

        return SimpleNamespace(data=data)


class FakeClient:
    def __init__(self):
        self.tables = {}
        self.failing = set()
        self.on_update = None

    def table(self, name):
        return FakeQuery(self.tables.setdefault(name, []), name, self)

    def before_execute(self, table, operation):
        if (table, operation) in self.failing:
            raise Exception(f"{operation} on {table} failed: connection reset")
        if operation == "update" and self.on_update is not None:
            self.on_update()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def supabase_store(fake_client):
    return SupabaseStore(client=fake_client, cache=Cache(default_ttl=60))


def _submission(quiz_type="parent_home", respondent_type="parent", classroom_id="room-9"):
    return {
        "quiz_type": quiz_type,
        "respondent_type": respondent_type,
        "responses": {"1": 4, "2": 5, "4": 3},
        "classroom_id": classroom_id,
    }


def test_cache_expires_entries():
    cache = Cache(default_ttl=60)
    cache.set("fresh", 1)
    cache.set("stale", 2, ttl_seconds=0)

    assert cache.get("fresh") == 1
    assert cache.stats()["expired_entries"] == 1
    assert asyncio.run(cache.cleanup_expired()) == 1
    assert cache.get("stale") is None
    assert cache.delete("fresh") is True
    assert cache.stats()["total_entries"] == 0


def test_unconfigured_supabase_falls_back_to_memory(monkeypatch):
    monkeypatch.setattr(settings, "SUPABASE_URL", "")

    assert isinstance(create_data_source("supabase"), InMemoryFallbackStore)
    assert isinstance(create_data_source("memory"), InMemoryFallbackStore)


def test_supabase_store_round_trip(supabase_store, fake_client):
    consolidator = ProfileConsolidator(supabase_store)
    created = consolidator.submit_assessment("Ava", _submission()).profile
    extended = consolidator.submit_assessment(
        "Ava", _submission("teacher_classroom", "teacher"), created.id
    ).profile

    assert extended.version == 2
    assert len(fake_client.tables[RECORDS_TABLE]) == 2
    assert fake_client.tables[PROFILES_TABLE][0]["total_assessments"] == 2

    supabase_store.cache.clear()
    loaded = supabase_store.get_profile(created.id)

    assert [r.quiz_type.value for r in loaded.assessment_records] == ["parent_home", "teacher_classroom"]
    assert loaded.assessment_records[0].responses == {1: 4, 2: 5, 4: 3}
    assert supabase_store.cache.get(profile_cache_key(created.id)) is not None
    assert [p.id for p in supabase_store.list_classroom_profiles("room-9")] == [created.id]


def test_supabase_store_rejects_stale_version(supabase_store, fake_client):
    consolidator = ProfileConsolidator(supabase_store)
    profile = consolidator.submit_assessment("Ava", _submission()).profile
    stale = supabase_store.get_profile(profile.id)
    consolidator.submit_assessment("Ava", _submission(), profile.id)

    with pytest.raises(ConflictError):
        supabase_store.save_profile(stale, make_record("general", profile_id=profile.id), stale.version)

    assert len(fake_client.tables[RECORDS_TABLE]) == 2
    assert fake_client.tables[PROFILES_TABLE][0]["version"] == 2


def test_supabase_store_missing_profile(supabase_store):
    assert supabase_store.get_profile("nope") is None


def test_supabase_store_risk_factors_and_teachers(supabase_store):
    factor = RiskFactor(profile_id="p1", classroom_id="room-9", risk_type=RiskType.LOW_ENGAGEMENT,
                        severity=Severity.HIGH)
    supabase_store.add_risk_factors([factor])
    supabase_store.add_teacher(TeacherAccount(email="Teacher@School.org", name="Ms. Rivera"))

    assert [f.id for f in supabase_store.list_risk_factors("room-9")] == [factor.id]
    assert supabase_store.list_risk_factors("room-9", status="resolved") == []
    assert supabase_store.get_teacher_by_email("teacher@school.org").name == "Ms. Rivera"
    assert supabase_store.health()["status"] == "connected"


def test_read_during_write_does_not_leave_stale_cache(supabase_store, fake_client):
    consolidator = ProfileConsolidator(supabase_store)
    profile = consolidator.submit_assessment("Ava", _submission()).profile
    fake_client.on_update = lambda: supabase_store.get_profile(profile.id)

    consolidator.submit_assessment("Ava", _submission("teacher_classroom", "teacher"), profile.id)
    fake_client.on_update = None

    cached = supabase_store.get_profile(profile.id)
    assert cached.version == 2
    assert cached.total_assessments == len(cached.assessment_records) == 2

    third = consolidator.submit_assessment("Ava", _submission(), profile.id).profile
    assert third.version == 3
    assert fake_client.tables[PROFILES_TABLE][0]["total_assessments"] == 3


def test_submission_reads_past_stale_cache(supabase_store):
    consolidator = ProfileConsolidator(supabase_store)
    profile = consolidator.submit_assessment("Ava", _submission()).profile
    supabase_store.cache.set(profile_cache_key(profile.id), profile.model_copy(update={"version": 0}))

    extended = consolidator.submit_assessment("Ava", _submission(), profile.id).profile

    assert extended.version == 2


def test_conflict_survives_failed_cleanup(supabase_store, fake_client):
    consolidator = ProfileConsolidator(supabase_store)
    profile = consolidator.submit_assessment("Ava", _submission()).profile
    stale = supabase_store.get_profile(profile.id)
    consolidator.submit_assessment("Ava", _submission(), profile.id)
    fake_client.failing.add((RECORDS_TABLE, "delete"))

    with pytest.raises(ConflictError):
        supabase_store.save_profile(stale, make_record("general", profile_id=profile.id), stale.version)

    assert fake_client.tables[PROFILES_TABLE][0]["version"] == 2


def test_failed_record_insert_with_failed_cleanup_is_internal_error(supabase_store, fake_client):
    fake_client.failing.update({(RECORDS_TABLE, "insert"), (PROFILES_TABLE, "delete")})

    with pytest.raises(InternalError):
        ProfileConsolidator(supabase_store).submit_assessment("Ava", _submission())

    assert fake_client.tables[RECORDS_TABLE] == []


def test_failed_record_insert_removes_new_profile_row(supabase_store, fake_client):
    fake_client.failing.add((RECORDS_TABLE, "insert"))

    with pytest.raises(InternalError):
        ProfileConsolidator(supabase_store).submit_assessment("Ava", _submission())

    assert fake_client.tables[PROFILES_TABLE] == []


def test_supabase_store_lookups(supabase_store):
    consolidator = ProfileConsolidator(supabase_store)
    older = consolidator.submit_assessment("Ava", _submission()).profile
    newer = consolidator.submit_assessment("Ava", _submission()).profile
    consolidator.submit_assessment("Ava", _submission(), newer.id)

    assert supabase_store.find_profile_by_child_name("  Ava ").id == newer.id
    assert supabase_store.find_profile_by_child_name("Ben") is None
    assert supabase_store.get_profile_by_share_token(older.sharing_token).id == older.id
    assert supabase_store.get_profile_by_share_token("unknown") is None


def test_memory_store_lookups(store):
    consolidator = ProfileConsolidator(store)
    older = consolidator.submit_assessment("Ava", _submission()).profile
    newer = consolidator.submit_assessment("Ava", _submission()).profile
    consolidator.submit_assessment("Ava", _submission(), newer.id)

    assert store.find_profile_by_child_name("Ava ").id == newer.id
    assert store.find_profile_by_child_name("ava") is None
    assert store.get_profile_by_share_token(older.sharing_token).id == older.id
    assert store.get_profile_by_share_token("unknown") is None
