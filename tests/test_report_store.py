# tests for the report store — quota, ownership, viewed state, feedback, deletion

from datetime import timedelta

import pytest
from bson import ObjectId

from moodwell.errors import InsufficientDataError, QuotaExceededError, ReportNotFoundError
from moodwell.models.report import AggregatedStats, GenerationResult, ReportContent
from moodwell.services.report_store import ReportStore
from tests.conftest import NOW, USER_ID, OTHER_USER_ID


STATS = AggregatedStats(total_mood_entries=2, average_intensity=6.0, most_common_mood="calm")
CONTENT = ReportContent(summary="A calm week.", strengths=["You track your mood regularly"])
META = GenerationResult(content=CONTENT, model="template", ai_generated=False)


async def _create(store, user_id=USER_ID, kind="on-demand", now=NOW, stats=STATS):
    return await store.create_report(
        user_id, kind, now - timedelta(days=7), now, CONTENT, stats, META, generation_time_ms=12, now=now,
    )


class TestCreateReport:

    async def test_create_persists_document(self, mock_db):
        store = ReportStore(mock_db)
        doc = await _create(store)

        assert isinstance(doc["_id"], ObjectId)
        assert doc["user_id"] == USER_ID
        assert doc["kind"] == "on-demand"
        assert doc["content"]["summary"] == "A calm week."
        assert doc["stats"]["total_mood_entries"] == 2
        assert doc["ai_model"] == "template"
        assert doc["ai_enabled"] is False
        assert doc["generation_time_ms"] == 12
        assert doc["viewed"] is False
        assert doc["feedback"] is None
        assert len(mock_db.ai_reports.inserted) == 1

    async def test_stats_snapshot_is_a_copy(self, mock_db):
        stats = AggregatedStats(total_mood_entries=1, mood_distribution={"calm": 1})
        doc = await _create(ReportStore(mock_db), stats=stats)
        stats.mood_distribution["calm"] = 99
        assert doc["stats"]["mood_distribution"] == {"calm": 1}

    async def test_fourth_on_demand_report_rejected(self, mock_db):
        store = ReportStore(mock_db)
        for _ in range(3):
            await _create(store)

        with pytest.raises(QuotaExceededError):
            await _create(store)
        assert len(mock_db.ai_reports._data) == 3

    async def test_weekly_reports_bypass_quota(self, mock_db):
        store = ReportStore(mock_db)
        for _ in range(3):
            await _create(store)

        doc = await _create(store, kind="weekly")
        assert doc["kind"] == "weekly"

    async def test_quota_resets_next_day(self, mock_db):
        store = ReportStore(mock_db)
        for _ in range(3):
            await _create(store, now=NOW - timedelta(days=1))

        doc = await _create(store)
        assert doc["kind"] == "on-demand"

    async def test_quota_is_per_user(self, mock_db):
        store = ReportStore(mock_db)
        for _ in range(3):
            await _create(store, user_id=OTHER_USER_ID)

        assert await store.count_on_demand_today(USER_ID, NOW) == 0
        await _create(store)

    async def test_requires_a_mood_or_rating(self, mock_db):
        store = ReportStore(mock_db)
        with pytest.raises(InsufficientDataError):
            await _create(store, stats=AggregatedStats(total_victories=4))

        ratings_only = AggregatedStats(total_ratings=1, average_rating=3.0)
        doc = await _create(store, stats=ratings_only)
        assert doc["stats"]["total_ratings"] == 1


class TestReadReports:

    async def test_list_newest_first_without_stats(self, mock_db):
        store = ReportStore(mock_db)
        older = await _create(store, kind="weekly", now=NOW - timedelta(days=7))
        newer = await _create(store, kind="weekly")
        await _create(store, user_id=OTHER_USER_ID, kind="weekly")

        page = await store.list_reports(USER_ID)
        assert page["total"] == 2
        assert page["pages"] == 1
        assert [r["_id"] for r in page["reports"]] == [newer["_id"], older["_id"]]
        assert "stats" not in page["reports"][0]

    async def test_list_filters_kind_and_paginates(self, mock_db):
        store = ReportStore(mock_db)
        for days in range(5):
            await _create(store, kind="weekly", now=NOW - timedelta(days=7 * days))
        await _create(store)

        page = await store.list_reports(USER_ID, kind="weekly", page=2, page_size=2)
        assert page["total"] == 5
        assert page["pages"] == 3
        assert len(page["reports"]) == 2
        assert all(r["kind"] == "weekly" for r in page["reports"])

    async def test_get_latest(self, mock_db):
        store = ReportStore(mock_db)
        assert await store.get_latest(USER_ID) is None

        await _create(store, kind="weekly", now=NOW - timedelta(days=7))
        newest = await _create(store)
        latest = await store.get_latest(USER_ID)
        assert latest["_id"] == newest["_id"]

    async def test_get_by_id_owner(self, mock_db):
        store = ReportStore(mock_db)
        doc = await _create(store)
        found = await store.get_by_id(USER_ID, str(doc["_id"]))
        assert found["_id"] == doc["_id"]

    async def test_foreign_report_looks_missing(self, mock_db):
        store = ReportStore(mock_db)
        foreign = await _create(store, user_id=OTHER_USER_ID)

        with pytest.raises(ReportNotFoundError) as foreign_err:
            await store.get_by_id(USER_ID, str(foreign["_id"]))
        with pytest.raises(ReportNotFoundError) as missing_err:
            await store.get_by_id(USER_ID, str(ObjectId()))
        assert str(foreign_err.value) == str(missing_err.value)

    async def test_malformed_id_is_not_found(self, mock_db):
        with pytest.raises(ReportNotFoundError):
            await ReportStore(mock_db).get_by_id(USER_ID, "not-an-id")


class TestLifecycle:

    async def test_mark_viewed_is_idempotent(self, mock_db):
        store = ReportStore(mock_db)
        doc = await _create(store)
        report_id = str(doc["_id"])

        first = await store.mark_viewed(USER_ID, report_id, now=NOW)
        assert first["viewed"] is True
        assert first["viewed_at"] == NOW

        second = await store.mark_viewed(USER_ID, report_id, now=NOW + timedelta(hours=3))
        assert second["viewed_at"] == NOW

    async def test_mark_viewed_foreign_report(self, mock_db):
        store = ReportStore(mock_db)
        doc = await _create(store, user_id=OTHER_USER_ID)
        with pytest.raises(ReportNotFoundError):
            await store.mark_viewed(USER_ID, str(doc["_id"]))
        assert doc["viewed"] is False

    async def test_feedback_overwrites(self, mock_db):
        store = ReportStore(mock_db)
        doc = await _create(store)
        report_id = str(doc["_id"])

        await store.submit_feedback(USER_ID, report_id, True, "ok", now=NOW)
        updated = await store.submit_feedback(
            USER_ID, report_id, False, "actually no", now=NOW + timedelta(minutes=5),
        )

        assert updated["feedback"] == {
            "helpful": False,
            "comment": "actually no",
            "submitted_at": NOW + timedelta(minutes=5),
        }

    async def test_feedback_on_foreign_report(self, mock_db):
        store = ReportStore(mock_db)
        doc = await _create(store, user_id=OTHER_USER_ID)
        with pytest.raises(ReportNotFoundError):
            await store.submit_feedback(USER_ID, str(doc["_id"]), True)
        assert doc["feedback"] is None

    async def test_delete_owner_only(self, mock_db):
        store = ReportStore(mock_db)
        mine = await _create(store)
        theirs = await _create(store, user_id=OTHER_USER_ID)

        with pytest.raises(ReportNotFoundError):
            await store.delete_report(USER_ID, str(theirs["_id"]))

        await store.delete_report(USER_ID, str(mine["_id"]))
        assert [d["_id"] for d in mock_db.ai_reports._data] == [theirs["_id"]]

        with pytest.raises(ReportNotFoundError):
            await store.delete_report(USER_ID, str(mine["_id"]))
