"""Unit tests for tasks/service.py -- ownership rules and the query contract.

Covers:
- create defaults (status TODO), owner binding, title and dueDate validation
- find_one: NotFound for unknown ids, Forbidden for another owner's task
- find_all: owner scoping under every filter, status/title/date filters,
  pagination defaults, slicing and bounds
- update: merge semantics, dueDate retention, owner immutability
- update_status: bad values rejected without mutation
- grouping: disjoint, covering split of a single fetched page
- remove followed by find_one is NotFound
"""

from datetime import datetime, timezone

import pytest

from core.errors import Forbidden, InvalidInput, NotFound
from tasks.models import MAX_PAGE_SIZE, TaskFilters, TaskStatus

OWNER = "owner-a"
OTHER = "owner-b"


def _seed_due_dates(task_service):
    for title, due in (("jan", "2024-01-01"), ("feb", "2024-02-01"), ("mar", "2024-03-01")):
        task_service.create({"title": title, "due_date": due}, OWNER)


class TestCreate:
    def test_create_then_find_one(self, task_service) -> None:
        task = task_service.create({"title": "A"}, OWNER)
        found = task_service.find_one(task.id, OWNER)
        assert found.title == "A"
        assert found.status == TaskStatus.TODO
        assert found.user_id == OWNER
        assert found.created_at
        assert found.due_date is None

    def test_create_parses_due_date_as_utc(self, task_service) -> None:
        task = task_service.create({"title": "A", "due_date": "2024-05-01T12:30:00+02:00"}, OWNER)
        assert task.due_date == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)

    def test_create_accepts_zulu_suffix(self, task_service) -> None:
        task = task_service.create({"title": "A", "due_date": "2024-05-01T00:00:00Z"}, OWNER)
        assert task.due_date == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_create_rejects_bad_due_date(self, task_service, task_store) -> None:
        with pytest.raises(InvalidInput):
            task_service.create({"title": "A", "due_date": "next tuesday"}, OWNER)
        assert task_store.find_tasks(OWNER) == []

    @pytest.mark.parametrize("due", ["9999-12-31T23:00:00-05:00", "0001-01-01T00:00:00+01:00"])
    def test_create_rejects_due_date_outside_utc_range(self, task_service, task_store, due) -> None:
        with pytest.raises(InvalidInput):
            task_service.create({"title": "A", "due_date": due}, OWNER)
        assert task_store.find_tasks(OWNER) == []

    @pytest.mark.parametrize("fields", [{}, {"title": ""}, {"title": "   "}, {"title": None}])
    def test_create_requires_title(self, task_service, fields) -> None:
        with pytest.raises(InvalidInput):
            task_service.create(fields, OWNER)

    def test_create_rejects_unknown_status(self, task_service) -> None:
        with pytest.raises(InvalidInput):
            task_service.create({"title": "A", "status": "BLOCKED"}, OWNER)

    def test_create_ignores_owner_in_fields(self, task_service) -> None:
        task = task_service.create({"title": "A", "user_id": OTHER}, OWNER)
        assert task.user_id == OWNER


class TestFindOne:
    def test_unknown_id_is_not_found(self, task_service) -> None:
        with pytest.raises(NotFound):
            task_service.find_one("does-not-exist", OWNER)

    def test_other_owner_is_forbidden(self, task_service) -> None:
        task = task_service.create({"title": "private"}, OWNER)
        with pytest.raises(Forbidden):
            task_service.find_one(task.id, OTHER)

    def test_mutations_by_other_owner_are_forbidden(self, task_service) -> None:
        task = task_service.create({"title": "private"}, OWNER)
        with pytest.raises(Forbidden):
            task_service.update(task.id, {"title": "hijacked"}, OTHER)
        with pytest.raises(Forbidden):
            task_service.update_status(task.id, "DONE", OTHER)
        with pytest.raises(Forbidden):
            task_service.remove(task.id, OTHER)
        assert task_service.find_one(task.id, OWNER).title == "private"


class TestFindAll:
    def test_scoped_to_owner_under_every_filter(self, task_service) -> None:
        task_service.create({"title": "Shared Title", "due_date": "2024-02-01", "status": "DONE"}, OWNER)
        task_service.create({"title": "Shared Title", "due_date": "2024-02-01", "status": "DONE"}, OTHER)
        filter_sets = [
            TaskFilters(),
            TaskFilters(status="DONE"),
            TaskFilters(title="shared"),
            TaskFilters(due_from="2024-01-01", due_to="2024-12-31"),
            TaskFilters(status="DONE", title="title", due_from="2024-01-01", page=1, page_size=5),
        ]
        for filters in filter_sets:
            results = task_service.find_all(OTHER, filters)
            assert len(results) == 1
            assert all(t.user_id == OTHER for t in results)

    def test_status_filter(self, task_service) -> None:
        task_service.create({"title": "a"}, OWNER)
        task_service.create({"title": "b", "status": "IN_PROGRESS"}, OWNER)
        results = task_service.find_all(OWNER, TaskFilters(status="IN_PROGRESS"))
        assert [t.title for t in results] == ["b"]

    def test_bad_status_filter_is_invalid_input(self, task_service) -> None:
        with pytest.raises(InvalidInput):
            task_service.find_all(OWNER, TaskFilters(status="BOGUS"))

    def test_title_filter_is_case_insensitive_substring(self, task_service) -> None:
        task_service.create({"title": "Buy Groceries"}, OWNER)
        task_service.create({"title": "Call mom"}, OWNER)
        results = task_service.find_all(OWNER, TaskFilters(title="groc"))
        assert [t.title for t in results] == ["Buy Groceries"]

    def test_title_filter_folds_non_ascii(self, task_service) -> None:
        task_service.create({"title": "Überprüfung"}, OWNER)
        task_service.create({"title": "Große Straße"}, OWNER)
        task_service.create({"title": "Call mom"}, OWNER)
        assert [t.title for t in task_service.find_all(OWNER, TaskFilters(title="über"))] == ["Überprüfung"]
        assert [t.title for t in task_service.find_all(OWNER, TaskFilters(title="STRASSE"))] == ["Große Straße"]

    def test_title_filter_matches_wildcards_literally(self, task_service) -> None:
        task_service.create({"title": "100% done"}, OWNER)
        task_service.create({"title": "1000 lines"}, OWNER)
        results = task_service.find_all(OWNER, TaskFilters(title="0%"))
        assert [t.title for t in results] == ["100% done"]

    def test_date_range_is_inclusive_window(self, task_service) -> None:
        _seed_due_dates(task_service)
        results = task_service.find_all(OWNER, TaskFilters(due_from="2024-01-15", due_to="2024-02-15"))
        assert [t.title for t in results] == ["feb"]

    def test_date_bounds_are_independent_and_inclusive(self, task_service) -> None:
        _seed_due_dates(task_service)
        task_service.create({"title": "undated"}, OWNER)
        assert [t.title for t in task_service.find_all(OWNER, TaskFilters(due_from="2024-02-01"))] == ["feb", "mar"]
        assert [t.title for t in task_service.find_all(OWNER, TaskFilters(due_to="2024-02-01"))] == ["jan", "feb"]

    def test_bad_date_bound_is_invalid_input(self, task_service) -> None:
        with pytest.raises(InvalidInput):
            task_service.find_all(OWNER, TaskFilters(due_from="yesterday"))

    def test_date_bound_outside_utc_range_is_invalid_input(self, task_service) -> None:
        with pytest.raises(InvalidInput):
            task_service.find_all(OWNER, TaskFilters(due_from="0001-01-01T00:00:00+01:00"))
        with pytest.raises(InvalidInput):
            task_service.find_all(OWNER, TaskFilters(due_to="9999-12-31T23:00:00-05:00"))

    def test_pagination_second_page(self, task_service) -> None:
        for i in range(150):
            task_service.create({"title": f"task {i}"}, OWNER)
        first = task_service.find_all(OWNER, TaskFilters(page=1, page_size=100))
        second = task_service.find_all(OWNER, TaskFilters(page=2, page_size=100))
        assert len(first) == 100
        assert len(second) == 50
        assert not {t.id for t in first} & {t.id for t in second}

    @pytest.mark.parametrize("page, page_size", [(None, None), (0, 0), (-3, -1)])
    def test_pagination_defaults(self, task_service, page, page_size) -> None:
        for i in range(120):
            task_service.create({"title": f"task {i}"}, OWNER)
        results = task_service.find_all(OWNER, TaskFilters(page=page, page_size=page_size))
        assert len(results) == 100

    def test_small_pages(self, task_service) -> None:
        for i in range(5):
            task_service.create({"title": f"task {i}"}, OWNER)
        assert len(task_service.find_all(OWNER, TaskFilters(page=3, page_size=2))) == 1
        assert task_service.find_all(OWNER, TaskFilters(page=4, page_size=2)) == []

    def test_page_size_above_maximum_is_invalid_input(self, task_service) -> None:
        with pytest.raises(InvalidInput):
            task_service.find_all(OWNER, TaskFilters(page_size=MAX_PAGE_SIZE + 1))
        assert task_service.find_all(OWNER, TaskFilters(page_size=MAX_PAGE_SIZE)) == []

    def test_page_beyond_addressable_range_is_invalid_input(self, task_service) -> None:
        with pytest.raises(InvalidInput):
            task_service.find_all(OWNER, TaskFilters(page=100_000_000_000_000_000, page_size=100))


class TestUpdate:
    def test_update_merges_fields(self, task_service) -> None:
        task = task_service.create({"title": "old", "description": "keep me"}, OWNER)
        updated = task_service.update(task.id, {"title": "new", "status": "IN_PROGRESS"}, OWNER)
        assert updated.title == "new"
        assert updated.description == "keep me"
        assert updated.status == TaskStatus.IN_PROGRESS
        assert task_service.find_one(task.id, OWNER).title == "new"

    def test_update_keeps_due_date_when_omitted_or_empty(self, task_service) -> None:
        task = task_service.create({"title": "a", "due_date": "2024-02-01"}, OWNER)
        expected = datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert task_service.update(task.id, {"title": "b"}, OWNER).due_date == expected
        assert task_service.update(task.id, {"due_date": None}, OWNER).due_date == expected
        assert task_service.find_one(task.id, OWNER).due_date == expected

    def test_update_replaces_due_date(self, task_service) -> None:
        task = task_service.create({"title": "a", "due_date": "2024-02-01"}, OWNER)
        updated = task_service.update(task.id, {"due_date": "2024-06-30"}, OWNER)
        assert updated.due_date == datetime(2024, 6, 30, tzinfo=timezone.utc)

    def test_update_rejects_bad_due_date(self, task_service) -> None:
        task = task_service.create({"title": "a"}, OWNER)
        with pytest.raises(InvalidInput):
            task_service.update(task.id, {"due_date": "2024-13-45"}, OWNER)

    def test_update_cannot_change_owner(self, task_service) -> None:
        task = task_service.create({"title": "a"}, OWNER)
        task_service.update(task.id, {"user_id": OTHER, "title": "b"}, OWNER)
        assert task_service.find_one(task.id, OWNER).user_id == OWNER

    def test_update_unknown_id_is_not_found(self, task_service) -> None:
        with pytest.raises(NotFound):
            task_service.update("missing", {"title": "x"}, OWNER)

    def test_update_unknown_id_with_bad_status_is_not_found(self, task_service) -> None:
        with pytest.raises(NotFound):
            task_service.update("missing", {"status": "BOGUS"}, OWNER)

    def test_update_rejects_bad_status_without_mutation(self, task_service) -> None:
        task = task_service.create({"title": "a"}, OWNER)
        with pytest.raises(InvalidInput):
            task_service.update(task.id, {"title": "b", "status": "BOGUS"}, OWNER)
        assert task_service.find_one(task.id, OWNER).title == "a"


class TestUpdateStatus:
    def test_update_status(self, task_service) -> None:
        task = task_service.create({"title": "a"}, OWNER)
        assert task_service.update_status(task.id, "DONE", OWNER).status == TaskStatus.DONE
        assert task_service.find_one(task.id, OWNER).status == TaskStatus.DONE

    def test_bogus_status_leaves_record_untouched(self, task_service) -> None:
        task = task_service.create({"title": "a", "status": "IN_PROGRESS"}, OWNER)
        before = task_service.find_one(task.id, OWNER)
        with pytest.raises(InvalidInput):
            task_service.update_status(task.id, "BOGUS", OWNER)
        after = task_service.find_one(task.id, OWNER)
        assert after.status == TaskStatus.IN_PROGRESS
        assert after.updated_at == before.updated_at

    def test_missing_task_checked_before_status_value(self, task_service) -> None:
        with pytest.raises(NotFound):
            task_service.update_status("missing", "BOGUS", OWNER)


class TestGrouping:
    def test_partition_is_disjoint_and_covering(self, task_service) -> None:
        statuses = ["TODO", "DONE", "IN_PROGRESS", "TODO", "DONE", "TODO"]
        for i, status in enumerate(statuses):
            task_service.create({"title": f"t{i}", "status": status}, OWNER)
        task_service.create({"title": "not mine"}, OTHER)

        groups = task_service.get_tasks_grouped_by_status(OWNER)
        assert set(groups) == {"TODO", "IN_PROGRESS", "DONE"}
        assert [t.title for t in groups["TODO"]] == ["t0", "t3", "t5"]
        assert [t.title for t in groups["IN_PROGRESS"]] == ["t2"]
        assert [t.title for t in groups["DONE"]] == ["t1", "t4"]
        ids = [t.id for group in groups.values() for t in group]
        assert len(ids) == len(set(ids)) == len(statuses)

    def test_grouping_covers_only_one_page(self, task_service) -> None:
        for i in range(7):
            task_service.create({"title": f"t{i}"}, OWNER)
        groups = task_service.get_tasks_grouped_by_status(OWNER, page_size=5)
        assert sum(len(g) for g in groups.values()) == 5

    def test_empty_owner_gets_empty_groups(self, task_service) -> None:
        assert task_service.get_tasks_grouped_by_status(OWNER) == {"TODO": [], "IN_PROGRESS": [], "DONE": []}


class TestRemove:
    def test_remove_then_find_one_is_not_found(self, task_service) -> None:
        task = task_service.create({"title": "a"}, OWNER)
        task_service.remove(task.id, OWNER)
        with pytest.raises(NotFound):
            task_service.find_one(task.id, OWNER)

    def test_remove_racing_delete_is_not_an_error(self, task_service, task_store, monkeypatch) -> None:
        task = task_service.create({"title": "a"}, OWNER)
        monkeypatch.setattr(task_store, "delete_task", lambda task_id: False)
        task_service.remove(task.id, OWNER)


class TestConvenienceQueries:
    def test_find_by_status_search_and_range(self, task_service) -> None:
        _seed_due_dates(task_service)
        task_service.update_status(task_service.search_tasks("FEB", OWNER)[0].id, "DONE", OWNER)
        task_service.create({"title": "feb", "status": "DONE"}, OTHER)

        assert [t.title for t in task_service.find_by_status("DONE", OWNER)] == ["feb"]
        assert [t.title for t in task_service.search_tasks("a", OWNER)] == ["jan", "mar"]
        in_range = task_service.find_tasks_by_date_range("2024-01-01", "2024-02-01", OWNER)
        assert [t.title for t in in_range] == ["jan", "feb"]

    def test_find_by_status_rejects_unknown_value(self, task_service) -> None:
        with pytest.raises(InvalidInput):
            task_service.find_by_status("LATER", OWNER)
