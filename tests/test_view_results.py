"""Unit tests for view result methods."""

import pytest

from couchmodel.designs.view import View
from couchmodel.designs.view_row import ViewRow
from couchmodel.errors import UnimplementedError, UsageError

from fakes import Meeting


def _doc_rows(*ids):
    return {
        "total_rows": 10,
        "offset": 0,
        "rows": [
            {"id": doc_id, "key": doc_id, "value": 1, "doc": {"_id": doc_id, "type": "Meeting", "name": doc_id.upper()}}
            for doc_id in ids
        ],
    }


def test_rows_are_wrapped(db, meeting):
    db.queue({"rows": [{"id": "a", "key": "2024-01-01", "value": 1}]})

    rows = meeting.view("by_date").rows()

    assert len(rows) == 1
    assert isinstance(rows[0], ViewRow)
    assert rows[0].id == "a"
    assert rows[0].key == "2024-01-01"


def test_rows_empty_when_field_absent(db, meeting):
    db.queue({})

    view = meeting.view("by_date")

    assert view.rows() == []
    assert view.total_rows() is None
    assert view.offset() is None


def test_keys_and_values(db, meeting):
    db.queue({"rows": [{"id": "a", "key": "k1", "value": 3}, {"id": "b", "key": "k2", "value": 4}]})
    view = meeting.view("by_date")

    assert view.keys() == ["k1", "k2"]
    assert view.values() == [3, 4]
    assert len(db.view_calls) == 1


def test_all_requests_docs_and_builds_models(db, meeting):
    db.queue(_doc_rows("a", "b"))

    docs = meeting.view("by_date").all()

    assert [d.id for d in docs] == ["a", "b"]
    assert all(isinstance(d, Meeting) for d in docs)
    assert docs[0].name == "A"
    assert db.view_calls[0][2]["include_docs"] is True
    assert db.get_calls == []


def test_all_discards_result_fetched_without_docs(db, meeting):
    db.queue({"rows": [{"id": "a", "key": "a", "value": 1}]}, _doc_rows("a"))
    view = meeting.view("by_date")
    view.rows()

    docs = view.all()

    assert len(db.view_calls) == 2
    assert "include_docs" not in db.view_calls[0][2]
    assert db.view_calls[1][2]["include_docs"] is True
    assert docs[0].name == "A"


def test_all_keeps_result_already_fetched_with_docs(db, meeting):
    db.queue(_doc_rows("a"))
    view = meeting.view("by_date").include_docs()
    view.rows()

    view.all()

    assert len(db.view_calls) == 1


def test_docs_without_include_docs_load_each_document(db, meeting):
    db.documents = {"a": {"_id": "a", "name": "first"}, "b": {"_id": "b", "name": "second"}}
    db.queue({"rows": [{"id": "a", "key": 1, "value": 1}, {"id": "b", "key": 2, "value": 1}]})

    docs = meeting.view("by_date").docs()

    assert [d.name for d in docs] == ["first", "second"]
    assert db.get_calls == ["a", "b"]


def test_first_without_result_queries_single_row(db, meeting):
    db.queue(_doc_rows("a"))
    view = meeting.view("by_date")

    doc = view.first()

    assert doc.id == "a"
    assert db.view_calls[0][2]["limit"] == 1
    assert db.view_calls[0][2]["include_docs"] is True
    assert "limit" not in view.query


def test_first_with_result_uses_cached_documents(db, meeting):
    db.queue(_doc_rows("a", "b"))
    view = meeting.view("by_date").include_docs()
    view.execute()

    assert view.first().id == "a"
    assert view.last().id == "b"
    assert len(db.view_calls) == 1


def test_first_returns_none_when_empty(db, meeting):
    db.queue({"rows": []})

    assert meeting.view("by_date").first() is None


def test_last_queries_descending_single_row_without_swapping_keys(db, meeting):
    db.queue(_doc_rows("z"))

    doc = meeting.view("by_date").startkey("a").endkey("m").last()

    params = db.view_calls[0][2]
    assert doc.id == "z"
    assert params["limit"] == 1
    assert params["descending"] is True
    assert params["startkey"] == "a"
    assert params["endkey"] == "m"


def test_count_uses_reduce_when_available(db, meeting):
    db.queue({"rows": [{"key": None, "value": 7}]})

    assert meeting.view("by_date").count() == 7
    assert db.view_calls[0][2]["reduce"] is True


def test_count_reduce_with_no_rows_is_zero(db, meeting):
    db.queue({"rows": []})

    assert meeting.view("by_date").count() == 0


def test_count_without_reduce_uses_total_rows(db, meeting):
    db.queue({"rows": [], "total_rows": 12, "offset": 0}, {"rows": [], "total_rows": 12, "offset": 0})

    count = meeting.view("by_name").count()
    total = meeting.view("by_name").limit(0).total_rows()

    assert count == 12
    assert count == total
    assert db.view_calls[0][2] == {"limit": 0}


def test_count_with_group_raises(db, meeting):
    view = meeting.view("by_date").reduce().group()

    with pytest.raises(UsageError, match="group"):
        view.count()

    assert db.view_calls == []


def test_count_with_group_raises_regardless_of_reduce(meeting):
    view = View(meeting, {"group": True}, "by_date")

    with pytest.raises(UsageError):
        view.count()


def test_is_empty_loads_documents(db, meeting):
    db.queue({"rows": []}, _doc_rows("a"))

    assert meeting.view("by_date").is_empty() is True
    assert meeting.view("by_date").is_empty() is False


def test_iteration_walks_documents(db, meeting):
    db.queue(_doc_rows("a", "b"))

    assert [doc.id for doc in meeting.view("by_date")] == ["a", "b"]


def test_item_access_reads_raw_result(db, meeting):
    db.queue({"rows": [], "total_rows": 3, "offset": 1})
    view = meeting.view("by_date").limit(0)

    assert view["total_rows"] == 3
    assert view["offset"] == 1
    assert view["missing"] is None


def test_info_not_implemented(meeting):
    with pytest.raises(UnimplementedError):
        meeting.view("by_date").info()

    with pytest.raises(NotImplementedError):
        meeting.view("by_date").info()
