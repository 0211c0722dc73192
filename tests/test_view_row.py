"""Unit tests for ViewRow document resolution."""

from unittest.mock import Mock

from couchmodel.designs.view_row import ViewRow

from fakes import Meeting


def test_accessors_read_raw_fields():
    row = ViewRow({"id": "a", "key": ["2024", "x"], "value": 1, "doc": {"_id": "a"}}, Meeting)

    assert row.id == "a"
    assert row.key == ["2024", "x"]
    assert row.value == 1
    assert row.raw_doc == {"_id": "a"}
    assert row["key"] == ["2024", "x"]


def test_missing_fields_are_none():
    row = ViewRow({"key": "k", "value": 2}, Meeting)

    assert row.id is None
    assert row.raw_doc is None


def test_linked_document_id_in_value_is_fetched():
    model = Mock()
    row = ViewRow({"id": "a", "key": 1, "value": {"_id": "b"}}, model)

    row.doc

    model.get.assert_called_once_with("b", database=None)
    model.build_from_database.assert_not_called()


def test_row_id_used_when_value_is_not_a_link():
    model = Mock()
    row = ViewRow({"id": "a", "key": 1, "value": 1}, model)

    row.doc

    model.get.assert_called_once_with("a", database=None)


def test_mapping_value_without_id_falls_back_to_row_id():
    model = Mock()
    row = ViewRow({"id": "a", "key": 1, "value": {"title": "x"}}, model)

    assert row.doc_id == "a"


def test_embedded_doc_is_built_without_fetch():
    model = Mock()
    payload = {"_id": "a", "name": "standup"}
    row = ViewRow({"id": "a", "key": 1, "value": 1, "doc": payload}, model)

    row.doc

    model.build_from_database.assert_called_once_with(payload)
    model.get.assert_not_called()


def test_fetch_uses_row_database():
    model = Mock()
    database = object()
    row = ViewRow({"id": "a", "key": 1, "value": 1}, model, database)

    row.doc

    model.get.assert_called_once_with("a", database=database)


def test_doc_builds_model_instance(db):
    db.documents["a"] = {"_id": "a", "_rev": "1-x", "type": "Meeting", "name": "retro"}
    row = ViewRow({"id": "a", "key": 1, "value": None}, Meeting, db)

    doc = row.doc

    assert isinstance(doc, Meeting)
    assert doc.id == "a"
    assert doc.rev == "1-x"
    assert doc.name == "retro"


def test_empty_embedded_doc_is_built_without_fetch():
    model = Mock()
    row = ViewRow({"id": "a", "key": 1, "value": 1, "doc": {}}, model)

    row.doc

    model.build_from_database.assert_called_once_with({})
    model.get.assert_not_called()
