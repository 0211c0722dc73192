"""Wrapper around a single row of a view result."""

from typing import Any, Dict, Optional


class ViewRow(dict):
    """
    One row of a view response with accessors for the standard fields.

    The row keeps a reference to the model (or proxy) and the database the
    view ran against so the linked document can be built or fetched on demand.
    """

    def __init__(self, raw: Dict[str, Any], model, database=None):
        super().__init__(raw)
        self.model = model
        self.database = database

    @property
    def id(self) -> Optional[str]:
        return self.get("id")

    @property
    def key(self) -> Any:
        return self.get("key")

    @property
    def value(self) -> Any:
        return self.get("value")

    @property
    def raw_doc(self) -> Optional[Dict[str, Any]]:
        return self.get("doc")

    @property
    def doc_id(self) -> Optional[str]:
        """Id of the linked document: `value["_id"]` when present, else the row id."""
        value = self.value
        if isinstance(value, dict) and value.get("_id"):
            return value["_id"]
        return self.id

    @property
    def doc(self):
        """
        Document for this row.

        Built directly from the embedded `doc` when the view was queried with
        include_docs, otherwise loaded individually through the model.
        """
        if self.get("doc") is not None:
            return self.model.build_from_database(self["doc"])
        return self.model.get(self.doc_id, database=self.database)
