"""In-memory design documents and the registry that owns them."""

from typing import Any, Dict, Optional

from pydantic import BaseModel

from couchmodel.utils.logging import get_logger

logger = get_logger(__name__)


class ViewDefinition(BaseModel):
    """Map/reduce source of a single view."""

    map: str
    reduce: Optional[str] = None

    @property
    def can_reduce(self) -> bool:
        return bool(self.reduce and self.reduce.strip())


class DesignDoc:
    """
    Design document holding every view of one model type.

    The views only live in memory until `sync` writes them to a database.
    """

    language = "javascript"

    def __init__(self, name: str):
        self.id = f"_design/{name}"
        self.views: Dict[str, ViewDefinition] = {}

    def __repr__(self) -> str:
        return f"DesignDoc({self.id!r}, views={sorted(self.views)})"

    def add_view(self, name: str, definition: ViewDefinition) -> ViewDefinition:
        self.views[name] = definition
        return definition

    def can_reduce(self, name: str) -> bool:
        """True if the named view exists and carries a non-blank reduce function."""
        definition = self.views.get(name)
        return definition is not None and definition.can_reduce

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "language": self.language,
            "views": {name: view.model_dump(exclude_none=True) for name, view in self.views.items()},
        }

    def view_on(self, database, name: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Run the named view against `database` with already-prepared params."""
        return database.view(self.id, name, params)

    def sync(self, database) -> Dict[str, Any]:
        """Persist this design document to `database`. Safe to repeat."""
        logger.info(f"Syncing {self.id} ({len(self.views)} views) to {database!r}")
        return database.save_design_doc(self.to_document())


class DesignRegistry:
    """Design documents keyed by model type."""

    def __init__(self):
        self._docs: Dict[type, DesignDoc] = {}

    def for_model(self, model: type) -> DesignDoc:
        doc = self._docs.get(model)
        if doc is None:
            doc = self._docs[model] = DesignDoc(model.model_type_name())
        return doc

    def sync(self, model: type, database) -> Dict[str, Any]:
        return self.for_model(model).sync(database)

    def clear(self) -> None:
        self._docs.clear()

    def __contains__(self, model: type) -> bool:
        return model in self._docs


# Process-wide registry used by Document subclasses
registry = DesignRegistry()
