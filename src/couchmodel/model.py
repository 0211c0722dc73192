"""Document models and the hooks views rely on."""

from typing import Any, ClassVar, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from couchmodel.designs.design_doc import DesignDoc, ViewDefinition, registry
from couchmodel.designs.generator import create_view
from couchmodel.designs.view import View
from couchmodel.errors import ConfigurationError, DocumentNotFound
from couchmodel.utils.logging import get_logger

logger = get_logger(__name__)


class Document(BaseModel):
    """
    Base class for models stored in CouchDB.

    Subclasses set `database` to their default CouchDatabase and declare
    views with `view_by`:

        class Meeting(Document):
            database = CouchDatabase.from_config()
            date: str
            name: str

        Meeting.view_by("by_date_and_name")
        Meeting.view("by_date_and_name").startkey(["2024-01-01"]).all()
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    database: ClassVar[Any] = None
    model_type_key: ClassVar[str] = "type"

    id: Optional[str] = Field(default=None, alias="_id")
    rev: Optional[str] = Field(default=None, alias="_rev")

    @classmethod
    def model_type_name(cls) -> str:
        """Value stored in the type field of this model's documents."""
        return cls.__name__

    @classmethod
    def design_doc(cls) -> DesignDoc:
        return registry.for_model(cls)

    @classmethod
    def save_design_doc(cls, database=None) -> Dict[str, Any]:
        """Write the design document to `database` (default: the model's)."""
        db = database or cls.database
        if db is None:
            raise ConfigurationError(f"No database to save design document for {cls.model_type_name()}")
        return registry.sync(cls, db)

    @classmethod
    def build_from_database(cls, raw: Dict[str, Any]) -> "Document":
        return cls.model_validate(raw)

    @classmethod
    def get(cls, doc_id: Optional[str], database=None) -> Optional["Document"]:
        """Load a document by id; None if it does not exist."""
        if not doc_id:
            return None
        db = database or cls.database
        if db is None:
            raise ConfigurationError(f"No database to load {cls.model_type_name()} {doc_id} from")
        try:
            raw = db.get(doc_id)
        except DocumentNotFound:
            logger.debug(f"{cls.model_type_name()} {doc_id} not found on {db!r}")
            return None
        return cls.build_from_database(raw)

    @classmethod
    def view_by(cls, name: str, **opts) -> ViewDefinition:
        """Declare a view on this model. See `create_view` for the options."""
        return create_view(cls, name, **opts)

    @classmethod
    def view(cls, name: str, **options) -> View:
        """View on this model with `options` applied through the filter methods."""
        return View(cls, name=name).with_options(**options)

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready payload including the type field."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        data[self.model_type_key] = self.model_type_name()
        return data


class ModelProxy:
    """
    A model bound to a different database.

    Everything views need from a model is forwarded to the wrapped class,
    with this proxy's database used for queries, lookups and design syncs.
    """

    def __init__(self, model: type, database):
        self.model = model
        self.database = database

    def __repr__(self) -> str:
        return f"ModelProxy({self.model.__name__}, {self.database!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModelProxy):
            return NotImplemented
        return self.model is other.model and self.database is other.database

    def __hash__(self) -> int:
        return hash((self.model, id(self.database)))

    @property
    def model_type_key(self) -> str:
        return self.model.model_type_key

    def model_type_name(self) -> str:
        return self.model.model_type_name()

    def design_doc(self) -> DesignDoc:
        return self.model.design_doc()

    def save_design_doc(self, database=None) -> Dict[str, Any]:
        return self.model.save_design_doc(database or self.database)

    def build_from_database(self, raw: Dict[str, Any]):
        return self.model.build_from_database(raw)

    def get(self, doc_id: Optional[str], database=None):
        return self.model.get(doc_id, database=database or self.database)

    def view(self, name: str, **options) -> View:
        return View(self, name=name).with_options(**options)
