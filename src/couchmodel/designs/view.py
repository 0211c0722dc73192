"""
Chainable view queries.

A View is created from a model and a view name. Every filter method returns
a new View with a copy of the query, so a partially built query can be
reused safely:

    by_date = Meeting.view("by_date")
    upcoming = by_date.startkey("2024-01-01").limit(10)
    past = by_date.endkey("2024-01-01").descending()

Nothing is sent to the database until a result method (rows, all, first,
count, ...) is called. The raw response is then kept on that View instance
until `reset` is called.
"""

from typing import Any, Dict, Iterator, List, Optional

from couchmodel.designs.view_row import ViewRow
from couchmodel.errors import ConfigurationError, RecoverableNotFound, UnimplementedError, UsageError
from couchmodel.utils.logging import get_logger

logger = get_logger(__name__)

# Options that select where the request goes and are never sent to the store
LOCAL_OPTIONS = ("database", "proxy")

# Filters applied by `with_options`, in an order that satisfies their rules
FILTER_OPTIONS = (
    "key",
    "startkey",
    "endkey",
    "startkey_doc",
    "endkey_doc",
    "descending",
    "limit",
    "skip",
    "reduce",
    "group",
    "group_level",
    "include_docs",
    "database",
    "proxy",
)
FLAG_OPTIONS = ("descending", "reduce", "group", "include_docs")
OPTION_ALIASES = {"startkey_docid": "startkey_doc", "endkey_docid": "endkey_doc"}


def _doc_id(value: Any) -> str:
    """Id from either a raw id string or an object exposing `id`."""
    if isinstance(value, str):
        return value
    doc_id = getattr(value, "id", None)
    if doc_id is None:
        raise UsageError(f"Expected a document id or an object with an id, got {value!r}")
    return doc_id


class View:
    """
    Immutable query against a single view of a model's design document.

    The `query` argument is merged as is, without the filter rules; use the
    filter methods or `with_options` to build checked queries.
    """

    def __init__(self, parent, query: Optional[Dict[str, Any]] = None, name: Optional[str] = None):
        new_query = dict(query or {})
        proxy = new_query.pop("proxy", None)
        if isinstance(parent, View):
            self.model = proxy or parent.model
            self.name = parent.name
            self._query = dict(parent._query)
        elif hasattr(parent, "design_doc"):
            if not name:
                raise UsageError("Name must be provided for view to be initialized")
            self.model = proxy or parent
            self.name = str(name)
            self._query = {"reduce": False}
        else:
            raise TypeError("View cannot be initialized without a parent model or view")
        self._query.update(new_query)

        self._result: Optional[Dict[str, Any]] = None
        self._rows: Optional[List[ViewRow]] = None
        self._docs: Optional[List[Any]] = None

    def __repr__(self) -> str:
        return f"<View {self.name} on {self.model.model_type_name()} {self.query}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, View):
            return NotImplemented
        return (self.model, self.name, self._query) == (other.model, other.name, other._query)

    __hash__ = None  # type: ignore[assignment]

    @property
    def query(self) -> Dict[str, Any]:
        """Copy of the current query options."""
        return dict(self._query)

    @property
    def design_doc(self):
        return self.model.design_doc()

    @property
    def can_reduce(self) -> bool:
        return self.design_doc.can_reduce(self.name)

    # -- Result methods ------------------------------------------------------

    def rows(self) -> List[ViewRow]:
        """
        Rows of the result wrapped in ViewRow objects.

        Unlike the raw response this is an empty list when the response has
        no `rows` field (some grouped reduces).
        """
        if self._rows is None:
            result = self.execute()
            database = self.use_database()
            self._rows = [ViewRow(row, self.model, database) for row in result.get("rows") or []]
        return self._rows

    def all(self) -> List[Any]:
        """
        All documents the view can reach.

        Switches this view to include_docs first, dropping any cached result
        that was fetched without documents.
        """
        self._include_docs_in_place()
        return self.docs()

    def docs(self) -> List[Any]:
        """
        Documents for every row. Without include_docs each document is
        loaded with its own request.
        """
        if self._docs is None:
            self._docs = [row.doc for row in self.rows()]
        return self._docs

    def first(self):
        """
        First document. If this view has not been executed yet a copy
        limited to one row is queried instead.
        """
        docs = self.all() if self._result is not None else self.limit(1).all()
        return docs[0] if docs else None

    def last(self):
        """
        Last document, using a descending copy limited to one row when this
        view has not been executed yet.

        The start and end keys are not swapped, so with startkey/endkey set
        the descending query may not return what you expect. If in doubt,
        don't use this method.
        """
        docs = self.all() if self._result is not None else self.limit(1).descending().all()
        return docs[-1] if docs else None

    def count(self) -> int:
        """
        Number of entries in the view.

        Reducible views are reduced and the first value returned, which only
        counts documents if the reduce function does. Other views are
        queried with `limit(0)` and `total_rows` is returned.

        Raises:
            UsageError: If the group option is set
        """
        if self._query.get("group"):
            raise UsageError("View.count cannot be used with group options")
        if self.can_reduce:
            rows = self.reduce().rows()
            return rows[0].value if rows else 0
        return self.limit(0).total_rows()

    def is_empty(self) -> bool:
        """Loads every document. Use count or total_rows to avoid that."""
        return len(self.all()) == 0

    def __iter__(self) -> Iterator[Any]:
        return iter(self.all())

    def offset(self) -> Optional[int]:
        """Result offset; None when grouping."""
        return self.execute().get("offset")

    def total_rows(self) -> Optional[int]:
        """Total rows in the view; None when grouping."""
        return self.execute().get("total_rows")

    def keys(self) -> List[Any]:
        return [row.key for row in self.rows()]

    def values(self) -> List[Any]:
        return [row.value for row in self.rows()]

    def __getitem__(self, field: str) -> Any:
        """
        Raw result field, for older code written against the plain response:

            Meeting.view("all").limit(0)["total_rows"]
        """
        return self.execute().get(field)

    def info(self):
        """View information from the server. Not yet implemented."""
        raise UnimplementedError("View.info is not yet implemented")

    # -- Filter methods ------------------------------------------------------

    def key(self, value: Any) -> "View":
        """Entries whose key matches `value`. Not allowed with startkey or endkey."""
        if "startkey" in self._query or "endkey" in self._query:
            raise UsageError("View.key cannot be used when startkey or endkey have been set")
        return self._update_query(key=value)

    def startkey(self, value: Any) -> "View":
        """
        Entries from `value` onwards. With `descending`, start and end keys
        must be swapped by the caller. Not allowed with key.
        """
        if "key" in self._query:
            raise UsageError("View.startkey cannot be used when key has been set")
        return self._update_query(startkey=value)

    def startkey_doc(self, value: Any) -> "View":
        """Start from the given document (id string or object with an id)."""
        return self._update_query(startkey_docid=_doc_id(value))

    def endkey(self, value: Any) -> "View":
        """Entries up to `value`. Not allowed with key."""
        if "key" in self._query:
            raise UsageError("View.endkey cannot be used when key has been set")
        return self._update_query(endkey=value)

    def endkey_doc(self, value: Any) -> "View":
        """End at the given document (id string or object with an id)."""
        return self._update_query(endkey_docid=_doc_id(value))

    def descending(self) -> "View":
        return self._update_query(descending=True)

    def limit(self, value: int) -> "View":
        return self._update_query(limit=value)

    def skip(self, value: int = 0) -> "View":
        """Skip entries. Inefficient on large views; prefer startkey_doc."""
        return self._update_query(skip=value)

    def reduce(self) -> "View":
        """Use the view's reduce function. Fails if the view has none."""
        if not self.can_reduce:
            raise UsageError(f"Cannot reduce view {self.name} without a reduce function")
        return self._update_query(reduce=True)

    def group(self) -> "View":
        """Reduce to one row per distinct key. Requires reduce."""
        if not self._query.get("reduce"):
            raise UsageError("View.reduce must have been set before grouping is permitted")
        return self._update_query(group=True)

    def group_level(self, value: Any) -> "View":
        """Group array keys down to `value` elements. Implies group."""
        return self.group()._update_query(group_level=int(value))

    def include_docs(self) -> "View":
        return self._update_query()._include_docs_in_place()

    def database(self, value) -> "View":
        """Query `value` instead of the model's default database."""
        return self._update_query(database=value)

    def proxy(self, value) -> "View":
        """Use `value` (e.g. a ModelProxy) in place of the model from now on."""
        return self._update_query(proxy=value)

    def with_options(self, **options: Any) -> "View":
        """
        Apply several filters at once, e.g. `with_options(startkey="a", limit=5)`.

        Each option goes through its filter method so the usual rules apply.
        Flags (descending, reduce, group, include_docs) are enabled by a true
        value and left alone otherwise.

        Raises:
            UsageError: For unknown options or a forbidden combination
        """
        options = {OPTION_ALIASES.get(name, name): value for name, value in options.items()}
        unknown = sorted(set(options) - set(FILTER_OPTIONS))
        if unknown:
            raise UsageError(f"Unknown view options: {', '.join(unknown)}")

        view = self
        for name in FILTER_OPTIONS:
            if name not in options:
                continue
            if name in FLAG_OPTIONS:
                if options[name]:
                    view = getattr(view, name)()
            else:
                view = getattr(view, name)(options[name])
        return view

    def reset(self) -> None:
        """Forget cached results so the next result method queries again."""
        self._result = None
        self._rows = None
        self._docs = None

    # -- Execution -----------------------------------------------------------

    def use_database(self):
        return self._query.get("database") or self.model.database

    def request_params(self) -> Dict[str, Any]:
        """Query options as sent to the store."""
        params = {name: value for name, value in self._query.items() if name not in LOCAL_OPTIONS}
        # Servers reject reduce=false on views that have no reduce function
        if not self.can_reduce:
            params.pop("reduce", None)
        return params

    def execute(self) -> Dict[str, Any]:
        """
        Run the query unless a result is already cached.

        When the design document is missing on the database it is saved and
        the query retried once; a second failure is raised as is.

        Raises:
            ConfigurationError: If neither the query nor the model names a database
        """
        if self._result is not None:
            return self._result

        database = self.use_database()
        if database is None:
            raise ConfigurationError("Database must be defined in model or view")

        params = self.request_params()
        design_doc = self.design_doc
        logger.debug(f"Querying {design_doc.id}/{self.name} on {database!r} with {params}")
        try:
            result = design_doc.view_on(database, self.name, params)
        except RecoverableNotFound as e:
            logger.warning(f"View {design_doc.id}/{self.name} not found on {database!r}, saving design document: {e}")
            self.model.save_design_doc(database)
            result = design_doc.view_on(database, self.name, params)

        self._result = result
        return result

    def _include_docs_in_place(self) -> "View":
        if self._result is not None and not self._query.get("include_docs"):
            self.reset()
        self._query["include_docs"] = True
        return self

    def _update_query(self, **changes: Any) -> "View":
        return View(self, changes)
