"""HTTP client for the CouchDB endpoints used by views and models."""

import json
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import requests

from couchmodel.config.loader import get_connection_settings, load_config
from couchmodel.errors import DocumentNotFound, RecoverableNotFound, StoreError
from couchmodel.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

# View options CouchDB expects as JSON values rather than plain strings
JSON_PARAMS = ("key", "keys", "startkey", "endkey")


def encode_view_params(params: Dict[str, Any]) -> Dict[str, str]:
    """
    Encode view query options as CouchDB query-string values.

    Key-like options are JSON encoded (None becomes `null`, a valid key),
    booleans become `true`/`false` and everything else is passed through as
    a string. Other None values are dropped.
    """
    encoded: Dict[str, str] = {}
    for name, value in params.items():
        if name in JSON_PARAMS:
            encoded[name] = json.dumps(value)
        elif value is None:
            continue
        elif isinstance(value, bool):
            encoded[name] = "true" if value else "false"
        else:
            encoded[name] = str(value)
    return encoded


def _same_design(current: Dict[str, Any], document: Dict[str, Any]) -> bool:
    return current.get("views") == document.get("views") and current.get("language") == document.get("language")


class CouchDatabase:
    """A single CouchDB database reached over HTTP."""

    def __init__(
        self,
        server_url: str,
        name: str,
        *,
        timeout: float = 20,
        user_agent: str = "couchmodel/0.3",
        auth: Optional[Tuple[str, str]] = None,
        session: Optional[requests.Session] = None,
    ):
        if not name:
            raise ValueError("Database name is required")
        self.server_url = server_url.rstrip("/")
        self.name = name
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()
        if auth:
            self.session.auth = auth

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None, name: Optional[str] = None) -> "CouchDatabase":
        """
        Build a client from the `couchdb` section of the YAML config.

        A top-level `log_level` is applied to the couchmodel loggers.
        """
        if config is None:
            config = load_config()
        if config.get("log_level"):
            configure_logging(config["log_level"])
        settings = get_connection_settings(config)
        db_name = name or settings.get("database")
        if not db_name:
            raise ValueError("Config 'couchdb.database' is required when no name is given")
        auth = None
        if settings.get("username"):
            auth = (settings["username"], settings["password"])
        return cls(
            settings["url"],
            db_name,
            timeout=settings["timeout_seconds"],
            user_agent=settings["user_agent"],
            auth=auth,
        )

    def __repr__(self) -> str:
        return f"CouchDatabase({self.server_url!r}, {self.name!r})"

    @property
    def uri(self) -> str:
        return f"{self.server_url}/{quote(self.name, safe='')}"

    def _get_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.uri}/{path}"
        logger.debug(f"{method} {url} {kwargs.get('params') or ''}")
        try:
            return self.session.request(
                method,
                url,
                headers=self._get_headers(),
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise StoreError(f"Request to {url} failed: {e}") from e

    @staticmethod
    def _error_for(response: requests.Response, message: str, not_found=StoreError) -> StoreError:
        try:
            body = response.json()
        except ValueError:
            body = response.text
        error_cls = not_found if response.status_code == 404 else StoreError
        return error_cls(f"{message}: HTTP {response.status_code} {body}", status_code=response.status_code, body=body)

    def view(self, design_id: str, view_name: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Query a view of a design document.

        Args:
            design_id: Design document id, e.g. `_design/Meeting`
            view_name: Name of the view inside the design document
            params: View options (key, startkey, limit, reduce, ...)

        Returns:
            Raw JSON result with `rows` and, where applicable, `offset` and `total_rows`

        Raises:
            RecoverableNotFound: The design document or view is missing
            StoreError: Any other failure
        """
        path = f"{quote(design_id, safe='/')}/_view/{quote(view_name, safe='')}"
        response = self._request("GET", path, params=encode_view_params(params or {}))
        if not response.ok:
            raise self._error_for(response, f"View {design_id}/{view_name} failed", not_found=RecoverableNotFound)
        return response.json()

    def get(self, doc_id: str) -> Dict[str, Any]:
        """Fetch a single document by id."""
        response = self._request("GET", quote(doc_id, safe="/"))
        if not response.ok:
            raise self._error_for(response, f"Document {doc_id} could not be loaded", not_found=DocumentNotFound)
        return response.json()

    def save_design_doc(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create or update a design document.

        The current revision is looked up first. When the stored `views` and
        `language` already match, nothing is written. A 409 conflict (another
        writer got there first) re-reads the document and retries the PUT
        once unless the stored copy already matches.

        Returns:
            The stored design document as known after the call
        """
        doc_id = document["_id"]
        response = None
        for _ in range(2):
            current = self._current_design_doc(doc_id)
            if current is not None and _same_design(current, document):
                logger.debug(f"Design document {doc_id} already up to date on {self.name}")
                return current

            payload = dict(document)
            if current is not None:
                payload["_rev"] = current["_rev"]
            response = self._request("PUT", quote(doc_id, safe="/"), data=json.dumps(payload))
            if response.ok:
                payload["_rev"] = response.json().get("rev")
                logger.info(f"Saved design document {doc_id} on {self.name} (rev {payload['_rev']})")
                return payload
            if response.status_code != 409:
                break
            logger.warning(f"Conflict saving {doc_id} on {self.name}, re-reading current revision")

        raise self._error_for(response, f"Design document {doc_id} could not be saved")

    def _current_design_doc(self, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.get(doc_id)
        except DocumentNotFound:
            return None
