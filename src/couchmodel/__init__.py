"""couchmodel: chainable CouchDB view queries for pydantic document models."""

from couchmodel.database.couch_client import CouchDatabase
from couchmodel.designs.design_doc import DesignDoc, DesignRegistry, ViewDefinition, registry
from couchmodel.designs.generator import create_view
from couchmodel.designs.view import View
from couchmodel.designs.view_row import ViewRow
from couchmodel.errors import (
    ConfigurationError,
    CouchModelError,
    DocumentNotFound,
    RecoverableNotFound,
    StoreError,
    UnimplementedError,
    UsageError,
)
from couchmodel.model import Document, ModelProxy

__version__ = "0.3.0"

__all__ = [
    "ConfigurationError",
    "CouchDatabase",
    "CouchModelError",
    "DesignDoc",
    "DesignRegistry",
    "Document",
    "DocumentNotFound",
    "ModelProxy",
    "RecoverableNotFound",
    "StoreError",
    "UnimplementedError",
    "UsageError",
    "View",
    "ViewDefinition",
    "ViewRow",
    "create_view",
    "registry",
]
