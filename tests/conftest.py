"""Pytest configuration and fixtures."""

import pytest

from couchmodel.designs.design_doc import registry

from fakes import FakeDatabase, Meeting


@pytest.fixture(autouse=True)
def clean_registry():
    """Give every test a fresh design registry and no default database."""
    registry.clear()
    Meeting.database = None
    yield
    registry.clear()
    Meeting.database = None


@pytest.fixture
def db():
    database = FakeDatabase()
    Meeting.database = database
    return database


@pytest.fixture
def meeting():
    """Meeting model with a reducible view (by_date) and a plain one (by_name)."""
    Meeting.view_by("by_date")
    Meeting.view_by("by_name", reduce=False)
    return Meeting
