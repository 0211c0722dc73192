"""Design documents, view generation and chainable view queries.

Views are built on top of the in-memory design documents held by the
registry; `View.execute` saves a design document on demand when the server
reports it missing.
"""
