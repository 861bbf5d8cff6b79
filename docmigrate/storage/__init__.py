"""Storage backends for docmigrate.

The runner talks to the datastore only through the DocumentStore interface.
Two implementations ship with the package: an S3 bucket holding JSON
documents, and an in-memory store for tests and local tooling.
"""

from docmigrate.storage.base import DocumentStore
from docmigrate.storage.memory import InMemoryDocumentStore
from docmigrate.storage.s3 import S3DocumentStore

__all__ = ["DocumentStore", "InMemoryDocumentStore", "S3DocumentStore"]
