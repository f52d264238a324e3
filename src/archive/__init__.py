"""Tarball retrieval and materialization."""

from .materialize import materialize
from .retrieval import retrieve_entries

__all__ = ["materialize", "retrieve_entries"]
