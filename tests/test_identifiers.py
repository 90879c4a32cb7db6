"""
Tests for identifier generation.
"""

from proflow.services.identifiers import IdentifierPool, iter_identifiers, iter_node_identifiers
from conftest import ACTION_ID, CUE_ID, DOCUMENT_ID


class TestIdentifierPool:
    """Tests for IdentifierPool."""

    def test_new_is_upper_case_uuid(self):
        """Identifiers look like the ones ProPresenter writes."""
        value = IdentifierPool().new()
        assert value == value.upper()
        assert len(value) == 36

    def test_reserved_never_issued(self, template_document):
        """Reserved identifiers are known to the pool."""
        pool = IdentifierPool()
        pool.reserve_tree(template_document)
        assert DOCUMENT_ID in pool
        assert DOCUMENT_ID.lower() in pool
        issued = {pool.new() for _ in range(100)}
        assert not issued & set(iter_identifiers(template_document))
        assert len(issued) == 100


class TestIterIdentifiers:
    """Tests for identifier iteration."""

    def test_references_included(self, template_document):
        """Group references to cues are listed by iter_identifiers only."""
        references = list(iter_identifiers(template_document))
        own = list(iter_node_identifiers(template_document))
        assert references.count(CUE_ID) == 2
        assert own.count(CUE_ID) == 1
        assert ACTION_ID in own
