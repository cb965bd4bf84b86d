"""Tests for the result correlator."""

from surge_diagnostics.core.correlator import ResultCorrelator
from surge_diagnostics.models.document import Document


class TestResultCorrelator:
    """Test staleness detection."""

    def test_unchanged_document_is_current(self, document: Document) -> None:
        correlator = ResultCorrelator()
        ticket = correlator.capture(document)
        assert correlator.is_current(document, ticket)

    def test_edit_makes_result_stale(self, document: Document) -> None:
        correlator = ResultCorrelator()
        ticket = correlator.capture(document)
        document.set_text("changed")
        assert not correlator.is_current(document, ticket)

    def test_close_makes_result_stale(self, document: Document) -> None:
        correlator = ResultCorrelator()
        ticket = correlator.capture(document)
        document.close()
        assert not correlator.is_current(document, ticket)

    def test_ticket_records_version(self, document: Document) -> None:
        document.set_text("a")
        ticket = ResultCorrelator().capture(document)
        assert ticket.version == 2
        assert ticket.uri == document.uri
