"""SequenceService: counter rows and yearly document numbers."""

from property_kernel.services.sequence_service import SequenceService


def test_first_value_is_one(session):
    sequences = SequenceService(session)

    assert sequences.current_value("invoices") is None
    assert sequences.next_value("invoices") == 1
    assert sequences.current_value("invoices") == 1


def test_sequences_are_independent(session):
    sequences = SequenceService(session)
    sequences.next_value("a")
    sequences.next_value("a")

    assert sequences.next_value("b") == 1
    assert sequences.next_value("a") == 3


def test_document_numbers_restart_each_year(session):
    sequences = SequenceService(session)

    assert sequences.next_document_number("CHK", 2026) == "CHK-2026-0001"
    assert sequences.next_document_number("CHK", 2026) == "CHK-2026-0002"
    assert sequences.next_document_number("CHK", 2027) == "CHK-2027-0001"
    assert sequences.next_document_number("REF", 2026, width=6) == "REF-2026-000001"


def test_rollback_returns_the_value(session):
    sequences = SequenceService(session)
    sequences.next_value("pdc")
    session.commit()

    sequences.next_value("pdc")
    session.rollback()

    assert sequences.next_value("pdc") == 2
