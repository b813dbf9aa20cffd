"""E2E tests for snapshot caching against a live service."""

from pdfdancer import PDFDancer, TextObjectRef
from tests.e2e import _require_env, _require_env_and_fixture
from tests.e2e.pdf_assertions import PDFAssertions


def test_document_snapshot_matches_page_snapshots():
    base_url, token, pdf_path = _require_env_and_fixture("Showcase.pdf")

    with PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        document = pdf.get_document_snapshot()
        assert document.page_count == len(document.pages)

        for index, page in enumerate(document.pages):
            assert pdf.get_page_snapshot(index) is page

        filtered = pdf.get_document_snapshot("paragraph")
        assert filtered is pdf.get_document_snapshot("PARAGRAPH")


def test_typed_snapshot_contains_only_text():
    base_url, token, pdf_path = _require_env_and_fixture("Showcase.pdf")

    with PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        snapshot = pdf.get_typed_page_snapshot(0, TextObjectRef, "PARAGRAPH")
        assert snapshot.elements
        assert all(isinstance(element, TextObjectRef) for element in snapshot.elements)


def test_page_operations_refresh_snapshot():
    base_url, token = _require_env()

    with PDFDancer.new(token=token, base_url=base_url, initial_page_count=2) as pdf:
        assert pdf.get_document_snapshot().page_count == 2

        pdf.new_page()
        assert pdf.get_document_snapshot().page_count == 3

        assert pdf.delete_page(0)
        assert pdf.get_document_snapshot().page_count == 2

        assert pdf.move_page(1, 0)
        PDFAssertions(pdf).assert_number_of_pages(2)
