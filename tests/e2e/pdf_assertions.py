import tempfile

import pytest

from pdfdancer import PDFDancer, Color


class PDFAssertions(object):
    """Re-opens the saved state of a document and checks it through a fresh session."""

    # noinspection PyProtectedMember
    def __init__(self, pdf_dancer: PDFDancer):
        token = pdf_dancer._token
        base_url = pdf_dancer._base_url
        with tempfile.NamedTemporaryFile(delete=False, suffix=".pdf") as temp_file:
            pdf_dancer.save(temp_file.name)
        self.pdf = PDFDancer.open(temp_file.name, token=token, base_url=base_url)

    def assert_textline_exists(self, text, page=0):
        lines = self.pdf.page(page).select_text_lines_starting_with(text)
        assert len(lines) >= 1, f"Expected a text line starting with '{text}' on page {page}"
        return self

    def assert_textline_does_not_exist(self, text, page=0):
        lines = self.pdf.page(page).select_text_lines_starting_with(text)
        assert len(lines) == 0, f"Expected no text line starting with '{text}' but got {len(lines)}"
        return self

    def assert_paragraph_exists(self, text, page=0):
        paragraphs = self.pdf.page(page).select_paragraphs_starting_with(text)
        assert len(paragraphs) >= 1, f"Expected a paragraph starting with '{text}' on page {page}"
        return self

    def assert_textline_has_color(self, text, color: Color, page=0):
        lines = self.pdf.page(page).select_text_lines_starting_with(text)
        assert len(lines) == 1, f"Expected 1 line but got {len(lines)}"
        assert color == lines[0].color, f"{color} != {lines[0].color}"
        return self

    def assert_textline_is_at(self, text, x, y, page=0):
        lines = self.pdf.page(page).select_text_lines_starting_with(text)
        assert len(lines) == 1, f"Expected 1 line but got {len(lines)}"
        position = lines[0].position
        assert position.x() == pytest.approx(x, abs=1e-3), f"{x} != {position.x()}"
        assert position.y() == pytest.approx(y, abs=1e-3), f"{y} != {position.y()}"

        by_position = self.pdf.page(page).select_text_lines_at(x, y)
        assert lines[0] in by_position
        return self

    def assert_form_field_has_value(self, name, value, page=0):
        fields = self.pdf.page(page).select_form_fields_by_name(name)
        assert len(fields) == 1, f"Expected 1 form field named {name} but got {len(fields)}"
        assert fields[0].value == value, f"Expected {value} but got {fields[0].value}"
        return self

    def assert_number_of_pages(self, count):
        assert len(self.pdf.pages()) == count, f"Expected {count} pages but got {len(self.pdf.pages())}"
        return self
