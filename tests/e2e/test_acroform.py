from pdfdancer import PDFDancer, ObjectType
from tests.e2e import _require_env_and_fixture
from tests.e2e.pdf_assertions import PDFAssertions


def test_select_form_fields():
    base_url, token, pdf_path = _require_env_and_fixture('mixed-form-types.pdf')
    with PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        form_fields = pdf.select_form_fields()
        assert len(form_fields) == 10
        kinds = {field.object_type for field in form_fields}
        assert {ObjectType.TEXT_FIELD, ObjectType.CHECK_BOX, ObjectType.RADIO_BUTTON} <= kinds

        all_forms_at_origin = True
        for field in form_fields:
            if field.position.x() != 0.0 or field.position.y() != 0.0:
                all_forms_at_origin = False
        assert not all_forms_at_origin, "All forms should not be at coordinates (0,0)"

        first_page_fields = pdf.page(0).select_form_fields()
        assert len(first_page_fields) == 10

        radio = pdf.page(0).select_form_fields_at(290, 460)
        assert len(radio) == 1
        assert radio[0].object_type == ObjectType.RADIO_BUTTON


def test_delete_form_field():
    base_url, token, pdf_path = _require_env_and_fixture('mixed-form-types.pdf')
    with PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        form_fields = pdf.select_form_fields()
        assert len(form_fields) == 10
        to_delete = form_fields[5]
        assert to_delete.delete()

        remaining = pdf.select_form_fields()
        assert len(remaining) == 9
        assert to_delete.internal_id not in {field.internal_id for field in remaining}


def test_move_form_field():
    base_url, token, pdf_path = _require_env_and_fixture('mixed-form-types.pdf')
    with PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        form_fields = pdf.page(0).select_form_fields_at(290, 460)
        assert len(form_fields) == 1
        field = form_fields[0]
        assert abs(field.position.x() - 280) < 0.1
        assert abs(field.position.y() - 455) < 0.1

        assert field.move_to(30, 40)

        assert pdf.page(0).select_form_fields_at(290, 460) == []
        moved = pdf.page(0).select_form_fields_at(30, 40)
        assert len(moved) == 1
        assert moved[0].internal_id == field.internal_id


def test_fill_form_field():
    base_url, token, pdf_path = _require_env_and_fixture('mixed-form-types.pdf')
    with PDFDancer.open(pdf_path, token=token, base_url=base_url) as pdf:
        form_fields = pdf.select_form_fields_by_name("firstName")
        assert len(form_fields) == 1
        field = form_fields[0]
        assert field.name == "firstName"
        assert field.value is None
        assert field.object_type == ObjectType.TEXT_FIELD

        assert field.fill("Donald Duck")

        refreshed = pdf.select_form_fields_by_name("firstName")
        assert refreshed[0].value == "Donald Duck"
        PDFAssertions(pdf).assert_form_field_has_value("firstName", "Donald Duck")
