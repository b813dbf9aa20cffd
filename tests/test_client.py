"""
Tests for PDFDancer selection and mutation against a mocked HTTP session
"""
from unittest.mock import Mock, patch

import pytest
import requests

from pdfdancer import PDFDancer
from pdfdancer.exceptions import HttpClientException, ValidationException
from pdfdancer.models import (
    ObjectRef, ObjectType, PageRef, Position, ReflowPreset, TemplateReplacement, FlipDirection, Color
)
from pdfdancer.retry import RetryConfig
from pdfdancer.types import ImageObject, ParagraphObject, TextLineObject, PathObject, FormFieldObject

BASE_URL = "http://localhost:8080"


def _response(status_code=200, json_data=None, text="", content=None):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.headers = {}
    response.text = text
    response.content = content if content is not None else text.encode("utf-8")
    response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    return response


def _position(page_index, x=10.0, y=20.0):
    return {"pageIndex": page_index, "boundingRect": {"x": x, "y": y, "width": 100.0, "height": 12.0}}


def _page(page_index):
    """A page body with one paragraph, one text line and one image."""
    return {
        "pageRef": {"internalId": f"PAGE-{page_index}", "type": "PAGE", "position": {"pageIndex": page_index},
                    "pageSize": {"width": 612.0, "height": 792.0}, "orientation": "PORTRAIT"},
        "elements": [
            {"internalId": f"P-{page_index}", "objectRefType": "PARAGRAPH", "position": _position(page_index),
             "text": f"Paragraph on page {page_index}"},
            {"internalId": f"L-{page_index}", "type": "TEXT_LINE", "position": _position(page_index),
             "text": f"Line on page {page_index}"},
            {"internalId": f"IMG-{page_index}", "type": "IMAGE", "position": _position(page_index, 300, 400)},
        ],
    }


def _typed_page(page_index, kind):
    page = _page(page_index)
    page["elements"] = [e for e in page["elements"] if e.get("type", e.get("objectRefType")) == kind]
    return page


def _form_page(page_index, form_type):
    fields = {
        "TEXT_FIELD": [{"internalId": "F-1", "type": "FORM_FIELD", "name": "firstName", "value": "Jane",
                        "position": _position(page_index)}],
        "CHECKBOX": [{"internalId": "F-2", "objectRefType": "FORM_FIELD", "name": "subscribe", "value": False,
                      "position": _position(page_index)}],
    }
    return {"pageRef": None, "elements": fields.get(form_type, [])}


class FakeService:
    """Answers PDFDancer requests for a two-page document and records them."""

    def __init__(self):
        self.requests = []
        self.overrides = {}

    def __call__(self, method, url, **kwargs):
        path = url[len(BASE_URL):]
        params = kwargs.get("params") or {}
        self.requests.append((method, path, params, kwargs.get("json")))

        if (method, path) in self.overrides:
            return self.overrides[(method, path)]
        if path == "/session/create":
            return _response(text="session-1")
        types = params.get("types")
        if path == "/pdf/document/snapshot":
            pages = [self._page_body(i, types) for i in range(2)]
            return _response(json_data={"pageCount": 2, "fonts": [], "pages": pages})
        if path.startswith("/pdf/page/") and path.endswith("/snapshot"):
            page_index = int(path.split("/")[3])
            return _response(json_data=self._page_body(page_index, types))
        raise AssertionError(f"Unexpected request {method} {path}")

    @staticmethod
    def _page_body(page_index, types):
        if types in ("PARAGRAPH", "TEXT_LINE"):
            return _typed_page(page_index, types)
        if types in ("TEXT_FIELD", "CHECKBOX", "RADIO_BUTTON", "DROPDOWN", "BUTTON"):
            return _form_page(page_index, types)
        return _page(page_index)

    def count(self, method, path, params=None):
        return sum(1 for r in self.requests
                   if r[0] == method and r[1] == path and (params is None or r[2] == params))


@pytest.fixture
def service():
    return FakeService()


@pytest.fixture
def pdf(service):
    with patch("pdfdancer.pdfdancer_v1.requests.Session") as mock_session_class:
        mock_session = Mock()
        mock_session.request.side_effect = service
        mock_session_class.return_value = mock_session
        client = PDFDancer.open(b"%PDF-1.7 fake", token="test-token", base_url=BASE_URL,
                                retry_config=RetryConfig.no_retry())
        yield client


class TestSessionSetup:

    def test_missing_token_is_rejected(self, monkeypatch):
        monkeypatch.delenv("PDFDANCER_TOKEN", raising=False)
        with pytest.raises(ValidationException):
            PDFDancer.open(b"%PDF-1.7 fake", base_url=BASE_URL)

    def test_session_is_created_on_open(self, pdf, service):
        assert pdf._session_id == "session-1"
        assert service.requests[0][1] == "/session/create"

    def test_base_url_falls_back_to_environment(self, monkeypatch):
        monkeypatch.setenv("PDFDANCER_BASE_URL", " https://example.test ")
        assert PDFDancer._resolve_base_url(None) == "https://example.test"
        monkeypatch.delenv("PDFDANCER_BASE_URL")
        assert PDFDancer._resolve_base_url(None) == "https://api.pdfdancer.com"


class TestSnapshots:

    def test_document_snapshot_is_cached(self, pdf, service):
        first = pdf.get_document_snapshot()
        second = pdf.get_document_snapshot()

        assert first is second
        assert first.page_count == 2
        assert service.count("GET", "/pdf/document/snapshot") == 1

    def test_types_filter_is_sent_as_query_parameter(self, pdf, service):
        pdf.get_page_snapshot(1, "image")
        method, path, params, _ = service.requests[-1]

        assert (method, path, params) == ("GET", "/pdf/page/1/snapshot", {"types": "image"})

    def test_blank_types_filter_sends_no_parameter(self, pdf, service):
        pdf.get_page_snapshot(0, "  ")
        assert service.requests[-1][2] == {}

    def test_page_served_from_document_snapshot(self, pdf, service):
        pdf.get_document_snapshot()
        page = pdf.get_page_snapshot(1)

        assert page.page_ref.internal_id == "PAGE-1"
        assert service.count("GET", "/pdf/page/1/snapshot") == 0

    def test_negative_page_index_is_rejected(self, pdf):
        with pytest.raises(ValidationException):
            pdf.get_page_snapshot(-1)


class TestSelectors:

    def test_select_paragraphs_uses_typed_snapshot(self, pdf, service):
        paragraphs = pdf.select_paragraphs()

        assert [p.internal_id for p in paragraphs] == ["P-0", "P-1"]
        assert all(isinstance(p, ParagraphObject) for p in paragraphs)
        assert service.requests[-1][2] == {"types": "PARAGRAPH"}

    def test_page_selectors_use_page_snapshot(self, pdf, service):
        page = pdf.page(1)
        lines = page.select_text_lines()
        images = page.select_images()

        assert [line.text for line in lines] == ["Line on page 1"]
        assert isinstance(lines[0], TextLineObject)
        assert [image.internal_id for image in images] == ["IMG-1"]
        assert isinstance(images[0], ImageObject)

    def test_paragraph_prefix_selection(self, pdf):
        matches = pdf.page(0).select_paragraphs_starting_with("paragraph on")
        assert [p.internal_id for p in matches] == ["P-0"]

    def test_select_images_at_point(self, pdf):
        assert [i.internal_id for i in pdf.page(0).select_images_at(350, 405)] == ["IMG-0"]
        assert pdf.page(0).select_images_at(5, 5) == []

    def test_select_form_fields_narrows_kind(self, pdf, service):
        fields = pdf.page(0).select_form_fields()

        assert [(f.name, f.object_type) for f in fields] == [
            ("firstName", ObjectType.TEXT_FIELD),
            ("subscribe", ObjectType.CHECK_BOX),
        ]
        assert fields[1].value == "False"

    def test_select_form_fields_by_name(self, pdf):
        fields = pdf.select_form_fields_by_name("subscribe")
        assert [f.internal_id for f in fields] == ["F-2", "F-2"]

    def test_select_elements_in_document_order(self, pdf):
        ids = [e.internal_id for e in pdf.select_elements()]
        assert ids == ["P-0", "L-0", "IMG-0", "P-1", "L-1", "IMG-1"]

    def test_pages(self, pdf):
        pages = pdf.pages()
        assert [p.page_index for p in pages] == [0, 1]
        assert pages[0].page_size.width == 612.0

    def test_page_ref_without_position_keeps_requested_index(self, pdf, service):
        body = _page(1)
        del body["pageRef"]["position"]
        service.overrides[("GET", "/pdf/page/1/snapshot")] = _response(json_data=body)

        page = pdf.page(1)

        assert page.page_index == 1
        assert page.position.page_index == 1
        assert page.internal_id == "PAGE-1"
        assert [i.internal_id for i in page.select_images()] == ["IMG-1"]
        assert service.count("GET", "/pdf/document/snapshot") == 0

    def test_pages_without_ref_position_use_list_order(self, pdf, service):
        pages = [_page(0), _page(1)]
        for body in pages:
            del body["pageRef"]["position"]
        service.overrides[("GET", "/pdf/document/snapshot")] = _response(
            json_data={"pageCount": 2, "fonts": [], "pages": pages})

        result = pdf.pages()

        assert [p.page_index for p in result] == [0, 1]
        assert [i.internal_id for i in result[1].select_images()] == ["IMG-1"]

    def test_mixed_objects_skip_page_refs(self, pdf):
        refs = [
            PageRef("PAGE-0", Position.at_page(0), ObjectType.PAGE),
            ObjectRef("IMG-0", Position.at_page(0), ObjectType.IMAGE),
        ]

        objects = pdf._to_mixed_objects(refs)

        assert [type(o) for o in objects] == [ImageObject]
        assert objects[0].object_ref() is refs[1]

    def test_paths_at_point_use_find_endpoint(self, pdf, service):
        service.overrides[("POST", "/pdf/find")] = _response(json_data=[
            {"internalId": "PATH-7", "type": "PATH", "position": _position(0)}
        ])

        paths = pdf.page(0).select_paths_at(15, 25)

        assert [p.internal_id for p in paths] == ["PATH-7"]
        assert isinstance(paths[0], PathObject)
        request_body = service.requests[-1][3]
        assert request_body["objectType"] == "PATH"
        assert request_body["position"]["boundingRect"] == {"x": 15, "y": 25, "width": 0, "height": 0}


class TestMutationsInvalidateSnapshots:

    def _warm(self, pdf):
        pdf.get_document_snapshot()
        return pdf

    def test_successful_delete_invalidates(self, pdf, service):
        service.overrides[("DELETE", "/pdf/delete")] = _response(json_data=True)
        image = self._warm(pdf).page(0).select_images()[0]

        with patch.object(pdf._snapshot_cache, "invalidate", wraps=pdf._snapshot_cache.invalidate) as invalidate:
            assert image.delete() is True
        invalidate.assert_called_once_with()

        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot") == 2

    def test_failed_delete_keeps_cache(self, pdf, service):
        service.overrides[("DELETE", "/pdf/delete")] = _response(json_data=False)
        image = self._warm(pdf).page(0).select_images()[0]

        assert image.delete() is False
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot") == 1

    def test_http_error_keeps_cache(self, pdf, service):
        service.overrides[("PUT", "/pdf/move")] = _response(500, json_data={"message": "boom"}, text="boom")
        image = self._warm(pdf).page(0).select_images()[0]

        with pytest.raises(HttpClientException):
            image.move_to(1, 2)
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot") == 1

    def test_move_sends_new_position(self, pdf, service):
        service.overrides[("PUT", "/pdf/move")] = _response(json_data=True)
        image = pdf.page(0).select_images()[0]

        assert image.move_to(50, 60)
        body = service.requests[-1][3]
        assert body["objectRef"]["internalId"] == "IMG-0"
        assert body["newPosition"]["boundingRect"]["x"] == 50

    def test_modify_paragraph_invalidates_on_success_only(self, pdf, service):
        paragraph = self._warm(pdf).select_paragraphs()[0]

        service.overrides[("PUT", "/pdf/text/paragraph")] = _response(
            json_data={"commandName": "ModifyParagraph", "elementId": "P-0", "success": False,
                       "message": "font not encodable"})
        result = paragraph.set_text("Updated")
        assert result.success is False
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot", {}) == 1

        service.overrides[("PUT", "/pdf/text/paragraph")] = _response(
            json_data={"commandName": "ModifyParagraph", "elementId": "P-0", "success": True})
        assert paragraph.set_text("Updated").success is True
        assert service.requests[-1][3]["newTextLine"] == "Updated"
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot", {}) == 2

    def test_form_field_fill(self, pdf, service):
        service.overrides[("PUT", "/pdf/modify/formField")] = _response(json_data=True)
        field = pdf.select_form_fields_by_name("firstName")[0]

        assert field.fill("John")
        assert field.value == "John"
        assert service.requests[-1][3]["value"] == "John"

    def test_form_field_fill_sends_decoded_discriminator(self, pdf, service):
        service.overrides[("PUT", "/pdf/modify/formField")] = _response(json_data=True)
        field = pdf.page(0).select_form_fields()[0]
        assert isinstance(field, FormFieldObject)
        assert field.object_type == ObjectType.TEXT_FIELD

        assert field.fill("John")

        ref = service.requests[-1][3]["ref"]
        assert ref["internalId"] == "F-1"
        assert ref["type"] == "TEXT_FIELD"
        assert ref["objectRefType"] == "FORM_FIELD"

    def test_form_field_ref_carries_current_value(self, pdf, service):
        service.overrides[("PUT", "/pdf/modify/formField")] = _response(json_data=True)
        field = pdf.page(0).select_form_fields()[0]

        field.fill("John")

        assert field.object_ref().value == "John"
        assert field.object_ref().object_ref_type == ObjectType.FORM_FIELD

    def test_mutations_send_decoded_ref(self, pdf, service):
        service.overrides[("DELETE", "/pdf/delete")] = _response(json_data=True)
        service.overrides[("PUT", "/pdf/move")] = _response(json_data=True)
        decoded = pdf.get_page_snapshot(0).elements[2]
        image = pdf.page(0).select_images()[0]

        assert image.object_ref() is decoded
        image.move_to(1, 2)
        assert service.requests[-1][3]["objectRef"] == decoded.to_dict()
        image.delete()
        assert service.requests[-1][3]["objectRef"] == decoded.to_dict()

    def test_move_page(self, pdf, service):
        service.overrides[("PUT", "/pdf/page/move")] = _response(json_data=True)
        page = pdf.page(1)

        assert page.move_to(0)
        assert page.page_index == 0
        assert service.requests[-1][3] == {"fromPageIndex": 1, "toPageIndex": 0}

    def test_move_page_rejects_negative_index(self, pdf):
        with pytest.raises(ValidationException):
            pdf.move_page(0, -1)

    def test_delete_page(self, pdf, service):
        service.overrides[("DELETE", "/pdf/page/delete")] = _response(json_data=True)

        assert pdf.delete_page(1)
        assert service.requests[-1][3]["internalId"] == "PAGE-1"

    def test_new_page_invalidates(self, pdf, service):
        service.overrides[("POST", "/pdf/page/add")] = _response(json_data={
            "internalId": "PAGE-2", "type": "PAGE", "position": {"pageIndex": 2}
        })
        self._warm(pdf)

        page_ref = pdf.new_page()

        assert page_ref.position.page_index == 2
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot", {}) == 2

    def test_redact(self, pdf, service):
        service.overrides[("POST", "/pdf/redact")] = _response(json_data={"count": 2, "success": True,
                                                                           "warnings": []})
        paragraphs = self._warm(pdf).select_paragraphs()

        result = pdf.redact(paragraphs, replacement="XXX")

        assert result.count == 2
        body = service.requests[-1][3]
        assert [t["id"] for t in body["targets"]] == ["P-0", "P-1"]
        assert body["defaultReplacement"] == "XXX"
        assert body["placeholderColor"] == {"red": 0, "green": 0, "blue": 0, "alpha": 255}
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot", {}) == 2

    def test_redact_requires_objects(self, pdf):
        with pytest.raises(ValidationException):
            pdf.redact([])

    def test_replace_templates_invalidates_on_success(self, pdf, service):
        service.overrides[("PUT", "/pdf/template/replace")] = _response(json_data=True)
        self._warm(pdf)

        with patch.object(pdf._snapshot_cache, "invalidate", wraps=pdf._snapshot_cache.invalidate) as invalidate:
            assert pdf.replace_templates(
                [TemplateReplacement("{{NAME}}", "Jane Smith", color=Color(255, 0, 0))],
                reflow_preset=ReflowPreset.BEST_EFFORT,
            ) is True
        invalidate.assert_called_once_with()

        assert service.requests[-1][3] == {
            "replacements": [{"placeholder": "{{NAME}}", "text": "Jane Smith",
                              "color": {"red": 255, "green": 0, "blue": 0, "alpha": 255}}],
            "reflowPreset": "BEST_EFFORT",
        }
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot", {}) == 2

    def test_failed_replace_templates_keeps_cache(self, pdf, service):
        service.overrides[("PUT", "/pdf/template/replace")] = _response(json_data=False)
        self._warm(pdf)

        assert pdf.replace_templates([TemplateReplacement("{{MISSING}}", "x")]) is False
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot", {}) == 1

    def test_replace_templates_on_page(self, pdf, service):
        service.overrides[("PUT", "/pdf/template/replace")] = _response(json_data=True)

        assert pdf.page(1).replace_templates([TemplateReplacement("{{NUM}}", "ONE")])
        assert service.requests[-1][3]["pageIndex"] == 1

    def test_replace_templates_requires_replacements(self, pdf):
        with pytest.raises(ValidationException):
            pdf.replace_templates([])

    def test_image_transform_invalidates_on_success(self, pdf, service):
        service.overrides[("PUT", "/pdf/image/transform")] = _response(json_data=True)
        image = self._warm(pdf).page(0).select_images()[0]

        with patch.object(pdf._snapshot_cache, "invalidate", wraps=pdf._snapshot_cache.invalidate) as invalidate:
            assert image.scale(0.5) is True
        invalidate.assert_called_once_with()

        body = service.requests[-1][3]
        assert body == {"objectRef": image.object_ref().to_dict(), "transformType": "SCALE", "scaleFactor": 0.5}
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot", {}) == 2

    def test_failed_image_transform_keeps_cache(self, pdf, service):
        service.overrides[("PUT", "/pdf/image/transform")] = _response(json_data=False)
        image = self._warm(pdf).page(0).select_images()[0]

        assert image.flip(FlipDirection.VERTICAL) is False
        assert service.requests[-1][3]["flipDirection"] == "VERTICAL"
        pdf.get_document_snapshot()
        assert service.count("GET", "/pdf/document/snapshot", {}) == 1

    def test_image_crop_sends_every_edge(self, pdf, service):
        service.overrides[("PUT", "/pdf/image/transform")] = _response(json_data=True)
        image = pdf.page(0).select_images()[0]

        assert image.crop(left=10, bottom=5)
        body = service.requests[-1][3]
        assert (body["cropLeft"], body["cropTop"], body["cropRight"], body["cropBottom"]) == (10, 0, 0, 5)


class TestDocumentOperations:

    def test_get_bytes_and_save(self, pdf, service, tmp_path):
        service.overrides[("GET", "/session/session-1/pdf")] = _response(content=b"%PDF-1.7 result")

        assert pdf.get_bytes() == b"%PDF-1.7 result"
        target = tmp_path / "out" / "result.pdf"
        pdf.save(target)
        assert target.read_bytes() == b"%PDF-1.7 result"

    def test_unparseable_body_raises_http_client_exception(self, pdf, service):
        broken = _response(text="<html>")
        broken.json.side_effect = ValueError("not json")
        service.overrides[("GET", "/pdf/document/snapshot")] = broken

        with pytest.raises(HttpClientException):
            pdf.get_document_snapshot()

    def test_context_manager_closes_session(self, pdf):
        with pdf as client:
            assert client is pdf
        pdf._session.close.assert_called_once_with()
