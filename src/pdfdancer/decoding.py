"""
Response decoding for the PDFDancer Python client.

The service marks every object reference with a kind discriminator. Depending on
the endpoint the discriminator is sent as ``type``, as ``objectRefType`` or as
both. :func:`reconcile_types` copies whichever one is present into the missing
one at any nesting depth, so the structural decoders below can dispatch on a
single field.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from .exceptions import MalformedShapeException, UnrecognizedVariantException
from .models import (
    ObjectRef, TextObjectRef, FormFieldRef, PageRef, ObjectType, Position, BoundingRect,
    ShapeType, PositionMode, Color, TextStatus, FontRecommendation, FontType, PageSize,
    Orientation, PageSnapshot, DocumentSnapshot, TypedPageSnapshot, TypedDocumentSnapshot, TEXT_TYPES
)

TYPE_FIELD = "type"
OBJECT_REF_TYPE_FIELD = "objectRefType"

_NUMBER = (int, float)


def reconcile_types(node: Any) -> Any:
    """
    Make the kind discriminator available under both ``type`` and ``objectRefType``.

    Works in place on a parsed JSON tree and returns it. Objects that already carry
    both fields keep their values, even when the two disagree. Objects carrying
    neither are left alone.
    """
    if isinstance(node, dict):
        if TYPE_FIELD not in node and OBJECT_REF_TYPE_FIELD in node:
            node[TYPE_FIELD] = node[OBJECT_REF_TYPE_FIELD]
        elif OBJECT_REF_TYPE_FIELD not in node and TYPE_FIELD in node:
            node[OBJECT_REF_TYPE_FIELD] = node[TYPE_FIELD]
        for value in node.values():
            reconcile_types(value)
    elif isinstance(node, list):
        for item in node:
            reconcile_types(item)
    return node


def decode(data: Any, target: type, element_class: Optional[Type[ObjectRef]] = None) -> Any:
    """
    Reconcile discriminators in ``data`` and decode it into ``target``.

    Args:
        data: Parsed JSON response body
        target: One of DocumentSnapshot, PageSnapshot, TypedDocumentSnapshot,
            TypedPageSnapshot, ObjectRef, PageRef or list (a list of references)
        element_class: Reference class for the typed snapshot targets

    Raises:
        UnrecognizedVariantException: A reference has no discriminator or an unknown one
        MalformedShapeException: The body does not match the shape of ``target``
    """
    if target not in _SHAPE_DECODERS:
        raise ValueError(f"No decoder registered for {target}")
    reconcile_types(data)
    if target in (TypedDocumentSnapshot, TypedPageSnapshot):
        if element_class is None:
            raise ValueError(f"element_class is required to decode {target.__name__}")
        return _SHAPE_DECODERS[target](data, element_class)
    return _SHAPE_DECODERS[target](data)


# --------------------------------------------------------------
# Field helpers
# --------------------------------------------------------------

def _require_dict(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedShapeException(f"Expected a JSON object for {what}, got {type(data).__name__}")
    return data


def _field(data: Dict[str, Any], key: str, expected: Union[type, Tuple[type, ...]],
           required: bool = False, default: Any = None) -> Any:
    value = data.get(key)
    if value is None:
        if required:
            raise MalformedShapeException(f"Missing required field '{key}'")
        return default
    expected_types = expected if isinstance(expected, tuple) else (expected,)
    # bool is an int subclass; only accept it where asked for
    if isinstance(value, bool) and bool not in expected_types:
        raise MalformedShapeException(f"Field '{key}' has unexpected type bool")
    if not isinstance(value, expected_types):
        raise MalformedShapeException(
            f"Field '{key}' has unexpected type {type(value).__name__}"
        )
    return value


def _enum(enum_class, value: Any, key: str):
    try:
        return enum_class(value)
    except (ValueError, TypeError):
        raise MalformedShapeException(f"Invalid value for '{key}': {value!r}") from None


def _read_kind(data: Dict[str, Any], key: str) -> Optional[ObjectType]:
    raw = data.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise UnrecognizedVariantException(f"Unrecognized object reference type: {raw!r}", kind=str(raw))
    try:
        return ObjectType(raw)
    except ValueError:
        raise UnrecognizedVariantException(f"Unrecognized object reference type: {raw!r}", kind=raw) from None


def _discriminator(data: Dict[str, Any]) -> Tuple[ObjectType, ObjectType]:
    """Return (variant kind, declared type); the variant is chosen by objectRefType."""
    ref_kind = _read_kind(data, OBJECT_REF_TYPE_FIELD)
    declared = _read_kind(data, TYPE_FIELD)
    if ref_kind is None and declared is None:
        raise UnrecognizedVariantException(
            "Object reference carries neither 'objectRefType' nor 'type' discriminator"
        )
    ref_kind = ref_kind or declared
    return ref_kind, declared or ref_kind


# --------------------------------------------------------------
# Structural decoders
# --------------------------------------------------------------

def parse_position(pos_data: Dict[str, Any]) -> Position:
    """Parse JSON position data into a Position instance."""
    pos_data = _require_dict(pos_data, "position")
    position = Position()
    position.page_index = _field(pos_data, 'pageIndex', int)
    position.text_starts_with = _field(pos_data, 'textStartsWith', str)
    position.text_pattern = _field(pos_data, 'textPattern', str)
    position.name = _field(pos_data, 'name', str)

    if pos_data.get('shape') is not None:
        position.shape = _enum(ShapeType, pos_data['shape'], 'shape')
    if pos_data.get('mode') is not None:
        position.mode = _enum(PositionMode, pos_data['mode'], 'mode')

    if pos_data.get('boundingRect') is not None:
        rect_data = _require_dict(pos_data['boundingRect'], "boundingRect")
        position.bounding_rect = BoundingRect(
            x=_field(rect_data, 'x', _NUMBER, required=True),
            y=_field(rect_data, 'y', _NUMBER, required=True),
            width=_field(rect_data, 'width', _NUMBER, default=0.0),
            height=_field(rect_data, 'height', _NUMBER, default=0.0)
        )

    return position


def _parse_common(data: Dict[str, Any]) -> Dict[str, Any]:
    ref_kind, declared = _discriminator(data)
    position_data = data.get('position')
    return {
        'internal_id': _field(data, 'internalId', str),
        'position': parse_position(position_data) if position_data is not None else None,
        'type': declared,
        'object_ref_type': ref_kind,
    }


def parse_object_ref(obj_data: Dict[str, Any]) -> ObjectRef:
    """Plain reference for paths, images and form XObjects."""
    return ObjectRef(**_parse_common(obj_data))


def parse_form_field_ref(obj_data: Dict[str, Any]) -> FormFieldRef:
    value = obj_data.get('value')
    if value is not None and not isinstance(value, str):
        # checkbox and radio values arrive as booleans or numbers
        value = str(value)
    return FormFieldRef(
        **_parse_common(obj_data),
        name=_field(obj_data, 'name', str),
        value=value,
    )


def parse_color(color_data: Any) -> Color:
    color_data = _require_dict(color_data, "color")
    try:
        return Color(
            _field(color_data, 'red', int, required=True),
            _field(color_data, 'green', int, required=True),
            _field(color_data, 'blue', int, required=True),
            _field(color_data, 'alpha', int, default=255)
        )
    except ValueError as e:
        raise MalformedShapeException(str(e)) from None


def parse_font_recommendation(data: Any) -> FontRecommendation:
    """Parse JSON data into FontRecommendation instance."""
    data = _require_dict(data, "font recommendation")
    return FontRecommendation(
        font_name=_field(data, 'fontName', str, default=''),
        font_type=_enum(FontType, data.get('fontType', 'SYSTEM'), 'fontType'),
        similarity_score=_field(data, 'similarityScore', _NUMBER, default=0.0)
    )


def _parse_text_status(status_data: Any) -> TextStatus:
    status_data = _require_dict(status_data, "status")
    font_rec_data = status_data.get('fontRecommendation')
    return TextStatus(
        modified=_field(status_data, 'modified', bool, default=False),
        encodable=_field(status_data, 'encodable', bool, default=True),
        font_type=_enum(FontType, status_data.get('fontType', 'UNKNOWN'), 'fontType'),
        font_recommendation=parse_font_recommendation(font_rec_data) if font_rec_data is not None else None
    )


def parse_text_object_ref(obj_data: Dict[str, Any], fallback_id: Optional[str] = None) -> TextObjectRef:
    """Parse a paragraph, text line or text element including its children."""
    common = _parse_common(obj_data)
    if common['internal_id'] is None:
        common['internal_id'] = fallback_id
    if common['position'] is None:
        common['position'] = Position()

    line_spacings = _field(obj_data, 'lineSpacings', list)
    color_data = obj_data.get('color')
    status_data = obj_data.get('status')

    text_object = TextObjectRef(
        **common,
        text=_field(obj_data, 'text', str),
        font_name=_field(obj_data, 'fontName', str),
        font_size=_field(obj_data, 'fontSize', _NUMBER),
        line_spacings=line_spacings,
        color=parse_color(color_data) if color_data is not None else None,
        status=_parse_text_status(status_data) if status_data is not None else None
    )

    internal_id = text_object.internal_id
    children = []
    for index, child_data in enumerate(_field(obj_data, 'children', list, default=[])):
        child_data = _require_dict(child_data, "text child")
        child_kind, _ = _discriminator(child_data)
        if child_kind not in TEXT_TYPES:
            raise MalformedShapeException(
                f"Text object {internal_id} has a child of kind {child_kind.value}"
            )
        children.append(parse_text_object_ref(child_data, f"{internal_id or 'child'}-{index}"))
    text_object.children = children

    return text_object


def parse_page_ref(obj_data: Dict[str, Any]) -> PageRef:
    """Parse JSON object data into PageRef instance with page-specific properties."""
    page_size = None
    page_size_data = obj_data.get('pageSize')
    if page_size_data is not None:
        try:
            page_size = PageSize.from_dict(_require_dict(page_size_data, "pageSize"))
        except ValueError as e:
            raise MalformedShapeException(str(e)) from None

    orientation = None
    orientation_value = _field(obj_data, 'orientation', str)
    if orientation_value is not None:
        orientation = _enum(Orientation, orientation_value.strip().upper(), 'orientation')

    return PageRef(
        **_parse_common(obj_data),
        page_size=page_size,
        orientation=orientation
    )


# One entry per ObjectType member
_REFERENCE_PARSERS: Dict[ObjectType, Callable[[Dict[str, Any]], ObjectRef]] = {
    ObjectType.PAGE: parse_page_ref,
    ObjectType.PARAGRAPH: parse_text_object_ref,
    ObjectType.TEXT_LINE: parse_text_object_ref,
    ObjectType.TEXT_ELEMENT: parse_text_object_ref,
    ObjectType.FORM_FIELD: parse_form_field_ref,
    ObjectType.TEXT_FIELD: parse_form_field_ref,
    ObjectType.CHECK_BOX: parse_form_field_ref,
    ObjectType.RADIO_BUTTON: parse_form_field_ref,
    ObjectType.PATH: parse_object_ref,
    ObjectType.IMAGE: parse_object_ref,
    ObjectType.FORM_X_OBJECT: parse_object_ref,
}


def decode_reference(obj_data: Any) -> ObjectRef:
    """Dispatch a reference object to the parser for its kind."""
    obj_data = _require_dict(obj_data, "object reference")
    kind, _ = _discriminator(obj_data)
    return _REFERENCE_PARSERS[kind](obj_data)


def _decode_reference_list(data: Any) -> List[ObjectRef]:
    if not isinstance(data, list):
        raise MalformedShapeException(f"Expected a JSON array of references, got {type(data).__name__}")
    return [decode_reference(item) for item in data]


def _decode_page_ref(data: Any) -> PageRef:
    ref = decode_reference(data)
    if not isinstance(ref, PageRef):
        raise MalformedShapeException(f"Expected a page reference, got kind {ref.object_ref_type.value}")
    return ref


def _decode_optional_page_ref(data: Dict[str, Any]) -> Optional[PageRef]:
    page_ref_data = data.get('pageRef')
    return _decode_page_ref(page_ref_data) if page_ref_data is not None else None


def parse_page_snapshot(data: Any) -> PageSnapshot:
    """Parse JSON data into PageSnapshot instance, decoding every element by kind."""
    data = _require_dict(data, "page snapshot")
    return PageSnapshot(
        page_ref=_decode_optional_page_ref(data),
        elements=_decode_reference_list(data.get('elements') or [])
    )


def parse_document_snapshot(data: Any) -> DocumentSnapshot:
    """Parse JSON data into DocumentSnapshot instance."""
    data = _require_dict(data, "document snapshot")
    return DocumentSnapshot(
        page_count=_field(data, 'pageCount', int, default=0),
        fonts=[parse_font_recommendation(font) for font in _field(data, 'fonts', list, default=[])],
        pages=[parse_page_snapshot(page) for page in _field(data, 'pages', list, default=[])]
    )


def parse_typed_page_snapshot(data: Any, element_class: Type[ObjectRef]) -> TypedPageSnapshot:
    data = _require_dict(data, "page snapshot")
    return TypedPageSnapshot(
        element_class=element_class,
        page_ref=_decode_optional_page_ref(data),
        elements=_decode_reference_list(data.get('elements') or [])
    )


def parse_typed_document_snapshot(data: Any, element_class: Type[ObjectRef]) -> TypedDocumentSnapshot:
    data = _require_dict(data, "document snapshot")
    return TypedDocumentSnapshot(
        element_class=element_class,
        page_count=_field(data, 'pageCount', int, default=0),
        fonts=[parse_font_recommendation(font) for font in _field(data, 'fonts', list, default=[])],
        pages=[parse_typed_page_snapshot(page, element_class)
               for page in _field(data, 'pages', list, default=[])]
    )


_SHAPE_DECODERS: Dict[type, Callable[..., Any]] = {
    DocumentSnapshot: parse_document_snapshot,
    PageSnapshot: parse_page_snapshot,
    TypedDocumentSnapshot: parse_typed_document_snapshot,
    TypedPageSnapshot: parse_typed_page_snapshot,
    ObjectRef: decode_reference,
    PageRef: _decode_page_ref,
    list: _decode_reference_list,
}


def decode_typed_document(data: Any, element_class: Type[ObjectRef]) -> TypedDocumentSnapshot:
    """Decode a document snapshot body for ``element_class``."""
    return decode(data, TypedDocumentSnapshot, element_class)


def decode_typed_page(data: Any, element_class: Type[ObjectRef]) -> TypedPageSnapshot:
    return decode(data, TypedPageSnapshot, element_class)
