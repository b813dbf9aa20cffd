"""
Client-side selection over snapshot contents.
"""

import re
from dataclasses import replace
from typing import List, Optional, Type, Union

from .exceptions import HeterogeneousCollectionException
from .models import (
    ObjectRef, ObjectType, Position, TextObjectRef, FormFieldRef, BoundingRect,
    TypedPageSnapshot, TypedDocumentSnapshot, PageSnapshot, FORM_FIELD_TYPES
)

DEFAULT_TOLERANCE = 0.01


def get_typed_elements(page: Union[TypedPageSnapshot, PageSnapshot],
                       element_class: Type[ObjectRef]) -> List[ObjectRef]:
    """
    Return the elements of ``page`` after checking they are all ``element_class``.

    The list is returned unchanged and in document order. A single element of
    another class fails the whole call rather than being dropped.

    Raises:
        HeterogeneousCollectionException: An element is not an ``element_class`` instance
    """
    elements = page.elements
    if not elements:
        return []
    for element in elements:
        if not isinstance(element, element_class):
            raise HeterogeneousCollectionException(element_class, element)
    return elements


def flatten_typed_document(snapshot: TypedDocumentSnapshot, element_class: Type[ObjectRef]) -> List[ObjectRef]:
    """Typed elements of every page, page by page."""
    result = []
    for page in snapshot.pages:
        result.extend(get_typed_elements(page, element_class))
    return result


def rects_intersect(rect1: BoundingRect, rect2: BoundingRect, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """
    Check if two bounding rectangles intersect or are very close.
    Handles point queries (width/height = 0) with tolerance.

    Args:
        rect1: First bounding rectangle
        rect2: Second bounding rectangle
        tolerance: Tolerance in points for position matching
    """
    r1_left = rect1.x - tolerance
    r1_right = rect1.x + rect1.width + tolerance
    r1_top = rect1.y - tolerance
    r1_bottom = rect1.y + rect1.height + tolerance

    r2_left = rect2.x - tolerance
    r2_right = rect2.x + rect2.width + tolerance
    r2_top = rect2.y - tolerance
    r2_bottom = rect2.y + rect2.height + tolerance

    if r1_right < r2_left or r2_right < r1_left:
        return False
    if r1_bottom < r2_top or r2_bottom < r1_top:
        return False
    return True


def contains_point(ref: ObjectRef, x: float, y: float, epsilon: float = DEFAULT_TOLERANCE) -> bool:
    position = ref.position
    if position is None or position.bounding_rect is None:
        return False
    rect = position.bounding_rect
    return (rect.x - epsilon <= x <= rect.x + rect.width + epsilon and
            rect.y - epsilon <= y <= rect.y + rect.height + epsilon)


def filter_snapshot_elements(elements: List[ObjectRef], object_type: Optional[ObjectType],
                             position: Optional[Position] = None,
                             tolerance: float = DEFAULT_TOLERANCE) -> List[ObjectRef]:
    """
    Filter snapshot elements client-side based on object type and position criteria.

    Args:
        elements: Elements from a snapshot (ObjectRef, TextObjectRef, etc.)
        object_type: Type to filter for, None keeps every type
        position: Optional position filter with text matching, bounding rect, name
        tolerance: Tolerance in points for spatial matching

    Returns:
        Filtered list of elements matching the criteria, in snapshot order
    """
    # Form fields include TEXT_FIELD, CHECK_BOX, RADIO_BUTTON
    if object_type is None:
        result = list(elements)
    elif object_type == ObjectType.FORM_FIELD:
        result = [e for e in elements if e.type in FORM_FIELD_TYPES]
    else:
        result = [e for e in elements if e.type == object_type]

    if position is None:
        return result

    # Case-insensitive to match API behavior
    if position.text_starts_with:
        search_text = position.text_starts_with.lower()
        result = [
            e for e in result
            if isinstance(e, TextObjectRef) and e.text and e.text.lower().startswith(search_text)
        ]

    if position.text_pattern:
        pattern = re.compile(position.text_pattern)
        result = [
            e for e in result
            if isinstance(e, TextObjectRef) and e.text and pattern.search(e.text)
        ]

    if position.bounding_rect:
        rect = position.bounding_rect
        result = [
            e for e in result
            if e.position and e.position.bounding_rect and
            rects_intersect(e.position.bounding_rect, rect, tolerance)
        ]

    if position.name:
        result = [
            e for e in result
            if isinstance(e, FormFieldRef) and e.name == position.name
        ]

    return result


# Form field kinds requested one filter at a time; the filter names the field type
FORM_TYPE_FILTERS = ("TEXT_FIELD", "CHECKBOX", "RADIO_BUTTON", "DROPDOWN", "BUTTON")


def adjust_form_field_type(ref: FormFieldRef, form_type: str) -> FormFieldRef:
    """Narrow a generic FORM_FIELD reference to the kind named by the filter it was fetched with."""
    try:
        desired_type = ObjectType(form_type)
    except ValueError:
        return ref
    if desired_type == ref.type:
        return ref
    return replace(ref, type=desired_type)
