from __future__ import annotations

from dataclasses import replace
from typing import Optional, List, TYPE_CHECKING

from .models import (
    ObjectRef, ObjectType, Position, BoundingRect, TextObjectRef, FormFieldRef, Color, CommandResult,
    ImageTransformRequest, ImageTransformType, Size, FlipDirection
)

if TYPE_CHECKING:
    from .pdfdancer_v1 import PDFDancer


class PDFObjectBase:
    """
    Base of the high-level objects returned by PDFDancer selectors.
    Wraps the decoded object reference and routes mutations through the owning client.
    """

    def __init__(self, client: 'PDFDancer', ref: ObjectRef):
        self._client = client
        self._ref = ref

    @property
    def internal_id(self) -> Optional[str]:
        return self._ref.internal_id

    @property
    def object_type(self) -> ObjectType:
        return self._ref.type

    @property
    def position(self) -> Optional[Position]:
        return self._ref.position

    @property
    def page_index(self) -> Optional[int]:
        """Page index where this object resides."""
        return self.position.page_index if self.position else None

    @property
    def bounding_box(self) -> Optional[BoundingRect]:
        """Optional bounding rectangle (if available)."""
        return self.position.bounding_rect if self.position else None

    def object_ref(self) -> ObjectRef:
        """The reference this object was decoded from, sent back unchanged in mutations."""
        return self._ref

    def delete(self) -> bool:
        """Delete this object from the PDF document."""
        # noinspection PyProtectedMember
        return self._client._delete(self.object_ref())

    def move_to(self, x: float, y: float) -> bool:
        """Move this object to (x, y) on its current page."""
        # noinspection PyProtectedMember
        return self._client._move(self.object_ref(), Position.at_page_coordinates(self.page_index, x, y))

    def redact(self, replacement: str = "[REDACTED]", placeholder_color: Optional[Color] = None) -> bool:
        """Redact this object; text is replaced, graphics become a solid rectangle."""
        result = self._client.redact([self], replacement=replacement, placeholder_color=placeholder_color)
        return result.success

    def __eq__(self, other):
        if not isinstance(other, PDFObjectBase):
            return NotImplemented
        return type(self) is type(other) and self.internal_id == other.internal_id

    def __hash__(self):
        return hash((type(self), self.internal_id))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.internal_id} page={self.page_index}>"


class PathObject(PDFObjectBase):
    """
    Represents a vector path object inside a PDF page.

    Instances are created internally by PDFDancer selectors (e.g. pdf.select_paths()).
    """
    pass


class ImageObject(PDFObjectBase):

    def _transform(self, transform_type: ImageTransformType, **options) -> bool:
        request = ImageTransformRequest(self.object_ref(), transform_type, **options)
        return self._client.transform_image(request)

    def scale(self, factor: float) -> bool:
        """Scale by ``factor``; 0.5 halves the image, 2.0 doubles it."""
        return self._transform(ImageTransformType.SCALE, scale_factor=factor)

    def scale_to(self, width: float, height: float, preserve_aspect_ratio: bool = False) -> bool:
        return self._transform(ImageTransformType.SCALE, target_size=Size(width, height),
                               preserve_aspect_ratio=preserve_aspect_ratio)

    def rotate(self, angle: float) -> bool:
        """Rotate clockwise by ``angle`` degrees."""
        return self._transform(ImageTransformType.ROTATE, rotation_angle=angle)

    def crop(self, left: int = 0, top: int = 0, right: int = 0, bottom: int = 0) -> bool:
        """Trim the given number of pixels from each edge."""
        return self._transform(ImageTransformType.CROP, crop_left=left, crop_top=top,
                               crop_right=right, crop_bottom=bottom)

    def set_opacity(self, opacity: float) -> bool:
        return self._transform(ImageTransformType.OPACITY, opacity=opacity)

    def flip(self, direction: FlipDirection = FlipDirection.HORIZONTAL) -> bool:
        return self._transform(ImageTransformType.FLIP, flip_direction=direction)


class FormObject(PDFObjectBase):
    """Form XObject placed on a page."""
    pass


class FormFieldObject(PDFObjectBase):
    """AcroForm field with its name and current value."""

    def __init__(self, client: 'PDFDancer', ref: FormFieldRef):
        super().__init__(client, ref)
        self.name = ref.name
        self.value = ref.value

    def object_ref(self) -> FormFieldRef:
        # Carries the wire discriminator of the decoded ref, whatever kind the field was narrowed to
        return replace(self._ref, value=self.value)

    def fill(self, value: str) -> bool:
        """Set the field value; updates this object when the service accepts it."""
        # noinspection PyProtectedMember
        changed = self._client._change_form_field(self.object_ref(), value)
        if changed:
            self.value = value
        return changed


class _TextObject(PDFObjectBase):

    def object_ref(self) -> TextObjectRef:
        return self._ref

    @property
    def text(self) -> Optional[str]:
        return self._ref.text

    @property
    def font_name(self) -> Optional[str]:
        return self._ref.font_name

    @property
    def font_size(self) -> Optional[float]:
        return self._ref.font_size

    @property
    def color(self) -> Optional[Color]:
        return self._ref.color

    @property
    def children(self) -> List[TextObjectRef]:
        return self._ref.children


class ParagraphObject(_TextObject):

    def set_text(self, text: str) -> CommandResult:
        """Replace the paragraph text, keeping its font and position."""
        # noinspection PyProtectedMember
        return self._client._modify_paragraph(self._ref, text)


class TextLineObject(_TextObject):

    def set_text(self, text: str) -> CommandResult:
        # noinspection PyProtectedMember
        return self._client._modify_text_line(self._ref, text)
