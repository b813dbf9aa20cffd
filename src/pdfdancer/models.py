"""
Model classes for the PDFDancer Python client.

Reference variants, positions, snapshots and request/response bodies exchanged
with the PDFDancer service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Any, Dict, Mapping, Union


class ObjectType(Enum):
    """Discriminator kinds of PDF object references, as sent on the wire."""
    PAGE = "PAGE"
    PARAGRAPH = "PARAGRAPH"
    TEXT_LINE = "TEXT_LINE"
    TEXT_ELEMENT = "TEXT_ELEMENT"
    IMAGE = "IMAGE"
    PATH = "PATH"
    FORM_X_OBJECT = "FORM_X_OBJECT"
    FORM_FIELD = "FORM_FIELD"
    TEXT_FIELD = "TEXT_FIELD"
    CHECK_BOX = "CHECK_BOX"
    RADIO_BUTTON = "RADIO_BUTTON"

    @classmethod
    def _missing_(cls, value):
        # Historical spellings still emitted by some endpoints
        aliases = {
            "CHECKBOX": cls.CHECK_BOX,
            "textElement": cls.TEXT_ELEMENT,
        }
        return aliases.get(value)


FORM_FIELD_TYPES = frozenset({ObjectType.FORM_FIELD, ObjectType.TEXT_FIELD,
                              ObjectType.CHECK_BOX, ObjectType.RADIO_BUTTON})
TEXT_TYPES = frozenset({ObjectType.PARAGRAPH, ObjectType.TEXT_LINE, ObjectType.TEXT_ELEMENT})


class PositionMode(Enum):
    """How a position query matches objects."""
    INTERSECT = "INTERSECT"
    CONTAINS = "CONTAINS"


class ShapeType(Enum):
    """Geometric shape of a position query."""
    POINT = "POINT"
    LINE = "LINE"
    CIRCLE = "CIRCLE"
    RECT = "RECT"


class Orientation(Enum):
    PORTRAIT = "PORTRAIT"
    LANDSCAPE = "LANDSCAPE"


class FontType(Enum):
    SYSTEM = "SYSTEM"
    STANDARD = "STANDARD"
    EMBEDDED = "EMBEDDED"
    UNKNOWN = "UNKNOWN"


class ReflowPreset(Enum):
    """How replacement text is fitted into the space of the placeholder it replaces."""
    BEST_EFFORT = "BEST_EFFORT"
    FIT_OR_FAIL = "FIT_OR_FAIL"
    NONE = "NONE"


class ImageTransformType(Enum):
    SCALE = "SCALE"
    ROTATE = "ROTATE"
    CROP = "CROP"
    OPACITY = "OPACITY"
    FLIP = "FLIP"


class FlipDirection(Enum):
    HORIZONTAL = "HORIZONTAL"
    VERTICAL = "VERTICAL"
    BOTH = "BOTH"


@dataclass
class BoundingRect:
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class Position:
    """
    Spatial description of an object or of a search.
    Page indices are 0-based.
    """
    page_index: Optional[int] = None
    shape: Optional[ShapeType] = None
    mode: Optional[PositionMode] = None
    bounding_rect: Optional[BoundingRect] = None
    text_starts_with: Optional[str] = None
    text_pattern: Optional[str] = None
    name: Optional[str] = None

    @staticmethod
    def at_page(page_index: int) -> 'Position':
        """Position covering a whole page."""
        return Position(page_index=page_index, mode=PositionMode.CONTAINS)

    @staticmethod
    def at_page_coordinates(page_index: int, x: float, y: float) -> 'Position':
        """Point position on a page."""
        position = Position.at_page(page_index)
        position.at_coordinates(x, y)
        return position

    @staticmethod
    def by_name(name: str) -> 'Position':
        return Position(name=name)

    def at_coordinates(self, x: float, y: float) -> 'Position':
        self.mode = PositionMode.INTERSECT
        self.shape = ShapeType.POINT
        self.bounding_rect = BoundingRect(x, y, 0, 0)
        return self

    def with_text_starts(self, text: str) -> 'Position':
        self.text_starts_with = text
        return self

    def x(self) -> Optional[float]:
        return self.bounding_rect.x if self.bounding_rect else None

    def y(self) -> Optional[float]:
        return self.bounding_rect.y if self.bounding_rect else None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.page_index is not None:
            result["pageIndex"] = self.page_index
        if self.shape is not None:
            result["shape"] = self.shape.value
        if self.mode is not None:
            result["mode"] = self.mode.value
        if self.bounding_rect is not None:
            result["boundingRect"] = self.bounding_rect.to_dict()
        if self.text_starts_with is not None:
            result["textStartsWith"] = self.text_starts_with
        if self.text_pattern is not None:
            result["textPattern"] = self.text_pattern
        if self.name is not None:
            result["name"] = self.name
        return result


@dataclass
class Color:
    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self):
        for component in (self.r, self.g, self.b, self.a):
            if not 0 <= component <= 255:
                raise ValueError(f"Color component out of range: {component}")

    def to_dict(self) -> Dict[str, int]:
        return {"red": self.r, "green": self.g, "blue": self.b, "alpha": self.a}


@dataclass
class Font:
    name: str
    size: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "size": self.size}


@dataclass
class Size:
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height}


@dataclass
class FontRecommendation:
    font_name: str
    font_type: FontType
    similarity_score: float


@dataclass
class TextStatus:
    modified: bool
    encodable: bool
    font_type: FontType
    font_recommendation: Optional[FontRecommendation] = None


@dataclass
class PageSize:
    """Page dimensions in points."""
    name: Optional[str]
    width: float
    height: float

    _STANDARD = {
        "A4": (595.0, 842.0),
        "LETTER": (612.0, 792.0),
        "LEGAL": (612.0, 1008.0),
        "TABLOID": (792.0, 1224.0),
        "A3": (842.0, 1191.0),
        "A5": (420.0, 595.0),
    }

    @classmethod
    def from_name(cls, name: str) -> 'PageSize':
        normalized = name.strip().upper()
        if normalized not in cls._STANDARD:
            raise ValueError(f"Unknown page size: {name}")
        width, height = cls._STANDARD[normalized]
        return cls(normalized, width, height)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'PageSize':
        width = data.get("width")
        height = data.get("height")
        if not isinstance(width, (int, float)) or not isinstance(height, (int, float)):
            raise ValueError(f"Page size requires numeric width and height, got {dict(data)}")
        if width <= 0 or height <= 0:
            raise ValueError("Page size dimensions must be positive")
        return cls(data.get("name"), float(width), float(height))

    @classmethod
    def coerce(cls, value: Union['PageSize', str, Mapping[str, Any]]) -> 'PageSize':
        if isinstance(value, PageSize):
            return value
        if isinstance(value, str):
            return cls.from_name(value)
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise TypeError(f"Cannot convert {type(value)} to PageSize")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"width": self.width, "height": self.height}
        if self.name:
            result["name"] = self.name
        return result


# --------------------------------------------------------------
# Object references
# --------------------------------------------------------------

@dataclass
class ObjectRef:
    """
    Lightweight reference to a PDF object: identity, location and kind.
    Used as-is for paths, images and form XObjects.
    """
    internal_id: Optional[str]
    position: Optional[Position]
    type: ObjectType
    object_ref_type: Optional[ObjectType] = None

    def __post_init__(self):
        if self.object_ref_type is None:
            self.object_ref_type = self.type

    def get_internal_id(self) -> Optional[str]:
        return self.internal_id

    def get_type(self) -> ObjectType:
        return self.type

    def get_position(self) -> Optional[Position]:
        return self.position

    def to_dict(self) -> Dict[str, Any]:
        return {
            "internalId": self.internal_id,
            "position": self.position.to_dict() if self.position else None,
            "type": self.type.value,
            "objectRefType": self.object_ref_type.value,
        }


@dataclass
class TextObjectRef(ObjectRef):
    """Paragraph, text line or text element with its text properties and children."""
    text: Optional[str] = None
    font_name: Optional[str] = None
    font_size: Optional[float] = None
    line_spacings: Optional[List[float]] = None
    color: Optional[Color] = None
    status: Optional[TextStatus] = None
    children: List['TextObjectRef'] = field(default_factory=list)

    def get_text(self) -> Optional[str]:
        return self.text

    def get_font_name(self) -> Optional[str]:
        return self.font_name

    def get_font_size(self) -> Optional[float]:
        return self.font_size

    def get_color(self) -> Optional[Color]:
        return self.color

    def get_children(self) -> List['TextObjectRef']:
        return self.children


@dataclass
class FormFieldRef(ObjectRef):
    """AcroForm field reference carrying the field name and current value."""
    name: Optional[str] = None
    value: Optional[str] = None


@dataclass
class PageRef(ObjectRef):
    page_size: Optional[PageSize] = None
    orientation: Optional[Orientation] = None


# --------------------------------------------------------------
# Snapshots
# --------------------------------------------------------------

@dataclass
class PageSnapshot:
    """A page reference plus every element on that page, in document order."""
    page_ref: Optional[PageRef]
    elements: List[ObjectRef] = field(default_factory=list)


@dataclass
class DocumentSnapshot:
    page_count: int
    fonts: List[FontRecommendation] = field(default_factory=list)
    pages: List[PageSnapshot] = field(default_factory=list)


@dataclass
class TypedPageSnapshot:
    """
    Page snapshot decoded for a single reference class.
    `elements` are expected to be instances of `element_class`; see
    `selection.get_typed_elements` for the check.
    """
    element_class: type
    page_ref: Optional[PageRef]
    elements: List[ObjectRef] = field(default_factory=list)


@dataclass
class TypedDocumentSnapshot:
    element_class: type
    page_count: int
    fonts: List[FontRecommendation] = field(default_factory=list)
    pages: List[TypedPageSnapshot] = field(default_factory=list)


# --------------------------------------------------------------
# Requests
# --------------------------------------------------------------

@dataclass
class FindRequest:
    object_type: Optional[ObjectType]
    position: Optional[Position]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "objectType": self.object_type.value if self.object_type else None,
            "position": self.position.to_dict() if self.position else None,
            "hint": self.hint,
        }


@dataclass
class DeleteRequest:
    object_ref: ObjectRef

    def to_dict(self) -> Dict[str, Any]:
        return {"objectRef": self.object_ref.to_dict()}


@dataclass
class MoveRequest:
    object_ref: ObjectRef
    position: Position

    def to_dict(self) -> Dict[str, Any]:
        return {"objectRef": self.object_ref.to_dict(), "newPosition": self.position.to_dict()}


@dataclass
class PageMoveRequest:
    from_page_index: int
    to_page_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"fromPageIndex": self.from_page_index, "toPageIndex": self.to_page_index}


@dataclass
class ModifyTextRequest:
    object_ref: ObjectRef
    new_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"ref": self.object_ref.to_dict(), "newTextLine": self.new_text}


@dataclass
class ChangeFormFieldRequest:
    object_ref: FormFieldRef
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"ref": self.object_ref.to_dict(), "value": self.value}


@dataclass
class RedactTarget:
    id: str
    replacement: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "replacement": self.replacement}


@dataclass
class RedactRequest:
    targets: List[RedactTarget]
    default_replacement: str = "[REDACTED]"
    placeholder_color: Color = field(default_factory=lambda: Color(0, 0, 0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targets": [target.to_dict() for target in self.targets],
            "defaultReplacement": self.default_replacement,
            "placeholderColor": self.placeholder_color.to_dict(),
        }


@dataclass
class TemplateReplacement:
    """
    One placeholder to replace and the text that takes its place.

    ``font`` and ``color`` default to those of the placeholder when omitted.
    """
    placeholder: str
    text: str
    font: Optional[Font] = None
    color: Optional[Color] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"placeholder": self.placeholder, "text": self.text}
        if self.font is not None:
            result["font"] = self.font.to_dict()
        if self.color is not None:
            result["color"] = self.color.to_dict()
        return result


@dataclass
class TemplateReplaceRequest:
    """Placeholder replacements for one page, or for every page when ``page_index`` is None."""
    replacements: List[TemplateReplacement]
    page_index: Optional[int] = None
    reflow_preset: Optional[ReflowPreset] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"replacements": [r.to_dict() for r in self.replacements]}
        if self.page_index is not None:
            result["pageIndex"] = self.page_index
        if self.reflow_preset is not None:
            result["reflowPreset"] = self.reflow_preset.value
        return result


@dataclass
class ImageTransformRequest:
    object_ref: ObjectRef
    transform_type: ImageTransformType
    scale_factor: Optional[float] = None
    target_size: Optional[Size] = None
    preserve_aspect_ratio: Optional[bool] = None
    rotation_angle: Optional[float] = None
    crop_left: Optional[int] = None
    crop_top: Optional[int] = None
    crop_right: Optional[int] = None
    crop_bottom: Optional[int] = None
    opacity: Optional[float] = None
    flip_direction: Optional[FlipDirection] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "objectRef": self.object_ref.to_dict(),
            "transformType": self.transform_type.value,
        }
        optional = {
            "scaleFactor": self.scale_factor,
            "targetSize": self.target_size.to_dict() if self.target_size else None,
            "preserveAspectRatio": self.preserve_aspect_ratio,
            "rotationAngle": self.rotation_angle,
            "cropLeft": self.crop_left,
            "cropTop": self.crop_top,
            "cropRight": self.crop_right,
            "cropBottom": self.crop_bottom,
            "opacity": self.opacity,
            "flipDirection": self.flip_direction.value if self.flip_direction else None,
        }
        result.update({key: value for key, value in optional.items() if value is not None})
        return result


# --------------------------------------------------------------
# Responses
# --------------------------------------------------------------

@dataclass
class CommandResult:
    command_name: str
    element_id: Optional[str]
    message: Optional[str]
    success: bool
    warning: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CommandResult':
        return cls(
            command_name=data.get("commandName", ""),
            element_id=data.get("elementId"),
            message=data.get("message"),
            success=bool(data.get("success", False)),
            warning=data.get("warning"),
        )

    @classmethod
    def empty(cls, command_name: str, element_id: Optional[str]) -> 'CommandResult':
        return cls(command_name=command_name, element_id=element_id, message=None, success=True)


@dataclass
class RedactResponse:
    count: int
    success: bool
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RedactResponse':
        return cls(
            count=int(data.get("count", 0)),
            success=bool(data.get("success", False)),
            warnings=list(data.get("warnings") or []),
        )
