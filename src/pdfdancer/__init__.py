"""
PDFDancer Python Client

Session-based client for the PDFDancer PDF manipulation service, with
per-session snapshot caching and client-side element selection.
"""

from .decoding import decode, decode_typed_document, decode_typed_page, reconcile_types
from .exceptions import (
    PdfDancerException,
    FontNotFoundException,
    HttpClientException,
    RateLimitException,
    SessionException,
    ValidationException,
    DecodingException,
    UnrecognizedVariantException,
    MalformedShapeException,
    HeterogeneousCollectionException
)
from .models import (
    ObjectRef, TextObjectRef, FormFieldRef, PageRef, ObjectType, Position, BoundingRect,
    PositionMode, ShapeType, Color, PageSize, Orientation, FontType, FontRecommendation, TextStatus,
    PageSnapshot, DocumentSnapshot, TypedPageSnapshot, TypedDocumentSnapshot,
    CommandResult, RedactResponse, RedactTarget, Font, Size, ReflowPreset, TemplateReplacement,
    TemplateReplaceRequest, ImageTransformRequest, ImageTransformType, FlipDirection
)
from .pdfdancer_v1 import PDFDancer, PageClient
from .retry import RetryConfig
from .selection import get_typed_elements, filter_snapshot_elements
from .snapshot_cache import SnapshotCache, SnapshotFetcher, normalize_types
from .types import (
    PathObject, ImageObject, FormObject, FormFieldObject, ParagraphObject, TextLineObject
)

__version__ = "1.0.0"
__all__ = [
    "PDFDancer",
    "PageClient",
    "RetryConfig",
    "SnapshotCache",
    "SnapshotFetcher",
    "normalize_types",
    "decode",
    "reconcile_types",
    "decode_typed_document",
    "decode_typed_page",
    "get_typed_elements",
    "filter_snapshot_elements",
    "ObjectRef",
    "TextObjectRef",
    "FormFieldRef",
    "PageRef",
    "ObjectType",
    "Position",
    "BoundingRect",
    "PositionMode",
    "ShapeType",
    "Color",
    "PageSize",
    "Orientation",
    "FontType",
    "FontRecommendation",
    "TextStatus",
    "PageSnapshot",
    "DocumentSnapshot",
    "TypedPageSnapshot",
    "TypedDocumentSnapshot",
    "CommandResult",
    "RedactResponse",
    "RedactTarget",
    "Font",
    "Size",
    "ReflowPreset",
    "TemplateReplacement",
    "TemplateReplaceRequest",
    "ImageTransformRequest",
    "ImageTransformType",
    "FlipDirection",
    "PathObject",
    "ImageObject",
    "FormObject",
    "FormFieldObject",
    "ParagraphObject",
    "TextLineObject",
    "PdfDancerException",
    "FontNotFoundException",
    "HttpClientException",
    "RateLimitException",
    "SessionException",
    "ValidationException",
    "DecodingException",
    "UnrecognizedVariantException",
    "MalformedShapeException",
    "HeterogeneousCollectionException",
]
