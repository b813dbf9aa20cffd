"""
PDFDancer Python Client V1

Session-based client for the PDFDancer service. Element selection is served
from per-session snapshot caches; every successful mutation invalidates them.
"""

import json
import logging
import os
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import List, Optional, Union, BinaryIO, Mapping, Any, Sequence, Type

import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Global variable to disable SSL certificate verification
# Set to True to skip SSL verification (useful for testing with self-signed certificates)
# WARNING: Only use in development/testing environments
DISABLE_SSL_VERIFY = False

DEBUG = os.getenv("PDFDANCER_DEBUG", "").strip().lower() in ("1", "true", "yes")
DEFAULT_BASE_URL = "https://api.pdfdancer.com"


def _generate_timestamp() -> str:
    """
    Generate a timestamp string in the format expected by the API.
    Format: YYYY-MM-DDTHH:MM:SS.ffffffZ (with microseconds)

    Returns:
        Timestamp string with UTC timezone
    """
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')


def _parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse timestamp string, handling both microseconds and nanoseconds precision.

    Args:
        timestamp_str: Timestamp string in format YYYY-MM-DDTHH:MM:SS.fffffffZ
                      (with 6 or 9 fractional digits)

    Returns:
        datetime object with UTC timezone
    """
    ts = timestamp_str.rstrip('Z')

    # Python's datetime only supports microseconds precision
    if '.' in ts:
        date_part, frac_part = ts.rsplit('.', 1)
        if len(frac_part) > 6:
            frac_part = frac_part[:6]
        ts = f"{date_part}.{frac_part}"

    return datetime.fromisoformat(ts).replace(tzinfo=timezone.utc)


def _log_generated_at_header(response: requests.Response, method: str, path: str) -> None:
    """
    Log server timing from the X-Generated-AT and X-Received-At headers when DEBUG is on.

    Expected timestamp formats:
    - 2025-10-24T08:49:39.161945Z (microseconds - 6 digits)
    - 2025-10-24T08:58:45.468131265Z (nanoseconds - 9 digits)
    """
    if not DEBUG:
        return

    generated_at = response.headers.get('X-Generated-AT')
    received_at = response.headers.get('X-Received-At')

    if generated_at or received_at:
        try:
            log_parts = []
            current_time = datetime.now(timezone.utc)

            received_time = None
            if received_at:
                received_time = _parse_timestamp(received_at)
                time_since_received = (current_time - received_time).total_seconds()
                log_parts.append(f"X-Received-At: {received_at}, time since received: {time_since_received:.3f}s")

            generated_time = None
            if generated_at:
                generated_time = _parse_timestamp(generated_at)
                time_since_generated = (current_time - generated_time).total_seconds()
                log_parts.append(f"X-Generated-AT: {generated_at}, time since generated: {time_since_generated:.3f}s")

            if received_time and generated_time:
                processing_time = (generated_time - received_time).total_seconds()
                log_parts.append(f"processing time: {processing_time:.3f}s")

            if log_parts:
                logger.debug("%s %s - %s", method, path, ', '.join(log_parts))

        except (ValueError, AttributeError) as e:
            logger.debug("%s %s - Header parse error: %s", method, path, e)


def _get_retry_after_delay(response: requests.Response) -> Optional[int]:
    """
    Seconds to wait according to the Retry-After header, or None when absent or unusable.
    Accepts both delay-seconds and HTTP-date values.
    """
    retry_after = response.headers.get('Retry-After')
    if retry_after is None or not str(retry_after).strip():
        return None

    value = str(retry_after).strip()
    try:
        seconds = int(value)
        return seconds if seconds >= 0 else None
    except ValueError:
        pass

    try:
        target = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    seconds_until = int((target - datetime.now(timezone.utc)).total_seconds())
    return seconds_until if seconds_until >= 0 else None


from .decoding import decode, decode_typed_document, decode_typed_page
from .exceptions import (
    PdfDancerException,
    FontNotFoundException,
    HttpClientException,
    RateLimitException,
    SessionException,
    ValidationException
)
from .models import (
    ObjectRef, Position, ObjectType, FormFieldRef, TextObjectRef, PageRef,
    FindRequest, DeleteRequest, MoveRequest, PageMoveRequest, ModifyTextRequest,
    ChangeFormFieldRequest, RedactRequest, RedactTarget, CommandResult, RedactResponse, Color,
    TemplateReplacement, TemplateReplaceRequest, ReflowPreset, ImageTransformRequest,
    PageSize, Orientation, PageSnapshot, DocumentSnapshot, TypedPageSnapshot, TypedDocumentSnapshot
)
from .retry import RetryConfig
from .selection import (
    DEFAULT_TOLERANCE, FORM_TYPE_FILTERS, adjust_form_field_type, filter_snapshot_elements,
    flatten_typed_document, get_typed_elements
)
from .snapshot_cache import SnapshotCache, SnapshotFetcher
from .types import PathObject, ParagraphObject, TextLineObject, ImageObject, FormObject, FormFieldObject


class _HttpSnapshotFetcher(SnapshotFetcher):
    """Fetches snapshots from the session's document and page snapshot endpoints."""

    def __init__(self, client: "PDFDancer"):
        self._client = client

    @staticmethod
    def _params(types: Optional[str]) -> dict:
        return {'types': types} if types and types.strip() else {}

    @staticmethod
    def _page_path(page_index: int) -> str:
        if page_index is None or page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {page_index}")
        return f'/pdf/page/{page_index}/snapshot'

    def _get_json(self, path: str, types: Optional[str]) -> Any:
        # noinspection PyProtectedMember
        response = self._client._make_request('GET', path, params=self._params(types))
        # noinspection PyProtectedMember
        return self._client._json(response)

    def fetch_document_snapshot(self, types: Optional[str]) -> DocumentSnapshot:
        return decode(self._get_json('/pdf/document/snapshot', types), DocumentSnapshot)

    def fetch_page_snapshot(self, page_index: int, types: Optional[str]) -> PageSnapshot:
        return decode(self._get_json(self._page_path(page_index), types), PageSnapshot)

    def fetch_typed_document_snapshot(self, element_class: Type[ObjectRef],
                                      types: Optional[str]) -> TypedDocumentSnapshot:
        data = self._get_json('/pdf/document/snapshot', types)
        return decode_typed_document(data, element_class)

    def fetch_typed_page_snapshot(self, page_index: int, element_class: Type[ObjectRef],
                                  types: Optional[str]) -> TypedPageSnapshot:
        data = self._get_json(self._page_path(page_index), types)
        return decode_typed_page(data, element_class)


class PageClient:
    def __init__(self, page_index: int, root: "PDFDancer", page_size: Optional[PageSize] = None,
                 orientation: Optional[Union[Orientation, str]] = Orientation.PORTRAIT):
        self.page_index = page_index
        self.root = root
        self.object_type = ObjectType.PAGE
        self.position = Position.at_page(page_index)
        self.internal_id = f"PAGE-{page_index}"
        self.page_size = page_size
        if isinstance(orientation, str):
            normalized = orientation.strip().upper()
            try:
                self.orientation = Orientation(normalized)
            except ValueError:
                self.orientation = normalized
        else:
            self.orientation = orientation

    def select_paths(self) -> List[PathObject]:
        # noinspection PyProtectedMember
        return self.root._to_path_objects(self.root._find_paths(Position.at_page(self.page_index)))

    def select_paths_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[PathObject]:
        position = Position.at_page_coordinates(self.page_index, x, y)
        # noinspection PyProtectedMember
        return self.root._to_path_objects(self.root._find_paths(position, tolerance))

    def select_paragraphs(self) -> List[ParagraphObject]:
        # noinspection PyProtectedMember
        return self.root._to_paragraph_objects(self.root._find_paragraphs(Position.at_page(self.page_index)))

    def select_paragraphs_starting_with(self, text: str) -> List[ParagraphObject]:
        position = Position.at_page(self.page_index)
        position.with_text_starts(text)
        # noinspection PyProtectedMember
        return self.root._to_paragraph_objects(self.root._find_paragraphs(position))

    def select_paragraphs_matching(self, pattern: str) -> List[ParagraphObject]:
        position = Position.at_page(self.page_index)
        position.text_pattern = pattern
        # noinspection PyProtectedMember
        return self.root._to_paragraph_objects(self.root._find_paragraphs(position))

    def select_paragraphs_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[ParagraphObject]:
        position = Position.at_page_coordinates(self.page_index, x, y)
        # noinspection PyProtectedMember
        return self.root._to_paragraph_objects(self.root._find_paragraphs(position, tolerance))

    def select_text_lines(self) -> List[TextLineObject]:
        position = Position.at_page(self.page_index)
        # noinspection PyProtectedMember
        return self.root._to_textline_objects(self.root._find_text_lines(position))

    def select_text_lines_starting_with(self, text: str) -> List[TextLineObject]:
        position = Position.at_page(self.page_index)
        position.with_text_starts(text)
        # noinspection PyProtectedMember
        return self.root._to_textline_objects(self.root._find_text_lines(position))

    def select_text_lines_matching(self, pattern: str) -> List[TextLineObject]:
        position = Position.at_page(self.page_index)
        position.text_pattern = pattern
        # noinspection PyProtectedMember
        return self.root._to_textline_objects(self.root._find_text_lines(position))

    def select_text_lines_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[TextLineObject]:
        position = Position.at_page_coordinates(self.page_index, x, y)
        # noinspection PyProtectedMember
        return self.root._to_textline_objects(self.root._find_text_lines(position, tolerance))

    def select_images(self) -> List[ImageObject]:
        # noinspection PyProtectedMember
        return self.root._to_image_objects(self.root._find_images(Position.at_page(self.page_index)))

    def select_images_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[ImageObject]:
        position = Position.at_page_coordinates(self.page_index, x, y)
        # noinspection PyProtectedMember
        return self.root._to_image_objects(self.root._find_images(position, tolerance))

    def select_forms(self) -> List[FormObject]:
        position = Position.at_page(self.page_index)
        # noinspection PyProtectedMember
        return self.root._to_form_objects(self.root._find_form_x_objects(position))

    def select_forms_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[FormObject]:
        position = Position.at_page_coordinates(self.page_index, x, y)
        # noinspection PyProtectedMember
        return self.root._to_form_objects(self.root._find_form_x_objects(position, tolerance))

    def select_form_fields(self) -> List[FormFieldObject]:
        position = Position.at_page(self.page_index)
        # noinspection PyProtectedMember
        return self.root._to_form_field_objects(self.root._find_form_fields(position))

    def select_form_fields_by_name(self, field_name: str) -> List[FormFieldObject]:
        pos = Position.by_name(field_name)
        pos.page_index = self.page_index
        # noinspection PyProtectedMember
        return self.root._to_form_field_objects(self.root._find_form_fields(pos))

    def select_form_fields_at(self, x: float, y: float, tolerance: float = DEFAULT_TOLERANCE) -> List[FormFieldObject]:
        position = Position.at_page_coordinates(self.page_index, x, y)
        # noinspection PyProtectedMember
        return self.root._to_form_field_objects(self.root._find_form_fields(position, tolerance))

    def select_elements(self) -> list:
        """
        Select every element on this page, in document order.
        """
        snapshot = self.root.get_page_snapshot(self.page_index)
        # noinspection PyProtectedMember
        return self.root._to_mixed_objects(snapshot.elements)

    def replace_templates(self, replacements: Sequence[TemplateReplacement],
                          reflow_preset: Optional[ReflowPreset] = None) -> bool:
        """Replace placeholders on this page only."""
        return self.root.replace_templates(replacements, page_index=self.page_index, reflow_preset=reflow_preset)

    @classmethod
    def from_ref(cls, root: 'PDFDancer', page_ref: PageRef, page_index: Optional[int] = None) -> 'PageClient':
        """
        Build a page client from a decoded page reference.

        ``page_index`` is the index the page was listed under; it is used
        when the reference itself carries no page position.
        """
        if page_ref.position is not None and page_ref.position.page_index is not None:
            page_index = page_ref.position.page_index
        page_client = PageClient(
            page_index=page_index,
            root=root,
            page_size=page_ref.page_size,
            orientation=page_ref.orientation
        )
        page_client.internal_id = page_ref.internal_id or page_client.internal_id
        if page_ref.position is not None and page_ref.position.page_index is not None:
            page_client.position = page_ref.position
        return page_client

    def delete(self) -> bool:
        # noinspection PyProtectedMember
        return self.root._delete_page(self._ref())

    def move_to(self, target_page_index: int) -> bool:
        """Move this page to a different index within the document."""
        if target_page_index is None or target_page_index < 0:
            raise ValidationException(f"Target page index must be >= 0, got {target_page_index}")

        # noinspection PyProtectedMember
        moved = self.root._move_page(self.page_index, target_page_index)
        if moved:
            self.page_index = target_page_index
            self.position = Position.at_page(target_page_index)
        return moved

    def _ref(self) -> ObjectRef:
        return ObjectRef(internal_id=self.internal_id, position=self.position, type=self.object_type)

    @property
    def size(self):
        """Property alias for page size."""
        return self.page_size

    @property
    def page_orientation(self):
        """Property alias for orientation."""
        return self.orientation

    def __repr__(self) -> str:
        return f"<PageClient index={self.page_index} id={self.internal_id}>"


class PDFDancer:
    """
    REST API client for interacting with the PDFDancer PDF manipulation service.
    This client provides a convenient Python interface for performing PDF operations
    including session management, object searching, manipulation, and retrieval.
    Handles authentication, session lifecycle, and HTTP communication transparently.

    Selections are answered from snapshot caches owned by this instance. A client
    instance is not thread-safe.
    """

    # --------------------------------------------------------------
    # CLASS METHOD ENTRY POINT
    # --------------------------------------------------------------
    @classmethod
    def open(cls,
             pdf_data: Union[bytes, Path, str, BinaryIO],
             token: Optional[str] = None,
             base_url: Optional[str] = None,
             timeout: float = 30.0,
             retry_config: Optional[RetryConfig] = None) -> "PDFDancer":
        """
        Create a client session, falling back to environment variables when needed.

        Args:
            pdf_data: PDF payload supplied directly or via filesystem handles.
            token: Override for the API token; falls back to `PDFDANCER_TOKEN` environment variable.
            base_url: Override for the API base URL; falls back to `PDFDANCER_BASE_URL`
                or defaults to `https://api.pdfdancer.com`.
            timeout: HTTP read timeout in seconds.
            retry_config: Retry policy for HTTP requests; defaults to `RetryConfig.default_config()`.

        Returns:
            A ready-to-use `PDFDancer` client instance.
        """
        resolved_token = cls._resolve_token(token)
        resolved_base_url = cls._resolve_base_url(base_url)

        return PDFDancer(resolved_token, pdf_data, resolved_base_url, timeout, retry_config)

    @classmethod
    def _resolve_base_url(cls, base_url: Optional[str]) -> str:
        env_base_url = os.getenv("PDFDANCER_BASE_URL")
        resolved_base_url = base_url or (env_base_url.strip() if env_base_url and env_base_url.strip() else None)
        if resolved_base_url is None:
            resolved_base_url = DEFAULT_BASE_URL
        return resolved_base_url

    @classmethod
    def _resolve_token(cls, token: Optional[str]) -> str:
        resolved_token = token.strip() if token and token.strip() else None
        if resolved_token is None:
            env_token = os.getenv("PDFDANCER_TOKEN")
            resolved_token = env_token.strip() if env_token and env_token.strip() else None

        if resolved_token is None:
            raise ValidationException(
                "Missing PDFDancer API token. Pass a token via the `token` argument "
                "or set the PDFDANCER_TOKEN environment variable."
            )
        return resolved_token

    @classmethod
    def new(cls,
            token: Optional[str] = None,
            base_url: Optional[str] = None,
            timeout: float = 30.0,
            page_size: Optional[Union[PageSize, str, Mapping[str, Any]]] = None,
            orientation: Optional[Union[Orientation, str]] = None,
            initial_page_count: int = 1,
            retry_config: Optional[RetryConfig] = None) -> "PDFDancer":
        """
        Create a new blank PDF document with optional configuration.

        Args:
            token: Override for the API token; falls back to `PDFDANCER_TOKEN` environment variable.
            base_url: Override for the API base URL; falls back to `PDFDANCER_BASE_URL`
                or defaults to `https://api.pdfdancer.com`.
            timeout: HTTP read timeout in seconds.
            page_size: Page size for the PDF (default: A4). Accepts `PageSize`, a standard name string, or a
                mapping with `width`/`height` values.
            orientation: Page orientation (default: PORTRAIT). Can be Orientation enum or string.
            initial_page_count: Number of initial blank pages (default: 1).
            retry_config: Retry policy for HTTP requests.

        Returns:
            A ready-to-use `PDFDancer` client instance with a blank PDF.
        """
        resolved_token = cls._resolve_token(token)
        resolved_base_url = cls._resolve_base_url(base_url)

        instance = object.__new__(cls)
        instance._init_transport(resolved_token, resolved_base_url, timeout, retry_config)
        instance._pdf_bytes = None
        instance._session_id = instance._create_blank_pdf_session(
            page_size=page_size,
            orientation=orientation,
            initial_page_count=initial_page_count
        )
        instance._snapshot_cache = SnapshotCache(_HttpSnapshotFetcher(instance))
        return instance

    def __init__(self, token: str, pdf_data: Union[bytes, Path, str, BinaryIO],
                 base_url: str, read_timeout: float = 0, retry_config: Optional[RetryConfig] = None):
        """
        Creates a new client with PDF data.
        This constructor initializes the client, uploads the PDF data to create
        a new session, and prepares the client for PDF manipulation operations.

        Args:
            token: Authentication token for API access
            pdf_data: PDF file data as bytes, Path, filename string, or file-like object
            base_url: Base URL of the PDFDancer API server
            read_timeout: Timeout in seconds for HTTP requests (0 disables the timeout)
            retry_config: Retry policy for HTTP requests

        Raises:
            ValidationException: If token is empty or PDF data is invalid
            SessionException: If session creation fails
            HttpClientException: If HTTP communication fails
        """
        self._init_transport(token, base_url, read_timeout, retry_config)

        self._pdf_bytes = self._process_pdf_data(pdf_data)
        self._session_id = self._create_session()

        # One cache per session, populated lazily
        self._snapshot_cache = SnapshotCache(_HttpSnapshotFetcher(self))

    def _init_transport(self, token: str, base_url: str, read_timeout: float,
                        retry_config: Optional[RetryConfig]) -> None:
        if not token or not token.strip():
            raise ValidationException("Authentication token cannot be null or empty")

        self._token = token.strip()
        self._base_url = base_url.rstrip('/')
        self._read_timeout = read_timeout
        self._retry_config = retry_config if retry_config is not None else RetryConfig.default_config()

        # Create HTTP session for connection reuse
        self._session = requests.Session()
        self._session.headers.update({
            'Authorization': f'Bearer {self._token}'
        })

    @staticmethod
    def _process_pdf_data(pdf_data: Union[bytes, Path, str, BinaryIO]) -> bytes:
        """
        Process PDF data from various input types with strict validation.
        """
        if pdf_data is None:
            raise ValidationException("PDF data cannot be null")

        try:
            if isinstance(pdf_data, bytes):
                if len(pdf_data) == 0:
                    raise ValidationException("PDF data cannot be empty")
                return pdf_data

            elif isinstance(pdf_data, (Path, str)):
                file_path = Path(pdf_data)
                if not file_path.exists():
                    raise ValidationException(f"PDF file does not exist: {file_path}")
                if not file_path.is_file():
                    raise ValidationException(f"Path is not a file: {file_path}")
                if not file_path.stat().st_size > 0:
                    raise ValidationException(f"PDF file is empty: {file_path}")

                with open(file_path, 'rb') as f:
                    return f.read()

            elif hasattr(pdf_data, 'read'):
                data = pdf_data.read()
                if isinstance(data, str):
                    data = data.encode('utf-8')
                if len(data) == 0:
                    raise ValidationException("PDF data from file-like object is empty")
                return data

            else:
                raise ValidationException(f"Unsupported PDF data type: {type(pdf_data)}")

        except (IOError, OSError) as e:
            raise PdfDancerException(f"Failed to read PDF data: {e}", cause=e)

    # --------------------------------------------------------------
    # HTTP plumbing
    # --------------------------------------------------------------

    def _extract_error_message(self, response: Optional[requests.Response]) -> str:
        """
        Extract meaningful error messages from API response.
        Parses JSON error responses with _embedded.errors structure.
        """
        if response is None:
            return "Unknown error"

        try:
            error_data = response.json()

            if "_embedded" in error_data and "errors" in error_data["_embedded"]:
                errors = error_data["_embedded"]["errors"]
                if errors and isinstance(errors, list):
                    messages = []
                    for error in errors:
                        if isinstance(error, dict) and "message" in error:
                            messages.append(error["message"])

                    if messages:
                        return "; ".join(messages)

            if "message" in error_data:
                return error_data["message"]

            return response.text or f"HTTP {response.status_code}"

        except (ValueError, KeyError, TypeError):
            return response.text or f"HTTP {response.status_code}"

    def _handle_authentication_error(self, response: Optional[requests.Response]) -> None:
        """
        Translate authentication failures into a clear, actionable validation error.
        """
        if response is None:
            return

        if response.status_code in (401, 403):
            details = self._extract_error_message(response)
            raise ValidationException(
                "Authentication with the PDFDancer API failed. "
                "Confirm that your API token is valid, has not expired, and is supplied via "
                "the `token` argument or the PDFDANCER_TOKEN environment variable. "
                f"Server response: {details}"
            )

    @staticmethod
    def _cleanup_url_path(base_url: str, path: str) -> str:
        """
        Combine base_url and path, ensuring no double slashes.
        """
        base = base_url.rstrip('/')
        path = path.lstrip('/')
        return f"{base}/{path}"

    def _retry_delay(self, attempt: int, response: Optional[requests.Response]) -> float:
        if response is not None and response.status_code == 429:
            retry_after = _get_retry_after_delay(response)
            if retry_after is not None:
                return min(retry_after, self._retry_config.max_delay)
        return self._retry_config.backoff_delay(attempt)

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Issue a request, retrying according to the configured RetryConfig.
        Returns the last response; raises RateLimitException when 429 persists.
        """
        url = self._cleanup_url_path(self._base_url, path)
        config = self._retry_config
        attempt = 1
        while True:
            try:
                response = self._session.request(
                    method=method,
                    url=url,
                    timeout=self._read_timeout if self._read_timeout > 0 else None,
                    verify=not DISABLE_SSL_VERIFY,
                    **kwargs
                )
            except requests.exceptions.Timeout:
                if attempt < config.max_attempts and config.retry_on_timeout:
                    delay = config.backoff_delay(attempt)
                    logger.debug("%s %s timed out, retrying in %.2fs (attempt %d)", method, path, delay, attempt)
                    time.sleep(delay)
                    attempt += 1
                    continue
                raise
            except requests.exceptions.ConnectionError:
                if attempt < config.max_attempts and config.retry_on_connection_error:
                    delay = config.backoff_delay(attempt)
                    logger.debug("%s %s connection failed, retrying in %.2fs (attempt %d)",
                                 method, path, delay, attempt)
                    time.sleep(delay)
                    attempt += 1
                    continue
                raise

            status = response.status_code
            if status >= 400 and attempt < config.max_attempts and config.is_retryable_status_code(status):
                delay = self._retry_delay(attempt, response)
                logger.debug("%s %s returned %d, retrying in %.2fs (attempt %d)", method, path, status, delay, attempt)
                time.sleep(delay)
                attempt += 1
                continue

            if status == 429:
                raise RateLimitException(
                    f"Rate limit exceeded for {method} {path}: {self._extract_error_message(response)}",
                    retry_after=_get_retry_after_delay(response),
                    response=response
                )
            return response

    def _create_session(self) -> str:
        """
        Creates a new PDF processing session by uploading the PDF data.
        """
        try:
            files = {
                'pdf': ('document.pdf', self._pdf_bytes, 'application/pdf')
            }

            if DEBUG:
                logger.debug("POST /session/create - request size: %d bytes", len(self._pdf_bytes))

            headers = {'X-Generated-At': _generate_timestamp()}
            response = self._send('POST', "/session/create", files=files, headers=headers)

            if DEBUG:
                logger.debug("POST /session/create - response size: %d bytes", len(response.content))

            _log_generated_at_header(response, "POST", "/session/create")
            self._handle_authentication_error(response)
            response.raise_for_status()
            session_id = response.text.strip()

            if not session_id:
                raise SessionException("Server returned empty session ID")

            return session_id

        except requests.exceptions.RequestException as e:
            self._handle_authentication_error(getattr(e, 'response', None))
            error_message = self._extract_error_message(getattr(e, 'response', None))
            raise HttpClientException(f"Failed to create session: {error_message}",
                                      response=getattr(e, 'response', None), cause=e) from None

    def _create_blank_pdf_session(self,
                                  page_size: Optional[Union[PageSize, str, Mapping[str, Any]]] = None,
                                  orientation: Optional[Union[Orientation, str]] = None,
                                  initial_page_count: int = 1) -> str:
        """
        Creates a new PDF processing session with a blank PDF document.

        Raises:
            ValidationException: If the page configuration is invalid
            SessionException: If session creation fails
            HttpClientException: If HTTP communication fails
        """
        request_data = {}

        if page_size is not None:
            try:
                request_data['pageSize'] = PageSize.coerce(page_size).to_dict()
            except ValueError as exc:
                raise ValidationException(str(exc)) from exc
            except TypeError:
                raise ValidationException(f"Invalid page_size type: {type(page_size)}")

        if orientation is not None:
            if isinstance(orientation, Orientation):
                request_data['orientation'] = orientation.value
            elif isinstance(orientation, str):
                request_data['orientation'] = orientation.strip().upper()
            else:
                raise ValidationException(f"Invalid orientation type: {type(orientation)}")

        if initial_page_count < 1:
            raise ValidationException(f"Initial page count must be at least 1, got {initial_page_count}")
        request_data['initialPageCount'] = initial_page_count

        try:
            if DEBUG:
                logger.debug("POST /session/new - request size: %d bytes",
                             len(json.dumps(request_data).encode('utf-8')))

            headers = {
                'Content-Type': 'application/json',
                'X-Generated-At': _generate_timestamp()
            }
            response = self._send('POST', "/session/new", json=request_data, headers=headers)

            _log_generated_at_header(response, "POST", "/session/new")
            self._handle_authentication_error(response)
            response.raise_for_status()
            session_id = response.text.strip()

            if not session_id:
                raise SessionException("Server returned empty session ID")

            return session_id

        except requests.exceptions.RequestException as e:
            self._handle_authentication_error(getattr(e, 'response', None))
            error_message = self._extract_error_message(getattr(e, 'response', None))
            raise HttpClientException(f"Failed to create blank PDF session: {error_message}",
                                      response=getattr(e, 'response', None), cause=e) from None

    def _make_request(self, method: str, path: str, data: Optional[dict] = None,
                      params: Optional[dict] = None) -> requests.Response:
        """
        Make HTTP request with session headers and error handling.
        """
        headers = {
            'X-Session-Id': self._session_id,
            'Content-Type': 'application/json',
            'X-Generated-At': _generate_timestamp()
        }

        try:
            if DEBUG:
                request_size = len(json.dumps(data).encode('utf-8')) if data is not None else 0
                logger.debug("%s %s - request size: %d bytes", method, path, request_size)

            response = self._send(method, path, json=data, params=params, headers=headers)

            if DEBUG:
                logger.debug("%s %s - response size: %d bytes", method, path, len(response.content))

            _log_generated_at_header(response, method, path)

            if response.status_code == 404:
                try:
                    error_data = response.json()
                except ValueError:
                    error_data = None
                if isinstance(error_data, dict) and error_data.get('error') == 'FontNotFoundException':
                    raise FontNotFoundException(error_data.get('message', 'Font not found'))

            self._handle_authentication_error(response)
            response.raise_for_status()
            return response

        except requests.exceptions.RequestException as e:
            self._handle_authentication_error(getattr(e, 'response', None))
            error_message = self._extract_error_message(getattr(e, 'response', None))
            raise HttpClientException(f"API request failed: {error_message}", response=getattr(e, 'response', None),
                                      cause=e) from None

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            preview = response.text[:200] if response.text else ''
            raise HttpClientException(f"Failed to parse response body: {preview}", response=response,
                                      cause=e) from None

    # --------------------------------------------------------------
    # Snapshot Operations
    # --------------------------------------------------------------

    def get_document_snapshot(self, types: Optional[str] = None) -> DocumentSnapshot:
        """
        Snapshot of the entire document with all pages and elements (cached).

        Args:
            types: Optional comma-separated string of object types to filter (e.g., "PARAGRAPH,IMAGE")
        """
        return self._snapshot_cache.get_document_snapshot(types)

    def get_page_snapshot(self, page_index: int, types: Optional[str] = None) -> PageSnapshot:
        """
        Snapshot of a specific page with all its elements (cached).

        Args:
            page_index: The index of the page to snapshot (0-based)
            types: Optional comma-separated string of object types to filter (e.g., "PARAGRAPH,IMAGE")
        """
        return self._snapshot_cache.get_page_snapshot(page_index, types)

    def get_typed_document_snapshot(self, element_class: Type[ObjectRef],
                                    types: Optional[str] = None) -> TypedDocumentSnapshot:
        return self._snapshot_cache.get_typed_document_snapshot(element_class, types)

    def get_typed_page_snapshot(self, page_index: int, element_class: Type[ObjectRef],
                                types: Optional[str] = None) -> TypedPageSnapshot:
        return self._snapshot_cache.get_typed_page_snapshot(page_index, element_class, types)

    def _invalidate_snapshots(self) -> None:
        self._snapshot_cache.invalidate()

    # --------------------------------------------------------------
    # Selection
    # --------------------------------------------------------------

    def _find(self, object_type: Optional[ObjectType] = None, position: Optional[Position] = None,
              tolerance: float = DEFAULT_TOLERANCE) -> List[ObjectRef]:
        """
        Searches for PDF objects matching the specified criteria.
        Uses the snapshot cache for all queries except paths at specific coordinates.
        """
        # Snapshots don't carry the vector data needed for precise path hit tests
        if object_type == ObjectType.PATH and position and position.bounding_rect:
            request_data = FindRequest(object_type, position).to_dict()
            response = self._make_request('POST', '/pdf/find', data=request_data)
            return decode(self._json(response), list)

        if position and position.page_index is not None:
            elements = self.get_page_snapshot(position.page_index).elements
        else:
            elements = [element
                        for page_snapshot in self.get_document_snapshot().pages
                        for element in page_snapshot.elements]
        return filter_snapshot_elements(elements, object_type, position, tolerance)

    def _find_typed(self, element_class: Type[ObjectRef], types: str, object_type: ObjectType,
                    position: Optional[Position], tolerance: float) -> List[ObjectRef]:
        if position and position.page_index is not None:
            snapshot = self.get_typed_page_snapshot(position.page_index, element_class, types)
            elements = get_typed_elements(snapshot, element_class)
        else:
            snapshot = self.get_typed_document_snapshot(element_class, types)
            elements = flatten_typed_document(snapshot, element_class)
        return filter_snapshot_elements(elements, object_type, position, tolerance)

    def _find_paragraphs(self, position: Optional[Position] = None,
                         tolerance: float = DEFAULT_TOLERANCE) -> List[TextObjectRef]:
        return self._find_typed(TextObjectRef, ObjectType.PARAGRAPH.value, ObjectType.PARAGRAPH,
                                position, tolerance)

    def _find_text_lines(self, position: Optional[Position] = None,
                         tolerance: float = DEFAULT_TOLERANCE) -> List[TextObjectRef]:
        return self._find_typed(TextObjectRef, ObjectType.TEXT_LINE.value, ObjectType.TEXT_LINE,
                                position, tolerance)

    def _find_images(self, position: Optional[Position] = None,
                     tolerance: float = DEFAULT_TOLERANCE) -> List[ObjectRef]:
        return self._find(ObjectType.IMAGE, position, tolerance)

    def _find_paths(self, position: Optional[Position] = None,
                    tolerance: float = DEFAULT_TOLERANCE) -> List[ObjectRef]:
        return self._find(ObjectType.PATH, position, tolerance)

    def _find_form_x_objects(self, position: Optional[Position] = None,
                             tolerance: float = DEFAULT_TOLERANCE) -> List[ObjectRef]:
        return self._find(ObjectType.FORM_X_OBJECT, position, tolerance)

    def _find_form_fields(self, position: Optional[Position] = None,
                          tolerance: float = DEFAULT_TOLERANCE) -> List[FormFieldRef]:
        """
        Form fields grouped by kind: one typed snapshot per form type filter,
        each reference narrowed to the kind of its filter.
        """
        page_index = position.page_index if position else None
        refs = []
        for form_type in FORM_TYPE_FILTERS:
            if page_index is not None:
                snapshot = self.get_typed_page_snapshot(page_index, FormFieldRef, form_type)
                elements = get_typed_elements(snapshot, FormFieldRef)
            else:
                snapshot = self.get_typed_document_snapshot(FormFieldRef, form_type)
                elements = flatten_typed_document(snapshot, FormFieldRef)
            refs.extend(adjust_form_field_type(ref, form_type) for ref in elements)
        return filter_snapshot_elements(refs, ObjectType.FORM_FIELD, position, tolerance)

    def select_paragraphs(self) -> List[ParagraphObject]:
        return self._to_paragraph_objects(self._find_paragraphs(None))

    def select_text_lines(self) -> List[TextLineObject]:
        return self._to_textline_objects(self._find_text_lines(None))

    def select_images(self) -> List[ImageObject]:
        """
        Searches for image objects in the whole document
        """
        return self._to_image_objects(self._find_images(None))

    def select_paths(self) -> List[PathObject]:
        return self._to_path_objects(self._find_paths(None))

    def select_forms(self) -> List[FormObject]:
        """
        Searches for form XObjects in the whole document.
        """
        return self._to_form_objects(self._find_form_x_objects(None))

    def select_form_fields(self) -> List[FormFieldObject]:
        return self._to_form_field_objects(self._find_form_fields(None))

    def select_form_fields_by_name(self, field_name: str) -> List[FormFieldObject]:
        return self._to_form_field_objects(self._find_form_fields(Position.by_name(field_name)))

    def select_elements(self) -> list:
        """
        Select every element in the document, page by page in document order.
        """
        snapshot = self.get_document_snapshot()
        return self._to_mixed_objects([element for page in snapshot.pages for element in page.elements])

    # --------------------------------------------------------------
    # Page Operations
    # --------------------------------------------------------------

    def page(self, page_index: int) -> PageClient:
        """
        Get a specific page by index, using the snapshot cache.

        Args:
            page_index: The 0-based page index
        """
        if page_index is None or page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {page_index}")
        page_snapshot = self.get_page_snapshot(page_index)
        if page_snapshot.page_ref is not None:
            return PageClient.from_ref(self, page_snapshot.page_ref, page_index)
        return PageClient(page_index, self)

    def pages(self) -> List[PageClient]:
        snapshot = self.get_document_snapshot()
        return [PageClient.from_ref(self, page_snapshot.page_ref, index) if page_snapshot.page_ref is not None
                else PageClient(index, self)
                for index, page_snapshot in enumerate(snapshot.pages)]

    def new_page(self) -> PageRef:
        """Append a blank page to the document."""
        response = self._make_request('POST', '/pdf/page/add', data=None)
        result = decode(self._json(response), PageRef)

        self._invalidate_snapshots()
        return result

    def delete_page(self, page_index: int) -> bool:
        """Delete the page at ``page_index`` (0-based)."""
        if page_index is None or page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {page_index}")
        # noinspection PyProtectedMember
        return self._delete_page(PageClient(page_index, self)._ref())

    def _delete_page(self, page_ref: ObjectRef) -> bool:
        """
        Deletes a page from the PDF document.

        Returns:
            True if the page was successfully deleted
        """
        if page_ref is None:
            raise ValidationException("Page reference cannot be null")

        response = self._make_request('DELETE', '/pdf/page/delete', data=page_ref.to_dict())
        result = self._json(response)

        if result:
            self._invalidate_snapshots()

        return bool(result)

    def move_page(self, from_page_index: int, to_page_index: int) -> bool:
        """Move a page to a different index within the document."""
        return self._move_page(from_page_index, to_page_index)

    def _move_page(self, from_page_index: int, to_page_index: int) -> bool:
        for value, label in ((from_page_index, "from_page_index"), (to_page_index, "to_page_index")):
            if value is None:
                raise ValidationException(f"{label} cannot be null")
            if not isinstance(value, int):
                raise ValidationException(f"{label} must be an integer, got {type(value)}")
            if value < 0:
                raise ValidationException(f"{label} must be >= 0, got {value}")

        request_data = PageMoveRequest(from_page_index, to_page_index).to_dict()
        response = self._make_request('PUT', '/pdf/page/move', data=request_data)
        result = self._json(response)

        if result:
            self._invalidate_snapshots()

        return bool(result)

    # --------------------------------------------------------------
    # Manipulation Operations
    # --------------------------------------------------------------

    def delete(self, object_ref: ObjectRef) -> bool:
        return self._delete(object_ref)

    def _delete(self, object_ref: ObjectRef) -> bool:
        """
        Deletes the specified PDF object from the document.

        Returns:
            True if the object was successfully deleted
        """
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")

        request_data = DeleteRequest(object_ref).to_dict()
        response = self._make_request('DELETE', '/pdf/delete', data=request_data)
        result = self._json(response)

        if result:
            self._invalidate_snapshots()

        return bool(result)

    def move(self, object_ref: ObjectRef, position: Position) -> bool:
        return self._move(object_ref, position)

    def _move(self, object_ref: ObjectRef, position: Position) -> bool:
        """
        Moves a PDF object to a new position within the document.

        Returns:
            True if the object was successfully moved
        """
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")
        if position is None:
            raise ValidationException("Position cannot be null")

        request_data = MoveRequest(object_ref, position).to_dict()
        response = self._make_request('PUT', '/pdf/move', data=request_data)
        result = self._json(response)

        if result:
            self._invalidate_snapshots()

        return bool(result)

    def change_form_field(self, form_field_ref: FormFieldRef, new_value: str) -> bool:
        return self._change_form_field(form_field_ref, new_value)

    def _change_form_field(self, form_field_ref: FormFieldRef, new_value: str) -> bool:
        if form_field_ref is None:
            raise ValidationException("Form field reference cannot be null")

        request_data = ChangeFormFieldRequest(form_field_ref, new_value).to_dict()
        response = self._make_request('PUT', '/pdf/modify/formField', data=request_data)
        result = self._json(response)

        if result:
            self._invalidate_snapshots()

        return bool(result)

    def modify_paragraph(self, object_ref: ObjectRef, new_text: Optional[str]) -> CommandResult:
        return self._modify_paragraph(object_ref, new_text)

    def modify_text_line(self, object_ref: ObjectRef, new_text: str) -> CommandResult:
        return self._modify_text_line(object_ref, new_text)

    def _modify_paragraph(self, object_ref: ObjectRef, new_text: Optional[str]) -> CommandResult:
        """
        Replaces the text of a paragraph.

        Returns:
            CommandResult reported by the service
        """
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")
        if new_text is None:
            return CommandResult.empty("ModifyParagraph", object_ref.internal_id)

        request_data = ModifyTextRequest(object_ref, new_text).to_dict()
        response = self._make_request('PUT', '/pdf/text/paragraph', data=request_data)
        result = CommandResult.from_dict(self._json(response))

        if result.success:
            self._invalidate_snapshots()
        return result

    def _modify_text_line(self, object_ref: ObjectRef, new_text: str) -> CommandResult:
        if object_ref is None:
            raise ValidationException("Object reference cannot be null")
        if new_text is None:
            raise ValidationException("New text cannot be null")

        request_data = ModifyTextRequest(object_ref, new_text).to_dict()
        response = self._make_request('PUT', '/pdf/text/line', data=request_data)
        result = CommandResult.from_dict(self._json(response))

        if result.success:
            self._invalidate_snapshots()
        return result

    def redact(self, objects: Sequence[Any], replacement: str = "[REDACTED]",
               placeholder_color: Optional[Color] = None) -> RedactResponse:
        """
        Redact content by object reference.
        Text is replaced with `replacement`; images and paths become solid
        `placeholder_color` rectangles (black by default).

        Args:
            objects: References or selected objects exposing `internal_id`

        Returns:
            RedactResponse with the count of redacted items and any warnings
        """
        if not objects:
            raise ValidationException("At least one object is required")

        request = RedactRequest(
            targets=[RedactTarget(obj.internal_id) for obj in objects],
            default_replacement=replacement,
            placeholder_color=placeholder_color or Color(0, 0, 0)
        )
        response = self._make_request('POST', '/pdf/redact', data=request.to_dict())
        result = RedactResponse.from_dict(self._json(response))

        if result.success:
            self._invalidate_snapshots()
        return result

    def replace_templates(self, replacements: Sequence[TemplateReplacement], page_index: Optional[int] = None,
                          reflow_preset: Optional[ReflowPreset] = None) -> bool:
        """
        Replace exact-text placeholders with new text.

        Every placeholder must be found, otherwise nothing is replaced and the
        service reports failure.

        Args:
            replacements: Placeholders and the text replacing each one
            page_index: Restrict the replacement to one page (0-based); all pages when None
            reflow_preset: How replacement text is fitted into the placeholder's space

        Returns:
            True if all replacements were applied
        """
        if not replacements:
            raise ValidationException("At least one replacement is required")
        if page_index is not None and page_index < 0:
            raise ValidationException(f"Page index must be >= 0, got {page_index}")

        request = TemplateReplaceRequest(list(replacements), page_index, reflow_preset)
        response = self._make_request('PUT', '/pdf/template/replace', data=request.to_dict())
        result = self._json(response)

        if result:
            self._invalidate_snapshots()

        return bool(result)

    def transform_image(self, request: ImageTransformRequest) -> bool:
        """Scale, rotate, crop, fade or flip an image in place."""
        if request is None or request.object_ref is None:
            raise ValidationException("Image reference cannot be null")

        response = self._make_request('PUT', '/pdf/image/transform', data=request.to_dict())
        result = self._json(response)

        if result:
            self._invalidate_snapshots()

        return bool(result)

    # --------------------------------------------------------------
    # Document Operations
    # --------------------------------------------------------------

    def get_bytes(self) -> bytes:
        """
        Downloads the current state of the PDF document with all modifications applied.
        """
        response = self._make_request('GET', f'/session/{self._session_id}/pdf')
        return response.content

    def save(self, file_path: Union[str, Path]) -> None:
        """
        Saves the current PDF to a file.

        Raises:
            ValidationException: If file path is invalid
            PdfDancerException: If file writing fails
        """
        if not file_path:
            raise ValidationException("File path cannot be null or empty")

        try:
            pdf_data = self.get_bytes()
            output_path = Path(file_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            with open(output_path, 'wb') as f:
                f.write(pdf_data)

        except (IOError, OSError) as e:
            raise PdfDancerException(f"Failed to save PDF file: {e}", cause=e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._session.close()

    # --------------------------------------------------------------
    # Wrapping references
    # --------------------------------------------------------------

    def _to_path_objects(self, refs: List[ObjectRef]) -> List[PathObject]:
        return [PathObject(self, ref) for ref in refs]

    def _to_paragraph_objects(self, refs: List[TextObjectRef]) -> List[ParagraphObject]:
        return [ParagraphObject(self, ref) for ref in refs]

    def _to_textline_objects(self, refs: List[TextObjectRef]) -> List[TextLineObject]:
        return [TextLineObject(self, ref) for ref in refs]

    def _to_image_objects(self, refs: List[ObjectRef]) -> List[ImageObject]:
        return [ImageObject(self, ref) for ref in refs]

    def _to_form_objects(self, refs: List[ObjectRef]) -> List[FormObject]:
        return [FormObject(self, ref) for ref in refs]

    def _to_form_field_objects(self, refs: List[FormFieldRef]) -> List[FormFieldObject]:
        return [FormFieldObject(self, ref) for ref in refs]

    def _to_mixed_objects(self, refs: List[ObjectRef]) -> list:
        """
        Convert decoded references to their high-level object types.
        Page references are not elements and are skipped.
        """
        result = []
        for ref in refs:
            if isinstance(ref, TextObjectRef):
                if ref.type == ObjectType.PARAGRAPH:
                    result.append(ParagraphObject(self, ref))
                else:
                    result.append(TextLineObject(self, ref))
            elif isinstance(ref, FormFieldRef):
                result.append(FormFieldObject(self, ref))
            elif ref.type == ObjectType.PAGE:
                continue
            elif ref.type == ObjectType.IMAGE:
                result.append(ImageObject(self, ref))
            elif ref.type == ObjectType.PATH:
                result.append(PathObject(self, ref))
            elif ref.type == ObjectType.FORM_X_OBJECT:
                result.append(FormObject(self, ref))
            else:
                logger.debug("No object wrapper for %s element %s", ref.type.value, ref.internal_id)
        return result
