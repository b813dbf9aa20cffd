"""
Exception classes for the PDFDancer Python client.
"""

from typing import Optional

import requests


class PdfDancerException(Exception):
    """
    Base exception for all PDFDancer client errors.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class FontNotFoundException(PdfDancerException):
    """
    Raised when the service cannot find a requested font.
    """

    def __init__(self, message: str):
        super().__init__(f"Font not found: {message}")


class HttpClientException(PdfDancerException):
    """
    Raised on HTTP transport failures or non-successful responses.
    """

    def __init__(self, message: str, response: Optional[requests.Response] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, cause)
        self.response = response
        self.status_code = response.status_code if response is not None else None


class RateLimitException(HttpClientException):
    """
    Raised when the service keeps answering 429 after all retries are used up.
    """

    def __init__(self, message: str, retry_after: Optional[int] = None,
                 response: Optional[requests.Response] = None, cause: Optional[Exception] = None):
        super().__init__(message, response=response, cause=cause)
        self.retry_after = retry_after


class SessionException(PdfDancerException):
    """
    Raised when a session cannot be created or used.
    """
    pass


class ValidationException(PdfDancerException):
    """
    Raised for invalid client-side input (empty token, negative page index, ...).
    """
    pass


class DecodingException(PdfDancerException):
    """
    Raised when a response body cannot be decoded into the expected shape.
    """
    pass


class UnrecognizedVariantException(DecodingException):
    """
    A reference-shaped object carried no discriminator, or one outside the known kinds.
    """

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind


class MalformedShapeException(DecodingException):
    """
    The discriminator was recognized but the remaining fields do not fit the variant.
    """
    pass


class HeterogeneousCollectionException(PdfDancerException):
    """
    A typed snapshot contained an element that is not of the requested reference class.
    """

    def __init__(self, expected: type, actual: object):
        self.expected = expected
        self.actual = actual
        actual_kind = getattr(actual, 'type', None)
        kind_suffix = f" ({actual_kind.value})" if actual_kind is not None and hasattr(actual_kind, 'value') else ""
        super().__init__(
            f"Expected elements of type {expected.__name__} but got "
            f"{type(actual).__name__}{kind_suffix}"
        )
