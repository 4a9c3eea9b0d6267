"""
Content negotiation between FHIR JSON and FHIR XML.

Response format comes from the ``_format`` query parameter when present,
otherwise from the Accept header. The matched media type is echoed back as
the response Content-Type.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from starlette.requests import Request

from fhir_server.codecs import json_codec, xml_codec
from fhir_server.constants import (
    FHIR_JSON_MEDIA_TYPE,
    FHIR_XML_MEDIA_TYPE,
    JSON_MEDIA_TYPE,
    XML_MEDIA_TYPE,
)
from fhir_server.errors import NotAcceptableError, UnsupportedMediaTypeError


class FhirFormat(str, Enum):
    """Supported wire formats."""

    JSON = "json"
    XML = "xml"


MEDIA_TYPE_FORMATS: dict[str, FhirFormat] = {
    JSON_MEDIA_TYPE: FhirFormat.JSON,
    FHIR_JSON_MEDIA_TYPE: FhirFormat.JSON,
    XML_MEDIA_TYPE: FhirFormat.XML,
    FHIR_XML_MEDIA_TYPE: FhirFormat.XML,
}

# Short _format values and the media type they answer with
FORMAT_PARAM_MEDIA_TYPES: dict[str, str] = {
    "json": FHIR_JSON_MEDIA_TYPE,
    "xml": FHIR_XML_MEDIA_TYPE,
}

DEFAULT_MEDIA_TYPE = FHIR_JSON_MEDIA_TYPE
WILDCARDS = frozenset({"*/*", "application/*"})

_CODECS = {
    FhirFormat.JSON: json_codec,
    FhirFormat.XML: xml_codec,
}


@dataclass(frozen=True)
class Negotiated:
    """Outcome of content negotiation for a response."""

    format: FhirFormat
    media_type: str


DEFAULT_NEGOTIATED = Negotiated(MEDIA_TYPE_FORMATS[DEFAULT_MEDIA_TYPE], DEFAULT_MEDIA_TYPE)


def _media_type(value: str) -> str:
    """Strip parameters (charset, q) and normalize case."""
    return value.split(";", 1)[0].strip().lower()


def select_format(accept: str | None, format_param: str | None = None) -> Negotiated:
    """
    Pick the response format.

    Args:
        accept: Accept header value
        format_param: ``_format`` query parameter value, which takes precedence

    Returns:
        The selected format and the media type to answer with

    Raises:
        NotAcceptableError: If nothing requested is supported
    """
    supported = sorted(MEDIA_TYPE_FORMATS)

    if format_param:
        requested = _media_type(format_param)
        media_type = FORMAT_PARAM_MEDIA_TYPES.get(requested, requested)
        if media_type not in MEDIA_TYPE_FORMATS:
            raise NotAcceptableError(format_param, supported)
        return Negotiated(MEDIA_TYPE_FORMATS[media_type], media_type)

    if accept is None or not accept.strip():
        return DEFAULT_NEGOTIATED

    wildcard = False
    for candidate in accept.split(","):
        media_type = _media_type(candidate)
        if media_type in MEDIA_TYPE_FORMATS:
            return Negotiated(MEDIA_TYPE_FORMATS[media_type], media_type)
        if media_type in WILDCARDS:
            wildcard = True

    if wildcard:
        return DEFAULT_NEGOTIATED

    raise NotAcceptableError(accept, supported)


def select_body_format(content_type: str | None) -> FhirFormat:
    """
    Pick the format a request body is written in.

    Raises:
        UnsupportedMediaTypeError: If the Content-Type is missing or unsupported
    """
    media_type = _media_type(content_type) if content_type else ""
    if media_type not in MEDIA_TYPE_FORMATS:
        raise UnsupportedMediaTypeError(content_type, sorted(MEDIA_TYPE_FORMATS))
    return MEDIA_TYPE_FORMATS[media_type]


def negotiate_request(request: Request) -> Negotiated:
    """Negotiate the response format for an incoming request."""
    return select_format(
        request.headers.get("accept"),
        request.query_params.get("_format"),
    )


def serialize(resource: dict[str, Any], fmt: FhirFormat) -> bytes:
    """Serialize a resource in the given format."""
    return _CODECS[fmt].dumps(resource)


def parse(body: bytes | str, fmt: FhirFormat) -> dict[str, Any]:
    """
    Parse a resource body in the given format.

    Raises:
        InvalidRequestError: If the body cannot be parsed
    """
    return _CODECS[fmt].loads(body)


def negotiate_error_format(request: Request) -> Negotiated:
    """Negotiate the format of an error body, falling back to FHIR JSON."""
    try:
        return negotiate_request(request)
    except NotAcceptableError:
        return DEFAULT_NEGOTIATED
