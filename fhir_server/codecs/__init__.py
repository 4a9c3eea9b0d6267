"""
Wire codecs for FHIR resources.

Each codec module exposes ``dumps(resource) -> bytes`` and
``loads(body) -> dict``.
"""

from fhir_server.codecs import json_codec, xml_codec

__all__ = ["json_codec", "xml_codec"]
