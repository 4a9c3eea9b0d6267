"""
FHIR XML encoding.

Follows the FHIR XML rules for the elements this server emits:

- the root element is named after the resource type, in the FHIR namespace
- primitives are empty elements carrying a ``value`` attribute
- arrays are repeated sibling elements
- contained resources (e.g. ``Bundle.entry.resource``) are wrapped in an
  element holding a single resource root
- ``extension.url`` is an attribute

XML does not say which elements repeat or which primitives are numbers, so
those are listed here; anything else parses back as a single string.
"""

from typing import Any

from lxml import etree

from fhir_server.constants import FHIR_NAMESPACE
from fhir_server.errors import InvalidRequestError

REPEATING_ELEMENTS = frozenset({
    "category",
    "coding",
    "entry",
    "evidence",
    "extension",
    "format",
    "identifier",
    "interaction",
    "issue",
    "link",
    "modifierExtension",
    "note",
    "rest",
    "searchParam",
    "stage",
})
INTEGER_ELEMENTS = frozenset({"total"})
BOOLEAN_ELEMENTS = frozenset({"userSelected"})
EXTENSION_ELEMENTS = frozenset({"extension", "modifierExtension"})

# "resource" repeats in CapabilityStatement.rest but wraps a resource in Bundle.entry
CONTAINER_ELEMENT = "resource"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def _tag(name: str) -> str:
    return f"{{{FHIR_NAMESPACE}}}{name}"


def _format_primitive(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _append(parent: etree._Element, name: str, value: Any) -> None:
    if isinstance(value, list):
        for item in value:
            _append(parent, name, item)
        return

    child = etree.SubElement(parent, _tag(name))

    if isinstance(value, dict):
        if "resourceType" in value:
            child.append(_resource_element(value))
            return
        for key, item in value.items():
            if key == "url" and name in EXTENSION_ELEMENTS:
                child.set("url", str(item))
                continue
            _append(child, key, item)
        return

    child.set("value", _format_primitive(value))


def _resource_element(resource: dict[str, Any]) -> etree._Element:
    root = etree.Element(_tag(resource["resourceType"]), nsmap={None: FHIR_NAMESPACE})
    for key, value in resource.items():
        if key == "resourceType":
            continue
        _append(root, key, value)
    return root


def dumps(resource: dict[str, Any]) -> bytes:
    """Serialize a resource to UTF-8 FHIR XML."""
    return etree.tostring(_resource_element(resource), xml_declaration=True, encoding="UTF-8")


def _parse_primitive(name: str, raw: str) -> Any:
    if name in INTEGER_ELEMENTS:
        try:
            return int(raw)
        except ValueError:
            raise InvalidRequestError(f"Element '{name}' must be an integer, got '{raw}'", field=name)
    if name in BOOLEAN_ELEMENTS:
        if raw not in ("true", "false"):
            raise InvalidRequestError(f"Element '{name}' must be true or false, got '{raw}'", field=name)
        return raw == "true"
    return raw


def _children(element: etree._Element) -> list[etree._Element]:
    return [child for child in element if isinstance(child.tag, str)]


def _is_resource_root(element: etree._Element) -> bool:
    qname = etree.QName(element)
    return qname.namespace == FHIR_NAMESPACE and qname.localname[:1].isupper()


def _wraps_resource(children: list[etree._Element]) -> bool:
    return len(children) == 1 and _is_resource_root(children[0])


def _element_value(name: str, element: etree._Element) -> Any:
    children = _children(element)

    if not children and "value" in element.attrib:
        return _parse_primitive(name, element.get("value"))

    if name == CONTAINER_ELEMENT and _wraps_resource(children):
        return _resource_dict(children[0])

    value: dict[str, Any] = {}
    if name in EXTENSION_ELEMENTS and "url" in element.attrib:
        value["url"] = element.get("url")
    value.update(_element_dict(element))
    return value


def _element_dict(element: etree._Element) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for child in _children(element):
        name = etree.QName(child).localname
        value = _element_value(name, child)
        repeats = name in REPEATING_ELEMENTS or (
            name == CONTAINER_ELEMENT and not _wraps_resource(_children(child))
        )
        if repeats:
            result.setdefault(name, []).append(value)
        else:
            result[name] = value
    return result


def _resource_dict(element: etree._Element) -> dict[str, Any]:
    resource: dict[str, Any] = {"resourceType": etree.QName(element).localname}
    resource.update(_element_dict(element))
    return resource


def loads(body: bytes | str) -> dict[str, Any]:
    """
    Parse a FHIR XML resource body.

    Raises:
        InvalidRequestError: If the body is not well-formed FHIR XML
    """
    if isinstance(body, str):
        body = body.encode("utf-8")

    try:
        root = etree.fromstring(body, _PARSER)
    except etree.XMLSyntaxError as e:
        raise InvalidRequestError(f"Unable to parse XML payload: {e}") from e

    if not _is_resource_root(root):
        raise InvalidRequestError(
            f"XML root element '{root.tag}' is not a FHIR resource in namespace {FHIR_NAMESPACE}",
            field="resourceType",
        )

    return _resource_dict(root)
