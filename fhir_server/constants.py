"""
FHIR constants.

These values are fixed by the FHIR R4 specification and are intentionally
not configurable via environment variables.
"""

FHIR_VERSION = "4.0.1"

# XML namespace for FHIR resources
FHIR_NAMESPACE = "http://hl7.org/fhir"

# Resource types
CONDITION = "Condition"
PATIENT = "Patient"
OPERATION_OUTCOME = "OperationOutcome"
BUNDLE = "Bundle"
CAPABILITY_STATEMENT = "CapabilityStatement"

# Code systems
CONDITION_CLINICAL_STATUS_SYSTEM_URI = "http://terminology.hl7.org/CodeSystem/condition-clinical"

# Media types
JSON_MEDIA_TYPE = "application/json"
XML_MEDIA_TYPE = "application/xml"
FHIR_JSON_MEDIA_TYPE = "application/fhir+json"
FHIR_XML_MEDIA_TYPE = "application/fhir+xml"

# Search
SEARCH_MODE_MATCH = "match"
BUNDLE_TYPE_SEARCHSET = "searchset"
