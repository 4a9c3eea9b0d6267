"""FHIR R4 server for Condition resources."""

__version__ = "0.1.0"
