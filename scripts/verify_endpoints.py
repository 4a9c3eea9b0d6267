#!/usr/bin/env python3
"""
Verify FHIR Server endpoints are working.

Usage:
    python scripts/verify_endpoints.py [--base-url URL] [--fhir-path PATH]

Requires the server to be running.
"""

import argparse
import sys
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


def check_endpoint(url: str, name: str, accept: str = "application/fhir+json") -> bool:
    """Check that an endpoint answers 200 in the requested media type."""
    try:
        req = Request(url, headers={"Accept": accept})
        with urlopen(req, timeout=10) as response:
            content_type = response.headers.get("Content-Type", "")
            if not content_type.startswith(accept):
                print(f"  [WARN] {name}: {url} (content type {content_type})")
                return True
            print(f"  [OK] {name}: {url}")
            return True
    except HTTPError as e:
        print(f"  [FAIL] {name}: {url} (status {e.code})")
        return False
    except URLError as e:
        print(f"  [FAIL] {name}: {url} ({e.reason})")
        return False


def main():
    parser = argparse.ArgumentParser(description="Verify FHIR Server endpoints")
    parser.add_argument(
        "--base-url",
        default="http://localhost:8080",
        help="Base URL of the FHIR Server (default: http://localhost:8080)",
    )
    parser.add_argument(
        "--fhir-path",
        default="/fhir/R4",
        help="Path the FHIR API is mounted under (default: /fhir/R4)",
    )
    args = parser.parse_args()

    base_url = args.base_url.rstrip("/")
    fhir_url = base_url + args.fhir_path.rstrip("/")

    print(f"\nVerifying FHIR Server at {base_url}\n")
    print("=" * 60)

    endpoints = [
        (f"{base_url}/health", "Health Check", "application/json"),
        (f"{fhir_url}/metadata", "CapabilityStatement (JSON)", "application/fhir+json"),
        (f"{fhir_url}/metadata", "CapabilityStatement (XML)", "application/fhir+xml"),
        (f"{fhir_url}/Condition?_count=1", "Condition Search (JSON)", "application/json"),
        (f"{fhir_url}/Condition?_count=1", "Condition Search (XML)", "application/xml"),
    ]

    results = []
    for url, name, accept in endpoints:
        results.append(check_endpoint(url, name, accept))

    print("=" * 60)

    passed = sum(results)
    total = len(results)

    if all(results):
        print(f"\nAll {total} endpoints OK")
        return 0
    else:
        print(f"\n{passed}/{total} endpoints OK")
        return 1


if __name__ == "__main__":
    sys.exit(main())
