"""Test utilities for perch applications.

Provides an async ASGI test client and envelope assertions::

    from perch.testing import TestClient, assert_success
"""

from perch.testing.assertions import assert_error, assert_success
from perch.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_error",
    "assert_success",
]
