"""
HTTP Client Module

requests-based client for the external eligibility oracle and fulfillment sink.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
