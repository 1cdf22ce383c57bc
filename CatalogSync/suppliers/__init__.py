"""
Supplier Integrations

Only Farnell (element14) has an upstream integration. The client fetches one
page of search results per call and handles retries and rate limiting itself.

Usage:
    from CatalogSync.suppliers import FarnellClient

    client = FarnellClient(settings.farnell)
    entries = await client.fetch_page("any:raspberry pi", offset=0, number_of_results=20)
"""

from .farnell import FarnellClient
from .http_client import RetryConfig, SupplierHTTPClient

__all__ = ["FarnellClient", "RetryConfig", "SupplierHTTPClient"]
