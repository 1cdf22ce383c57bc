"""
CatalogSync - Supplier Catalogue Synchronization Engine
"""

__version__ = "0.3.0"
