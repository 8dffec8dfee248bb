"""Schema definitions for bundle manifests."""

from .manifest import Bundle, BundleInclude, Include

__all__ = [
    "Bundle",
    "BundleInclude",
    "Include",
]
