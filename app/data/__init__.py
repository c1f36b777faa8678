"""
Pack discovery and in-memory indexing for the resource pack server.

This package is responsible for:
* Deciding which paths under the packs directory are packs.
* Loading pack metadata and fingerprints into Pack records.
* Scanning the packs directory into a complete index.
* Owning the current index and swapping in new scans atomically.
"""
