"""
Security identifier resolution.

- SymbolResolver: interface used by the downloader
- LocalSecurityMaster: point-in-time lookup over local mapping CSVs
"""

from insiderdl.master.symbol_resolver import LocalSecurityMaster, SymbolResolver

__all__ = ["LocalSecurityMaster", "SymbolResolver"]
