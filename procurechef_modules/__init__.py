"""
ProcureChef Modules.

Thin orchestration layers over the kernel and engines.  Each module holds:
- Domain models (the nouns)
- ORM tables
- Configuration schema (policy and settings)
- A service facade that owns the transaction boundary

Modules:
- Procurement: quote comparison, quote requests, purchase orders, receiving,
  inventory counts
"""

from procurechef_modules import procurement

__all__ = ["procurement"]
