"""
Property Modules.

Thin orchestration layers over the property kernel.  Each module contains:
- Domain models (frozen dataclasses)
- Workflows (state machines)
- Configuration schema
- ORM models and a store
- The service that owns the transaction boundary

Modules:
- PDC: post-dated cheque registration, clearance, bounce/replacement
- Checkout: tenant move-out, inspection and deposit settlement
"""
