"""
Property Kernel - shared primitives for the back office.

- Structured JSON logging and a typed exception hierarchy
- Tagged operation results instead of raised errors at service seams
- Injected clock and half-up Decimal money rounding
- SQLAlchemy base, engine and a hash-chained audit trail
"""

__version__ = "0.1.0"
