"""
Module ORM Registry (``property_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy model is imported so that ``Base.metadata`` holds
its table before ``create_all()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``property_modules``
packages and from ``property_kernel`` (allowed: modules -> kernel).
MUST NOT be imported by ``property_kernel`` or ``property_services``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``property_modules.*.orm`` module.

    Idempotent -- repeated calls are harmless.
    """
    # fmt: off
    import property_kernel.models.audit_entry  # noqa: F401
    import property_kernel.services.sequence_service  # noqa: F401  # sequence_counters
    import property_modules.checkout.orm  # noqa: F401
    import property_modules.pdc.orm  # noqa: F401
    # fmt: on


def create_all_tables() -> None:
    """Create kernel + module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from property_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
