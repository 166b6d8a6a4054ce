"""
Module ORM Registry (``sgpc_modules._orm_registry``).

Ensure every ORM model is imported so that ``Base.metadata`` contains
its table definition before ``create_tables()`` runs.  Idempotent.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``sgpc_modules.*.orm`` module."""
    # Kernel tables first; module tables reference users.id
    import sgpc_kernel.models  # noqa: F401
    import sgpc_modules.project.orm  # noqa: F401
    import sgpc_modules.inventory.orm  # noqa: F401
    import sgpc_modules.material_request.orm  # noqa: F401
    import sgpc_modules.costs.orm  # noqa: F401
