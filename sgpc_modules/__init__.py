"""
SGPC modules: inventory, material requests, cost rollup and the project
directory.  Each module owns its ORM models, frozen DTOs and a service whose
public methods own their transaction boundary.
"""
