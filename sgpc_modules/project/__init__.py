"""
Project Module (``sgpc_modules.project``).

The project directory: lookups used by the material-request module and the
row that the cost rollup writes realized cost and progress onto.
"""

from sgpc_modules.project.directory import ProjectDirectory
from sgpc_modules.project.models import Project, ProjectBudget, ProjectStatus

__all__ = [
    "Project",
    "ProjectBudget",
    "ProjectDirectory",
    "ProjectStatus",
]
