"""
Project directory (``sgpc_modules.project.directory``).

Read-only lookups of projects for the material-request and cost modules.
"""

from uuid import UUID

from sgpc_kernel.exceptions import ProjectNotFoundError
from sgpc_kernel.selectors.base import BaseSelector
from sgpc_modules.project.models import Project
from sgpc_modules.project.orm import ProjectModel


class ProjectDirectory(BaseSelector):
    """Read-only access to projects."""

    def find_by_id(self, project_id: UUID) -> Project:
        """
        Raises:
            ProjectNotFoundError: If no project has this id.
        """
        project = self.session.get(ProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project.to_dto()
