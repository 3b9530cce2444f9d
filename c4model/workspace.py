# c4model/workspace.py
from __future__ import annotations

from typing import Optional

from .documentation import Documentation
from .model import Model, check_url
from .views import ViewSet


class Workspace:
    """A model, the views onto it and its documentation."""

    def __init__(self, name: str, description: str = "") -> None:
        self.id = 0
        self.name = name
        self.description = description or ""
        self.model = Model()
        self.views = ViewSet(self.model)
        self.documentation = Documentation()
        self._source: Optional[str] = None
        self._api: Optional[str] = None

    def __repr__(self) -> str:
        return f"Workspace(id={self.id}, name={self.name!r})"

    @property
    def source(self) -> Optional[str]:
        return self._source

    @source.setter
    def source(self, value: Optional[str]) -> None:
        self._source = check_url(value)

    @property
    def api(self) -> Optional[str]:
        return self._api

    @api.setter
    def api(self, value: Optional[str]) -> None:
        self._api = check_url(value)

    def copy_layout_information_from(self, other: Workspace) -> None:
        """Reuse diagram layout (and the last saved view) from another copy of this workspace."""
        self.views.copy_layout_information_from(other.views)
        self.views.configuration.copy_configuration_from(other.views.configuration)
