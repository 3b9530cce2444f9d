# c4model/configuration.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .views import View


def _clamp_percentage(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    return max(0, min(100, int(value)))


@dataclass
class ElementStyle:
    """Rendering hints for elements carrying `tag`."""

    tag: str = ""
    width: Optional[int] = None
    height: Optional[int] = None
    background: Optional[str] = None
    color: Optional[str] = None
    font_size: Optional[int] = None
    shape: Optional[str] = None
    border: Optional[str] = None
    _opacity: Optional[int] = field(default=None, init=False, repr=False)

    @property
    def opacity(self) -> Optional[int]:
        return self._opacity

    @opacity.setter
    def opacity(self, value: Optional[int]) -> None:
        self._opacity = _clamp_percentage(value)


@dataclass
class RelationshipStyle:
    """Rendering hints for relationships carrying `tag`."""

    tag: str = ""
    thickness: Optional[int] = None
    color: Optional[str] = None
    font_size: Optional[int] = None
    width: Optional[int] = None
    dashed: Optional[bool] = None
    routing: Optional[str] = None
    _position: Optional[int] = field(default=None, init=False, repr=False)
    _opacity: Optional[int] = field(default=None, init=False, repr=False)

    @property
    def position(self) -> Optional[int]:
        return self._position

    @position.setter
    def position(self, value: Optional[int]) -> None:
        self._position = _clamp_percentage(value)

    @property
    def opacity(self) -> Optional[int]:
        return self._opacity

    @opacity.setter
    def opacity(self, value: Optional[int]) -> None:
        self._opacity = _clamp_percentage(value)


@dataclass
class Styles:
    elements: list[ElementStyle] = field(default_factory=list)
    relationships: list[RelationshipStyle] = field(default_factory=list)

    def add_element_style(self, tag: str) -> ElementStyle:
        style = ElementStyle(tag=tag)
        self.elements.append(style)
        return style

    def add_relationship_style(self, tag: str) -> RelationshipStyle:
        style = RelationshipStyle(tag=tag)
        self.relationships.append(style)
        return style

    def find_element_style(self, tags: list[str]) -> Optional[ElementStyle]:
        """Return the last style whose tag is in `tags` (later styles win)."""
        found: Optional[ElementStyle] = None
        for style in self.elements:
            if style.tag in tags:
                found = style
        return found


@dataclass
class Configuration:
    """View-set wide settings that survive a push to the remote service."""

    default_view: Optional[str] = None
    last_saved_view: Optional[str] = None
    styles: Styles = field(default_factory=Styles)

    def set_default_view(self, view: Optional[View]) -> None:
        if view is not None:
            self.default_view = view.key

    def copy_configuration_from(self, source: Configuration) -> None:
        self.last_saved_view = source.last_saved_view
