# c4model/views.py
"""Views: named selections of model elements and relationships, one per diagram.

Static views (system context, enterprise context, container, component) share
one implementation whose behaviour is driven by `SCOPE_RULES[view.kind]`.
Dynamic views carry their own scope checks and a sequence number generator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .configuration import Configuration
from .model import Component, Container, Element, Model, Person, Relationship, SoftwareSystem
from .sequence import SequenceNumber


class ViewScopeError(ValueError):
    """An element outside the scope of a dynamic view was added to it."""


class ViewKind(str, Enum):
    SYSTEM_CONTEXT = "SystemContext"
    ENTERPRISE_CONTEXT = "EnterpriseContext"
    CONTAINER = "Container"
    COMPONENT = "Component"
    DYNAMIC = "Dynamic"


class ElementView:
    """An element placed on a view. Equal to any other view of the same element."""

    def __init__(self, element: Element, x: Optional[int] = None, y: Optional[int] = None) -> None:
        self.element = element
        self.x = x
        self.y = y

    @property
    def id(self) -> str:
        return self.element.id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ElementView):
            return NotImplemented
        return self.element.id == other.element.id

    def __hash__(self) -> int:
        return hash(self.element.id)

    def __repr__(self) -> str:
        return f"ElementView({self.element!r})"


@dataclass(eq=False)
class RelationshipView:
    relationship: Relationship
    description: str = ""
    order: str = ""
    vertices: list[tuple[int, int]] = field(default_factory=list)
    position: Optional[int] = None

    @property
    def id(self) -> str:
        return self.relationship.id

    @property
    def label(self) -> str:
        """The description shown on a diagram; falls back to the relationship's own."""
        return self.description or self.relationship.description


# -- scope rules ----------------------------------------------------------


def _context_in_scope(element: Element, view: View) -> bool:
    return isinstance(element, (Person, SoftwareSystem))


def _container_in_scope(element: Element, view: View) -> bool:
    if isinstance(element, Container):
        return element.software_system is view.software_system
    return _context_in_scope(element, view)


def _component_in_scope(element: Element, view: View) -> bool:
    if isinstance(element, Component):
        return element.container is view.container
    return _container_in_scope(element, view)


@dataclass(frozen=True)
class ScopeRule:
    """What a static view kind may contain.

    `in_scope` decides eligibility (also used for nearest neighbours);
    `admits` additionally rejects the view's own scope elements when
    `excludes_scope` is set.
    """

    element_types: tuple[type[Element], ...]
    in_scope: Callable[[Element, "View"], bool]
    excludes_scope: bool = False

    def admits(self, element: Element, view: View) -> bool:
        if self.excludes_scope and view.is_scope_element(element):
            return False
        return self.in_scope(element, view)


SCOPE_RULES: dict[ViewKind, ScopeRule] = {
    ViewKind.SYSTEM_CONTEXT: ScopeRule((Person, SoftwareSystem), _context_in_scope),
    ViewKind.ENTERPRISE_CONTEXT: ScopeRule((Person, SoftwareSystem), _context_in_scope),
    ViewKind.CONTAINER: ScopeRule(
        (Person, SoftwareSystem, Container), _container_in_scope, excludes_scope=True
    ),
    ViewKind.COMPONENT: ScopeRule(
        (Person, SoftwareSystem, Container, Component), _component_in_scope, excludes_scope=True
    ),
}


def _dynamic_scope_violation(element: Element, view: View) -> Optional[str]:
    """Return why `element` cannot join the dynamic `view`, or None."""
    scope = view.scope

    if scope is None:
        if isinstance(element, (Person, SoftwareSystem)):
            return None
        return "Only people and software systems can be added to this view."

    if isinstance(scope, SoftwareSystem):
        if element is scope:
            return f"{element.name} is already the scope of this view and cannot be added to it."
        if isinstance(element, Container) and element.software_system is not scope:
            return f"Only containers that reside inside {scope.name} can be added to this view."
        if isinstance(element, Component):
            return "Components can't be added to a dynamic view when the scope is a software system."
        return None

    system = view.software_system
    if element is scope or element is system:
        return f"{element.name} is already the scope of this view and cannot be added to it."
    if isinstance(element, Container) and element.software_system is not system:
        assert system is not None
        return f"Only containers that reside inside {system.name} can be added to this view."
    if isinstance(element, Component) and element.container is not scope:
        return f"Only components that reside inside {scope.name} can be added to this view."
    return None


def _name_system_context(view: View) -> str:
    return f"{view.software_system.name} - System Context"


def _name_enterprise_context(view: View) -> str:
    enterprise = view.model.enterprise
    if enterprise is None:
        return "Enterprise Context"
    return f"Enterprise Context for {enterprise.name}"


def _name_container(view: View) -> str:
    return f"{view.software_system.name} - Containers"


def _name_component(view: View) -> str:
    return f"{view.software_system.name} - {view.container.name} - Components"


def _name_dynamic(view: View) -> str:
    if view.container is not None:
        return f"{view.software_system.name} - {view.container.name} - Dynamic"
    if view.software_system is not None:
        return f"{view.software_system.name} - Dynamic"
    return "Dynamic"


_VIEW_NAMES: dict[ViewKind, Callable[["View"], str]] = {
    ViewKind.SYSTEM_CONTEXT: _name_system_context,
    ViewKind.ENTERPRISE_CONTEXT: _name_enterprise_context,
    ViewKind.CONTAINER: _name_container,
    ViewKind.COMPONENT: _name_component,
    ViewKind.DYNAMIC: _name_dynamic,
}


# -- views ----------------------------------------------------------------


class View:
    """Element/relationship storage shared by every view kind."""

    def __init__(
        self,
        kind: ViewKind,
        model: Model,
        key: str,
        description: str = "",
        scope: Optional[Element] = None,
    ) -> None:
        self.kind = kind
        self.model = model
        self.key = key
        self.description = description or ""
        self._scope_id = scope.id if scope is not None else None
        self._element_views: dict[str, ElementView] = {}
        self._relationship_views: list[RelationshipView] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value}, key={self.key!r})"

    @property
    def name(self) -> str:
        return _VIEW_NAMES[self.kind](self)

    @property
    def scope(self) -> Optional[Element]:
        if self._scope_id is None:
            return None
        return self.model.get_element(self._scope_id)

    @property
    def software_system(self) -> Optional[SoftwareSystem]:
        scope = self.scope
        if isinstance(scope, Container):
            return scope.software_system
        return scope if isinstance(scope, SoftwareSystem) else None

    @property
    def software_system_id(self) -> Optional[str]:
        system = self.software_system
        return system.id if system is not None else None

    @property
    def container(self) -> Optional[Container]:
        scope = self.scope
        return scope if isinstance(scope, Container) else None

    @property
    def container_id(self) -> Optional[str]:
        container = self.container
        return container.id if container is not None else None

    @property
    def elements(self) -> list[ElementView]:
        return list(self._element_views.values())

    @property
    def relationships(self) -> list[RelationshipView]:
        return list(self._relationship_views)

    def is_scope_element(self, element: Element) -> bool:
        return element is not None and (element is self.scope or element is self.software_system)

    def is_element_in_view(self, element: Optional[Element]) -> bool:
        return element is not None and element.id in self._element_views

    def get_element_view(self, element: Element) -> Optional[ElementView]:
        return self._element_views.get(element.id)

    def remove(self, element: Optional[Element]) -> None:
        """Remove `element` and every relationship view touching it."""
        if element is None or element.id not in self._element_views:
            return
        del self._element_views[element.id]
        self._relationship_views = [
            rv
            for rv in self._relationship_views
            if rv.relationship.source is not element and rv.relationship.destination is not element
        ]

    def _add_element(self, element: Element, add_relationships: bool) -> None:
        if element.id not in self._element_views:
            self._element_views[element.id] = ElementView(element)
        if add_relationships:
            self._add_relationships_for(element)

    def _add_relationships_for(self, element: Element) -> None:
        present = {rv.relationship.id for rv in self._relationship_views}
        for relationship in self.model.relationships:
            if relationship.id in present:
                continue
            if relationship.source is not element and relationship.destination is not element:
                continue
            if self.is_element_in_view(relationship.source) and self.is_element_in_view(
                relationship.destination
            ):
                self._relationship_views.append(RelationshipView(relationship))

    def _add_relationship_view(
        self, relationship: Relationship, description: str = "", order: str = ""
    ) -> RelationshipView:
        view = RelationshipView(relationship, description=description or "", order=order or "")
        self._relationship_views.append(view)
        return view

    def restore_element_view(
        self, element: Element, x: Optional[int] = None, y: Optional[int] = None
    ) -> ElementView:
        """Place `element` as-is, bypassing scope rules (used when reading saved workspaces)."""
        self._add_element(element, add_relationships=False)
        element_view = self._element_views[element.id]
        element_view.x, element_view.y = x, y
        return element_view

    def restore_relationship_view(
        self,
        relationship: Relationship,
        description: str = "",
        order: str = "",
        vertices: Optional[list[tuple[int, int]]] = None,
        position: Optional[int] = None,
    ) -> RelationshipView:
        view = self._add_relationship_view(relationship, description, order)
        view.vertices = list(vertices or [])
        view.position = position
        return view

    def copy_layout_information_from(self, source: View) -> None:
        """Copy element positions and relationship routing from an equivalent view."""
        by_name = {ev.element.canonical_name: ev for ev in source.elements}
        for element_view in self.elements:
            match = by_name.get(element_view.element.canonical_name)
            if match is not None:
                element_view.x, element_view.y = match.x, match.y

        by_signature = {_relationship_signature(rv): rv for rv in source.relationships}
        for relationship_view in self._relationship_views:
            found = by_signature.get(_relationship_signature(relationship_view))
            if found is not None:
                relationship_view.vertices = list(found.vertices)
                relationship_view.position = found.position


def _relationship_signature(rv: RelationshipView) -> tuple[str, str, str, str]:
    relationship = rv.relationship
    source = relationship.source.canonical_name if relationship.source is not None else ""
    destination = relationship.destination.canonical_name if relationship.destination is not None else ""
    return source, destination, relationship.description, rv.order


class StaticView(View):
    """System context, enterprise context, container and component views."""

    def __init__(
        self,
        kind: ViewKind,
        model: Model,
        key: str,
        description: str = "",
        scope: Optional[Element] = None,
    ) -> None:
        if kind not in SCOPE_RULES:
            raise ValueError(f"{kind.value} is not a static view kind")
        super().__init__(kind, model, key, description, scope)

    @property
    def rule(self) -> ScopeRule:
        return SCOPE_RULES[self.kind]

    def restore_relationship_view(
        self,
        relationship: Relationship,
        description: str = "",
        order: str = "",
        vertices: Optional[list[tuple[int, int]]] = None,
        position: Optional[int] = None,
    ) -> RelationshipView:
        # Static views hold each relationship once; one derived on creation is updated in place.
        for existing in self._relationship_views:
            if existing.relationship is relationship:
                existing.description = description or ""
                existing.order = order or ""
                existing.vertices = list(vertices or [])
                existing.position = position
                return existing
        return super().restore_relationship_view(relationship, description, order, vertices, position)

    def add(self, element: Optional[Element]) -> None:
        """Add `element` if the view kind admits it; anything else is ignored."""
        if element is None:
            return
        if self.rule.admits(element, self):
            self._add_element(element, add_relationships=True)

    def add_all_software_systems(self) -> None:
        for software_system in self.model.software_systems:
            self.add(software_system)

    def add_all_people(self) -> None:
        for person in self.model.people:
            self.add(person)

    def add_all_containers(self) -> None:
        for container in self.model.containers:
            self.add(container)

    def add_all_components(self) -> None:
        for component in self.model.components:
            self.add(component)

    def add_all_elements(self) -> None:
        self.add_all_software_systems()
        self.add_all_people()
        if Container in self.rule.element_types:
            self.add_all_containers()
        if Component in self.rule.element_types:
            self.add_all_components()

    def add_nearest_neighbours(self, element: Optional[Element]) -> None:
        """Add `element` and every in-scope element one relationship away from it."""
        if element is None or not self.rule.in_scope(element, self):
            return

        self._add_element(element, add_relationships=True)
        for relationship in self.model.relationships:
            if relationship.source is element:
                neighbour = relationship.destination
            elif relationship.destination is element:
                neighbour = relationship.source
            else:
                continue
            if neighbour is not None and self.rule.in_scope(neighbour, self):
                self._add_element(neighbour, add_relationships=True)


class DynamicView(View):
    """A view whose relationships are numbered steps of one interaction."""

    def __init__(
        self,
        model: Model,
        key: str,
        description: str = "",
        scope: Optional[Element] = None,
    ) -> None:
        if scope is not None and not isinstance(scope, (SoftwareSystem, Container)):
            raise TypeError(
                f"The scope of a dynamic view must be a software system or container, got {type(scope).__name__}"
            )
        super().__init__(ViewKind.DYNAMIC, model, key, description, scope)
        self._sequence = SequenceNumber()

    @property
    def element_id(self) -> Optional[str]:
        return self._scope_id

    def add(
        self,
        source: Optional[Element],
        destination: Optional[Element],
        description: str = "",
        *,
        order: Optional[str] = None,
    ) -> Optional[RelationshipView]:
        """Add the step `source` -> `destination` using their first relationship.

        Raises ViewScopeError for elements outside the view's scope and
        ValueError when no such relationship exists; the view is unchanged in
        both cases.
        """
        if source is None or destination is None:
            return None

        self._check_element_can_be_added(source)
        self._check_element_can_be_added(destination)

        relationship = source.get_efferent_relationship_with(destination)
        if relationship is None:
            raise ValueError(
                f"A relationship between {source.name} and {destination.name} does not exist in the model."
            )
        return self._add_step(relationship, description, order)

    def add_relationship(
        self,
        relationship: Optional[Relationship],
        description: str = "",
        *,
        order: Optional[str] = None,
    ) -> Optional[RelationshipView]:
        if relationship is None:
            return None
        if relationship.source is None or relationship.destination is None:
            raise ValueError("A relationship requires both a source and a destination.")

        self._check_element_can_be_added(relationship.source)
        self._check_element_can_be_added(relationship.destination)
        return self._add_step(relationship, description, order)

    def start_parallel_sequence(self) -> None:
        self._sequence.start_parallel_sequence()

    def end_parallel_sequence(self) -> None:
        self._sequence.end_parallel_sequence()

    def start_child_sequence(self) -> None:
        self._sequence.start_child_sequence()

    def end_child_sequence(self) -> None:
        self._sequence.end_child_sequence()

    def _check_element_can_be_added(self, element: Element) -> None:
        message = _dynamic_scope_violation(element, self)
        if message is not None:
            raise ViewScopeError(message)

    def _add_step(
        self, relationship: Relationship, description: str, order: Optional[str]
    ) -> RelationshipView:
        assert relationship.source is not None and relationship.destination is not None
        self._add_element(relationship.source, add_relationships=False)
        self._add_element(relationship.destination, add_relationships=False)
        if order is None:
            order = self._sequence.get_next()
        return self._add_relationship_view(relationship, description, order)


class ViewSet:
    """All views of a workspace, plus their shared configuration."""

    def __init__(self, model: Model) -> None:
        self.model = model
        self.system_context_views: list[StaticView] = []
        self.enterprise_context_views: list[StaticView] = []
        self.container_views: list[StaticView] = []
        self.component_views: list[StaticView] = []
        self.dynamic_views: list[DynamicView] = []
        self.configuration = Configuration()

    @property
    def views(self) -> list[View]:
        return [
            *self.enterprise_context_views,
            *self.system_context_views,
            *self.container_views,
            *self.component_views,
            *self.dynamic_views,
        ]

    def get_view(self, key: str) -> Optional[View]:
        return next((v for v in self.views if v.key == key), None)

    def _check_key(self, key: str) -> None:
        if not key:
            raise ValueError("A key must be specified.")
        if self.get_view(key) is not None:
            raise ValueError(f"A view with the key {key} already exists.")

    def create_system_context_view(
        self, software_system: SoftwareSystem, key: str, description: str = ""
    ) -> StaticView:
        _require(software_system, SoftwareSystem)
        self._check_key(key)
        view = StaticView(ViewKind.SYSTEM_CONTEXT, self.model, key, description, software_system)
        view._add_element(software_system, add_relationships=True)
        self.system_context_views.append(view)
        return view

    def create_enterprise_context_view(self, key: str, description: str = "") -> StaticView:
        self._check_key(key)
        view = StaticView(ViewKind.ENTERPRISE_CONTEXT, self.model, key, description)
        self.enterprise_context_views.append(view)
        return view

    def create_container_view(
        self, software_system: SoftwareSystem, key: str, description: str = ""
    ) -> StaticView:
        _require(software_system, SoftwareSystem)
        self._check_key(key)
        view = StaticView(ViewKind.CONTAINER, self.model, key, description, software_system)
        self.container_views.append(view)
        return view

    def create_component_view(self, container: Container, key: str, description: str = "") -> StaticView:
        _require(container, Container)
        self._check_key(key)
        view = StaticView(ViewKind.COMPONENT, self.model, key, description, container)
        self.component_views.append(view)
        return view

    def create_dynamic_view(
        self, scope: Optional[Element], key: str, description: str = ""
    ) -> DynamicView:
        self._check_key(key)
        view = DynamicView(self.model, key, description, scope)
        self.dynamic_views.append(view)
        return view

    def copy_layout_information_from(self, source: ViewSet) -> None:
        for view in self.views:
            match = source.get_view(view.key)
            if match is not None and match.kind is view.kind:
                view.copy_layout_information_from(match)


def _require(element: object, expected: type) -> None:
    if not isinstance(element, expected):
        raise TypeError(f"Expected a {expected.__name__}, got {type(element).__name__}")
