# c4model/model.py
"""The model graph: people, software systems, containers, components and the
relationships between them.

The `Model` owns every element and relationship. Elements refer to their
parent by id and resolve it through the model; views only ever hold
references into the model.
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional
from urllib.parse import urlsplit

from .constants import (
    CANONICAL_NAME_SEPARATOR,
    TAG_ASYNCHRONOUS,
    TAG_COMPONENT,
    TAG_CONTAINER,
    TAG_ELEMENT,
    TAG_PERSON,
    TAG_RELATIONSHIP,
    TAG_SOFTWARE_SYSTEM,
    TAG_SYNCHRONOUS,
)


class Location(str, Enum):
    INTERNAL = "Internal"
    EXTERNAL = "External"
    UNSPECIFIED = "Unspecified"


class InteractionStyle(str, Enum):
    SYNCHRONOUS = "Synchronous"
    ASYNCHRONOUS = "Asynchronous"


def check_url(url: Optional[str]) -> Optional[str]:
    """Return `url` if it is empty or absolute (scheme + host), else raise ValueError."""
    if not url:
        return url
    parts = urlsplit(url)
    if not (parts.scheme and parts.netloc):
        raise ValueError(f"{url} is not a valid URL.")
    return url


class Enterprise:
    """The enterprise that the modelled people and software systems belong to."""

    def __init__(self, name: Optional[str]) -> None:
        if not name or not name.strip():
            raise ValueError("An enterprise name must be specified.")
        self.name = name

    def __repr__(self) -> str:
        return f"Enterprise(name={self.name!r})"


class _Tagged:
    """Ordered, duplicate-free tags on top of a fixed set of required tags."""

    def __init__(self) -> None:
        self._tags: list[str] = []

    def required_tags(self) -> tuple[str, ...]:
        return ()

    def get_tags(self) -> list[str]:
        required = list(self.required_tags())
        return required + [t for t in self._tags if t not in required]

    @property
    def tags(self) -> str:
        return ",".join(self.get_tags())

    @tags.setter
    def tags(self, value: Optional[str]) -> None:
        if value is None:
            return
        self._tags = []
        self.add_tags(*value.split(","))

    def add_tags(self, *tags: Optional[str]) -> None:
        for tag in tags:
            if tag is None:
                continue
            tag = tag.strip()
            if tag and tag not in self._tags:
                self._tags.append(tag)

    def remove_tag(self, tag: Optional[str]) -> None:
        # Required tags are computed, so removing one is a no-op.
        if tag in self._tags:
            self._tags.remove(tag)

    def has_tag(self, tag: str) -> bool:
        return tag in self.get_tags()


class Element(_Tagged):
    """Base class for every named, tagged node of the model."""

    def __init__(self, name: str = "", description: str = "") -> None:
        super().__init__()
        self.id: str = ""
        self.name = name
        self.description = description or ""
        self.properties: dict[str, str] = {}
        self.parent_id: Optional[str] = None
        self.model: Optional[Model] = None
        self.relationships: list[Relationship] = []
        self._url: Optional[str] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"

    def required_tags(self) -> tuple[str, ...]:
        return (TAG_ELEMENT,)

    @property
    def url(self) -> Optional[str]:
        return self._url

    @url.setter
    def url(self, value: Optional[str]) -> None:
        self._url = check_url(value)

    @property
    def parent(self) -> Optional[Element]:
        if self.parent_id is None or self.model is None:
            return None
        return self.model.get_element(self.parent_id)

    @property
    def canonical_name(self) -> str:
        segment = CANONICAL_NAME_SEPARATOR + self.name.replace(CANONICAL_NAME_SEPARATOR, "")
        parent = self.parent
        return (parent.canonical_name if parent is not None else "") + segment

    def get_efferent_relationship_with(self, other: Optional[Element]) -> Optional[Relationship]:
        """Return the first outgoing relationship to `other` (self-loops included)."""
        if other is None:
            return None
        for relationship in self.relationships:
            if relationship.destination is other:
                return relationship
        return None

    def has_efferent_relationship_with(self, other: Optional[Element]) -> bool:
        return self.get_efferent_relationship_with(other) is not None

    def has_afferent_relationships(self) -> bool:
        if self.model is None:
            return False
        return bool(self.model.get_afferent_relationships(self))

    def uses(
        self,
        destination: Element,
        description: str = "",
        technology: str = "",
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
    ) -> Relationship:
        return self._require_model().add_relationship(
            self, destination, description, technology, interaction_style
        )

    def delivers(
        self,
        person: Person,
        description: str = "",
        technology: str = "",
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
    ) -> Relationship:
        if not isinstance(person, Person):
            raise TypeError(f"delivers() expects a Person, got {type(person).__name__}")
        return self._require_model().add_relationship(
            self, person, description, technology, interaction_style
        )

    def _require_model(self) -> Model:
        if self.model is None:
            raise ValueError(f"{self.name} has not been added to a model.")
        return self.model


class Person(Element):
    def __init__(
        self,
        name: str = "",
        description: str = "",
        location: Location = Location.UNSPECIFIED,
    ) -> None:
        super().__init__(name, description)
        self.location = location

    def required_tags(self) -> tuple[str, ...]:
        return (TAG_ELEMENT, TAG_PERSON)

    def interacts_with(
        self,
        person: Person,
        description: str = "",
        technology: str = "",
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
    ) -> Relationship:
        return self.delivers(person, description, technology, interaction_style)


class SoftwareSystem(Element):
    def __init__(
        self,
        name: str = "",
        description: str = "",
        location: Location = Location.UNSPECIFIED,
    ) -> None:
        super().__init__(name, description)
        self.location = location
        self.containers: list[Container] = []

    def required_tags(self) -> tuple[str, ...]:
        return (TAG_ELEMENT, TAG_SOFTWARE_SYSTEM)

    def add_container(
        self,
        name: str,
        description: str = "",
        technology: str = "",
        *,
        element_id: Optional[str] = None,
    ) -> Container:
        container = Container(name, description, technology)
        self._require_model()._register(container, parent=self, element_id=element_id)
        self.containers.append(container)
        return container

    def get_container_with_name(self, name: str) -> Optional[Container]:
        return next((c for c in self.containers if c.name == name), None)


class Container(Element):
    def __init__(self, name: str = "", description: str = "", technology: str = "") -> None:
        super().__init__(name, description)
        self.technology = technology or ""
        self.components: list[Component] = []

    def required_tags(self) -> tuple[str, ...]:
        return (TAG_ELEMENT, TAG_CONTAINER)

    @property
    def software_system(self) -> Optional[SoftwareSystem]:
        parent = self.parent
        return parent if isinstance(parent, SoftwareSystem) else None

    def add_component(
        self,
        name: str,
        description: str = "",
        technology: str = "",
        *,
        element_id: Optional[str] = None,
    ) -> Component:
        component = Component(name, description, technology)
        self._require_model()._register(component, parent=self, element_id=element_id)
        self.components.append(component)
        return component

    def get_component_with_name(self, name: str) -> Optional[Component]:
        return next((c for c in self.components if c.name == name), None)


class Component(Element):
    def __init__(self, name: str = "", description: str = "", technology: str = "") -> None:
        super().__init__(name, description)
        self.technology = technology or ""

    def required_tags(self) -> tuple[str, ...]:
        return (TAG_ELEMENT, TAG_COMPONENT)

    @property
    def container(self) -> Optional[Container]:
        parent = self.parent
        return parent if isinstance(parent, Container) else None


class Relationship(_Tagged):
    """A directed, described edge between two elements."""

    def __init__(
        self,
        source: Optional[Element] = None,
        destination: Optional[Element] = None,
        description: Optional[str] = "",
        technology: Optional[str] = "",
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
    ) -> None:
        super().__init__()
        self.id: str = ""
        self.source = source
        self.destination = destination
        self.description = description
        self.technology = technology or ""
        self.interaction_style = interaction_style

    def __repr__(self) -> str:
        src = self.source.name if self.source is not None else None
        dst = self.destination.name if self.destination is not None else None
        return f"Relationship(id={self.id!r}, {src!r} -> {dst!r}, {self.description!r})"

    @property
    def description(self) -> str:
        return self._description

    @description.setter
    def description(self, value: Optional[str]) -> None:
        self._description = value if value is not None else ""

    @property
    def source_id(self) -> Optional[str]:
        return self.source.id if self.source is not None else None

    @property
    def destination_id(self) -> Optional[str]:
        return self.destination.id if self.destination is not None else None

    def required_tags(self) -> tuple[str, ...]:
        if self.interaction_style == InteractionStyle.ASYNCHRONOUS:
            return (TAG_RELATIONSHIP, TAG_ASYNCHRONOUS)
        return (TAG_RELATIONSHIP, TAG_SYNCHRONOUS)


class Model:
    """Owner of all elements and relationships of a workspace."""

    def __init__(self) -> None:
        self._elements: dict[str, Element] = {}
        self._relationships: dict[str, Relationship] = {}
        self._afferent: dict[str, list[Relationship]] = {}
        self._next_id = 1
        self._enterprise: Optional[Enterprise] = None

    @property
    def enterprise(self) -> Optional[Enterprise]:
        return self._enterprise

    @enterprise.setter
    def enterprise(self, value: Optional[Enterprise]) -> None:
        if value is not None and not isinstance(value, Enterprise):
            raise TypeError(f"Expected an Enterprise, got {type(value).__name__}")
        self._enterprise = value

    # -- building ---------------------------------------------------------

    def add_person(
        self,
        name: str,
        description: str = "",
        location: Location = Location.UNSPECIFIED,
        *,
        element_id: Optional[str] = None,
    ) -> Person:
        person = Person(name, description, location)
        self._register(person, parent=None, element_id=element_id)
        return person

    def add_software_system(
        self,
        name: str,
        description: str = "",
        location: Location = Location.UNSPECIFIED,
        *,
        element_id: Optional[str] = None,
    ) -> SoftwareSystem:
        software_system = SoftwareSystem(name, description, location)
        self._register(software_system, parent=None, element_id=element_id)
        return software_system

    def add_relationship(
        self,
        source: Element,
        destination: Element,
        description: str = "",
        technology: str = "",
        interaction_style: InteractionStyle = InteractionStyle.SYNCHRONOUS,
        *,
        relationship_id: Optional[str] = None,
    ) -> Relationship:
        """Create a relationship; several may exist between the same pair."""
        if source is None or destination is None:
            raise ValueError("A relationship requires both a source and a destination.")
        for element in (source, destination):
            if not self.contains(element):
                raise ValueError(f"{element.name} does not belong to this model.")

        relationship = Relationship(source, destination, description, technology, interaction_style)
        relationship.id = self._assign_id(relationship_id)
        source.relationships.append(relationship)
        self._relationships[relationship.id] = relationship
        self._afferent.setdefault(destination.id, []).append(relationship)
        return relationship

    def _register(self, element: Element, *, parent: Optional[Element], element_id: Optional[str]) -> None:
        if parent is not None and not self.contains(parent):
            raise ValueError(f"{parent.name} does not belong to this model.")

        element.model = self
        element.parent_id = parent.id if parent is not None else None

        canonical_name = element.canonical_name
        if self.get_element_with_canonical_name(canonical_name) is not None:
            element.model = None
            raise ValueError(f"An element with the canonical name {canonical_name} already exists.")

        element.id = self._assign_id(element_id)
        self._elements[element.id] = element

    def _assign_id(self, requested: Optional[str]) -> str:
        if requested is None:
            while str(self._next_id) in self._elements or str(self._next_id) in self._relationships:
                self._next_id += 1
            assigned = str(self._next_id)
            self._next_id += 1
            return assigned

        assigned = str(requested)
        if assigned in self._elements or assigned in self._relationships:
            raise ValueError(f"The id {assigned} is already in use.")
        if assigned.isdigit():
            self._next_id = max(self._next_id, int(assigned) + 1)
        return assigned

    # -- reading ----------------------------------------------------------

    @property
    def elements(self) -> list[Element]:
        return list(self._elements.values())

    @property
    def relationships(self) -> list[Relationship]:
        return list(self._relationships.values())

    @property
    def people(self) -> list[Person]:
        return [e for e in self._elements.values() if isinstance(e, Person)]

    @property
    def software_systems(self) -> list[SoftwareSystem]:
        return [e for e in self._elements.values() if isinstance(e, SoftwareSystem)]

    @property
    def containers(self) -> list[Container]:
        return [e for e in self._elements.values() if isinstance(e, Container)]

    @property
    def components(self) -> list[Component]:
        return [e for e in self._elements.values() if isinstance(e, Component)]

    def contains(self, element: Optional[Element]) -> bool:
        return element is not None and self._elements.get(element.id) is element

    def get_element(self, element_id: str) -> Optional[Element]:
        return self._elements.get(element_id)

    def get_relationship(self, relationship_id: str) -> Optional[Relationship]:
        return self._relationships.get(relationship_id)

    def get_element_with_canonical_name(self, canonical_name: str) -> Optional[Element]:
        for element in self._elements.values():
            if element.canonical_name == canonical_name:
                return element
        return None

    def get_person_with_name(self, name: str) -> Optional[Person]:
        return next((p for p in self.people if p.name == name), None)

    def get_software_system_with_name(self, name: str) -> Optional[SoftwareSystem]:
        return next((s for s in self.software_systems if s.name == name), None)

    def get_afferent_relationships(self, element: Element) -> list[Relationship]:
        return list(self._afferent.get(element.id, []))

    def get_relationships_between(self, source: Element, destination: Element) -> list[Relationship]:
        return [r for r in source.relationships if r.destination is destination]

    def relationships_involving(self, elements: Iterable[Element]) -> list[Relationship]:
        """Relationships whose source and destination are both in `elements`."""
        ids = {e.id for e in elements}
        return [
            r
            for r in self._relationships.values()
            if r.source_id in ids and r.destination_id in ids
        ]
