# c4model/definition.py
"""Build a `Workspace` from a loaded YAML definition.

Definition layout (all sections optional):

    workspace: {name, description, enterprise, source}
    people: [{id, name, description, location, tags, url}]
    software_systems: [{id, name, ..., containers: [{id, ..., components: [...]}]}]
    relationships: [{from, to, description, technology, interaction_style, tags}]
    views:
      system_context: [{key, software_system, description, include, exclude, nearest_neighbours}]
      enterprise_context: [{key, ...}]
      container: [{key, software_system, ...}]
      component: [{key, container, ...}]
      dynamic: [{key, scope, description, steps}]
      default: <view key>
    styles: {elements: [{tag, ...}], relationships: [{tag, ...}]}
    documentation: {sections: [{element, type, format, content | file}], images: [dir, ...]}

`id`s are local to the definition; the model assigns its own.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Optional

from .configuration import ElementStyle, RelationshipStyle
from .documentation import DocumentationFormat, SectionType
from .model import Container, Element, Enterprise, InteractionStyle, Location
from .views import DynamicView, StaticView
from .workspace import Workspace


def as_list(value: Any) -> list[Any]:
    """Return `value` if it is a list, [] for None, else raise TypeError."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"Expected a list, got {type(value).__name__}")
    return value


def _mappings(value: Any) -> Iterator[dict[str, Any]]:
    for item in as_list(value):
        if isinstance(item, dict):
            yield item


def _tags(element_or_rel: Any, item: dict[str, Any]) -> None:
    tags = item.get("tags")
    if isinstance(tags, str):
        tags = tags.split(",")
    if tags:
        element_or_rel.add_tags(*tags)


def _apply_common(element: Element, item: dict[str, Any]) -> None:
    _tags(element, item)
    if item.get("url"):
        element.url = item["url"]
    for key, value in (item.get("properties") or {}).items():
        element.properties[str(key)] = str(value)


def _location(item: dict[str, Any]) -> Location:
    return Location(str(item.get("location", Location.UNSPECIFIED.value)).capitalize())


class DefinitionIndex:
    """Definition-local ids -> model elements."""

    def __init__(self) -> None:
        self._by_id: dict[str, Element] = {}

    def add(self, local_id: Any, element: Element) -> None:
        if isinstance(local_id, str) and local_id:
            if local_id in self._by_id:
                raise ValueError(f"Duplicate definition id {local_id!r}")
            self._by_id[local_id] = element

    def get(self, local_id: Any) -> Element:
        try:
            return self._by_id[local_id]
        except (KeyError, TypeError):
            raise KeyError(f"Unknown element id {local_id!r}") from None


def _build_model(workspace: Workspace, definition: dict[str, Any]) -> DefinitionIndex:
    model = workspace.model
    index = DefinitionIndex()

    for item in _mappings(definition.get("people")):
        person = model.add_person(item["name"], item.get("description", ""), _location(item))
        _apply_common(person, item)
        index.add(item.get("id"), person)

    for item in _mappings(definition.get("software_systems")):
        system = model.add_software_system(item["name"], item.get("description", ""), _location(item))
        _apply_common(system, item)
        index.add(item.get("id"), system)

        for c_item in _mappings(item.get("containers")):
            container = system.add_container(
                c_item["name"], c_item.get("description", ""), c_item.get("technology", "")
            )
            _apply_common(container, c_item)
            index.add(c_item.get("id"), container)

            for k_item in _mappings(c_item.get("components")):
                component = container.add_component(
                    k_item["name"], k_item.get("description", ""), k_item.get("technology", "")
                )
                _apply_common(component, k_item)
                index.add(k_item.get("id"), component)

    for item in _mappings(definition.get("relationships")):
        style = InteractionStyle(str(item.get("interaction_style", "Synchronous")).capitalize())
        relationship = model.add_relationship(
            index.get(item.get("from")),
            index.get(item.get("to")),
            item.get("description", ""),
            item.get("technology", ""),
            style,
        )
        _tags(relationship, item)

    return index


def _populate_static(view: StaticView, item: dict[str, Any], index: DefinitionIndex) -> None:
    include = item.get("include")
    if include == "*":
        view.add_all_elements()
    else:
        for local_id in as_list(include):
            view.add(index.get(local_id))

    for local_id in as_list(item.get("nearest_neighbours")):
        view.add_nearest_neighbours(index.get(local_id))

    for local_id in as_list(item.get("exclude")):
        view.remove(index.get(local_id))


def add_dynamic_steps(view: DynamicView, steps: Any, index: DefinitionIndex) -> None:
    """Replay definition steps onto `view`.

    A step is `{from, to, description, order}`, `{parallel: [steps]}` or
    `{nested: [steps]}`. Steps inside `parallel` each run as their own
    parallel block, so they share one order number.
    """
    for step in _mappings(steps):
        if "parallel" in step:
            for branch in as_list(step["parallel"]):
                view.start_parallel_sequence()
                add_dynamic_steps(view, branch if isinstance(branch, list) else [branch], index)
                view.end_parallel_sequence()
            continue

        if "nested" in step:
            view.start_child_sequence()
            add_dynamic_steps(view, step["nested"], index)
            view.end_child_sequence()
            continue

        order = step.get("order")
        view.add(
            index.get(step.get("from")),
            index.get(step.get("to")),
            step.get("description", ""),
            order=str(order) if order is not None else None,
        )


def _build_views(workspace: Workspace, views: dict[str, Any], index: DefinitionIndex) -> None:
    view_set = workspace.views

    for item in _mappings(views.get("system_context")):
        system = index.get(item.get("software_system"))
        view = view_set.create_system_context_view(system, item["key"], item.get("description", ""))  # type: ignore[arg-type]
        _populate_static(view, item, index)

    for item in _mappings(views.get("enterprise_context")):
        view = view_set.create_enterprise_context_view(item["key"], item.get("description", ""))
        _populate_static(view, item, index)

    for item in _mappings(views.get("container")):
        system = index.get(item.get("software_system"))
        view = view_set.create_container_view(system, item["key"], item.get("description", ""))  # type: ignore[arg-type]
        _populate_static(view, item, index)

    for item in _mappings(views.get("component")):
        container = index.get(item.get("container"))
        view = view_set.create_component_view(container, item["key"], item.get("description", ""))  # type: ignore[arg-type]
        _populate_static(view, item, index)

    for item in _mappings(views.get("dynamic")):
        scope_id = item.get("scope")
        scope = index.get(scope_id) if scope_id else None
        dynamic = view_set.create_dynamic_view(scope, item["key"], item.get("description", ""))
        add_dynamic_steps(dynamic, item.get("steps"), index)

    default_key = views.get("default")
    if default_key:
        view_set.configuration.set_default_view(view_set.get_view(default_key))


def _apply_style(style: ElementStyle | RelationshipStyle, item: dict[str, Any]) -> None:
    for key, value in item.items():
        if key != "tag" and hasattr(style, key):
            setattr(style, key, value)


def _build_documentation(
    workspace: Workspace, documentation: dict[str, Any], index: DefinitionIndex, base_dir: Optional[Path]
) -> None:
    docs = workspace.documentation
    root = base_dir or Path(".")

    for item in _mappings(documentation.get("sections")):
        element = index.get(item.get("element"))
        fmt = DocumentationFormat(item.get("format", DocumentationFormat.MARKDOWN.value))
        content: str | Path = item.get("content", "")
        if item.get("file"):
            content = root / item["file"]

        section_type = SectionType(item["type"])
        if isinstance(element, Container):
            if section_type is not SectionType.COMPONENTS:
                raise ValueError(
                    f"Sections of type {section_type.value} must be related to a software system "
                    f"rather than a container ({element.name})."
                )
            docs.add_component_section(element, fmt, content)
        else:
            docs.add(element, section_type, fmt, content)

    for directory in as_list(documentation.get("images")):
        docs.add_images(root / directory)


def build_workspace(definition: dict[str, Any], *, base_dir: Optional[Path] = None) -> Workspace:
    """Turn a loaded definition into a `Workspace`.

    `base_dir` resolves relative documentation files and image directories.
    """
    meta = definition.get("workspace") or {}
    workspace = Workspace(meta.get("name", "Workspace"), meta.get("description", ""))
    if meta.get("source"):
        workspace.source = meta["source"]
    if meta.get("enterprise"):
        workspace.model.enterprise = Enterprise(meta["enterprise"])

    index = _build_model(workspace, definition)
    _build_views(workspace, definition.get("views") or {}, index)

    styles = definition.get("styles") or {}
    for item in _mappings(styles.get("elements")):
        _apply_style(workspace.views.configuration.styles.add_element_style(item["tag"]), item)
    for item in _mappings(styles.get("relationships")):
        _apply_style(workspace.views.configuration.styles.add_relationship_style(item["tag"]), item)

    _build_documentation(workspace, definition.get("documentation") or {}, index, base_dir)
    return workspace
