# c4model/serialize.py
"""Workspace <-> JSON-compatible dicts (camelCase keys, elements nested by parent)."""
from __future__ import annotations

import json
from typing import Any, Optional

from .configuration import Configuration, ElementStyle, RelationshipStyle
from .documentation import DocumentationFormat, Image, SectionType
from .model import (
    Component,
    Container,
    Element,
    Enterprise,
    InteractionStyle,
    Location,
    Model,
    Person,
    Relationship,
    SoftwareSystem,
)
from .views import DynamicView, RelationshipView, View, ViewSet
from .workspace import Workspace

# ViewSet attribute -> JSON key.
VIEW_GROUPS: tuple[tuple[str, str], ...] = (
    ("system_context_views", "systemContextViews"),
    ("enterprise_context_views", "enterpriseContextViews"),
    ("container_views", "containerViews"),
    ("component_views", "componentViews"),
    ("dynamic_views", "dynamicViews"),
)


def _drop_empty(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v not in (None, "", [], {})}


# -- writing --------------------------------------------------------------


def _relationship_to_dict(relationship: Relationship) -> dict[str, Any]:
    return _drop_empty(
        {
            "id": relationship.id,
            "tags": relationship.tags,
            "sourceId": relationship.source_id,
            "destinationId": relationship.destination_id,
            "description": relationship.description,
            "technology": relationship.technology,
            "interactionStyle": relationship.interaction_style.value,
        }
    )


def _element_to_dict(element: Element) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": element.id,
        "tags": element.tags,
        "name": element.name,
        "description": element.description,
        "url": element.url,
        "properties": dict(element.properties),
        "relationships": [_relationship_to_dict(r) for r in element.relationships],
    }
    if isinstance(element, (Person, SoftwareSystem)):
        data["location"] = element.location.value
    if isinstance(element, (Container, Component)):
        data["technology"] = element.technology
    if isinstance(element, SoftwareSystem):
        data["containers"] = [_element_to_dict(c) for c in element.containers]
    if isinstance(element, Container):
        data["components"] = [_element_to_dict(c) for c in element.components]
    return _drop_empty(data)


def model_to_dict(model: Model) -> dict[str, Any]:
    data: dict[str, Any] = {
        "people": [_element_to_dict(p) for p in model.people],
        "softwareSystems": [_element_to_dict(s) for s in model.software_systems],
    }
    if model.enterprise is not None:
        data["enterprise"] = {"name": model.enterprise.name}
    return data


def _relationship_view_to_dict(rv: RelationshipView) -> dict[str, Any]:
    return _drop_empty(
        {
            "id": rv.id,
            "description": rv.description,
            "order": rv.order,
            "vertices": [{"x": x, "y": y} for x, y in rv.vertices],
            "position": rv.position,
        }
    )


def view_to_dict(view: View) -> dict[str, Any]:
    data: dict[str, Any] = {
        "key": view.key,
        "description": view.description,
        "elements": [_drop_empty({"id": ev.id, "x": ev.x, "y": ev.y}) for ev in view.elements],
        "relationships": [_relationship_view_to_dict(rv) for rv in view.relationships],
    }
    if isinstance(view, DynamicView):
        data["elementId"] = view.element_id
    elif view.container is not None:
        data["containerId"] = view.container_id
    else:
        data["softwareSystemId"] = view.software_system_id
    return _drop_empty(data)


def _style_to_dict(style: ElementStyle | RelationshipStyle) -> dict[str, Any]:
    data = {k.lstrip("_"): v for k, v in vars(style).items()}
    return _drop_empty({_camel(k): v for k, v in data.items()})


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def configuration_to_dict(configuration: Configuration) -> dict[str, Any]:
    return _drop_empty(
        {
            "defaultView": configuration.default_view,
            "lastSavedView": configuration.last_saved_view,
            "styles": _drop_empty(
                {
                    "elements": [_style_to_dict(s) for s in configuration.styles.elements],
                    "relationships": [_style_to_dict(s) for s in configuration.styles.relationships],
                }
            ),
        }
    )


def workspace_to_dict(workspace: Workspace) -> dict[str, Any]:
    views: dict[str, Any] = {}
    for attr, key in VIEW_GROUPS:
        group = getattr(workspace.views, attr)
        if group:
            views[key] = [view_to_dict(v) for v in group]
    views["configuration"] = configuration_to_dict(workspace.views.configuration)

    documentation = workspace.documentation
    return _drop_empty(
        {
            "id": workspace.id,
            "name": workspace.name,
            "description": workspace.description,
            "source": workspace.source,
            "api": workspace.api,
            "model": model_to_dict(workspace.model),
            "views": views,
            "documentation": _drop_empty(
                {
                    "sections": [
                        {
                            "elementId": s.element_id,
                            "type": s.type.value,
                            "format": s.format.value,
                            "content": s.content,
                            "order": s.order,
                        }
                        for s in documentation.sections
                    ],
                    "images": [
                        {"name": i.name, "content": i.content, "type": i.type}
                        for i in documentation.images
                    ],
                }
            ),
        }
    )


def dumps(workspace: Workspace, *, indent: Optional[int] = None) -> str:
    """Serialize `workspace` to JSON with stable key order."""
    separators = (",", ":") if indent is None else (",", ": ")
    return json.dumps(
        workspace_to_dict(workspace), indent=indent, separators=separators, ensure_ascii=False
    )


# -- reading --------------------------------------------------------------


def _apply_element_fields(element: Element, data: dict[str, Any]) -> None:
    element.tags = data.get("tags")
    element.url = data.get("url")
    element.properties.update(data.get("properties") or {})


def _read_people_and_systems(model: Model, data: dict[str, Any], pending: list[dict[str, Any]]) -> None:
    for item in data.get("people", []) or []:
        person = model.add_person(
            item["name"],
            item.get("description", ""),
            Location(item.get("location", Location.UNSPECIFIED.value)),
            element_id=item["id"],
        )
        _apply_element_fields(person, item)
        pending.extend(item.get("relationships", []) or [])

    for item in data.get("softwareSystems", []) or []:
        system = model.add_software_system(
            item["name"],
            item.get("description", ""),
            Location(item.get("location", Location.UNSPECIFIED.value)),
            element_id=item["id"],
        )
        _apply_element_fields(system, item)
        pending.extend(item.get("relationships", []) or [])

        for container_data in item.get("containers", []) or []:
            container = system.add_container(
                container_data["name"],
                container_data.get("description", ""),
                container_data.get("technology", ""),
                element_id=container_data["id"],
            )
            _apply_element_fields(container, container_data)
            pending.extend(container_data.get("relationships", []) or [])

            for component_data in container_data.get("components", []) or []:
                component = container.add_component(
                    component_data["name"],
                    component_data.get("description", ""),
                    component_data.get("technology", ""),
                    element_id=component_data["id"],
                )
                _apply_element_fields(component, component_data)
                pending.extend(component_data.get("relationships", []) or [])


def model_from_dict(model: Model, data: dict[str, Any]) -> None:
    """Populate an empty `model` from its dict form, keeping ids."""
    enterprise = data.get("enterprise")
    if enterprise:
        model.enterprise = Enterprise(enterprise.get("name"))

    # Relationships may point forward, so elements go in first.
    pending: list[dict[str, Any]] = []
    _read_people_and_systems(model, data, pending)

    for item in pending:
        source = _lookup(model, item["sourceId"])
        destination = _lookup(model, item["destinationId"])
        relationship = model.add_relationship(
            source,
            destination,
            item.get("description", ""),
            item.get("technology", ""),
            InteractionStyle(item.get("interactionStyle", InteractionStyle.SYNCHRONOUS.value)),
            relationship_id=item["id"],
        )
        relationship.tags = item.get("tags")


def _lookup(model: Model, element_id: str) -> Element:
    element = model.get_element(element_id)
    if element is None:
        raise KeyError(f"Unknown element id {element_id!r}")
    return element


def _restore_view_contents(view: View, model: Model, data: dict[str, Any]) -> None:
    for item in data.get("elements", []) or []:
        view.restore_element_view(_lookup(model, item["id"]), item.get("x"), item.get("y"))

    for item in data.get("relationships", []) or []:
        relationship = model.get_relationship(item["id"])
        if relationship is None:
            raise KeyError(f"Unknown relationship id {item['id']!r}")
        view.restore_relationship_view(
            relationship,
            item.get("description", ""),
            item.get("order", ""),
            [(v["x"], v["y"]) for v in item.get("vertices", []) or []],
            item.get("position"),
        )


def _create_view(views: ViewSet, model: Model, attr: str, data: dict[str, Any]) -> View:
    key = data["key"]
    description = data.get("description", "")
    if attr == "system_context_views":
        system = _lookup(model, data["softwareSystemId"])
        return views.create_system_context_view(system, key, description)  # type: ignore[arg-type]
    if attr == "enterprise_context_views":
        return views.create_enterprise_context_view(key, description)
    if attr == "container_views":
        system = _lookup(model, data["softwareSystemId"])
        return views.create_container_view(system, key, description)  # type: ignore[arg-type]
    if attr == "component_views":
        container = _lookup(model, data["containerId"])
        return views.create_component_view(container, key, description)  # type: ignore[arg-type]
    scope_id = data.get("elementId")
    scope = _lookup(model, scope_id) if scope_id else None
    return views.create_dynamic_view(scope, key, description)


def _style_from_dict(style: ElementStyle | RelationshipStyle, data: dict[str, Any]) -> None:
    for key, value in data.items():
        if key == "tag":
            continue
        attr = "".join(f"_{c.lower()}" if c.isupper() else c for c in key)
        if hasattr(style, attr):
            setattr(style, attr, value)


def configuration_from_dict(configuration: Configuration, data: dict[str, Any]) -> None:
    configuration.default_view = data.get("defaultView")
    configuration.last_saved_view = data.get("lastSavedView")
    styles = data.get("styles") or {}
    for item in styles.get("elements", []) or []:
        _style_from_dict(configuration.styles.add_element_style(item.get("tag", "")), item)
    for item in styles.get("relationships", []) or []:
        _style_from_dict(configuration.styles.add_relationship_style(item.get("tag", "")), item)


def workspace_from_dict(data: dict[str, Any]) -> Workspace:
    if not isinstance(data, dict):
        raise TypeError(f"Expected a mapping, got {type(data).__name__}")

    workspace = Workspace(data.get("name", ""), data.get("description", ""))
    workspace.id = int(data.get("id", 0) or 0)
    workspace.source = data.get("source")
    workspace.api = data.get("api")

    model = workspace.model
    model_from_dict(model, data.get("model") or {})

    views_data = data.get("views") or {}
    for attr, key in VIEW_GROUPS:
        for view_data in views_data.get(key, []) or []:
            view = _create_view(workspace.views, model, attr, view_data)
            _restore_view_contents(view, model, view_data)
    configuration_from_dict(workspace.views.configuration, views_data.get("configuration") or {})

    documentation = workspace.documentation
    doc_data = data.get("documentation") or {}
    for item in doc_data.get("sections", []) or []:
        element = _lookup(model, item["elementId"])
        section_type = SectionType(item["type"])
        fmt = DocumentationFormat(item.get("format", DocumentationFormat.MARKDOWN.value))
        if section_type is SectionType.COMPONENTS:
            documentation.add_component_section(element, fmt, item.get("content", ""))  # type: ignore[arg-type]
        else:
            documentation.add(element, section_type, fmt, item.get("content", ""))
    for item in doc_data.get("images", []) or []:
        documentation.images.append(
            Image(name=item["name"], content=item.get("content", ""), type=item.get("type", ""))
        )

    return workspace


def loads(text: str) -> Workspace:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse workspace JSON: {e}") from e
    return workspace_from_dict(data)
