# c4model/diagrams/c4.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..configuration import Styles
from ..mermaid_fmt import (
    mm_alias,
    mm_c4_boundary_close,
    mm_c4_boundary_open,
    mm_c4_call,
    mm_c4_header,
    mm_c4_str,
)
from ..model import Component, Container, Element, Location, Person, SoftwareSystem
from ..views import StaticView, ViewKind

_HEADERS: dict[ViewKind, str] = {
    ViewKind.SYSTEM_CONTEXT: "C4Context",
    ViewKind.ENTERPRISE_CONTEXT: "C4Context",
    ViewKind.CONTAINER: "C4Container",
    ViewKind.COMPONENT: "C4Component",
}


@dataclass(frozen=True)
class C4RenderOptions:
    """Per-render knobs for static C4 diagrams."""

    apply_styles: bool = True
    max_description_len: int = 140


def _truncate(text: str, *, max_len: int) -> str:
    """Deterministically truncate text for diagram legibility."""
    text = (text or "").strip()
    if len(text) <= max_len:
        return text
    return text[: max(0, max_len - 1)].rstrip() + "…"


def _element_line(element: Element, opts: C4RenderOptions) -> str:
    alias = mm_alias(element)
    name = mm_c4_str(element.name)
    desc = mm_c4_str(_truncate(element.description, max_len=opts.max_description_len))

    if isinstance(element, Person):
        macro = "Person_Ext" if element.location is Location.EXTERNAL else "Person"
        return f"{macro}({alias}, {name}, {desc})"
    if isinstance(element, SoftwareSystem):
        macro = "System_Ext" if element.location is Location.EXTERNAL else "System"
        return f"{macro}({alias}, {name}, {desc})"
    if isinstance(element, (Container, Component)):
        macro = type(element).__name__
        return f"{macro}({alias}, {name}, {mm_c4_str(element.technology)}, {desc})"
    raise TypeError(f"Cannot render {type(element).__name__}")


def _boundary(view: StaticView) -> Optional[tuple[str, Element, list[Element]]]:
    """Return (macro, boundary element, members) for views that draw one."""
    members = [ev.element for ev in view.elements]
    if view.kind is ViewKind.CONTAINER and view.software_system is not None:
        inside = [e for e in members if isinstance(e, Container)]
        return "System_Boundary", view.software_system, inside
    if view.kind is ViewKind.COMPONENT and view.container is not None:
        inside = [e for e in members if isinstance(e, Component)]
        return "Container_Boundary", view.container, inside
    return None


def _style_lines(view: StaticView, styles: Styles) -> list[str]:
    lines: list[str] = []
    for element_view in view.elements:
        style = styles.find_element_style(element_view.element.get_tags())
        if style is None:
            continue
        if style.background is None and style.color is None and style.border is None:
            continue
        lines.append(
            mm_c4_call(
                "UpdateElementStyle",
                mm_alias(element_view.element),
                bgColor=style.background,
                fontColor=style.color,
                borderColor=style.border,
            )
        )
    return lines


def gen_c4_static(
    view: StaticView,
    styles: Optional[Styles] = None,
    *,
    opts: C4RenderOptions = C4RenderOptions(),
) -> str:
    """Generate a Mermaid C4 Context/Container/Component diagram for a static view.

    Container and component views draw their scope as a boundary around the
    containers/components shown; the enterprise context view draws internal
    people and software systems inside an enterprise boundary when the model
    has an enterprise.
    """
    lines: list[str] = [
        mm_c4_header(_HEADERS[view.kind]),
        f"title {mm_c4_str(view.name)}",
    ]

    members = [ev.element for ev in view.elements]
    inside: list[Element] = []
    boundary = _boundary(view)
    enterprise = view.model.enterprise

    if boundary is not None:
        _, _, inside = boundary
    elif view.kind is ViewKind.ENTERPRISE_CONTEXT and enterprise is not None:
        inside = [
            e
            for e in members
            if isinstance(e, (Person, SoftwareSystem)) and e.location is Location.INTERNAL
        ]

    # The boundary itself already declares the scope alias.
    skip_ids = {e.id for e in inside}
    if boundary is not None:
        skip_ids.add(boundary[1].id)
    for element in members:
        if element.id not in skip_ids:
            lines.append(_element_line(element, opts))

    if boundary is not None:
        macro, scope, _ = boundary
        lines.append(mm_c4_boundary_open(macro, mm_alias(scope), scope.name))
    elif inside:
        assert enterprise is not None
        lines.append(mm_c4_boundary_open("Enterprise_Boundary", "enterprise", enterprise.name))

    if boundary is not None or inside:
        for element in inside:
            lines.append("  " + _element_line(element, opts))
        lines.append(mm_c4_boundary_close())

    for rv in view.relationships:
        rel = rv.relationship
        assert rel.source is not None and rel.destination is not None
        lines.append(
            f"Rel({mm_alias(rel.source)}, {mm_alias(rel.destination)}, "
            f"{mm_c4_str(rv.label)}, {mm_c4_str(rel.technology)})"
        )

    if styles is not None and opts.apply_styles:
        lines.extend(_style_lines(view, styles))

    return "\n".join(lines)
