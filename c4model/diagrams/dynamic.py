# c4model/diagrams/dynamic.py
from __future__ import annotations

import re

from ..mermaid_fmt import mm_alias, mm_participant, mm_text
from ..model import InteractionStyle
from ..views import DynamicView


def _order_key(order: str) -> tuple[int, ...]:
    """Sort "2", "2.1", "10" numerically; anything unparsable goes last."""
    parts = order.split(".") if order else []
    if not parts or not all(re.fullmatch(r"\d+", p) for p in parts):
        return (1_000_000_000,)
    return tuple(int(p) for p in parts)


def gen_sequence(view: DynamicView) -> str:
    """Generate a sequence diagram from a dynamic view's ordered steps.

    Steps are sorted by order number (stable, so parallel steps sharing a
    number keep the order they were added in).
    """
    steps = sorted(view.relationships, key=lambda rv: _order_key(rv.order))

    lines: list[str] = ["sequenceDiagram"]
    for element_view in view.elements:
        lines.append(mm_participant(mm_alias(element_view.element), element_view.element.name))

    for rv in steps:
        rel = rv.relationship
        assert rel.source is not None and rel.destination is not None
        arrow = "-)" if rel.interaction_style is InteractionStyle.ASYNCHRONOUS else "->>"
        prefix = f"{rv.order}. " if rv.order else ""
        lines.append(
            f"  {mm_alias(rel.source)}{arrow}{mm_alias(rel.destination)}: {mm_text(prefix + rv.label)}"
        )

    return "\n".join(lines)
