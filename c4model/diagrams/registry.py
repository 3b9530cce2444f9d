from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from ..views import DynamicView, StaticView, View, ViewKind
from ..workspace import Workspace
from .c4 import C4RenderOptions, gen_c4_static
from .dynamic import gen_sequence

RenderFn = Callable[[View, Workspace, "RenderConfig"], str]


@dataclass(frozen=True)
class RenderConfig:
    view_keys: Optional[tuple[str, ...]] = None
    apply_styles: bool = True


@dataclass(frozen=True)
class DiagramSpec:
    diagram_id: str
    title: str
    filename: str
    description: str
    render: Callable[[], str]


def _render_static(view: View, workspace: Workspace, cfg: RenderConfig) -> str:
    assert isinstance(view, StaticView)
    return gen_c4_static(
        view,
        workspace.views.configuration.styles,
        opts=C4RenderOptions(apply_styles=cfg.apply_styles),
    )


def _render_dynamic(view: View, _: Workspace, __: RenderConfig) -> str:
    assert isinstance(view, DynamicView)
    return gen_sequence(view)


RENDERERS: dict[ViewKind, RenderFn] = {
    ViewKind.SYSTEM_CONTEXT: _render_static,
    ViewKind.ENTERPRISE_CONTEXT: _render_static,
    ViewKind.CONTAINER: _render_static,
    ViewKind.COMPONENT: _render_static,
    ViewKind.DYNAMIC: _render_dynamic,
}


def diagram_specs(workspace: Workspace, cfg: RenderConfig = RenderConfig()) -> list[DiagramSpec]:
    """One diagram per view, in view-set order, optionally filtered by key."""
    views = workspace.views.views
    if cfg.view_keys is not None:
        unknown = set(cfg.view_keys) - {v.key for v in views}
        if unknown:
            raise KeyError(f"Unknown view key(s): {', '.join(sorted(unknown))}")
        views = [v for v in views if v.key in cfg.view_keys]

    specs: list[DiagramSpec] = []
    for view in views:
        render = RENDERERS[view.kind]
        specs.append(
            DiagramSpec(
                diagram_id=view.key,
                title=view.name,
                filename=f"{view.key}.md",
                description=view.description,
                render=lambda view=view, render=render: render(view, workspace, cfg),
            )
        )
    return specs
