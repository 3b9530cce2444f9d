# c4model/writer.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .diagrams.registry import DiagramSpec
from .mermaid_fmt import mermaid_block
from .workspace import Workspace


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def write_diagram(out_dir: Path, spec: DiagramSpec) -> Path:
    """Write `<view key>.md`: the view name, its description, then the Mermaid block."""
    description = spec.description.strip()
    intro = f"{description}\n\n" if description else ""
    return _write(out_dir / spec.filename, f"# {spec.title}\n\n{intro}{mermaid_block(spec.render())}")


def write_index(out_dir: Path, workspace: Workspace, specs: Iterable[DiagramSpec]) -> Path:
    """Write index.md linking every rendered view page."""
    description = workspace.description.strip()
    lines = [description, ""] if description else []
    lines.extend(f"- [{spec.title}]({spec.filename})" for spec in specs)
    body = "\n".join(lines).rstrip() + "\n"
    return _write(out_dir / "index.md", f"# {workspace.name}\n\n{body}")
