# c4model/cli.py
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .client import ClientConfig, WorkspaceClient, WorkspaceClientError
from .definition import build_workspace
from .diagrams.registry import RenderConfig, diagram_specs
from .io import load_definition
from .serialize import dumps
from .validate import validate_definition
from .workspace import Workspace
from .writer import write_diagram, write_index


async def _push(workspace: Workspace, workspace_id: int) -> None:
    async with WorkspaceClient(ClientConfig.from_env()) as client:
        await client.put_workspace(workspace_id, workspace)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Build a C4 workspace from a YAML definition and render its views as Mermaid."
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=Path("architecture"),
        help="Path to a split definition directory or a single YAML definition file.",
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=Path("diagrams"),
        help="Output directory for generated markdown",
    )
    parser.add_argument(
        "--json",
        type=Path,
        default=None,
        help="Also write the workspace as JSON to this path.",
    )
    parser.add_argument(
        "--views",
        type=str,
        default="",
        help="Comma-separated view keys to render (default: all views).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on validation warnings. Errors always fail.",
    )
    parser.add_argument(
        "--push",
        type=int,
        default=None,
        metavar="WORKSPACE_ID",
        help=(
            "Push the workspace to the workspace API (credentials from C4MODEL_API_KEY / "
            "C4MODEL_API_SECRET, URL from C4MODEL_API_URL, encrypted when C4MODEL_PASSPHRASE is set)."
        ),
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    definition = load_definition(args.workspace)

    errors, warnings = validate_definition(definition)
    for warning in warnings:
        print(f"warning: {warning}", file=sys.stderr)

    if errors or (args.strict and warnings):
        for error in errors:
            print(f"error: {error}", file=sys.stderr)
        raise SystemExit(2)

    base_dir = args.workspace if args.workspace.is_dir() else args.workspace.parent
    workspace = build_workspace(definition, base_dir=base_dir)

    view_keys = None
    if args.views.strip():
        view_keys = tuple(v.strip() for v in args.views.split(",") if v.strip())

    try:
        specs = diagram_specs(workspace, RenderConfig(view_keys=view_keys))
    except KeyError as e:
        print(f"error: {e.args[0]}", file=sys.stderr)
        raise SystemExit(2) from e

    out_dir: Path = args.out_dir
    for spec in specs:
        write_diagram(out_dir, spec)
    write_index(out_dir, workspace, specs)

    if args.json is not None:
        args.json.parent.mkdir(parents=True, exist_ok=True)
        args.json.write_text(dumps(workspace, indent=2), encoding="utf-8")

    if args.push is not None:
        try:
            asyncio.run(_push(workspace, args.push))
        except (WorkspaceClientError, ValueError) as e:
            print(f"error: {e}", file=sys.stderr)
            raise SystemExit(2) from e


if __name__ == "__main__":
    main()
