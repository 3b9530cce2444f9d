# c4model/mermaid_fmt.py
from __future__ import annotations

import html
import re
from typing import Optional

from .model import Element

# Mermaid node/participant IDs must be alphanumeric/underscore and must not
# start with a digit.
MERMAID_ID_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

C4_KINDS = {"C4Context", "C4Container", "C4Component"}


def mermaid_block(code: str) -> str:
    """Wrap Mermaid source in a Markdown Mermaid code fence."""
    return "```mermaid\n" + code.rstrip() + "\n```\n"


def mm_text(text: object, *, escape_semicolon: bool = False) -> str:
    """Escape text for Mermaid labels."""
    normalized = re.sub(r"\s+", " ", html.unescape(str(text))).strip()
    out = (
        normalized.replace("&", "#amp;")
        .replace("<", "#lt;")
        .replace(">", "#gt;")
        .replace('"', "#quot;")
        .replace("|", "#124;")
    )
    if escape_semicolon:
        out = out.replace(";", "#59;")
    return out


def assert_mm_id(value: str) -> str:
    if not MERMAID_ID_RE.match(value):
        raise ValueError(f"Not Mermaid-safe id: {value!r}")
    return value


def mm_alias(element: Element) -> str:
    """Mermaid-safe alias for a model element (model ids may start with a digit)."""
    return assert_mm_id("e" + re.sub(r"[^A-Za-z0-9_]", "_", element.id))


def mm_participant(pid: str, label: str) -> str:
    return f'  participant {pid} as "{mm_text(label)}"'


def mm_c4_header(kind: str) -> str:
    if kind not in C4_KINDS:
        raise ValueError(f"unknown C4 kind: {kind!r}")
    return kind


def mm_c4_str(text: object) -> str:
    """Quote + Mermaid-escape text for C4 macro arguments."""
    return f'"{mm_text(text)}"'


def mm_c4_call(fn: str, *positional: str, **named: Optional[object]) -> str:
    """Render `fn(a, b, $key="v")`; named args are sorted and None values dropped."""
    args: list[str] = list(positional)
    for k in sorted(named.keys()):
        v = named[k]
        if v is None:
            continue
        args.append(f"${k}={mm_c4_str(v)}")
    return fn + "(" + ", ".join(args) + ")"


def mm_c4_boundary_open(macro: str, alias: str, label: str) -> str:
    # e.g. System_Boundary(e1, "Sample System") {
    return mm_c4_call(macro, alias, mm_c4_str(label)) + " {"


def mm_c4_boundary_close() -> str:
    return "}"
