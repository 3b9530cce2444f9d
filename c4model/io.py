# c4model/io.py
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from .constants import DEFINITION_PART_FILES

logger = logging.getLogger(__name__)

# Keys whose values are free text and commonly contain unquoted ": ".
_FREE_TEXT_KEY_RE = re.compile(
    r"^(\s*(?:-\s*)?(?:name|description|technology|content|title)\s*:\s*)(.+)$"
)


def _sanitize_yaml_for_pyyaml(raw: str) -> tuple[str, list[tuple[int, str, str]]]:
    """Quote free-text values that PyYAML would otherwise reject.

    Returns (sanitized_yaml, changes); each change is
    (line_number_1_based, original_line, new_line).
    """
    changes: list[tuple[int, str, str]] = []
    out_lines: list[str] = []

    for i, line in enumerate(raw.splitlines(), start=1):
        match = _FREE_TEXT_KEY_RE.match(line)
        if not match:
            out_lines.append(line)
            continue

        prefix, value = match.group(1), match.group(2)
        if value.startswith(("'", '"', "|", ">")):
            out_lines.append(line)
            continue

        # Keep a trailing inline comment outside the quotes.
        body, comment = value, ""
        m = re.match(r"^(.*?)(\s+#.*)$", value)
        if m:
            body, comment = m.group(1), m.group(2)

        if re.search(r":(?=\s|$)", body):
            escaped = body.replace("\\", "\\\\").replace('"', '\\"')
            new_line = f'{prefix}"{escaped}"{comment}'
            out_lines.append(new_line)
            changes.append((i, line, new_line))
        else:
            out_lines.append(line)

    sanitized = "\n".join(out_lines) + ("\n" if raw.endswith("\n") else "")
    return sanitized, changes


def _load_yaml_mapping(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError:
        sanitized, changes = _sanitize_yaml_for_pyyaml(raw)
        try:
            data = yaml.safe_load(sanitized)
        except yaml.YAMLError as e2:
            raise ValueError(f"Failed to parse YAML {path}: {e2}") from e2

        if changes:
            logger.warning(
                "parsed %s after sanitizing %d line(s); consider quoting values containing ':' "
                "followed by whitespace",
                path,
                len(changes),
            )
            for ln, old, new in changes[:10]:
                logger.warning("%s:%d: %s -> %s", path, ln, old.strip(), new.strip())

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError(f"Top-level YAML must be a mapping in {path}, got {type(data).__name__}")
    return data


def _deep_merge(dst: dict[str, Any], src: dict[str, Any], *, src_path: Path) -> None:
    """Deep-merge `src` into `dst`.

    Merge rules:
      - missing key -> copy
      - list + list -> concatenate (file order)
      - dict + dict -> recursive merge
      - scalar conflicts -> error (unless equal)
    """
    for key, value in src.items():
        if key not in dst:
            dst[key] = value
            continue

        existing = dst[key]
        if isinstance(existing, list) and isinstance(value, list):
            dst[key] = existing + value
            continue

        if isinstance(existing, dict) and isinstance(value, dict):
            _deep_merge(existing, value, src_path=src_path)
            continue

        if existing == value:
            continue

        raise ValueError(
            f"Definition merge conflict on key {key!r} from {src_path}: "
            f"existing type={type(existing).__name__}, new type={type(value).__name__}"
        )


def load_definition(path: Path) -> dict[str, Any]:
    """Load a workspace definition (split directory or single YAML file)."""
    if not path.exists():
        raise FileNotFoundError(str(path))

    # A split-part file stands for its directory.
    if path.is_file() and path.name in DEFINITION_PART_FILES:
        path = path.parent

    if not path.is_dir():
        return _load_yaml_mapping(path)

    merged: dict[str, Any] = {}
    for filename in DEFINITION_PART_FILES:
        part_path = path / filename
        if not part_path.exists():
            continue
        _deep_merge(merged, _load_yaml_mapping(part_path), src_path=part_path)

    views_dir = path / "views"
    if views_dir.is_dir():
        for view_path in sorted(views_dir.glob("*.yaml")):
            _deep_merge(merged, _load_yaml_mapping(view_path), src_path=view_path)

    logger.debug("loaded definition from %s (%d top-level keys)", path, len(merged))
    return merged
