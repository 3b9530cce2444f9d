# c4model/validate.py
"""Structural checks on a loaded definition, run before the workspace is built."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Tuple

from .constants import DEFINITION_VIEW_SECTIONS

Severity = Literal["error", "warning"]

# View keys become output filenames.
VIEW_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")

# View section -> (scope field, element kinds the scope may reference).
_VIEW_SCOPES: dict[str, tuple[Optional[str], tuple[str, ...]]] = {
    "system_context": ("software_system", ("software_system",)),
    "enterprise_context": (None, ()),
    "container": ("software_system", ("software_system",)),
    "component": ("container", ("container",)),
    "dynamic": ("scope", ("software_system", "container")),
}


@dataclass(frozen=True)
class ValidationIssue:
    severity: Severity
    code: str
    message: str
    path: str = ""
    hint: Optional[str] = None


@dataclass(frozen=True)
class ValidateConfig:
    """Validation configuration.

    `ignore` drops issues by code; `escalate` turns matching warnings into errors.
    """

    ignore: set[str] = field(default_factory=set)
    escalate: set[str] = field(default_factory=set)

    # Mermaid-breaker guards
    check_step_description_newlines: bool = True


def _collect_elements(
    definition: dict[str, Any], emit: Any
) -> dict[str, str]:
    """Return definition id -> element kind, emitting issues along the way."""
    kinds: dict[str, str] = {}

    def visit(items: Any, kind: str, path: str) -> list[dict[str, Any]]:
        if items is None:
            return []
        if not isinstance(items, list):
            emit("error", "E_SECTION_NOT_LIST", f"{path} must be a list", path=path)
            return []

        seen: list[dict[str, Any]] = []
        for i, item in enumerate(items):
            item_path = f"{path}/{i}"
            if not isinstance(item, dict):
                emit(
                    "warning",
                    "W_SECTION_ITEM_NOT_MAPPING",
                    f"{path} contains a non-mapping item; skipping",
                    path=item_path,
                )
                continue
            seen.append(item)

            name = item.get("name")
            if not isinstance(name, str) or not name.strip():
                emit(
                    "error",
                    "E_ELEMENT_MISSING_NAME",
                    f"{kind} item missing string `name`",
                    path=f"{item_path}/name",
                )

            element_id = item.get("id")
            if element_id is None:
                emit(
                    "warning",
                    "W_ELEMENT_MISSING_ID",
                    f"{kind} {name!r} has no `id` and cannot be referenced",
                    path=f"{item_path}/id",
                )
                continue
            if not isinstance(element_id, str) or not element_id:
                emit(
                    "error",
                    "E_ELEMENT_ID_NOT_STRING",
                    f"{kind} id {element_id!r} must be a non-empty string",
                    path=f"{item_path}/id",
                )
                continue
            if element_id in kinds:
                emit(
                    "error",
                    "E_ELEMENT_DUPLICATE_ID",
                    f"duplicate element id {element_id!r} (also a {kinds[element_id]})",
                    path=f"{item_path}/id",
                )
                continue
            kinds[element_id] = kind
        return seen

    visit(definition.get("people"), "person", "/people")
    for i, system in enumerate(visit(definition.get("software_systems"), "software_system", "/software_systems")):
        for j, container in enumerate(
            visit(system.get("containers"), "container", f"/software_systems/{i}/containers")
        ):
            visit(
                container.get("components"),
                "component",
                f"/software_systems/{i}/containers/{j}/components",
            )
    return kinds


def validate_definition_issues(
    definition: dict[str, Any], cfg: Optional[ValidateConfig] = None
) -> list[ValidationIssue]:
    """Return structured validation issues for a loaded definition."""

    cfg = cfg or ValidateConfig()
    issues: list[ValidationIssue] = []

    def emit(
        severity: Severity,
        code: str,
        message: str,
        path: str = "",
        hint: Optional[str] = None,
    ) -> None:
        if code in cfg.ignore:
            return
        final_severity: Severity = (
            "error" if (severity == "warning" and code in cfg.escalate) else severity
        )
        issues.append(
            ValidationIssue(severity=final_severity, code=code, message=message, path=path, hint=hint)
        )

    kinds = _collect_elements(definition, emit)

    def check_ref(value: Any, path: str, what: str) -> None:
        if not isinstance(value, str) or value not in kinds:
            emit("error", "E_UNKNOWN_ELEMENT", f"{what} references unknown element id {value!r}", path=path)

    rels = definition.get("relationships")
    if rels is not None and not isinstance(rels, list):
        emit("error", "E_SECTION_NOT_LIST", "/relationships must be a list", path="/relationships")
    else:
        for i, rel in enumerate(rels or []):
            if not isinstance(rel, dict):
                emit(
                    "warning",
                    "W_RELATIONSHIPS_ITEM_NOT_MAPPING",
                    "/relationships contains a non-mapping item; skipping",
                    path=f"/relationships/{i}",
                )
                continue
            check_ref(rel.get("from"), f"/relationships/{i}/from", "relationship.from")
            check_ref(rel.get("to"), f"/relationships/{i}/to", "relationship.to")

    views = definition.get("views") or {}
    if not isinstance(views, dict):
        emit("error", "E_VIEWS_NOT_MAPPING", "/views must be a mapping", path="/views")
        return issues

    keys_seen: dict[str, str] = {}
    for section in DEFINITION_VIEW_SECTIONS:
        items = views.get(section)
        if items is None:
            continue
        if not isinstance(items, list):
            emit("error", "E_SECTION_NOT_LIST", f"/views/{section} must be a list", path=f"/views/{section}")
            continue

        scope_field, scope_kinds = _VIEW_SCOPES[section]
        for i, item in enumerate(items):
            path = f"/views/{section}/{i}"
            if not isinstance(item, dict):
                emit("warning", "W_VIEW_NOT_MAPPING", f"/views/{section} contains a non-mapping item", path=path)
                continue

            key = item.get("key")
            if not isinstance(key, str) or not key:
                emit("error", "E_VIEW_MISSING_KEY", f"{section} view missing string `key`", path=f"{path}/key")
            elif key in keys_seen:
                emit(
                    "error",
                    "E_VIEW_DUPLICATE_KEY",
                    f"duplicate view key {key!r} (also in {keys_seen[key]})",
                    path=f"{path}/key",
                )
            else:
                keys_seen[key] = path
                if not VIEW_KEY_RE.match(key):
                    emit(
                        "warning",
                        "W_VIEW_KEY_NOT_FILENAME_SAFE",
                        f"view key {key!r} is not filename-safe",
                        path=f"{path}/key",
                        hint="Use [A-Za-z0-9_.-] only",
                    )

            scope = item.get(scope_field) if scope_field is not None else None
            # Dynamic views may be unscoped.
            if scope_field is not None and not (scope is None and section == "dynamic"):
                if not isinstance(scope, str) or scope not in kinds:
                    emit(
                        "error",
                        "E_UNKNOWN_ELEMENT",
                        f"{section} view {key!r} {scope_field} references unknown element id {scope!r}",
                        path=f"{path}/{scope_field}",
                    )
                elif kinds[scope] not in scope_kinds:
                    emit(
                        "error",
                        "E_VIEW_SCOPE_WRONG_KIND",
                        f"{section} view {key!r} {scope_field} {scope!r} is a {kinds[scope]}, "
                        f"expected {' or '.join(scope_kinds)}",
                        path=f"{path}/{scope_field}",
                    )

            include = item.get("include")
            if include != "*":
                for j, ref in enumerate(include or []):
                    check_ref(ref, f"{path}/include/{j}", f"{section} view {key!r} include")
            for field_name in ("exclude", "nearest_neighbours"):
                for j, ref in enumerate(item.get(field_name) or []):
                    check_ref(ref, f"{path}/{field_name}/{j}", f"{section} view {key!r} {field_name}")

            if section == "dynamic":
                _check_steps(item.get("steps"), f"{path}/steps", key, check_ref, emit, cfg)

    default_key = views.get("default")
    if default_key is not None and default_key not in keys_seen:
        emit(
            "warning",
            "W_DEFAULT_VIEW_UNKNOWN",
            f"default view {default_key!r} is not a defined view key",
            path="/views/default",
        )

    return issues


def _check_steps(steps: Any, path: str, key: Any, check_ref: Any, emit: Any, cfg: ValidateConfig) -> None:
    if steps is None:
        return
    if not isinstance(steps, list):
        emit("error", "E_SECTION_NOT_LIST", f"dynamic view {key!r} steps must be a list", path=path)
        return

    for i, step in enumerate(steps):
        step_path = f"{path}/{i}"
        if isinstance(step, list):
            _check_steps(step, step_path, key, check_ref, emit, cfg)
            continue
        if not isinstance(step, dict):
            emit(
                "warning",
                "W_STEP_NOT_MAPPING",
                f"dynamic view {key!r} contains a non-mapping step; skipping",
                path=step_path,
            )
            continue

        if "parallel" in step:
            _check_steps(step["parallel"], f"{step_path}/parallel", key, check_ref, emit, cfg)
            continue
        if "nested" in step:
            _check_steps(step["nested"], f"{step_path}/nested", key, check_ref, emit, cfg)
            continue

        check_ref(step.get("from"), f"{step_path}/from", f"dynamic view {key!r} step.from")
        check_ref(step.get("to"), f"{step_path}/to", f"dynamic view {key!r} step.to")

        description = step.get("description")
        if (
            cfg.check_step_description_newlines
            and isinstance(description, str)
            and ("\n" in description or "\r" in description)
        ):
            emit(
                "warning",
                "W_STEP_DESCRIPTION_NEWLINE",
                f"dynamic view {key!r} step description contains a newline; "
                "this can break Mermaid rendering (consider folding to one line)",
                path=f"{step_path}/description",
            )


def validate_definition(definition: dict[str, Any]) -> Tuple[list[str], list[str]]:
    """Return (errors, warnings) as plain messages."""
    issues = validate_definition_issues(definition)
    errors = [iss.message for iss in issues if iss.severity == "error"]
    warnings = [iss.message for iss in issues if iss.severity == "warning"]
    return errors, warnings
