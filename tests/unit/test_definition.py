from pathlib import Path

import pytest
import yaml

from c4model.definition import build_workspace
from c4model.io import _sanitize_yaml_for_pyyaml, load_definition
from c4model.model import InteractionStyle, Location
from c4model.validate import ValidateConfig, validate_definition, validate_definition_issues

DEFINITION = """
workspace:
  name: Banking
  description: Internet banking
  enterprise: Big Bank plc
people:
  - id: customer
    name: Customer
    location: external
    tags: Retail
software_systems:
  - id: banking
    name: Internet Banking
    location: internal
    containers:
      - id: web
        name: Web Application
        technology: Java
      - id: api
        name: API
        technology: Java
        components:
          - id: accounts
            name: Accounts Controller
            technology: Spring MVC
  - id: mainframe
    name: Mainframe
    location: internal
relationships:
  - {from: customer, to: web, description: Visits, technology: HTTPS}
  - {from: web, to: api, description: Calls}
  - {from: api, to: mainframe, description: Reads, interaction_style: asynchronous}
  - {from: accounts, to: mainframe, description: Reads accounts}
  - {from: web, to: customer, description: Notifies}
views:
  default: containers
  system_context:
    - key: context
      software_system: banking
      include: "*"
  container:
    - key: containers
      software_system: banking
      include: "*"
      exclude: [mainframe]
  component:
    - key: components
      container: api
      nearest_neighbours: [accounts]
  dynamic:
    - key: signin
      scope: banking
      steps:
        - {from: customer, to: web, description: Opens}
        - parallel:
            - {from: web, to: api}
            - {from: web, to: customer}
        - nested:
            - {from: api, to: mainframe}
        - {from: web, to: api, order: 9}
styles:
  elements:
    - {tag: Person, background: "#08427b", shape: Person, opacity: 150}
  relationships:
    - {tag: Asynchronous, dashed: true}
"""


def _definition() -> dict:
    return yaml.safe_load(DEFINITION)


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_build_workspace_model():
    workspace = build_workspace(_definition())
    model = workspace.model

    assert workspace.name == "Banking"
    assert model.enterprise.name == "Big Bank plc"
    customer = model.get_person_with_name("Customer")
    assert customer.location is Location.EXTERNAL
    assert customer.has_tag("Retail")
    banking = model.get_software_system_with_name("Internet Banking")
    assert [c.name for c in banking.containers] == ["Web Application", "API"]
    assert banking.get_container_with_name("API").components[0].technology == "Spring MVC"

    reads = next(r for r in model.relationships if r.description == "Reads")
    assert reads.interaction_style is InteractionStyle.ASYNCHRONOUS


def test_build_workspace_views():
    workspace = build_workspace(_definition())
    views = workspace.views

    context = views.get_view("context")
    assert {ev.element.name for ev in context.elements} == {"Customer", "Internet Banking", "Mainframe"}

    containers = views.get_view("containers")
    assert {ev.element.name for ev in containers.elements} == {"Customer", "Web Application", "API"}

    components = views.get_view("components")
    assert {ev.element.name for ev in components.elements} == {"Accounts Controller", "Mainframe"}

    assert views.configuration.default_view == "containers"


def test_dynamic_steps_follow_parallel_and_nested_blocks():
    workspace = build_workspace(_definition())
    dynamic = workspace.views.get_view("signin")

    assert [(rv.order, rv.label) for rv in dynamic.relationships] == [
        ("1", "Opens"),
        ("2", "Calls"),
        ("2", "Notifies"),
        ("1.1", "Reads"),
        ("9", "Calls"),
    ]


def test_styles_are_applied():
    workspace = build_workspace(_definition())
    styles = workspace.views.configuration.styles

    person = styles.find_element_style(["Element", "Person"])
    assert person.background == "#08427b"
    assert person.shape == "Person"
    assert person.opacity == 100
    assert styles.relationships[0].dashed is True


def test_documentation_is_read_relative_to_base_dir(tmp_path):
    _write(tmp_path / "docs" / "context.md", "# Context")
    (tmp_path / "images").mkdir()
    (tmp_path / "images" / "diagram.png").write_bytes(b"\x89PNG")
    definition = _definition()
    definition["documentation"] = {
        "sections": [
            {"element": "banking", "type": "Context", "file": "docs/context.md"},
            {"element": "api", "type": "Components", "format": "AsciiDoc", "content": "= API"},
        ],
        "images": ["images"],
    }

    documentation = build_workspace(definition, base_dir=tmp_path).documentation

    assert [s.content for s in documentation.sections] == ["# Context", "= API"]
    assert documentation.sections[1].element.name == "API"
    assert [i.name for i in documentation.images] == ["diagram.png"]


def test_container_sections_must_be_components():
    definition = _definition()
    definition["documentation"] = {
        "sections": [{"element": "api", "type": "Deployment", "content": "# Deployment"}],
    }

    with pytest.raises(ValueError, match="Sections of type Deployment must be related to a software system"):
        build_workspace(definition)


def test_unknown_reference_raises_key_error():
    definition = _definition()
    definition["relationships"].append({"from": "customer", "to": "nobody"})

    with pytest.raises(KeyError, match="nobody"):
        build_workspace(definition)


def test_load_split_directory_merges_parts(tmp_path):
    _write(tmp_path / "00_workspace.yaml", "workspace:\n  name: Split\n")
    _write(
        tmp_path / "10_model.yaml",
        "people:\n  - {id: user, name: User}\nsoftware_systems:\n  - {id: app, name: App}\n"
        "relationships:\n  - {from: user, to: app}\n",
    )
    _write(tmp_path / "20_views.yaml", "views:\n  system_context:\n    - {key: ctx, software_system: app}\n")
    _write(tmp_path / "views" / "b.yaml", "views:\n  system_context:\n    - {key: b, software_system: app}\n")
    _write(tmp_path / "views" / "a.yaml", "views:\n  system_context:\n    - {key: a, software_system: app}\n")

    definition = load_definition(tmp_path)

    assert definition["workspace"]["name"] == "Split"
    assert [v["key"] for v in definition["views"]["system_context"]] == ["ctx", "a", "b"]
    assert load_definition(tmp_path / "10_model.yaml") == definition


def test_load_split_directory_conflict(tmp_path):
    _write(tmp_path / "00_workspace.yaml", "workspace:\n  name: One\n")
    _write(tmp_path / "20_views.yaml", "workspace:\n  name: Two\n")

    with pytest.raises(ValueError, match="merge conflict on key 'name'"):
        load_definition(tmp_path)


def test_load_single_file_and_errors(tmp_path):
    _write(tmp_path / "model.yaml", "people:\n  - {id: u, name: User}\n")
    _write(tmp_path / "empty.yaml", "")
    _write(tmp_path / "list.yaml", "- a\n- b\n")

    assert load_definition(tmp_path / "model.yaml")["people"][0]["name"] == "User"
    assert load_definition(tmp_path / "empty.yaml") == {}
    with pytest.raises(TypeError):
        load_definition(tmp_path / "list.yaml")
    with pytest.raises(FileNotFoundError):
        load_definition(tmp_path / "missing.yaml")


def test_sanitizer_quotes_free_text_with_colons(tmp_path, caplog):
    raw = "people:\n  - id: u\n    name: User\n    description: Note: reads mail  # inline\n"

    sanitized, changes = _sanitize_yaml_for_pyyaml(raw)

    assert [ln for ln, _, _ in changes] == [4]
    assert '    description: "Note: reads mail"  # inline' in sanitized.splitlines()

    _write(tmp_path / "model.yaml", raw)
    with caplog.at_level("WARNING", logger="c4model.io"):
        definition = load_definition(tmp_path / "model.yaml")
    assert definition["people"][0]["description"] == "Note: reads mail"
    assert "sanitizing 1 line(s)" in caplog.text


def test_valid_definition_has_no_issues():
    errors, warnings = validate_definition(_definition())
    assert errors == []
    assert warnings == []


def _codes(definition: dict, cfg=None) -> list[str]:
    return [issue.code for issue in validate_definition_issues(definition, cfg)]


def test_element_issues():
    definition = {
        "people": [{"id": "a", "name": "A"}, {"id": "a", "name": "B"}, {"name": "C"}, "oops"],
        "software_systems": [{"id": 7, "name": ""}],
    }

    assert _codes(definition) == [
        "E_ELEMENT_DUPLICATE_ID",
        "W_ELEMENT_MISSING_ID",
        "W_SECTION_ITEM_NOT_MAPPING",
        "E_ELEMENT_MISSING_NAME",
        "E_ELEMENT_ID_NOT_STRING",
    ]
    assert _codes({"people": {"id": "a"}}) == ["E_SECTION_NOT_LIST"]


def test_reference_and_view_issues():
    definition = _definition()
    definition["relationships"].append({"from": "customer", "to": "ghost"})
    definition["views"]["container"].append({"key": "containers", "software_system": "web"})
    definition["views"]["component"].append({"software_system": "banking", "container": "banking"})
    definition["views"]["dynamic"].append(
        {"key": "bad key", "steps": [{"from": "customer", "to": "web", "description": "a\nb"}, 3]}
    )
    definition["views"]["default"] = "missing"

    codes = _codes(definition)

    assert codes == [
        "E_UNKNOWN_ELEMENT",
        "E_VIEW_DUPLICATE_KEY",
        "E_VIEW_SCOPE_WRONG_KIND",
        "E_VIEW_MISSING_KEY",
        "E_VIEW_SCOPE_WRONG_KIND",
        "W_VIEW_KEY_NOT_FILENAME_SAFE",
        "W_STEP_DESCRIPTION_NEWLINE",
        "W_STEP_NOT_MAPPING",
        "W_DEFAULT_VIEW_UNKNOWN",
    ]


def test_ignore_and_escalate():
    definition = _definition()
    definition["views"]["default"] = "missing"

    assert _codes(definition, ValidateConfig(ignore={"W_DEFAULT_VIEW_UNKNOWN"})) == []

    escalated = validate_definition_issues(definition, ValidateConfig(escalate={"W_DEFAULT_VIEW_UNKNOWN"}))
    assert [(i.severity, i.code) for i in escalated] == [("error", "W_DEFAULT_VIEW_UNKNOWN")]


def test_views_must_be_a_mapping():
    assert _codes({"views": ["context"]}) == ["E_VIEWS_NOT_MAPPING"]
