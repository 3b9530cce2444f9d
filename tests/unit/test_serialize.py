import json

import pytest

from c4model.documentation import DocumentationFormat, Image, SectionType
from c4model.model import Enterprise, InteractionStyle, Location
from c4model.serialize import dumps, loads, workspace_to_dict
from c4model.workspace import Workspace


def _workspace() -> Workspace:
    workspace = Workspace("Banking", "Internet banking")
    workspace.id = 1234
    workspace.source = "https://example.com/banking"
    model = workspace.model
    model.enterprise = Enterprise("Big Bank plc")

    customer = model.add_person("Customer", "A customer", Location.EXTERNAL)
    customer.tags = "Retail"
    banking = model.add_software_system("Internet Banking", "Online banking", Location.INTERNAL)
    mainframe = model.add_software_system("Mainframe", "Core banking", Location.INTERNAL)
    web = banking.add_container("Web Application", "Serves pages", "Java")
    web.url = "https://example.com/web"
    web.properties["owner"] = "web-team"
    api = banking.add_container("API", "JSON API", "Java")
    controller = api.add_component("Accounts Controller", "REST endpoint", "Spring MVC")

    customer.uses(web, "Visits", "HTTPS")
    web.uses(api, "Calls", "JSON/HTTPS")
    controller.uses(mainframe, "Reads accounts", "XML", InteractionStyle.ASYNCHRONOUS)

    views = workspace.views
    context = views.create_system_context_view(banking, "context", "Context")
    context.add_all_elements()
    context.get_element_view(banking).x = 0
    context.get_element_view(banking).y = 150
    containers = views.create_container_view(banking, "containers", "Containers")
    containers.add_all_elements()
    containers.relationships[0].vertices = [(10, 20)]
    containers.relationships[0].position = 40
    views.create_component_view(api, "components", "Components").add_all_elements()
    dynamic = views.create_dynamic_view(banking, "signin", "Sign in")
    dynamic.add(customer, web, "Opens")
    dynamic.add(web, api)

    views.configuration.set_default_view(context)
    views.configuration.last_saved_view = "containers"
    person_style = views.configuration.styles.add_element_style("Person")
    person_style.background = "#08427b"
    person_style.font_size = 22
    person_style.opacity = 80
    views.configuration.styles.add_relationship_style("Asynchronous").dashed = True

    workspace.documentation.add(banking, SectionType.CONTEXT, DocumentationFormat.MARKDOWN, "# Context")
    workspace.documentation.add_component_section(api, DocumentationFormat.ASCIIDOC, "= Components")
    workspace.documentation.images.append(Image("diagram.png", "AAAA", "image/png"))
    return workspace


def test_elements_are_nested_under_their_parents():
    data = workspace_to_dict(_workspace())

    model = data["model"]
    assert [p["name"] for p in model["people"]] == ["Customer"]
    assert model["enterprise"] == {"name": "Big Bank plc"}
    banking = model["softwareSystems"][0]
    assert banking["location"] == "Internal"
    assert [c["name"] for c in banking["containers"]] == ["Web Application", "API"]
    assert banking["containers"][1]["components"][0]["technology"] == "Spring MVC"
    assert model["people"][0]["tags"] == "Element,Person,Retail"
    assert model["people"][0]["relationships"][0]["description"] == "Visits"


def test_empty_values_are_omitted():
    data = workspace_to_dict(Workspace("Empty"))

    assert data == {
        "id": 0,
        "name": "Empty",
        "model": {"people": [], "softwareSystems": []},
        "views": {"configuration": {}},
    }


def test_round_trip_keeps_ids_and_structure():
    original = _workspace()

    copy = loads(dumps(original))

    assert copy.id == 1234
    assert copy.name == "Banking"
    assert copy.source == "https://example.com/banking"
    assert copy.model.enterprise.name == "Big Bank plc"
    assert {e.id: e.canonical_name for e in copy.model.elements} == {
        e.id: e.canonical_name for e in original.model.elements
    }
    assert {r.id for r in copy.model.relationships} == {r.id for r in original.model.relationships}

    web = copy.model.get_element_with_canonical_name("/Internet Banking/Web Application")
    assert web.url == "https://example.com/web"
    assert web.properties == {"owner": "web-team"}
    assert web.technology == "Java"
    customer = copy.model.get_person_with_name("Customer")
    assert customer.location is Location.EXTERNAL
    assert customer.has_tag("Retail")

    reads = next(r for r in copy.model.relationships if r.description == "Reads accounts")
    assert reads.interaction_style is InteractionStyle.ASYNCHRONOUS
    assert reads.technology == "XML"
    assert reads.has_tag("Asynchronous")


def test_round_trip_keeps_views_and_layout():
    copy = loads(dumps(_workspace(), indent=2))
    views = copy.views

    context = views.get_view("context")
    banking = copy.model.get_software_system_with_name("Internet Banking")
    assert context.software_system is banking
    element_view = context.get_element_view(banking)
    assert (element_view.x, element_view.y) == (0, 150)

    containers = views.get_view("containers")
    assert containers.relationships[0].vertices == [(10, 20)]
    assert containers.relationships[0].position == 40

    components = views.get_view("components")
    assert components.container.name == "API"

    dynamic = views.get_view("signin")
    assert [(rv.order, rv.label) for rv in dynamic.relationships] == [("1", "Opens"), ("2", "Calls")]
    assert dynamic.element_id == banking.id


def test_round_trip_keeps_configuration_and_documentation():
    copy = loads(dumps(_workspace()))

    configuration = copy.views.configuration
    assert configuration.default_view == "context"
    assert configuration.last_saved_view == "containers"
    person_style = configuration.styles.find_element_style(["Element", "Person"])
    assert person_style.background == "#08427b"
    assert person_style.font_size == 22
    assert person_style.opacity == 80
    assert configuration.styles.relationships[0].dashed is True

    documentation = copy.documentation
    assert [(s.type, s.format) for s in documentation.sections] == [
        (SectionType.CONTEXT, DocumentationFormat.MARKDOWN),
        (SectionType.COMPONENTS, DocumentationFormat.ASCIIDOC),
    ]
    assert documentation.sections[1].element.name == "API"
    assert documentation.images == [Image("diagram.png", "AAAA", "image/png")]


def test_self_relationship_is_restored_once():
    workspace = Workspace("Loops")
    system = workspace.model.add_software_system("System", "")
    loop = system.uses(system, "Calls itself")
    view = workspace.views.create_system_context_view(system, "context")
    view.relationships[0].vertices = [(5, 6)]
    assert [rv.relationship for rv in view.relationships] == [loop]

    copy = loads(dumps(workspace))

    restored = copy.views.get_view("context").relationships
    assert len(restored) == 1
    assert restored[0].relationship.id == loop.id
    assert restored[0].vertices == [(5, 6)]


def test_section_order_is_written():
    data = json.loads(dumps(_workspace()))

    orders = [s["order"] for s in data["documentation"]["sections"]]
    assert orders == [1, 8]


def test_invalid_json_raises_value_error():
    with pytest.raises(ValueError, match="Failed to parse workspace JSON"):
        loads("{not json")


def test_unknown_element_reference_raises():
    data = json.loads(dumps(_workspace()))
    data["views"]["containerViews"][0]["elements"].append({"id": "999"})

    with pytest.raises(KeyError):
        loads(json.dumps(data))
