import pytest

from c4model.sequence import SequenceError
from c4model.views import ViewScopeError
from c4model.workspace import Workspace


def _fixture():
    workspace = Workspace("Name", "Description")
    model = workspace.model
    e = {}
    e["person"] = model.add_person("Person", "")
    e["system_a"] = model.add_software_system("Software System A", "")
    e["container_a1"] = e["system_a"].add_container("Container A1", "", "")
    e["component_a1"] = e["container_a1"].add_component("Component A1", "")
    e["container_a2"] = e["system_a"].add_container("Container A2", "", "")
    e["component_a2"] = e["container_a2"].add_component("Component A2", "")
    e["container_a3"] = e["system_a"].add_container("Container A3", "", "")
    e["relationship"] = e["container_a1"].uses(e["container_a2"], "uses")
    e["system_b"] = model.add_software_system("Software System B", "")
    e["container_b1"] = e["system_b"].add_container("Container B1", "", "")
    return workspace, e


@pytest.mark.parametrize(
    "scope, source, destination, message",
    [
        (
            "system_a",
            "container_b1",
            "container_a1",
            "Only containers that reside inside Software System A can be added to this view.",
        ),
        (
            "system_a",
            "component_a1",
            "container_a1",
            "Components can't be added to a dynamic view when the scope is a software system.",
        ),
        (
            "system_a",
            "system_a",
            "container_a1",
            "Software System A is already the scope of this view and cannot be added to it.",
        ),
        (
            "container_a1",
            "container_a1",
            "container_a2",
            "Container A1 is already the scope of this view and cannot be added to it.",
        ),
        (
            "container_a1",
            "system_a",
            "container_a2",
            "Software System A is already the scope of this view and cannot be added to it.",
        ),
        (
            "container_a1",
            "container_b1",
            "container_a2",
            "Only containers that reside inside Software System A can be added to this view.",
        ),
        (
            "container_a1",
            "component_a2",
            "container_a2",
            "Only components that reside inside Container A1 can be added to this view.",
        ),
        (
            None,
            "container_a1",
            "container_a2",
            "Only people and software systems can be added to this view.",
        ),
    ],
)
def test_scope_violations(scope, source, destination, message):
    workspace, e = _fixture()
    view = workspace.views.create_dynamic_view(e[scope] if scope else None, "key", "Description")

    with pytest.raises(ViewScopeError) as excinfo:
        view.add(e[source], e[destination])

    assert str(excinfo.value) == message
    assert view.elements == []
    assert view.relationships == []


def test_add_adds_source_and_destination():
    workspace, e = _fixture()
    view = workspace.views.create_dynamic_view(e["system_a"], "key", "Description")

    rv = view.add(e["container_a1"], e["container_a2"])

    assert len(view.elements) == 2
    assert rv.relationship is e["relationship"]
    assert rv.order == "1"
    assert rv.label == "uses"


def test_add_without_relationship_leaves_the_view_unchanged():
    workspace, e = _fixture()
    view = workspace.views.create_dynamic_view(e["system_a"], "key", "Description")

    with pytest.raises(ValueError):
        view.add(e["container_a1"], e["container_a3"])

    assert view.elements == []
    assert view.relationships == []
    assert view.add(e["container_a1"], e["container_a2"]).order == "1"


def test_none_arguments_are_ignored():
    workspace, e = _fixture()
    view = workspace.views.create_dynamic_view(e["system_a"], "key")

    assert view.add(None, e["container_a2"]) is None
    assert view.add_relationship(None) is None
    assert view.elements == []


def test_add_relationship_directly():
    workspace, e = _fixture()
    view = workspace.views.create_dynamic_view(e["system_a"], "key", "Description")

    view.add_relationship(e["relationship"], "Overridden")

    assert len(view.elements) == 2
    assert view.relationships[0].label == "Overridden"


def test_external_software_system_destination():
    workspace, e = _fixture()
    view = workspace.views.create_dynamic_view(e["system_a"], "key", "Description")
    e["container_a2"].uses(e["system_b"], "", "")

    view.add(e["container_a2"], e["system_b"])

    assert len(view.elements) == 2


def test_component_scoped_to_its_container():
    workspace, e = _fixture()
    e["component_a1"].uses(e["container_a2"], "calls")
    view = workspace.views.create_dynamic_view(e["container_a1"], "key")

    view.add(e["component_a1"], e["container_a2"])

    assert view.name == "Software System A - Container A1 - Dynamic"
    assert view.element_id == e["container_a1"].id


def test_view_names():
    workspace, e = _fixture()
    views = workspace.views

    assert views.create_dynamic_view(None, "k1").name == "Dynamic"
    assert views.create_dynamic_view(e["system_a"], "k2").name == "Software System A - Dynamic"


def test_scope_must_be_a_system_or_container():
    workspace, e = _fixture()
    with pytest.raises(TypeError):
        workspace.views.create_dynamic_view(e["person"], "key")


def test_normal_sequence():
    workspace = Workspace("Name", "Description")
    system = workspace.model.add_software_system("Software System", "Description")
    c1 = system.add_container("Container 1", "Description", "Technology")
    c2 = system.add_container("Container 2", "Description", "Technology")
    c3 = system.add_container("Container 3", "Description", "Technology")
    c1.uses(c2, "Uses")
    c1.uses(c3, "Uses")
    view = workspace.views.create_dynamic_view(system, "key", "Description")

    view.add(c1, c2)
    view.add(c1, c3)

    by_order = {rv.order: rv.relationship.destination for rv in view.relationships}
    assert by_order == {"1": c2, "2": c3}


def test_parallel_sequence():
    workspace = Workspace("Name", "Description")
    model = workspace.model
    system = model.add_software_system("Name", "Description")
    user = model.add_person("User", "Description")
    ms1 = system.add_container("Microservice 1", "", "")
    db1 = system.add_container("Database 1", "", "")
    ms2 = system.add_container("Microservice 2", "", "")
    db2 = system.add_container("Database 2", "", "")
    ms3 = system.add_container("Microservice 3", "", "")
    db3 = system.add_container("Database 3", "", "")
    bus = system.add_container("Message Bus", "", "")

    user.uses(ms1, "Updates using")
    ms1.delivers(user, "Sends updates to")
    ms1.uses(db1, "Stores data in")
    ms1.uses(bus, "Sends messages to")
    ms1.uses(bus, "Sends messages to")
    bus.uses(ms2, "Sends messages to")
    bus.uses(ms3, "Sends messages to")
    ms2.uses(db2, "Stores data in")
    ms3.uses(db3, "Stores data in")

    view = workspace.views.create_dynamic_view(system, "key", "Description")
    view.add(user, ms1, "1")
    view.add(ms1, db1, "2")
    view.add(ms1, bus, "3")
    view.start_parallel_sequence()
    view.add(bus, ms2, "4")
    view.add(ms2, db2, "5")
    view.end_parallel_sequence()
    view.start_parallel_sequence()
    view.add(bus, ms3, "4")
    view.add(ms3, db3, "5")
    view.end_parallel_sequence()
    view.add(ms1, db1, "5")

    orders = [rv.order for rv in view.relationships]
    assert orders.count("1") == 1
    assert orders.count("2") == 1
    assert orders.count("3") == 1
    assert orders.count("4") == 3
    assert orders.count("5") == 2
    # Repeated steps create repeated entries.
    assert len(view.relationships) == 8


def test_child_sequence_orders():
    workspace, e = _fixture()
    e["container_a2"].uses(e["container_a3"], "forwards")
    view = workspace.views.create_dynamic_view(e["system_a"], "key")

    view.add(e["container_a1"], e["container_a2"])
    view.start_child_sequence()
    view.add(e["container_a2"], e["container_a3"])
    view.end_child_sequence()
    view.add(e["container_a1"], e["container_a2"])

    assert [rv.order for rv in view.relationships] == ["1", "1.1", "2"]


def test_explicit_order_does_not_advance_the_sequence():
    workspace, e = _fixture()
    view = workspace.views.create_dynamic_view(e["system_a"], "key")

    view.add(e["container_a1"], e["container_a2"], order="7")
    view.add(e["container_a1"], e["container_a2"])

    assert [rv.order for rv in view.relationships] == ["7", "1"]


def test_sequence_misuse_propagates():
    workspace, e = _fixture()
    view = workspace.views.create_dynamic_view(e["system_a"], "key")

    with pytest.raises(SequenceError):
        view.end_parallel_sequence()
