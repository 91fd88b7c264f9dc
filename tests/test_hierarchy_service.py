import pytest

from fakes import InMemoryHierarchyRepository, make_node
from infra_api.core.errors import CycleDetected, DepthExceeded, InvalidDepth, NodeNotFound
from infra_api.models.infrastructure import InstanceKind, InstanceType, School
from infra_api.services.hierarchy_service import HierarchyService


def ids(nodes):
    return [node["id"] for node in nodes]


def collect_ids(tree):
    found = [tree["id"]]
    for child in tree["children"]:
        found.extend(collect_ids(child))
    return found


def max_level(tree):
    return max([tree["level"]] + [max_level(child) for child in tree["children"]])


@pytest.fixture()
def wide_repo():
    """
    1
    ├── 2
    │   ├── 5
    │   └── 6 (inactive)
    │       └── 8
    └── 3
        └── 4
    """
    return InMemoryHierarchyRepository(nodes=[
        make_node(1),
        make_node(2, 1),
        make_node(3, 1),
        make_node(4, 3),
        make_node(5, 2),
        make_node(6, 2, state=False),
        make_node(8, 6),
    ])


class TestRootPath:
    def test_scenario_chain(self, scenario_repo):
        service = HierarchyService(scenario_repo)
        assert ids(service.get_root_path(7)) == [1, 2, 4, 7]

    def test_root_is_single_element(self, scenario_repo):
        service = HierarchyService(scenario_repo)
        path = service.get_root_path(1)
        assert ids(path) == [1]
        assert path[0]["parent_id"] is None

    def test_path_length_matches_depth(self):
        repo = InMemoryHierarchyRepository(nodes=[make_node(i, i - 1 if i > 1 else None) for i in range(1, 31)])
        path = HierarchyService(repo).get_root_path(30)
        assert len(path) == 30
        assert path[-1]["id"] == 30
        assert ids(path) == list(range(1, 31))

    def test_missing_node(self, scenario_repo):
        with pytest.raises(NodeNotFound):
            HierarchyService(scenario_repo).get_root_path(999)

    def test_self_cycle(self):
        repo = InMemoryHierarchyRepository(nodes=[make_node(9, 9)])
        with pytest.raises(CycleDetected) as exc_info:
            HierarchyService(repo).get_root_path(9)
        assert exc_info.value.node_id == 9

    def test_longer_cycle_terminates(self):
        repo = InMemoryHierarchyRepository(nodes=[make_node(1, 3), make_node(2, 1), make_node(3, 2), make_node(4, 3)])
        with pytest.raises(CycleDetected):
            HierarchyService(repo).get_root_path(4)
        assert repo.lookups <= 5

    def test_dangling_parent_stops_walk(self):
        repo = InMemoryHierarchyRepository(nodes=[make_node(5, 404), make_node(6, 5)])
        assert ids(HierarchyService(repo).get_root_path(6)) == [5, 6]

    def test_includes_instance_type_metadata(self, scenario_repo):
        path = HierarchyService(scenario_repo).get_root_path(7)
        assert path[0]["instance_type"] == {"id": 1, "name": "Dirección"}
        assert path[-1]["instance_type"] == {"id": 6, "name": "Escuela"}

    def test_catalog_type_name_wins(self, scenario_repo):
        scenario_repo.instance_types[6] = InstanceType(id=6, name="ESCUELA", state=True)
        path = HierarchyService(scenario_repo).get_root_path(7)
        assert path[-1]["instance_type"]["name"] == "ESCUELA"

    def test_batch_paths_isolate_failures(self, scenario_repo):
        scenario_repo.add(make_node(9, 9))
        paths = HierarchyService(scenario_repo).get_root_paths([7, 9, 999, 2])
        assert ids(paths[7]) == [1, 2, 4, 7]
        assert paths[9] == []
        assert paths[999] == []
        assert ids(paths[2]) == [1, 2]


class TestChildren:
    def test_sorted_ascending(self, wide_repo):
        children = HierarchyService(wide_repo).get_children(1)
        assert ids(children) == [2, 3]
        assert all(child["parent_id"] == 1 for child in children)

    def test_leaf_has_no_children(self, wide_repo):
        assert HierarchyService(wide_repo).get_children(4) == []

    def test_inactive_excluded_by_default(self, wide_repo):
        service = HierarchyService(wide_repo)
        assert ids(service.get_children(2)) == [5]
        assert ids(service.get_children(2, include_inactive=True)) == [5, 6]

    def test_missing_node(self, wide_repo):
        with pytest.raises(NodeNotFound):
            HierarchyService(wide_repo).get_children(100)


class TestSubtree:
    def test_depth_one_stops_at_children(self, scenario_repo):
        tree = HierarchyService(scenario_repo).get_subtree(1, 1)
        assert tree["id"] == 1
        assert tree["level"] == 0
        assert ids(tree["children"]) == [2]
        assert tree["children"][0]["level"] == 1
        assert tree["children"][0]["children"] == []

    def test_full_depth_contains_every_descendant_once(self, wide_repo):
        tree = HierarchyService(wide_repo).get_subtree(1, 50, include_inactive=True)
        found = collect_ids(tree)
        assert sorted(found) == [1, 2, 3, 4, 5, 6, 8]
        assert len(found) == len(set(found))

    def test_never_exceeds_requested_depth(self, wide_repo):
        service = HierarchyService(wide_repo)
        for depth in (1, 2, 3):
            assert max_level(service.get_subtree(1, depth, include_inactive=True)) <= depth

    def test_inactive_branch_omitted(self, wide_repo):
        tree = HierarchyService(wide_repo).get_subtree(1, 10)
        assert sorted(collect_ids(tree)) == [1, 2, 3, 4, 5]

    def test_default_depth(self, wide_repo):
        tree = HierarchyService(wide_repo).get_subtree(3)
        assert collect_ids(tree) == [3, 4]

    @pytest.mark.parametrize("depth", [0, -1, 51, 1000, True, "5"])
    def test_invalid_depth_rejected_before_lookup(self, wide_repo, depth):
        with pytest.raises(InvalidDepth):
            HierarchyService(wide_repo).get_subtree(1, depth)
        assert wide_repo.lookups == 0

    def test_missing_root(self, wide_repo):
        with pytest.raises(NodeNotFound):
            HierarchyService(wide_repo).get_subtree(77, 3)

    def test_depth_guard(self, wide_repo):
        service = HierarchyService(wide_repo)
        with pytest.raises(DepthExceeded):
            service._materialize(wide_repo.nodes[1], 4, 3, set(), False)

    def test_cycle_inside_subtree(self):
        repo = InMemoryHierarchyRepository(nodes=[make_node(1, 2), make_node(2, 1)])
        with pytest.raises(CycleDetected):
            HierarchyService(repo).get_subtree(1, 50)


class TestNode:
    def test_get_node(self, scenario_repo):
        node = HierarchyService(scenario_repo).get_node(4)
        assert node["id"] == 4
        assert node["instance_type"] == {"id": 5, "name": "Supervisor"}
        assert "parent" not in node

    def test_get_node_with_parent(self, scenario_repo):
        service = HierarchyService(scenario_repo)
        assert service.get_node(4, include_parent=True)["parent"]["id"] == 2
        assert service.get_node(1, include_parent=True)["parent"] is None

    def test_unknown_type_metadata(self):
        repo = InMemoryHierarchyRepository(nodes=[make_node(1, None, 42)])
        node = HierarchyService(repo).get_node(1)
        assert node["instance_type"] == {"id": 42, "name": "Unknown type"}

    def test_missing(self, scenario_repo):
        with pytest.raises(NodeNotFound):
            HierarchyService(scenario_repo).get_node(3)


class TestDependencyChain:
    def test_names_and_levels(self, scenario_repo):
        chain = HierarchyService(scenario_repo).get_dependency_chain(7)
        assert [link["name"] for link in chain] == ["Direction X", "Area W", "Supervisor Y", "School Z"]
        assert [link["level"] for link in chain] == [3, 2, 1, 0]
        assert [link["instance_type_name"] for link in chain] == ["Dirección", "Área", "Supervisor", "Escuela"]
        assert chain[-1] == {
            "id": 7,
            "instance_id": 70,
            "name": "School Z",
            "instance_type_name": "Escuela",
            "level": 0,
        }

    def test_order_matches_root_path(self, scenario_repo):
        service = HierarchyService(scenario_repo)
        assert ids(service.get_dependency_chain(7)) == ids(service.get_root_path(7))

    def test_missing_catalog_row_degrades(self, scenario_repo):
        del scenario_repo.instances[(int(InstanceKind.AREA), 20)]
        chain = HierarchyService(scenario_repo).get_dependency_chain(7)
        assert [link["name"] for link in chain] == ["Direction X", "Unknown", "Supervisor Y", "School Z"]

    def test_failing_catalog_degrades(self, scenario_repo):
        scenario_repo.failing_kinds.add(int(InstanceKind.SUPERVISOR))
        chain = HierarchyService(scenario_repo).get_dependency_chain(7)
        assert chain[2]["name"] == "Unknown"
        assert chain[3]["name"] == "School Z"

    def test_unknown_type_degrades(self):
        repo = InMemoryHierarchyRepository(
            nodes=[make_node(1, None, 99), make_node(2, 1, InstanceKind.SCHOOL, instance_id=5)],
            instances=[(InstanceKind.SCHOOL, School(id=5, name="Primaria Benito Juárez", state=True))],
        )
        chain = HierarchyService(repo).get_dependency_chain(2)
        assert chain[0]["name"] == "Unknown type"
        assert chain[0]["instance_type_name"] == "Unknown type"
        assert chain[1]["name"] == "Primaria Benito Juárez"

    def test_structural_errors_abort(self):
        repo = InMemoryHierarchyRepository(nodes=[make_node(9, 9)])
        service = HierarchyService(repo)
        with pytest.raises(CycleDetected):
            service.get_dependency_chain(9)
        with pytest.raises(NodeNotFound):
            service.get_dependency_chain(10)


class TestIntegrity:
    def test_report(self):
        repo = InMemoryHierarchyRepository(nodes=[
            make_node(1),
            make_node(2, 1),
            make_node(3, 77),
            make_node(9, 9),
            make_node(10, None, 0),
        ])
        report = HierarchyService(repo).validate_integrity()
        assert report == {
            "nodes_without_parent": [1, 10],
            "orphans": [3],
            "cycles": [9],
            "unknown_instance_types": [10],
        }

    def test_single_orphan(self, scenario_repo):
        scenario_repo.add(make_node(20, 500))
        report = HierarchyService(scenario_repo).validate_integrity()
        assert report["orphans"] == [20]
        assert report["nodes_without_parent"] == [1]
        assert report["cycles"] == []

    def test_empty_store(self):
        report = HierarchyService(InMemoryHierarchyRepository()).validate_integrity()
        assert report == {
            "nodes_without_parent": [],
            "orphans": [],
            "cycles": [],
            "unknown_instance_types": [],
        }


def test_reads_are_idempotent(wide_repo):
    service = HierarchyService(wide_repo)
    assert service.get_subtree(1, 5) == service.get_subtree(1, 5)
    assert service.get_root_path(8) == service.get_root_path(8)
    assert service.get_children(2) == service.get_children(2)
    assert service.validate_integrity() == service.validate_integrity()
