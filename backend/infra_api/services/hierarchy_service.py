"""
Hierarchy Service - read-only graph walks over the infrastructure hierarchy

The engine only talks to a narrow repository (find_by_id, find_by_parent,
find_all, find_instance, find_instance_type), so the SQL store can be
swapped for an in-memory one. Every lookup is one round trip: root paths
cost O(depth) lookups and subtrees O(subtree size).
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from infra_api.core.config import get_settings
from infra_api.core.errors import CycleDetected, DepthExceeded, InvalidDepth, NodeNotFound
from infra_api.crud.hierarchy import SqlHierarchyRepository
from infra_api.models.infrastructure import instance_kind

logger = logging.getLogger(__name__)


class HierarchyService:
    """Infrastructure hierarchy engine"""

    def __init__(self, repository, settings=None):
        self.repository = repository
        self.settings = settings or get_settings()

    @classmethod
    def from_session(cls, db: Session) -> "HierarchyService":
        return cls(SqlHierarchyRepository(db))

    # ---- helpers -------------------------------------------------------

    def _require(self, node_id: int):
        node = self.repository.find_by_id(node_id)
        if node is None:
            raise NodeNotFound(node_id)
        return node

    def _type_name(self, instance_type_id: int) -> str:
        instance_type = self.repository.find_instance_type(instance_type_id)
        if instance_type is not None and instance_type.name:
            return instance_type.name
        if instance_kind(instance_type_id) is not None:
            return self.settings.INSTANCE_TYPES.get(instance_type_id, self.settings.UNKNOWN_INSTANCE_TYPE_NAME)
        return self.settings.UNKNOWN_INSTANCE_TYPE_NAME

    def _serialize(self, node) -> Dict[str, Any]:
        data = node.to_dict()
        data["instance_type"] = {
            "id": node.instance_type_id,
            "name": self._type_name(node.instance_type_id),
        }
        return data

    def _children(self, node_id: int, include_inactive: bool) -> list:
        children = self.repository.find_by_parent(node_id)
        if not include_inactive:
            children = [child for child in children if child.state]
        return sorted(children, key=lambda child: child.id)

    def _ancestry(self, node_id: int) -> list:
        """Nodes from the forest root down to node_id, guarded by a visited set"""
        current = self._require(node_id)
        path = []
        visited = set()

        while current is not None:
            if current.id in visited:
                logger.error(f"[Hierarchy] Cycle detected walking up from node {node_id} at node {current.id}")
                raise CycleDetected(current.id, [n.id for n in path])
            visited.add(current.id)
            path.append(current)

            if current.parent_id is None:
                break
            parent = self.repository.find_by_id(current.parent_id)
            if parent is None:
                logger.warning(
                    f"[Hierarchy] Node {current.id} references missing parent {current.parent_id}, "
                    f"path from {node_id} stops there"
                )
            current = parent

        path.reverse()
        return path

    # ---- operations ----------------------------------------------------

    def get_root_path(self, node_id: int) -> List[Dict[str, Any]]:
        """Ordered nodes from the root down to and including node_id."""
        return [self._serialize(node) for node in self._ancestry(node_id)]

    def get_root_paths(self, node_ids: Iterable[int]) -> Dict[int, List[Dict[str, Any]]]:
        """Root paths for several nodes; a failing node gets an empty path."""
        paths = {}
        for node_id in node_ids:
            try:
                paths[node_id] = self.get_root_path(node_id)
            except (NodeNotFound, CycleDetected) as e:
                logger.warning(f"[Hierarchy] Root path for node {node_id} failed: {e}")
                paths[node_id] = []
        return paths

    def get_children(self, node_id: int, include_inactive: bool = False) -> List[Dict[str, Any]]:
        """Direct children of node_id in ascending id order."""
        self._require(node_id)
        return [self._serialize(child) for child in self._children(node_id, include_inactive)]

    def get_subtree(
        self,
        node_id: int,
        max_depth: Optional[int] = None,
        include_inactive: bool = False
    ) -> Dict[str, Any]:
        """
        Materialize node_id and its descendants down to max_depth levels.

        Children beyond the bound are omitted. The bound is validated
        before any lookup happens.
        """
        if max_depth is None:
            max_depth = self.settings.HIERARCHY_DEFAULT_DEPTH
        minimum = self.settings.HIERARCHY_MIN_DEPTH
        maximum = self.settings.HIERARCHY_MAX_DEPTH
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or not minimum <= max_depth <= maximum:
            raise InvalidDepth(max_depth, minimum, maximum)

        root = self._require(node_id)
        return self._materialize(root, 0, max_depth, set(), include_inactive)

    def _materialize(self, node, level: int, max_depth: int, visited: set, include_inactive: bool) -> Dict[str, Any]:
        if level > max_depth:
            raise DepthExceeded(node.id, max_depth)
        if node.id in visited:
            logger.error(f"[Hierarchy] Node {node.id} reached twice while building subtree")
            raise CycleDetected(node.id, sorted(visited))
        visited.add(node.id)

        item = self._serialize(node)
        item["level"] = level
        item["children"] = []
        if level < max_depth:
            for child in self._children(node.id, include_inactive):
                item["children"].append(
                    self._materialize(child, level + 1, max_depth, visited, include_inactive)
                )
        return item

    def get_node(self, node_id: int, include_parent: bool = False) -> Dict[str, Any]:
        """Node with its instance type; optionally with its direct parent."""
        node = self._require(node_id)
        data = self._serialize(node)
        if include_parent:
            parent = self.repository.find_by_id(node.parent_id) if node.parent_id is not None else None
            data["parent"] = self._serialize(parent) if parent is not None else None
        return data

    def resolve_instance_name(self, node) -> str:
        """Display name of the instance a node points to, or a sentinel."""
        kind = instance_kind(node.instance_type_id)
        if kind is None:
            logger.warning(
                f"[Hierarchy] Unknown instance type {node.instance_type_id} for node {node.id}"
            )
            return self.settings.UNKNOWN_INSTANCE_TYPE_NAME

        try:
            instance = self.repository.find_instance(kind, node.instance_id)
        except Exception as e:
            logger.warning(f"[Hierarchy] Name lookup failed for node {node.id}: {e}")
            return self.settings.UNKNOWN_INSTANCE_NAME

        if instance is None or not instance.name:
            logger.warning(
                f"[Hierarchy] {kind.name} {node.instance_id} of node {node.id} not found"
            )
            return self.settings.UNKNOWN_INSTANCE_NAME
        return instance.name

    def get_dependency_chain(self, node_id: int) -> List[Dict[str, Any]]:
        """
        Root path enriched with display names.

        Levels count upward from the queried node: it has level 0 and the
        root has the largest level.
        """
        path = self._ancestry(node_id)
        top = len(path) - 1
        chain = [
            {
                "id": node.id,
                "instance_id": node.instance_id,
                "name": self.resolve_instance_name(node),
                "instance_type_name": self._type_name(node.instance_type_id),
                "level": top - position,
            }
            for position, node in enumerate(path)
        ]
        logger.info(f"[Hierarchy] Dependency chain for node {node_id}: {len(chain)} levels")
        return chain

    def validate_integrity(self) -> Dict[str, List[int]]:
        """
        Sweep the whole Node Store.

        Only direct self-references are reported as cycles.
        """
        nodes = sorted(self.repository.find_all(), key=lambda node: node.id)
        known_ids = {node.id for node in nodes}

        report = {
            "nodes_without_parent": [],
            "orphans": [],
            "cycles": [],
            "unknown_instance_types": [],
        }
        for node in nodes:
            if node.parent_id is None:
                report["nodes_without_parent"].append(node.id)
            elif node.parent_id == node.id:
                report["cycles"].append(node.id)
            elif node.parent_id not in known_ids:
                report["orphans"].append(node.id)

            if instance_kind(node.instance_type_id) is None:
                report["unknown_instance_types"].append(node.id)

        logger.info(
            f"[Hierarchy] Integrity sweep over {len(nodes)} nodes: "
            f"{len(report['orphans'])} orphans, {len(report['cycles'])} self-cycles, "
            f"{len(report['unknown_instance_types'])} unknown types"
        )
        return report
