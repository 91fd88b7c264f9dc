"""
Hierarchy Node CRUD Operations and the read-only repository used by the engine
"""
import logging
from typing import List, Optional, Tuple, Iterable

from sqlalchemy import or_
from sqlalchemy.orm import Session

from infra_api.core.config import get_settings
from infra_api.core.errors import InstanceNotFound, NodeNotFound, ValidationFailed
from infra_api.models.hierarchy import HierarchyNode
from infra_api.models.infrastructure import INSTANCE_MODELS, InstanceKind, InstanceType, instance_kind
from infra_api.schemas.hierarchy import HierarchyNodeCreate, HierarchyNodeUpdate, HierarchyBatchItem

logger = logging.getLogger(__name__)


class SqlHierarchyRepository:
    """Point lookups against the Node Store and the instance catalogs"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, node_id: int) -> Optional[HierarchyNode]:
        return self.db.get(HierarchyNode, node_id)

    def find_by_parent(self, parent_id: int) -> List[HierarchyNode]:
        return self.db.query(HierarchyNode).filter(
            HierarchyNode.parent_id == parent_id
        ).order_by(HierarchyNode.id).all()

    def find_all(self) -> List[HierarchyNode]:
        return self.db.query(HierarchyNode).order_by(HierarchyNode.id).all()

    def find_instance(self, kind: InstanceKind, instance_id: int):
        return self.db.get(INSTANCE_MODELS[kind], instance_id)

    def find_instance_type(self, instance_type_id: int) -> Optional[InstanceType]:
        return self.db.get(InstanceType, instance_type_id)

    def find_by_instance(self, instance_id: int, instance_type_id: int) -> Optional[HierarchyNode]:
        """Active node registered for an instance"""
        return self.db.query(HierarchyNode).filter(
            HierarchyNode.instance_id == instance_id,
            HierarchyNode.instance_type_id == instance_type_id,
            HierarchyNode.state.is_(True)
        ).order_by(HierarchyNode.id).first()

    def search_instances(self, kind: InstanceKind, term: Optional[str], limit: int) -> list:
        """Active catalog rows whose cct or name contains term (all rows when term is None)"""
        model = INSTANCE_MODELS[kind]
        query = self.db.query(model).filter(model.state.is_(True))
        if term:
            query = query.filter(or_(
                model.cct.contains(term, autoescape=True),
                model.name.contains(term, autoescape=True)
            ))
        return query.order_by(model.id).limit(limit).all()


def create_node(db: Session, data: HierarchyNodeCreate) -> HierarchyNode:
    """Create a hierarchy node"""
    db_node = HierarchyNode(
        instance_id=data.instance_id,
        instance_type_id=data.instance_type_id,
        parent_id=data.parent_id,
        state=data.state,
        created_by=data.user_id
    )
    db.add(db_node)
    db.commit()
    db.refresh(db_node)
    return db_node


def get_node_by_id(db: Session, node_id: int, include_inactive: bool = False) -> Optional[HierarchyNode]:
    """Get a node by id (active only unless asked otherwise)"""
    query = db.query(HierarchyNode).filter(HierarchyNode.id == node_id)
    if not include_inactive:
        query = query.filter(HierarchyNode.state.is_(True))
    return query.first()


def get_nodes(
    db: Session,
    instance_id: Optional[int] = None,
    instance_type_id: Optional[int] = None,
    parent_id: Optional[int] = None,
    roots_only: bool = False,
    state: Optional[bool] = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 100
) -> Tuple[List[HierarchyNode], int]:
    """List nodes, returning the page and the total"""
    query = db.query(HierarchyNode)

    if state is not None:
        query = query.filter(HierarchyNode.state.is_(state))
    elif not include_inactive:
        query = query.filter(HierarchyNode.state.is_(True))

    if instance_id:
        query = query.filter(HierarchyNode.instance_id == instance_id)
    if instance_type_id:
        query = query.filter(HierarchyNode.instance_type_id == instance_type_id)
    if roots_only:
        query = query.filter(HierarchyNode.parent_id.is_(None))
    elif parent_id:
        query = query.filter(HierarchyNode.parent_id == parent_id)

    total = query.count()
    nodes = query.order_by(HierarchyNode.id).offset(skip).limit(limit).all()

    return nodes, total


def update_node(db: Session, node_id: int, update_data: HierarchyNodeUpdate) -> Optional[HierarchyNode]:
    """Update a node; parent_id is only touched when sent explicitly"""
    db_node = get_node_by_id(db, node_id, include_inactive=True)
    if not db_node:
        return None

    fields = update_data.model_dump(exclude_unset=True)
    user_id = fields.pop("user_id", None)
    for field, value in fields.items():
        if value is None and field != "parent_id":
            continue
        setattr(db_node, field, value)
    db_node.updated_by = user_id

    db.commit()
    db.refresh(db_node)
    return db_node


def delete_node(db: Session, node_id: int, user_id: Optional[int] = None) -> bool:
    """Soft-delete a node"""
    db_node = get_node_by_id(db, node_id)
    if not db_node:
        return False

    db_node.state = False
    db_node.updated_by = user_id
    db.commit()
    return True


def _validate_instance_type(db: Session, instance_type_id: int) -> InstanceType:
    instance_type = db.get(InstanceType, instance_type_id)
    if instance_type is None or not instance_type.state:
        raise InstanceNotFound(f"Instance type {instance_type_id} does not exist or is inactive")
    return instance_type


def _validate_parent(db: Session, parent_id: int) -> HierarchyNode:
    parent = get_node_by_id(db, parent_id)
    if parent is None:
        raise NodeNotFound(parent_id)
    return parent


def _validate_instance(db: Session, instance_id: int, instance_type: InstanceType) -> None:
    kind = instance_kind(instance_type.id)
    if kind is None:
        raise InstanceNotFound(f"Instance type \"{instance_type.name}\" has no catalog configured")
    instance = db.get(INSTANCE_MODELS[kind], instance_id)
    if instance is None or not instance.state:
        raise InstanceNotFound(
            f"Instance {instance_id} of type \"{instance_type.name}\" does not exist or is inactive"
        )


def create_nodes_batch(
    db: Session,
    items: Iterable[HierarchyBatchItem],
    user_id: Optional[int] = None
) -> List[HierarchyNode]:
    """
    Create several hierarchy nodes in one transaction

    Every instance type, parent and instance is validated before anything
    is written; any failure rolls the whole batch back.

    Args:
        db: database session
        items: nodes to create
        user_id: acting user recorded in the audit fields

    Returns:
        The created nodes, in input order
    """
    items = list(items)
    settings = get_settings()
    if not items:
        raise ValidationFailed("The batch must contain at least one node")
    if len(items) > settings.BATCH_MAX_ITEMS:
        raise ValidationFailed(f"A batch cannot contain more than {settings.BATCH_MAX_ITEMS} nodes")

    logger.info(f"[Batch] Creating {len(items)} hierarchy nodes")
    try:
        types = {}
        for type_id in sorted({item.instance_type_id for item in items}):
            types[type_id] = _validate_instance_type(db, type_id)

        parents = sorted({item.parent_id for item in items if item.parent_id is not None})
        for parent_id in parents:
            _validate_parent(db, parent_id)

        for item in items:
            _validate_instance(db, item.instance_id, types[item.instance_type_id])

        created = []
        for item in items:
            db_node = HierarchyNode(
                instance_id=item.instance_id,
                instance_type_id=item.instance_type_id,
                parent_id=item.parent_id,
                state=True,
                created_by=user_id
            )
            db.add(db_node)
            created.append(db_node)

        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"[Batch] Hierarchy batch rolled back: {e}")
        raise

    for db_node in created:
        db.refresh(db_node)
    logger.info(f"[Batch] {len(created)} hierarchy nodes created")
    return created
