"""
Hierarchy API Endpoints - infrastructure hierarchy nodes and traversals
"""
import io
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from infra_api.core.database import get_db
from infra_api.crud import hierarchy as crud
from infra_api.schemas.hierarchy import (
    ChainLink,
    HierarchyBatchCreate,
    HierarchyBatchResponse,
    HierarchyNodeCreate,
    HierarchyNodeDetail,
    HierarchyNodeListResponse,
    HierarchyNodeResponse,
    HierarchyNodeUpdate,
    IntegrityReport,
    RootPathsRequest,
    RootPathsResponse,
    SubtreeNode,
)
from infra_api.services.hierarchy_import import import_hierarchy_csv
from infra_api.services.hierarchy_service import HierarchyService

router = APIRouter(tags=["hierarchy"])


def get_hierarchy_service(db: Session = Depends(get_db)) -> HierarchyService:
    return HierarchyService.from_session(db)


@router.get("/nodes", response_model=HierarchyNodeListResponse)
def list_nodes(
    instance_id: Optional[int] = Query(None, description="Filter by instance id"),
    instance_type_id: Optional[int] = Query(None, description="Filter by instance type"),
    parent_id: Optional[int] = Query(None, description="Filter by parent node"),
    roots_only: bool = Query(False, description="Only nodes without parent"),
    state: Optional[bool] = Query(None, description="Filter by state"),
    include_inactive: bool = Query(False, description="Include soft-deleted nodes"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Page size"),
    db: Session = Depends(get_db)
):
    """
    List hierarchy nodes (filters and pagination)
    """
    skip = (page - 1) * page_size
    nodes, total = crud.get_nodes(
        db=db,
        instance_id=instance_id,
        instance_type_id=instance_type_id,
        parent_id=parent_id,
        roots_only=roots_only,
        state=state,
        include_inactive=include_inactive,
        skip=skip,
        limit=page_size
    )

    return {
        "total": total,
        "items": [node.to_dict() for node in nodes]
    }


@router.post("/nodes", response_model=HierarchyNodeResponse, status_code=201)
def create_node(
    data: HierarchyNodeCreate,
    db: Session = Depends(get_db)
):
    """
    Create a hierarchy node
    """
    return crud.create_node(db, data)


@router.post("/nodes/batch", response_model=HierarchyBatchResponse, status_code=201)
def create_nodes_batch(
    data: HierarchyBatchCreate,
    db: Session = Depends(get_db)
):
    """
    Create several hierarchy nodes in one transaction
    """
    nodes = crud.create_nodes_batch(db, data.items, user_id=data.user_id)
    return {
        "total": len(nodes),
        "items": [node.to_dict() for node in nodes],
        "notes": data.notes
    }


@router.post("/nodes/import", response_model=HierarchyBatchResponse, status_code=201)
async def import_nodes(
    file: UploadFile = File(..., description="CSV with id_instancia, id_ct_infraestructura_tipo_instancia, id_dependencia"),
    user_id: Optional[int] = Query(None, description="Acting user"),
    db: Session = Depends(get_db)
):
    """
    Bulk import hierarchy nodes from a CSV file
    """
    if not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only .csv files are accepted")

    content = await file.read()
    nodes = import_hierarchy_csv(db, io.BytesIO(content), user_id=user_id)
    return {
        "total": len(nodes),
        "items": [node.to_dict() for node in nodes],
        "notes": file.filename
    }


@router.get("/nodes/{node_id}", response_model=HierarchyNodeDetail)
def get_node(
    node_id: int,
    include_parent: bool = Query(False, description="Include the direct parent node"),
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """
    Get one node with its instance type
    """
    return service.get_node(node_id, include_parent=include_parent)


@router.put("/nodes/{node_id}", response_model=HierarchyNodeResponse)
def update_node(
    node_id: int,
    update_data: HierarchyNodeUpdate,
    db: Session = Depends(get_db)
):
    """
    Update a hierarchy node
    """
    node = crud.update_node(db, node_id, update_data)
    if not node:
        raise HTTPException(status_code=404, detail=f"Hierarchy node {node_id} not found")

    return node


@router.delete("/nodes/{node_id}")
def delete_node(
    node_id: int,
    user_id: Optional[int] = Query(None, description="Acting user"),
    db: Session = Depends(get_db)
):
    """
    Delete a hierarchy node (soft delete)
    """
    success = crud.delete_node(db, node_id, user_id=user_id)
    if not success:
        raise HTTPException(status_code=404, detail=f"Hierarchy node {node_id} not found")

    return {"message": "Node deleted", "node_id": node_id}


@router.get("/nodes/{node_id}/path", response_model=List[HierarchyNodeResponse])
def get_root_path(
    node_id: int,
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """
    Path from the root down to this node
    """
    return service.get_root_path(node_id)


@router.get("/nodes/{node_id}/children", response_model=List[HierarchyNodeResponse])
def get_children(
    node_id: int,
    include_inactive: bool = Query(False, description="Include soft-deleted children"),
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """
    Direct children of a node, ascending by id
    """
    return service.get_children(node_id, include_inactive=include_inactive)


@router.get("/nodes/{node_id}/tree", response_model=SubtreeNode)
def get_subtree(
    node_id: int,
    depth: Optional[int] = Query(None, description="Maximum depth (1-50, default 10)"),
    include_inactive: bool = Query(False, description="Include soft-deleted nodes"),
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """
    Subtree below a node, bounded by depth
    """
    return service.get_subtree(node_id, max_depth=depth, include_inactive=include_inactive)


@router.get("/nodes/{node_id}/chain", response_model=List[ChainLink])
def get_dependency_chain(
    node_id: int,
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """
    Breadcrumb of display names from the root down to this node
    """
    return service.get_dependency_chain(node_id)


@router.post("/paths", response_model=RootPathsResponse)
def get_root_paths(
    data: RootPathsRequest,
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """
    Root paths for several nodes at once (failed nodes get an empty path)
    """
    return {"paths": service.get_root_paths(data.node_ids)}


@router.get("/integrity", response_model=IntegrityReport)
def validate_integrity(
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """
    Diagnose roots, orphans, self-cycles and unknown instance types
    """
    return service.validate_integrity()
