"""
Instance API - search across the infrastructure catalogs
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from infra_api.core.database import get_db
from infra_api.crud.hierarchy import SqlHierarchyRepository
from infra_api.schemas.instance import InstanceSearchResponse
from infra_api.services.instance_search import search_instances

router = APIRouter(tags=["instances"])


@router.get("/search", response_model=InstanceSearchResponse)
def search(
    q: str = Query("*", description="CCT or name; * returns everything"),
    page: int = Query(1, description="Page number"),
    limit: int = Query(10, description="Page size (max 100)"),
    instance_type_id: Optional[int] = Query(None, description="Restrict to one instance type"),
    db: Session = Depends(get_db)
):
    """
    Search directions, departments, areas, sector chiefs, supervisors, schools and annexes
    """
    return search_instances(
        SqlHierarchyRepository(db),
        q,
        page=page,
        limit=limit,
        instance_type_id=instance_type_id
    )
