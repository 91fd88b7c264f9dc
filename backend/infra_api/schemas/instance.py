"""
Instance Search Schemas - Pydantic models
"""
from pydantic import BaseModel
from typing import Optional, List

from infra_api.schemas.hierarchy import InstanceTypeInfo


class InstanceHierarchyRef(BaseModel):
    """Active hierarchy node registered for an instance"""
    id: int
    parent_id: Optional[int] = None


class InstanceSearchItem(BaseModel):
    instance_id: int
    cct: str
    name: str
    instance_type: InstanceTypeInfo
    hierarchy_node_id: Optional[int] = None
    hierarchy: Optional[InstanceHierarchyRef] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


class InstanceSearchResponse(BaseModel):
    items: List[InstanceSearchItem]
    pagination: Pagination
