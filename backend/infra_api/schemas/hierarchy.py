"""
Hierarchy Schemas - Pydantic models
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime


class InstanceTypeInfo(BaseModel):
    """Instance type metadata"""
    id: int
    name: str


class HierarchyNodeBase(BaseModel):
    """Base model"""
    instance_id: int = Field(..., ge=1, le=2147483647)
    instance_type_id: int = Field(..., ge=1, le=2147483647)
    parent_id: Optional[int] = Field(None, ge=1, le=2147483647)


class HierarchyNodeCreate(HierarchyNodeBase):
    """Create model"""
    state: bool = True
    user_id: Optional[int] = None


class HierarchyNodeUpdate(BaseModel):
    """Update model"""
    instance_id: Optional[int] = Field(None, ge=1, le=2147483647)
    instance_type_id: Optional[int] = Field(None, ge=1, le=2147483647)
    parent_id: Optional[int] = Field(None, ge=1, le=2147483647)
    state: Optional[bool] = None
    user_id: Optional[int] = None


class HierarchyNodeResponse(HierarchyNodeBase):
    """Response model"""
    id: int
    state: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    instance_type: Optional[InstanceTypeInfo] = None

    class Config:
        from_attributes = True


class HierarchyNodeDetail(HierarchyNodeResponse):
    """Node with its direct parent"""
    parent: Optional[HierarchyNodeResponse] = None


class HierarchyNodeListResponse(BaseModel):
    """List response"""
    total: int
    items: List[HierarchyNodeResponse]


class SubtreeNode(HierarchyNodeResponse):
    """Node annotated with its distance from the subtree root"""
    level: int
    children: List["SubtreeNode"] = []


class ChainLink(BaseModel):
    """One breadcrumb of a dependency chain"""
    id: int
    instance_id: int
    name: str
    instance_type_name: str
    level: int


class IntegrityReport(BaseModel):
    nodes_without_parent: List[int]
    orphans: List[int]
    cycles: List[int]
    unknown_instance_types: List[int] = []


class RootPathsRequest(BaseModel):
    node_ids: List[int] = Field(..., min_length=1)


class RootPathsResponse(BaseModel):
    paths: Dict[int, List[HierarchyNodeResponse]]


class HierarchyBatchItem(HierarchyNodeBase):
    """One node of a batch insert"""
    pass


class HierarchyBatchCreate(BaseModel):
    """Batch insert payload"""
    items: List[HierarchyBatchItem] = Field(..., min_length=1)
    notes: Optional[str] = None
    user_id: Optional[int] = None


class HierarchyBatchResponse(BaseModel):
    total: int
    items: List[HierarchyNodeResponse]
    notes: Optional[str] = None


SubtreeNode.model_rebuild()
