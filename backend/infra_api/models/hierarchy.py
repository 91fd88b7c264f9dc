"""
Hierarchy Node Model - infrastructure containment tree
Direction -> Department -> Area -> Sector chief -> Supervisor -> School -> Annex
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, Index
from sqlalchemy.sql import func
from infra_api.core.database import Base


class HierarchyNode(Base):
    """Hierarchy relation table (self-referencing adjacency list)"""
    __tablename__ = "rl_infraestructura_jerarquia"

    id = Column("id_rl_infraestructura_jerarquia", Integer, primary_key=True, index=True, autoincrement=True)
    instance_id = Column("id_instancia", Integer, nullable=False, comment="Row id inside the instance catalog")
    # Plain integer: unknown types must stay representable so they can be diagnosed
    instance_type_id = Column("id_ct_infraestructura_tipo_instancia", Integer, nullable=False, index=True, comment="Instance catalog discriminator")
    # No foreign key: a dangling parent is an orphan, not an insert failure
    parent_id = Column("id_dependencia", Integer, nullable=True, index=True, comment="Parent node id, null for roots")
    state = Column("estado", Boolean, nullable=False, default=True, comment="Soft-delete flag")

    created_at = Column("fecha_in", DateTime(timezone=True), server_default=func.now())
    updated_at = Column("fecha_up", DateTime(timezone=True), onupdate=func.now())
    created_by = Column("id_ct_usuario_in", Integer, nullable=True)
    updated_by = Column("id_ct_usuario_up", Integer, nullable=True)

    __table_args__ = (
        Index("ix_jerarquia_instancia", "id_instancia", "id_ct_infraestructura_tipo_instancia"),
    )

    def __repr__(self):
        return f"<HierarchyNode(id={self.id}, type={self.instance_type_id}, parent={self.parent_id})>"

    def to_dict(self):
        return {
            "id": self.id,
            "instance_id": self.instance_id,
            "instance_type_id": self.instance_type_id,
            "parent_id": self.parent_id,
            "state": self.state,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "created_by": self.created_by,
            "updated_by": self.updated_by,
        }
