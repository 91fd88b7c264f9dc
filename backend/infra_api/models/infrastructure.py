"""
Infrastructure Catalog Models - the seven instance catalogs a hierarchy node can point to
"""
import enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func
from infra_api.core.database import Base


class InstanceKind(enum.IntEnum):
    """Fixed instance_type_id values of ct_infraestructura_tipo_instancia"""
    DIRECTION = 1
    DEPARTMENT = 2
    AREA = 3
    SECTOR_CHIEF = 4
    SUPERVISOR = 5
    SCHOOL = 6
    ANNEX = 7


class InstanceType(Base):
    """Instance type catalog"""
    __tablename__ = "ct_infraestructura_tipo_instancia"

    id = Column("id_ct_infraestructura_tipo_instancia", Integer, primary_key=True, autoincrement=False)
    name = Column("nombre", String(50), nullable=False)
    state = Column("estado", Boolean, nullable=False, default=True)
    created_at = Column("fecha_in", DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<InstanceType({self.id} - {self.name})>"

    def to_dict(self):
        return {"id": self.id, "name": self.name}


class InstanceCatalogMixin:
    """Columns shared by every instance catalog"""
    cct = Column(String(11), nullable=True, index=True, comment="Centro de trabajo key")
    name = Column("nombre", String(255), nullable=False, index=True)
    location_id = Column("id_dt_infraestructura_ubicacion", Integer, nullable=True)
    state = Column("estado", Boolean, nullable=False, default=True)

    created_at = Column("fecha_in", DateTime(timezone=True), server_default=func.now())
    updated_at = Column("fecha_up", DateTime(timezone=True), onupdate=func.now())
    created_by = Column("id_ct_usuario_in", Integer, nullable=True)
    updated_by = Column("id_ct_usuario_up", Integer, nullable=True)

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id}, name={self.name})>"

    def to_dict(self):
        return {
            "id": self.id,
            "cct": self.cct,
            "name": self.name,
            "location_id": self.location_id,
            "state": self.state,
        }


class Direction(InstanceCatalogMixin, Base):
    __tablename__ = "ct_infraestructura_direccion"
    id = Column("id_ct_infraestructura_direccion", Integer, primary_key=True, autoincrement=True)


class Department(InstanceCatalogMixin, Base):
    __tablename__ = "ct_infraestructura_departamento"
    id = Column("id_ct_infraestructura_departamento", Integer, primary_key=True, autoincrement=True)


class Area(InstanceCatalogMixin, Base):
    __tablename__ = "ct_infraestructura_area"
    id = Column("id_ct_infraestructura_area", Integer, primary_key=True, autoincrement=True)


class SectorChief(InstanceCatalogMixin, Base):
    __tablename__ = "ct_infraestructura_jefe_sector"
    id = Column("id_ct_infraestructura_jefe_sector", Integer, primary_key=True, autoincrement=True)


class Supervisor(InstanceCatalogMixin, Base):
    __tablename__ = "ct_infraestructura_supervisor"
    id = Column("id_ct_infraestructura_supervisor", Integer, primary_key=True, autoincrement=True)


class School(InstanceCatalogMixin, Base):
    __tablename__ = "ct_infraestructura_escuela"
    id = Column("id_ct_infraestructura_escuela", Integer, primary_key=True, autoincrement=True)


class Annex(InstanceCatalogMixin, Base):
    __tablename__ = "ct_infraestructura_anexo"
    id = Column("id_ct_infraestructura_anexo", Integer, primary_key=True, autoincrement=True)


# Strategy table: discriminator -> catalog model
INSTANCE_MODELS = {
    InstanceKind.DIRECTION: Direction,
    InstanceKind.DEPARTMENT: Department,
    InstanceKind.AREA: Area,
    InstanceKind.SECTOR_CHIEF: SectorChief,
    InstanceKind.SUPERVISOR: Supervisor,
    InstanceKind.SCHOOL: School,
    InstanceKind.ANNEX: Annex,
}


def instance_kind(instance_type_id):
    """Map a raw instance_type_id to its InstanceKind, or None when unknown"""
    try:
        return InstanceKind(instance_type_id)
    except ValueError:
        return None
