"""
Instance Type Seed Service - bootstraps ct_infraestructura_tipo_instancia
"""
import logging
from typing import Dict

from sqlalchemy.orm import Session

from infra_api.core.config import get_settings
from infra_api.core.database import SessionLocal
from infra_api.models.infrastructure import InstanceType

logger = logging.getLogger(__name__)


class InstanceTypeSeedService:
    """Writes the fixed instance type mapping into the catalog, filling in missing ids"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def seed(self, db: Session) -> int:
        """Insert every configured instance type missing from the catalog; returns rows written"""
        types: Dict[int, str] = get_settings().INSTANCE_TYPES
        missing = [
            (type_id, name) for type_id, name in sorted(types.items())
            if db.get(InstanceType, type_id) is None
        ]
        if not missing:
            return 0

        if len(missing) < len(types):
            logger.warning(
                f"[Startup] Instance type catalog incomplete, adding ids {[type_id for type_id, _ in missing]}"
            )
        for type_id, name in missing:
            db.add(InstanceType(id=type_id, name=name, state=True))
        db.commit()
        return len(missing)

    def initialize(self) -> int:
        """Seed using a private session (application startup)"""
        db = SessionLocal()
        try:
            count = self.seed(db)
            if count:
                logger.info(f"[Startup] Seeded {count} instance types")
            else:
                logger.info("[Startup] Instance type catalog already populated")
            return count
        finally:
            db.close()


# Global singleton
instance_type_seed = InstanceTypeSeedService()
