from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Dict


class Settings(BaseSettings):
    PROJECT_NAME: str = "School Infrastructure Hierarchy API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # CORS Configuration
    CORS_ORIGINS: list = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"

    # MySQL Database Configuration
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = "infraestructura"
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    # Full SQLAlchemy URL, overrides the DB_* parts when set
    DB_URL: str = ""

    # Subtree materialization bounds
    HIERARCHY_MIN_DEPTH: int = 1
    HIERARCHY_MAX_DEPTH: int = 50
    HIERARCHY_DEFAULT_DEPTH: int = 10

    # Display sentinels for names that cannot be resolved
    UNKNOWN_INSTANCE_NAME: str = "Unknown"
    UNKNOWN_INSTANCE_TYPE_NAME: str = "Unknown type"

    # Fixed instance_type_id -> catalog label mapping
    INSTANCE_TYPES: Dict[int, str] = {
        1: "Dirección",
        2: "Departamento",
        3: "Área",
        4: "Jefe de sector",
        5: "Supervisor",
        6: "Escuela",
        7: "Anexo",
    }
    SEED_INSTANCE_TYPES: bool = True

    # Instance search / batch limits
    SEARCH_MAX_LIMIT: int = 100
    SEARCH_PER_TABLE_LIMIT: int = 50
    BATCH_MAX_ITEMS: int = 500

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"

    class Config:
        env_file = ".env"

@lru_cache()
def get_settings():
    return Settings()
