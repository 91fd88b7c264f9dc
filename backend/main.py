import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from infra_api.core.config import get_settings
from infra_api.core.database import engine, Base
from infra_api.core.errors import InfraError
from infra_api.core.logging import setup_logging
from infra_api.api import hierarchy, instances

# Import models so their tables are registered
from infra_api.models.hierarchy import HierarchyNode
from infra_api.models import infrastructure

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# Bootstrap the fixed instance type catalog
if settings.SEED_INSTANCE_TYPES:
    logger.info("[Startup] Checking instance type catalog...")
    from infra_api.services.instance_type_seed import instance_type_seed
    instance_type_seed.initialize()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"]
)


@app.exception_handler(InfraError)
async def infra_error_handler(request: Request, exc: InfraError):
    if exc.status_code >= 500:
        logger.error(f"[API] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Register routers
app.include_router(hierarchy.router, prefix=f"{settings.API_V1_STR}/hierarchy")
app.include_router(instances.router, prefix=f"{settings.API_V1_STR}/instances")

@app.get("/")
async def root():
    return {
        "message": "Welcome to the School Infrastructure Hierarchy API",
        "docs": "/docs",
        "status": "running"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
