"""FastAPI main application."""

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ..config import WorldGenerationConfig, configure_logging, settings
from ..core.generator import generate_world
from ..errors import ConfigurationError, InvariantViolationError
from ..places.export import content_hash_filename, export_world_to_jsonl
from ..places.importer import reconstruct_world_from_jsonl

configure_logging()

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Flux World Generator API",
    description="Procedural place-graph generation with JSONL export",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class WorldGenerationRequest(BaseModel):
    """Request to generate a world."""

    seed: Optional[int] = Field(None, description="Seed for reproducible generation")
    world_width_km: float = Field(14.5, gt=0, description="World width in km")
    world_height_km: float = Field(9.0, gt=0, description="World height in km")
    place_spacing: float = Field(300.0, gt=0, description="Meters between adjacent places")
    place_margin: float = Field(200.0, ge=0, description="Meters kept clear along every edge")
    branching_factor: float = Field(1.0, ge=0, le=1, description="Flow branching factor")
    dithering_strength: float = Field(1.0, ge=0, le=1, description="Ecosystem dithering strength")
    growth_strategy: str = Field("flow", description="flow or discharge")
    direction_set: str = Field("full", description="full or reduced flow directions")
    min_vertices: int = Field(300, ge=0, description="Discharge minimum vertex target")
    max_vertices: Optional[int] = Field(None, ge=0, description="Discharge vertex cap")
    weather_mode: str = Field("simple", description="simple or smoothed")

    def to_config(self) -> WorldGenerationConfig:
        if self.world_width_km > settings.max_world_width_km or self.world_height_km > settings.max_world_height_km:
            raise ConfigurationError(
                f"World may not exceed {settings.max_world_width_km} x {settings.max_world_height_km} km"
            )
        data = self.model_dump()
        if data["seed"] is None:
            data["seed"] = settings.default_seed
        return WorldGenerationConfig.from_dict(data).validate()


class WorldSummaryResponse(BaseModel):
    """Summary of a generated or imported world."""

    seed: Optional[int]
    version: str
    vertices: int
    edges: int
    grid: Dict[str, int]
    origin: Optional[Dict[str, int]]
    ecosystems: Dict[str, int]
    components: int
    statistics: Dict[str, Any]


class ImportRequest(BaseModel):
    content: str = Field(..., description="JSONL world file content")


def _summary_response(world) -> WorldSummaryResponse:
    summary = world.summary()
    statistics = {key: summary.pop(key) for key in ("growth", "squares", "dithering", "connectivity")}
    return WorldSummaryResponse(**summary, statistics=statistics)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Flux World Generator API", "version": "0.1.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "export_version": settings.export_version}


@app.post("/worlds", response_model=WorldSummaryResponse)
async def create_world(request: WorldGenerationRequest):
    """Generate a world and return its summary and statistics."""
    try:
        world = generate_world(request.to_config())
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info("Generated world via API", seed=world.config.seed, vertices=len(world.graph))
    return _summary_response(world)


@app.post("/worlds/export", response_class=PlainTextResponse)
async def export_world(request: WorldGenerationRequest):
    """Generate a world and return it as JSONL."""
    try:
        world = generate_world(request.to_config())
        content = export_world_to_jsonl(world)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except InvariantViolationError as e:
        logger.error("Export refused", error=str(e), offending=e.offending)
        raise HTTPException(status_code=500, detail=str(e))

    filename = content_hash_filename(content)
    return PlainTextResponse(
        content,
        media_type="application/x-ndjson",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/worlds/import", response_model=WorldSummaryResponse)
async def import_world(request: ImportRequest):
    """Validate an exported JSONL world and return its summary."""
    try:
        world = reconstruct_world_from_jsonl(request.content)
    except InvariantViolationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _summary_response(world)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "flux_worldgen.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
