from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from services.compressor.api.routes import create_router
from services.compressor.application.use_cases import (
    CompressUploadsUseCase,
    ListArtifactsUseCase,
)
from services.compressor.config import CompressorConfig, load_config
from services.compressor.infrastructure.artifact_store import create_artifact_repository
from services.compressor.infrastructure.gstreamer import create_media_encoder
from services.compressor.infrastructure.ids import TokenIdProvider
from services.compressor.infrastructure.images import create_image_compressor
from services.compressor.infrastructure.probe import create_media_prober
from services.compressor.logging_setup import configure_logging


def build_app(config: CompressorConfig | None = None) -> FastAPI:
    cfg = config or load_config()
    configure_logging(cfg.log_level)
    cfg.output_dir.mkdir(parents=True, exist_ok=True)
    cfg.temp_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="FilmRoll compressor")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/ping")
    async def ping():
        return {"message": "pong"}

    repository = create_artifact_repository(cfg)
    compress_uploads_use_case = CompressUploadsUseCase(
        prober=create_media_prober(cfg),
        encoder=create_media_encoder(cfg),
        image_compressor=create_image_compressor(),
        repository=repository,
        id_provider=TokenIdProvider(num_bytes=cfg.artifact_token_bytes),
        temp_dir=cfg.temp_dir,
        max_files=cfg.max_files,
        max_images=cfg.max_images,
        max_duration_seconds=cfg.max_duration_seconds,
    )
    list_artifacts_use_case = ListArtifactsUseCase(repository=repository)

    app.include_router(
        create_router(
            compress_uploads_use_case,
            list_artifacts_use_case,
            public_prefix=cfg.public_url_prefix,
        )
    )

    # Mounted after the router so the bare prefix resolves to the listing route.
    app.mount(
        cfg.public_url_prefix,
        StaticFiles(directory=cfg.output_dir),
        name="compressed",
    )

    return app


app = build_app()
