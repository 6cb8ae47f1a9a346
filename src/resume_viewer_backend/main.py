from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .compile_manager import CompileManager
from .configuration import load_settings
from .errors import CompileError
from .models import CompilationStatus, CompileHistory, CompileResponse, ErrorBody, SourceContent
from .utils import ensure_directory
from .watcher import SourceWatcher

logger = logging.getLogger(__name__)

DEFAULT_INDEX = Path(__file__).resolve().parent / "static" / "index.html"

settings = load_settings()
compile_manager = CompileManager(settings)
ensure_directory(compile_manager.paths.output_dir)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting LaTeX Resume Viewer...")
    if settings.compile_on_startup:
        try:
            await compile_manager.compile()
            logger.info("Initial compilation completed")
        except CompileError as exc:
            logger.error("Initial compilation failed: %s", exc)
        except Exception:
            logger.exception("Initial compilation crashed")

    watcher = SourceWatcher(compile_manager) if settings.watch.enabled else None
    if watcher is not None:
        watcher.start()
    logger.info("LaTeX Resume Viewer running at http://localhost:%s", settings.server.port)
    try:
        yield
    finally:
        if watcher is not None:
            await watcher.stop()


app = FastAPI(title="LaTeX Resume Viewer", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.server.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_compile_manager() -> CompileManager:
    return compile_manager


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorBody(error=message).model_dump())


@app.get("/healthz")
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/", include_in_schema=False)
def index(manager: CompileManager = Depends(get_compile_manager)) -> FileResponse:
    custom = manager.paths.output_dir / "index.html"
    return FileResponse(custom if custom.is_file() else DEFAULT_INDEX, media_type="text/html")


@app.get("/api/status", response_model=CompilationStatus)
def get_status(manager: CompileManager = Depends(get_compile_manager)) -> CompilationStatus:
    return manager.status()


@app.get("/api/history", response_model=CompileHistory)
def get_history(manager: CompileManager = Depends(get_compile_manager)) -> CompileHistory:
    return CompileHistory(events=manager.history())


@app.post("/api/compile", response_model=CompileResponse)
async def compile_resume(manager: CompileManager = Depends(get_compile_manager)):
    try:
        status = await manager.compile()
    except CompileError as exc:
        body = CompileResponse(**manager.status().model_dump(exclude={"error"}), success=False, error=str(exc))
        return JSONResponse(status_code=500, content=body.model_dump(mode="json", by_alias=True))
    return CompileResponse(**status.model_dump(), success=True)


@app.get("/api/pdf")
def get_pdf(manager: CompileManager = Depends(get_compile_manager)):
    pdf_path = manager.paths.artifact_file
    if not pdf_path.is_file():
        return _error(404, "PDF not found. Please compile first.")
    return FileResponse(pdf_path, media_type="application/pdf")


@app.get("/api/tex", response_model=SourceContent)
def get_tex(manager: CompileManager = Depends(get_compile_manager)):
    tex_path = manager.paths.source_file
    if not tex_path.is_file():
        return _error(404, f"{tex_path.name} not found")
    return SourceContent(content=tex_path.read_text(encoding="utf-8"))


app.mount("/", StaticFiles(directory=compile_manager.paths.output_dir), name="public")
