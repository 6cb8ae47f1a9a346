"""
LaTeX Resume Viewer - live preview server for a single LaTeX document

This package provides a FastAPI-based web service that keeps a rendered PDF
of ``resume.tex`` up to date. It enables:

- Compiling with the local TeX toolchain (pdflatex, MacTeX, xelatex)
- Falling back to a remote build service when no local toolchain works
- Recompiling automatically when the source file changes
- Status reporting, manual triggers, and PDF/source download over HTTP

Key Components:
    - main: FastAPI application and HTTP endpoint definitions
    - compile_manager: Compile lifecycle, status and history owner
    - strategies: Ordered local/online compile strategies
    - toolchain: Local compiler discovery and invocation
    - remote: Remote build service client
    - watcher: Source file watcher with a coalescing trigger queue
    - configuration: Settings loading and environment overrides
    - models: Pydantic models for responses

Usage:
    Run the server with:
        python -m resume_viewer_backend

    Or directly through uvicorn:
        uvicorn resume_viewer_backend.main:app --port 3000
"""
