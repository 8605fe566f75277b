"""
FastAPI application factory for GuardianEye.

Routes:
- /api/* -> REST API (camera, feature loops, logs, exports, assistant)
- /* -> browser dashboard, when a built frontend is present
"""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes/static assets."""
    app = FastAPI(
        title="GuardianEye",
        version="0.1.0",
        description="Campus safety dashboard: uniform, mask, emergency, attendance and presence monitoring",
    )

    # CORS for development (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")

    dist_path = Path("frontend/dist")
    assets_path = dist_path / "assets"
    if assets_path.exists():
        app.mount("/assets", StaticFiles(directory=str(assets_path)), name="assets")

    @app.get("/{full_path:path}")
    async def spa_catch_all(request: Request, full_path: str):
        """Serve the dashboard's index.html for any non-API route."""
        if full_path.startswith(("api/", "assets/")):
            return JSONResponse({"detail": "Not found"}, status_code=404)

        index_file = dist_path / "index.html"
        if index_file.exists():
            return FileResponse(index_file)

        return JSONResponse(
            {"detail": "Dashboard not built; the JSON API is available under /api"},
            status_code=503,
        )

    return app


# Exported application instance for uvicorn
app = create_app()
