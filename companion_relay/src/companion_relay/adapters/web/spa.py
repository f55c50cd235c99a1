import logging
import os

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from starlette.types import Scope

log = logging.getLogger(__name__)

ENTRY_DOCUMENT = "index.html"


class DashboardStaticFiles(StaticFiles):
    """Static files of the built dashboard; unknown paths get the entry document."""

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response(ENTRY_DOCUMENT, scope)
        if response.status_code == 404:
            return await super().get_response(ENTRY_DOCUMENT, scope)
        return response


def mount_dashboard(app: FastAPI, directory: str) -> None:
    """Serve ``directory`` at the root, after every API route."""
    if os.path.isdir(directory):
        log.info("Serving dashboard from %s", os.path.abspath(directory))
        app.mount("/", DashboardStaticFiles(directory=directory, html=True), name="dashboard")
        return

    log.warning("Dashboard directory %s not found, only the API is served", directory)

    @app.get("/{path:path}", include_in_schema=False)
    def dashboard_missing(path: str):
        return JSONResponse(status_code=404, content={"error": "dashboard not built"})
