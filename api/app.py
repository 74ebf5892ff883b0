from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from api.routes import sessions as session_routes


def create_app() -> FastAPI:
    app = FastAPI(
        title="Rep Coach API",
        description="REST API wrapping the repcoach keypoint stabilizer and rep counter.",
        version="0.1.0",
    )
    app.include_router(session_routes.router)

    @app.get("/", include_in_schema=False)
    async def redirect_to_docs() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


app = create_app()
