"""FastAPI server exposing the closet persistence layer over HTTP."""

from __future__ import annotations

import base64
import binascii
from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from closet_app.app import ClosetApp, RecordNotFoundError
from closet_app.logging_config import configure_logging, correlation_context
from logic.blob_layout import Namespace
from logic.closet_view import SortKey, SortOrder
from logic.decision_timer import DecisionTimer, TimerState
from logic.preferences import UserPreferences
from models.sidecar import InvalidMetadataError
from tools.blob_store import StorageError
from tools.identity import NotSignedInError


class OutfitUploadRequest(BaseModel):
    """Request payload for storing a new outfit photo."""

    model_config = ConfigDict(extra="forbid")

    image_base64: str = Field(..., description="Photo bytes, base64 encoded (a data: URL prefix is accepted)")
    details: str = ""
    rating: int = 0
    genre: str = ""
    date: Optional[datetime] = None


class WishlistUploadRequest(BaseModel):
    """Request payload for adding a wishlist item."""

    model_config = ConfigDict(extra="forbid")

    image_base64: str = Field(..., description="Photo bytes, base64 encoded (a data: URL prefix is accepted)")
    name: str
    notes: str = ""


class PreferencesRequest(BaseModel):
    aesthetics: List[str] = Field(default_factory=list)
    onboarding_completed: bool = False


def _decode_image(encoded: str) -> bytes:
    """Decode an uploaded photo; the server never reads images from paths or URLs."""

    if encoded.startswith("data:"):
        encoded = encoded.partition(",")[2]
    try:
        data = base64.b64decode(encoded, validate=True)
    except binascii.Error as exc:
        raise InvalidMetadataError("image_base64 is not valid base64") from exc
    if not data:
        raise InvalidMetadataError("image_base64 is empty")
    return data


def _timer_payload(timer: DecisionTimer, state: Optional[TimerState]) -> Optional[dict]:
    return timer.describe(state) if state is not None else None


def create_app(closet: ClosetApp | None = None) -> FastAPI:
    """Build the ASGI app around ``closet``; defaults come from the environment."""

    configure_logging()
    closet = closet or ClosetApp()
    app = FastAPI(title="Closet", version="0.1.0")

    def scoped_closet(x_user_id: Optional[str] = Header(None)) -> ClosetApp:
        return closet.for_user(x_user_id)

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        with correlation_context(request.headers.get("x-correlation-id")) as correlation_id:
            response = await call_next(request)
            response.headers["x-correlation-id"] = correlation_id
            return response

    @app.exception_handler(NotSignedInError)
    async def not_signed_in(_: Request, exc: NotSignedInError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(InvalidMetadataError)
    async def invalid_metadata(_: Request, exc: InvalidMetadataError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(RecordNotFoundError)
    async def record_not_found(_: Request, exc: RecordNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_failure(_: Request, exc: StorageError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": "Storage is unavailable, try again later"})

    @app.exception_handler(ValueError)
    async def bad_value(_: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {
            "status": "ok",
            "service": "closet",
            "environment": closet.config.environment or "local",
            "enrichment": closet.analyzer is not None,
        }

    @app.get("/outfits")
    async def list_outfits(
        query: str = "",
        sort_by: Optional[SortKey] = None,
        order: SortOrder = "desc",
        scoped: ClosetApp = Depends(scoped_closet),
    ) -> dict:
        outfits = await scoped.list_outfits(query=query, sort_by=sort_by, order=order)
        return {"outfits": [asdict(outfit) for outfit in outfits]}

    @app.post("/outfits", status_code=201)
    async def upload_outfit(request: OutfitUploadRequest, scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        image_url = await scoped.upload_outfit(
            _decode_image(request.image_base64), request.model_dump(exclude={"image_base64"})
        )
        return {"image_url": image_url}

    @app.get("/wishlist")
    async def list_wishlist(scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        items = await scoped.list_wishlist()
        return {"items": [asdict(item) for item in items]}

    @app.post("/wishlist", status_code=201)
    async def add_wishlist_item(request: WishlistUploadRequest, scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        image_url = await scoped.add_wishlist_item(
            _decode_image(request.image_base64), request.model_dump(exclude={"image_base64"})
        )
        return {"image_url": image_url}

    @app.get("/wishlist/{item_id}")
    async def get_wishlist_item(item_id: str, scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        item = await scoped.get_wishlist_item(item_id)
        if item is None:
            raise HTTPException(status_code=404, detail="Wishlist item not found")
        return asdict(item)

    @app.get("/wishlist/{item_id}/recommendations")
    async def recommendations(item_id: str, scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        ranked = await scoped.recommend_for_wishlist_item(item_id)
        return {
            "recommendations": [
                {"outfit": asdict(entry.candidate), "score": round(entry.score, 2)} for entry in ranked
            ]
        }

    @app.post("/wishlist/{item_id}/timer")
    async def start_timer(item_id: str, scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        return {"timer": _timer_payload(scoped.timer, await scoped.start_decision_timer(item_id))}

    @app.get("/wishlist/{item_id}/timer")
    async def timer_status(item_id: str, scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        return {"timer": _timer_payload(scoped.timer, await scoped.decision_timer_status(item_id))}

    @app.get("/records")
    async def list_records(namespace: Optional[Namespace] = None, scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        rows = await scoped.list_index_rows(namespace)
        return {"records": [asdict(row) for row in rows]}

    @app.get("/preferences")
    async def get_preferences(scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        return asdict(await scoped.load_preferences())

    @app.put("/preferences")
    async def put_preferences(request: PreferencesRequest, scoped: ClosetApp = Depends(scoped_closet)) -> dict:
        saved = await scoped.save_preferences(
            UserPreferences(aesthetics=request.aesthetics, onboarding_completed=request.onboarding_completed)
        )
        return asdict(saved)

    return app


def get_app() -> FastAPI:
    """Expose a FastAPI instance for ASGI servers."""

    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:create_app", factory=True, host="0.0.0.0", port=8080, reload=False)
