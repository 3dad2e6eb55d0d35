"""
FastAPI layer exposing background removal.

Endpoints:
 - GET /health
 - POST /remove-bg
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response

from . import config
from .config import parse_strategy
from .errors import EmptyMask, RefinementError
from .session import SegmentationSession

settings = config.get_settings()
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="Cutout Background Removal Service", version="0.1.0")
_SESSION_LOCK = Lock()


def _get_session(request: Request) -> SegmentationSession:
    """Return the app-wide session, loading the model once on first use."""
    session = getattr(request.app.state, "session", None)
    if session is not None:
        return session

    with _SESSION_LOCK:
        session = getattr(request.app.state, "session", None)
        if session is None:
            session = SegmentationSession.from_settings(settings)
            request.app.state.session = session
    return session


@app.get("/health")
def health(request: Request):
    return {"status": "ok", "oracle": _get_session(request).has_oracle}


@app.post("/remove-bg")
def remove_bg(
    request: Request,
    file: UploadFile = File(...),
    strategy: Optional[str] = Query(None),
):
    try:
        requested = parse_strategy(strategy) if strategy else None
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve)) from ve

    image_bytes = file.file.read(settings.max_upload_bytes + 1)
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Empty upload")
    if len(image_bytes) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Upload too large")

    session = _get_session(request)
    try:
        png_bytes, used = session.process_image_bytes(image_bytes, strategy=requested)
    except EmptyMask as em:
        raise HTTPException(status_code=422, detail=str(em)) from em
    except RefinementError as err:
        raise HTTPException(status_code=400, detail=str(err)) from err
    except Exception as exc:  # noqa: BLE001
        logger.exception("Background removal failed: %s", exc)
        raise HTTPException(status_code=500, detail="Background removal failed") from exc

    logger.info("remove-bg: file=%s strategy=%s bytes=%d", file.filename, used.value, len(png_bytes))
    return Response(
        content=png_bytes,
        media_type="image/png",
        headers={"X-Refinement-Strategy": used.value},
    )
