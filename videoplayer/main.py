from fastapi import FastAPI, Depends, HTTPException, Response, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import AsyncGenerator, List, Optional
from contextlib import asynccontextmanager
from sqlalchemy.orm import Session
import logging

from videoplayer import membership, store, views
from videoplayer.config import FRONTEND_ORIGIN, LOG_LEVEL
from videoplayer.database import get_db, init_db
from videoplayer.errors import VideoPlayerError
from videoplayer.schemas import (
    FavoriteUpdate,
    MembershipSync,
    PlaybackUpdate,
    PlaylistCreate,
    PlaylistDetailResponse,
    PlaylistRename,
    PlaylistResponse,
    VideoCreate,
    VideoRecordResponse,
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    init_db()
    yield


app = FastAPI(title="Video Player Library API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(VideoPlayerError)
async def video_player_error_handler(request: Request, exc: VideoPlayerError):
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# The rejected input is left out: it may hold inf/nan, which JSON cannot encode
@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    logger.info("%s %s rejected: %s", request.method, request.url.path, errors)
    return JSONResponse(status_code=422, content={"detail": errors})


@app.get("/")
def read_root():
    return {"status": "ok"}

# ---------------------------------------------------------------- videos

@app.post("/api/videos", response_model=VideoRecordResponse)
def create_video(payload: VideoCreate, db: Session = Depends(get_db)):
    return store.create_video(db, payload.asset_id, payload.title, payload.duration_seconds)

# The import step looks the asset up first so re-importing never duplicates it
@app.post("/api/videos/import", response_model=VideoRecordResponse)
def import_video(payload: VideoCreate, db: Session = Depends(get_db)):
    return store.import_video(db, payload.asset_id, payload.title, payload.duration_seconds)

@app.get("/api/videos", response_model=List[VideoRecordResponse])
def list_videos(db: Session = Depends(get_db)):
    return store.list_videos(db)

@app.get("/api/videos/{asset_id}", response_model=VideoRecordResponse)
def get_video(asset_id: str, db: Session = Depends(get_db)):
    return store.get_video(db, asset_id)

@app.patch("/api/videos/{asset_id}/favorite", response_model=VideoRecordResponse)
def set_favorite(asset_id: str, payload: FavoriteUpdate, db: Session = Depends(get_db)):
    video = store.get_video(db, asset_id)
    return store.set_favorite(db, video, payload.is_favorite)

# Called periodically by the player while a video is playing
@app.put("/api/videos/{asset_id}/playback", response_model=VideoRecordResponse)
def record_playback(asset_id: str, payload: PlaybackUpdate, db: Session = Depends(get_db)):
    video = store.get_video(db, asset_id)
    return store.record_playback(db, video, payload.position_seconds)

@app.delete("/api/videos/{asset_id}", status_code=204)
def delete_video(asset_id: str, db: Session = Depends(get_db)):
    video = store.get_video(db, asset_id)
    store.delete_video(db, video)
    return Response(status_code=204)

@app.get("/api/videos/{asset_id}/playlists", response_model=List[PlaylistResponse])
def get_video_playlists(asset_id: str, db: Session = Depends(get_db)):
    video = store.get_video(db, asset_id)
    return membership.playlists_containing(db, video)

@app.put("/api/videos/{asset_id}/playlists", response_model=List[PlaylistResponse])
def sync_video_playlists(asset_id: str, payload: MembershipSync, db: Session = Depends(get_db)):
    """Replace the set of playlists containing the video with the given selection."""
    video = store.get_video(db, asset_id)
    desired = [store.get_playlist(db, playlist_id) for playlist_id in payload.playlist_ids]
    membership.sync_memberships(db, video, desired, new_playlist_name=payload.new_playlist_name)
    return membership.playlists_containing(db, video)

# ---------------------------------------------------------------- history

@app.get("/api/history", response_model=List[VideoRecordResponse])
def get_history(db: Session = Depends(get_db)):
    return views.recently_played(db)

@app.delete("/api/history", status_code=204)
def clear_history(db: Session = Depends(get_db)):
    store.clear_history(db)
    return Response(status_code=204)

@app.get("/api/favorites", response_model=List[VideoRecordResponse])
def get_favorites(db: Session = Depends(get_db)):
    return views.favorites(db)

# ---------------------------------------------------------------- playlists

@app.post("/api/playlists", response_model=PlaylistResponse)
def create_playlist(payload: PlaylistCreate, db: Session = Depends(get_db)):
    return store.create_playlist(db, payload.name)

@app.get("/api/playlists", response_model=List[PlaylistResponse])
def list_playlists(sort: Optional[str] = None, db: Session = Depends(get_db)):
    if sort is not None and sort not in store.PLAYLIST_SORTS:
        raise HTTPException(status_code=422, detail=f"Unknown sort {sort!r}")
    return store.list_playlists(db, sort)

@app.get("/api/playlists/{playlist_id}", response_model=PlaylistDetailResponse)
def get_playlist(playlist_id: str, db: Session = Depends(get_db)):
    playlist = store.get_playlist(db, playlist_id)
    summary = PlaylistResponse.model_validate(playlist)
    return PlaylistDetailResponse(
        **summary.model_dump(),
        videos=[VideoRecordResponse.model_validate(v) for v in views.playlist_videos(playlist)],
    )

@app.patch("/api/playlists/{playlist_id}", response_model=PlaylistResponse)
def rename_playlist(playlist_id: str, payload: PlaylistRename, db: Session = Depends(get_db)):
    playlist = store.get_playlist(db, playlist_id)
    return store.rename_playlist(db, playlist, payload.name)

@app.delete("/api/playlists/{playlist_id}", status_code=204)
def delete_playlist(playlist_id: str, db: Session = Depends(get_db)):
    playlist = store.get_playlist(db, playlist_id)
    store.delete_playlist(db, playlist)
    return Response(status_code=204)

@app.post("/api/playlists/{playlist_id}/videos/{asset_id}", response_model=PlaylistResponse)
def add_playlist_video(playlist_id: str, asset_id: str, db: Session = Depends(get_db)):
    playlist = store.get_playlist(db, playlist_id)
    video = store.get_video(db, asset_id)
    membership.add_video(db, playlist, video)
    return playlist

@app.delete("/api/playlists/{playlist_id}/videos/{asset_id}", response_model=PlaylistResponse)
def remove_playlist_video(playlist_id: str, asset_id: str, db: Session = Depends(get_db)):
    playlist = store.get_playlist(db, playlist_id)
    video = store.get_video(db, asset_id)
    membership.remove_video(db, playlist, video)
    return playlist
