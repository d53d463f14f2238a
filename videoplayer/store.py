"""Video record and playlist persistence operations.

Every public mutation validates its preconditions first, applies the change
to the session and then commits through :func:`commit`, so a failure either
surfaces before anything changed or rolls the whole call back.
"""
import logging
import math
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc, inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from videoplayer.errors import (
    DuplicateKeyError,
    InvalidNameError,
    InvalidValueError,
    NotFoundError,
    PersistenceError,
)
from videoplayer.models import Playlist, VideoRecord, utcnow

logger = logging.getLogger(__name__)

PLAYLIST_SORTS = ("updated", "name")


def commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        logger.error("Commit failed, rolling back: %s", exc)
        db.rollback()
        raise PersistenceError(f"Could not save changes: {exc}") from exc


def require_live(db: Session, obj, label: str) -> None:
    """Raise NotFoundError unless ``obj`` is still tracked and not deleted."""
    state = inspect(obj)
    if not (state.persistent or state.pending) or obj in db.deleted:
        raise NotFoundError(f"{label} no longer exists")


def normalize_name(name: Optional[str]) -> str:
    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidNameError("Playlist name must not be empty")
    return trimmed


def require_seconds(value, label: str) -> float:
    seconds = float(value)
    if not math.isfinite(seconds) or seconds < 0:
        raise InvalidValueError(f"{label} must be a finite number of seconds >= 0, got {value!r}")
    return seconds


def commit_new_video(db: Session, asset_id: str) -> None:
    try:
        commit(db)
    except PersistenceError as exc:
        # Another writer inserted the same asset id after our lookup
        if isinstance(exc.__cause__, IntegrityError):
            raise DuplicateKeyError(f"Video {asset_id!r} already exists") from exc.__cause__
        raise


# ---------------------------------------------------------------- videos

def get_video(db: Session, asset_id: str) -> VideoRecord:
    video = db.query(VideoRecord).filter(VideoRecord.asset_id == asset_id).first()
    if not video:
        raise NotFoundError(f"Video {asset_id!r} not found")
    return video


def list_videos(db: Session) -> List[VideoRecord]:
    return db.query(VideoRecord).order_by(desc(VideoRecord.created_at)).all()


def _new_video(asset_id: str, title: str, duration_seconds: float) -> VideoRecord:
    return VideoRecord(
        id=str(uuid.uuid4()),
        asset_id=asset_id,
        title=title,
        duration_seconds=duration_seconds,
        is_favorite=False,
        last_played_at=None,
        playback_position_seconds=0.0,
        tags=[],
        user_rating=0,
        created_at=utcnow(),
    )


def create_video(db: Session, asset_id: str, title: str, duration_seconds: float = 0.0) -> VideoRecord:
    duration_seconds = require_seconds(duration_seconds, "Duration")
    existing = db.query(VideoRecord).filter(VideoRecord.asset_id == asset_id).first()
    if existing:
        raise DuplicateKeyError(f"Video {asset_id!r} already exists")

    video = _new_video(asset_id, title, duration_seconds)
    db.add(video)
    commit_new_video(db, asset_id)
    logger.info("Created video %s (%s)", asset_id, title)
    return video


def import_video(db: Session, asset_id: str, title: str, duration_seconds: float = 0.0) -> VideoRecord:
    """Create a record for a freshly imported asset, or refresh the existing one."""
    duration_seconds = require_seconds(duration_seconds, "Duration")
    existing = db.query(VideoRecord).filter(VideoRecord.asset_id == asset_id).first()
    if existing:
        if title:
            existing.title = title
        if duration_seconds:
            existing.duration_seconds = duration_seconds
        commit(db)
        logger.debug("Re-imported video %s", asset_id)
        return existing

    video = _new_video(asset_id, title, duration_seconds)
    db.add(video)
    commit_new_video(db, asset_id)
    logger.info("Imported video %s (%s)", asset_id, title)
    return video


def set_favorite(db: Session, video: VideoRecord, value: bool) -> VideoRecord:
    require_live(db, video, "Video")
    video.is_favorite = bool(value)
    commit(db)
    return video


def toggle_favorite(db: Session, video: VideoRecord) -> VideoRecord:
    return set_favorite(db, video, not video.is_favorite)


def record_playback(db: Session, video: VideoRecord, position_seconds: float, now: Optional[datetime] = None) -> VideoRecord:
    """Store the resume position and mark the video as just played.

    The position is clamped to ``[0, duration_seconds]`` when the duration is
    known; with an unknown (zero) duration only the lower bound applies.
    """
    require_live(db, video, "Video")
    position = require_seconds(max(float(position_seconds), 0.0), "Playback position")
    if video.duration_seconds and video.duration_seconds > 0:
        position = min(position, video.duration_seconds)
    video.playback_position_seconds = position
    video.last_played_at = now or utcnow()
    commit(db)
    return video


def delete_video(db: Session, video: VideoRecord) -> None:
    require_live(db, video, "Video")
    asset_id = video.asset_id
    # Only the cross-references go; the playlists themselves stay
    for playlist in list(video.playlists):
        playlist.members.remove(video)
    db.delete(video)
    commit(db)
    logger.info("Deleted video %s", asset_id)


def clear_history(db: Session) -> int:
    videos = db.query(VideoRecord).all()
    for video in videos:
        for playlist in list(video.playlists):
            playlist.members.remove(video)
        db.delete(video)
    commit(db)
    logger.info("Cleared history (%d videos)", len(videos))
    return len(videos)


# ---------------------------------------------------------------- playlists

def get_playlist(db: Session, playlist_id: str) -> Playlist:
    playlist = db.query(Playlist).filter(Playlist.id == playlist_id).first()
    if not playlist:
        raise NotFoundError(f"Playlist {playlist_id!r} not found")
    return playlist


def list_playlists(db: Session, sort: Optional[str] = None) -> List[Playlist]:
    q = db.query(Playlist)
    if sort == "name":
        q = q.order_by(Playlist.name)
    else:
        q = q.order_by(desc(Playlist.updated_at))
    return q.all()


def new_playlist(name: str, now: datetime) -> Playlist:
    """Build an empty playlist without adding it to a session."""
    return Playlist(id=str(uuid.uuid4()), name=normalize_name(name), created_at=now, updated_at=now)


def create_playlist(db: Session, name: str, now: Optional[datetime] = None) -> Playlist:
    playlist = new_playlist(name, now or utcnow())
    db.add(playlist)
    commit(db)
    logger.info("Created playlist %s (%s)", playlist.id, playlist.name)
    return playlist


def rename_playlist(db: Session, playlist: Playlist, new_name: str, now: Optional[datetime] = None) -> Playlist:
    require_live(db, playlist, "Playlist")
    name = normalize_name(new_name)
    playlist.name = name
    playlist.updated_at = now or utcnow()
    commit(db)
    return playlist


def delete_playlist(db: Session, playlist: Playlist) -> None:
    require_live(db, playlist, "Playlist")
    playlist_id = playlist.id
    playlist.members.clear()
    db.delete(playlist)
    commit(db)
    logger.info("Deleted playlist %s", playlist_id)
