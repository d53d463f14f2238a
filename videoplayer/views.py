"""Read-only projections over the video records.

Nothing here is cached: each call re-runs its query, so results always
reflect the last commit.
"""
from datetime import datetime
from typing import List

from sqlalchemy import desc
from sqlalchemy.orm import Session

from videoplayer.models import Playlist, VideoRecord


def favorites(db: Session) -> List[VideoRecord]:
    """Favorite videos, most recently played first, never-played ones last."""
    return (
        db.query(VideoRecord)
        .filter(VideoRecord.is_favorite == True)
        .order_by(VideoRecord.last_played_at.is_(None), desc(VideoRecord.last_played_at))
        .all()
    )


def recently_played(db: Session) -> List[VideoRecord]:
    return (
        db.query(VideoRecord)
        .filter(VideoRecord.last_played_at.isnot(None))
        .order_by(desc(VideoRecord.last_played_at))
        .all()
    )


def playlist_videos(playlist: Playlist) -> List[VideoRecord]:
    """Members of ``playlist`` in the same order as :func:`favorites`."""
    return sorted(
        playlist.members,
        key=lambda video: video.last_played_at or datetime.min,
        reverse=True,
    )
