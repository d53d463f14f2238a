"""Playlist membership changes.

Membership is keyed by asset id. Single add/remove calls commit on their
own; :func:`sync_memberships` applies a whole selection in one commit.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from videoplayer.models import Playlist, VideoRecord, utcnow
from videoplayer.store import commit, new_playlist, require_live

logger = logging.getLogger(__name__)


@dataclass
class MembershipChange:
    added: List[Playlist] = field(default_factory=list)
    removed: List[Playlist] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def add_video(db: Session, playlist: Playlist, video: VideoRecord, now: Optional[datetime] = None) -> bool:
    require_live(db, playlist, "Playlist")
    require_live(db, video, "Video")
    changed = playlist.add_video(video, now or utcnow())
    if changed:
        commit(db)
        logger.info("Added %s to playlist %s", video.asset_id, playlist.id)
    return changed


def remove_video(db: Session, playlist: Playlist, video: VideoRecord, now: Optional[datetime] = None) -> bool:
    require_live(db, playlist, "Playlist")
    require_live(db, video, "Video")
    changed = playlist.remove_video(video, now or utcnow())
    if changed:
        commit(db)
        logger.info("Removed %s from playlist %s", video.asset_id, playlist.id)
    return changed


def playlists_containing(db: Session, video: VideoRecord) -> List[Playlist]:
    require_live(db, video, "Video")
    playlists = db.query(Playlist).order_by(Playlist.name).all()
    return [playlist for playlist in playlists if playlist.contains(video)]


def sync_memberships(
    db: Session,
    video: VideoRecord,
    desired: Iterable[Playlist],
    new_playlist_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> MembershipChange:
    """Make ``video`` belong to exactly the ``desired`` playlists.

    Adds go to desired - current, removals to current - desired. When
    ``new_playlist_name`` is given a playlist is created in the same
    transaction and counted as desired.
    """
    now = now or utcnow()
    require_live(db, video, "Video")
    wanted = {playlist.id: playlist for playlist in desired}
    for playlist in wanted.values():
        require_live(db, playlist, "Playlist")

    if new_playlist_name is not None:
        created = new_playlist(new_playlist_name, now)
        db.add(created)
        wanted[created.id] = created

    current = {playlist.id: playlist for playlist in playlists_containing(db, video)}

    change = MembershipChange()
    for playlist_id in sorted(wanted.keys() - current.keys()):
        if wanted[playlist_id].add_video(video, now):
            change.added.append(wanted[playlist_id])
    for playlist_id in sorted(current.keys() - wanted.keys()):
        if current[playlist_id].remove_video(video, now):
            change.removed.append(current[playlist_id])

    if change.changed:
        commit(db)
        logger.info(
            "Synced playlists for %s: +%d -%d",
            video.asset_id, len(change.added), len(change.removed),
        )
    return change
