from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float, JSON, ForeignKey, Table
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    # Naive UTC, matching what SQLite hands back for DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_seconds(seconds: float) -> str:
    """Render a duration as minutes:seconds. Minutes never roll over into hours."""
    total = int(seconds)
    return "%d:%02d" % (total // 60, total % 60)


# Deleting either side only removes the association row (nullify)
playlist_members = Table(
    "playlist_members",
    Base.metadata,
    Column("playlist_id", String, ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True),
    Column("video_id", String, ForeignKey("video_records.id", ondelete="CASCADE"), primary_key=True),
)


class VideoRecord(Base):
    __tablename__ = "video_records"

    id = Column(String, primary_key=True, index=True)
    asset_id = Column(String, nullable=False, unique=True, index=True)
    title = Column(String, nullable=False)
    duration_seconds = Column(Float, nullable=False, default=0.0)  # in seconds
    is_favorite = Column(Boolean, default=False, nullable=False, index=True)
    last_played_at = Column(DateTime, nullable=True, index=True)
    playback_position_seconds = Column(Float, nullable=False, default=0.0)
    tags = Column(JSON, nullable=False, default=list)
    user_rating = Column(Integer, nullable=False, default=0)  # 0-5 stars
    created_at = Column(DateTime, default=utcnow)

    playlists = relationship("Playlist", secondary=playlist_members, back_populates="members")

    @property
    def playback_progress(self) -> float:
        if not self.duration_seconds or self.duration_seconds <= 0:
            return 0.0
        progress = (self.playback_position_seconds or 0.0) / self.duration_seconds
        return min(max(progress, 0.0), 1.0)

    @property
    def formatted_duration(self) -> str:
        return format_seconds(self.duration_seconds or 0)

    @property
    def formatted_position(self) -> str:
        return format_seconds(self.playback_position_seconds or 0)

    def __repr__(self) -> str:
        return f"VideoRecord(asset_id={self.asset_id!r}, title={self.title!r})"


class Playlist(Base):
    __tablename__ = "playlists"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    members = relationship("VideoRecord", secondary=playlist_members, back_populates="playlists")

    @property
    def video_count(self) -> int:
        # Computed from the live membership so it can never drift
        return len(self.members)

    @property
    def total_duration(self) -> float:
        return sum(video.duration_seconds or 0 for video in self.members)

    @property
    def formatted_total_duration(self) -> str:
        return format_seconds(self.total_duration)

    def contains(self, video: VideoRecord) -> bool:
        return any(member.asset_id == video.asset_id for member in self.members)

    def add_video(self, video: VideoRecord, now: datetime) -> bool:
        """Append ``video`` unless a member with the same asset id is present.

        Returns True when membership changed; ``updated_at`` only moves then.
        """
        if self.contains(video):
            return False
        self.members.append(video)
        self.updated_at = now
        return True

    def remove_video(self, video: VideoRecord, now: datetime) -> bool:
        matches = [member for member in self.members if member.asset_id == video.asset_id]
        if not matches:
            return False
        for member in matches:
            self.members.remove(member)
        self.updated_at = now
        return True

    def __repr__(self) -> str:
        return f"Playlist(id={self.id!r}, name={self.name!r}, video_count={self.video_count})"
