from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

class VideoCreate(BaseModel):
    asset_id: str = Field(min_length=1)
    title: str
    duration_seconds: float = Field(default=0.0, ge=0, allow_inf_nan=False)

class FavoriteUpdate(BaseModel):
    is_favorite: bool

class PlaybackUpdate(BaseModel):
    position_seconds: float = Field(ge=0, allow_inf_nan=False)

class PlaylistCreate(BaseModel):
    name: str

class PlaylistRename(BaseModel):
    name: str

class MembershipSync(BaseModel):
    playlist_ids: List[str] = []
    new_playlist_name: Optional[str] = None

class VideoRecordResponse(BaseModel):
    id: str
    asset_id: str
    title: str
    duration_seconds: float
    is_favorite: bool
    last_played_at: Optional[datetime] = None
    playback_position_seconds: float
    tags: List[str] = []
    user_rating: int
    playback_progress: float
    formatted_duration: str
    formatted_position: str

    model_config = ConfigDict(from_attributes=True)

class PlaylistResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    video_count: int
    total_duration: float
    formatted_total_duration: str

    model_config = ConfigDict(from_attributes=True)

class PlaylistDetailResponse(PlaylistResponse):
    videos: List[VideoRecordResponse] = []
