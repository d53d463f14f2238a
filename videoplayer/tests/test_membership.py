import pytest

from videoplayer import membership, store
from videoplayer.errors import InvalidNameError, NotFoundError
from videoplayer.models import Playlist

@pytest.fixture
def library(db_session, times):
    videos = [store.create_video(db_session, f"v{i}", f"Video {i}", 60 * (i + 1)) for i in range(3)]
    playlists = [store.create_playlist(db_session, name, now=times[0]) for name in ("Alpha", "Beta", "Gamma")]
    return videos, playlists

def test_trip_scenario(db_session, times):
    """Create, add, re-add and remove keep the count and timestamp consistent."""
    video = store.create_video(db_session, "A", "Video A", 30)
    trip = store.create_playlist(db_session, "Trip", now=times[0])
    assert trip.video_count == 0

    assert membership.add_video(db_session, trip, video, now=times[1]) is True
    assert trip.video_count == 1
    assert trip.updated_at == times[1]

    assert membership.add_video(db_session, trip, video, now=times[2]) is False
    assert trip.video_count == 1
    assert trip.updated_at == times[1]

    assert membership.remove_video(db_session, trip, video, now=times[3]) is True
    assert trip.video_count == 0
    assert trip.updated_at == times[3]

def test_remove_non_member_is_noop(db_session, times):
    video = store.create_video(db_session, "A", "Video A", 30)
    trip = store.create_playlist(db_session, "Trip", now=times[0])
    assert membership.remove_video(db_session, trip, video, now=times[1]) is False
    assert trip.updated_at == times[0]

def test_total_duration(db_session, times):
    a = store.create_video(db_session, "a", "A", 60)
    b = store.create_video(db_session, "b", "B", 90)
    playlist = store.create_playlist(db_session, "Mix", now=times[0])
    membership.add_video(db_session, playlist, a, now=times[1])
    membership.add_video(db_session, playlist, b, now=times[2])
    assert playlist.total_duration == 150

def test_count_matches_members_after_mixed_calls(db_session, library, times):
    videos, playlists = library
    playlist = playlists[0]
    steps = [("add", 0), ("add", 1), ("add", 0), ("remove", 2), ("add", 2), ("remove", 1), ("remove", 1)]
    for i, (op, index) in enumerate(steps):
        fn = membership.add_video if op == "add" else membership.remove_video
        fn(db_session, playlist, videos[index], now=times[i + 1])
        assert playlist.video_count == len(playlist.members)
    assert sorted(v.asset_id for v in playlist.members) == ["v0", "v2"]

def test_playlists_containing(db_session, library, times):
    videos, playlists = library
    membership.add_video(db_session, playlists[2], videos[0], now=times[1])
    membership.add_video(db_session, playlists[0], videos[0], now=times[1])
    assert [p.name for p in membership.playlists_containing(db_session, videos[0])] == ["Alpha", "Gamma"]
    assert membership.playlists_containing(db_session, videos[1]) == []

def test_sync_applies_set_difference(db_session, library, times):
    videos, (alpha, beta, gamma) = library
    video = videos[0]
    membership.add_video(db_session, alpha, video, now=times[1])
    membership.add_video(db_session, beta, video, now=times[1])

    change = membership.sync_memberships(db_session, video, [beta, gamma], now=times[2])

    assert [p.name for p in change.added] == ["Gamma"]
    assert [p.name for p in change.removed] == ["Alpha"]
    assert [p.name for p in membership.playlists_containing(db_session, video)] == ["Beta", "Gamma"]
    assert beta.updated_at == times[1]
    assert alpha.updated_at == times[2] and gamma.updated_at == times[2]

def test_sync_is_idempotent_and_order_independent(db_session, library, times):
    videos, (alpha, beta, gamma) = library
    video = videos[1]
    membership.sync_memberships(db_session, video, [gamma, alpha], now=times[1])
    first = sorted(p.id for p in membership.playlists_containing(db_session, video))
    stamps = {p.id: p.updated_at for p in (alpha, beta, gamma)}

    change = membership.sync_memberships(db_session, video, [alpha, gamma, alpha], now=times[2])

    assert not change.changed
    assert sorted(p.id for p in membership.playlists_containing(db_session, video)) == first
    assert {p.id: p.updated_at for p in (alpha, beta, gamma)} == stamps
    assert [p.video_count for p in (alpha, beta, gamma)] == [1, 0, 1]

def test_sync_with_empty_selection_removes_everywhere(db_session, library, times):
    videos, playlists = library
    video = videos[2]
    membership.sync_memberships(db_session, video, playlists, now=times[1])
    membership.sync_memberships(db_session, video, [], now=times[2])
    assert all(p.video_count == 0 for p in playlists)

def test_sync_creates_new_playlist_inline(db_session, library, times):
    videos, (alpha, _, _) = library
    change = membership.sync_memberships(
        db_session, videos[0], [alpha], new_playlist_name="  Weekend ", now=times[1],
    )
    assert sorted(p.name for p in change.added) == ["Alpha", "Weekend"]
    weekend = db_session.query(Playlist).filter(Playlist.name == "Weekend").one()
    assert weekend.video_count == 1
    assert weekend.created_at == times[1]

def test_sync_invalid_new_name_changes_nothing(db_session, library, times):
    videos, (alpha, _, _) = library
    with pytest.raises(InvalidNameError):
        membership.sync_memberships(db_session, videos[0], [alpha], new_playlist_name="  ", now=times[1])
    assert alpha.video_count == 0
    assert db_session.query(Playlist).count() == 3

def test_membership_on_deleted_video_raises_not_found(db_session, library, times):
    videos, (alpha, _, _) = library
    video = videos[0]
    store.delete_video(db_session, video)
    with pytest.raises(NotFoundError):
        membership.add_video(db_session, alpha, video, now=times[1])
    with pytest.raises(NotFoundError):
        membership.remove_video(db_session, alpha, video, now=times[1])
    with pytest.raises(NotFoundError):
        membership.sync_memberships(db_session, video, [alpha], now=times[1])

def test_membership_on_deleted_playlist_raises_not_found(db_session, library, times):
    videos, (alpha, beta, _) = library
    store.delete_playlist(db_session, alpha)
    with pytest.raises(NotFoundError):
        membership.sync_memberships(db_session, videos[0], [alpha, beta], now=times[1])
    assert beta.video_count == 0
