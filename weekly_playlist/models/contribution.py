"""Domain models for turning shared links into playlist contributions"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Set, Tuple

# user id -> links in the order they were shared, query strings removed
ContributorLinkSet = Dict[str, List[str]]


@dataclass(frozen=True)
class TimeWindow:
    """Half-open [start, end) range of one calendar week"""
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Window start {self.start} must precede end {self.end}")

    @property
    def last_day(self) -> datetime:
        """The last calendar day covered by the window"""
        return self.end - timedelta(days=1)


@dataclass
class SpotifyIds:
    """Spotify ids found in a list of external urls, grouped by item type"""
    tracks: List[str] = field(default_factory=list)
    albums: List[str] = field(default_factory=list)
    playlists: List[str] = field(default_factory=list)


@dataclass
class TrackIdBundle:
    """
    The three pairwise-disjoint track id sets derived for one contributor.

    A track id lands in the first set it is offered to, in the order
    single -> album -> playlist; unique_track_count always equals the sum
    of the three set sizes.
    """
    single_track_ids: Set[str] = field(default_factory=set)
    album_track_ids: Set[str] = field(default_factory=set)
    playlist_track_ids: Set[str] = field(default_factory=set)
    unique_track_count: int = 0

    def add_single_track(self, track_id: str) -> bool:
        if track_id in self.single_track_ids:
            return False
        self.single_track_ids.add(track_id)
        self.unique_track_count += 1
        return True

    def add_album_track(self, track_id: str) -> bool:
        if track_id in self.single_track_ids or track_id in self.album_track_ids:
            return False
        self.album_track_ids.add(track_id)
        self.unique_track_count += 1
        return True

    def add_playlist_track(self, track_id: str) -> bool:
        if (track_id in self.single_track_ids or track_id in self.album_track_ids
                or track_id in self.playlist_track_ids):
            return False
        self.playlist_track_ids.add(track_id)
        self.unique_track_count += 1
        return True


class ContributionMap:
    """Ordered mapping of track id -> usernames credited for that track"""

    def __init__(self):
        self._contributors: Dict[str, List[str]] = {}

    def __contains__(self, track_id: str) -> bool:
        return track_id in self._contributors

    def __len__(self) -> int:
        return len(self._contributors)

    def __iter__(self) -> Iterator[str]:
        return iter(self._contributors)

    def __getitem__(self, track_id: str) -> List[str]:
        return list(self._contributors[track_id])

    def add_track(self, track_id: str, username: str) -> None:
        """Add a new track credited to a single contributor"""
        if track_id in self._contributors:
            raise KeyError(f"Track {track_id} is already in the contribution map")
        self._contributors[track_id] = [username]

    def credit(self, track_id: str, username: str) -> bool:
        """Credit an additional contributor on an existing track; False if already credited"""
        contributors = self._contributors[track_id]
        if username in contributors:
            return False
        contributors.append(username)
        return True

    def track_ids(self) -> List[str]:
        return list(self._contributors)

    def items(self) -> List[Tuple[str, List[str]]]:
        return [(track_id, list(names)) for track_id, names in self._contributors.items()]

    def count_for(self, username: str) -> int:
        """Number of tracks crediting the given contributor"""
        return sum(1 for names in self._contributors.values() if username in names)

    def to_dict(self) -> Dict[str, List[str]]:
        return dict(self.items())
