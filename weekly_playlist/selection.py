"""Fair selection of contributed tracks for the weekly playlist"""
import logging
import random
from typing import Dict, Iterable, List, Optional

from weekly_playlist.models.contribution import ContributionMap, TrackIdBundle

logger = logging.getLogger(__name__)


def calculate_quota(unique_track_count: int) -> int:
    """
    Playlist slots for a contributor: floor(log2(n)), but at least 1.

    Quota grows logarithmically so prolific sharers cannot dominate:
    - 1-3 tracks = 1 slot
    - 4-7 tracks = 2 slots
    - 8-15 tracks = 3 slots
    - 16-31 tracks = 4 slots
    """
    if unique_track_count <= 0:
        return 0
    return max(1, unique_track_count.bit_length() - 1)


def shuffled(track_ids: Iterable[str], rng: random.Random) -> List[str]:
    """New uniformly random permutation of track_ids; the input is left untouched"""
    permutation = sorted(track_ids)
    rng.shuffle(permutation)
    return permutation


class ContributionSelector:
    """Picks which of each contributor's tracks make it onto the playlist"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def build_playlist(self, user_track_ids: Dict[str, TrackIdBundle],
                       user_id_to_username: Dict[str, str]) -> ContributionMap:
        """
        Fill a ContributionMap contributor by contributor.

        Each contributor claims up to their quota of tracks nobody else has
        claimed yet, trying direct track links first, then playlist tracks,
        then album tracks. When those run out, the remaining quota is spent
        crediting them on already-claimed tracks they also shared.
        """
        contributions = ContributionMap()
        for user_id, bundle in user_track_ids.items():
            if bundle.unique_track_count < 1:
                continue  # skip users with no tracks
            username = user_id_to_username.get(user_id, user_id)
            self._add_user_tracks(contributions, username, bundle)
        logger.info(f"Selected {len(contributions)} tracks from {len(user_track_ids)} users")
        return contributions

    def _add_user_tracks(self, contributions: ContributionMap, username: str, bundle: TrackIdBundle) -> None:
        quota = calculate_quota(bundle.unique_track_count)
        collisions: List[str] = []

        for track_ids in (bundle.single_track_ids, bundle.playlist_track_ids, bundle.album_track_ids):
            for track_id in shuffled(track_ids, self.rng):
                if quota == 0:
                    return
                if track_id in contributions:
                    collisions.append(track_id)
                else:
                    contributions.add_track(track_id, username)
                    quota -= 1

        for track_id in collisions:
            if quota == 0:
                return
            if contributions.credit(track_id, username):
                quota -= 1

        if quota > 0:
            logger.info(f"{username} could not fill {quota} of their playlist slots")
