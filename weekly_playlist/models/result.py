"""PlaylistRunResult model definition"""
from datetime import datetime
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

RUN_STATUS_PUBLISHED = "published"
RUN_STATUS_NO_CONTRIBUTIONS = "no_contributions"

class PlaylistRunResult(BaseModel):
    """
    Outcome of one weekly run.

    Attributes:
        status: "published" when the playlist was rewritten and announced,
            "no_contributions" when nobody shared a usable track
        week_start: Inclusive start of the scanned window
        week_end: Exclusive end of the scanned window
        message_count: Messages retrieved inside the window
        contributor_count: Contributors with at least one resolvable track
        playlist_id / playlist_url: The destination playlist, when written
        contributions: Track id -> credited usernames
        announcement_message_id: The pinned announcement, when published
    """
    status: Literal["published", "no_contributions"]
    week_start: datetime
    week_end: datetime
    message_count: int = 0
    contributor_count: int = 0
    playlist_id: Optional[str] = None
    playlist_url: Optional[str] = None
    contributions: Dict[str, List[str]] = Field(default_factory=dict)
    announcement_message_id: Optional[str] = None
