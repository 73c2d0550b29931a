"""
Identity Allocator

Issues track ids of the form "<prefix><n>" with n strictly increasing, and
cycles through the colour palette for new tracks. Both counters are
re-seeded from the loaded track set, never merged with previous state.
"""

import re
from typing import Iterable

from pydantic import BaseModel, ConfigDict

from config.settings import settings
from motfixer.utils.schemas import Track

_LEADING_DIGITS = re.compile(r"\d+")


def track_number(track_id: str, prefix: str | None = None) -> int:
    """Numeric suffix of a track id, 0 when it has none ("T12" -> 12)."""
    prefix = prefix or settings.track_id_prefix
    match = _LEADING_DIGITS.match(track_id.replace(prefix, "", 1))
    return int(match.group()) if match else 0


class IdentityAllocator(BaseModel):
    """
    Immutable allocator. Each ``next_*`` call returns the issued value
    together with the advanced allocator, so edit operations stay pure.
    """
    model_config = ConfigDict(frozen=True)

    palette: tuple[str, ...]
    prefix: str = "T"
    next_number: int = 1
    color_index: int = 0

    @classmethod
    def seed(
        cls,
        tracks: Iterable[Track],
        palette: Iterable[str] | None = None,
        prefix: str | None = None,
    ) -> "IdentityAllocator":
        """Seed counters from a track set: max(suffix) + 1 and len(tracks) mod palette size."""
        palette = tuple(palette or settings.track_colors)
        prefix = prefix or settings.track_id_prefix
        tracks = list(tracks)
        highest = max((track_number(t.id, prefix) for t in tracks), default=0)
        return cls(
            palette=palette,
            prefix=prefix,
            next_number=highest + 1,
            color_index=len(tracks) % len(palette),
        )

    def next_track_id(self) -> tuple[str, "IdentityAllocator"]:
        track_id = f"{self.prefix}{self.next_number}"
        return track_id, self.model_copy(update={"next_number": self.next_number + 1})

    def next_color(self) -> tuple[str, "IdentityAllocator"]:
        color = self.palette[self.color_index % len(self.palette)]
        advanced = (self.color_index + 1) % len(self.palette)
        return color, self.model_copy(update={"color_index": advanced})
