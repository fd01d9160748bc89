"""Location selection for a single line item.

``rank_locations`` is a pure function of the candidate locations (with their
stock) and the requested quantity, so the policy can be tested without
touching the ledger:

1. the preferred location, when it alone covers the full quantity
2. otherwise active locations by priority (highest first), keeping only
   those whose available stock covers the full quantity

Line items are never split across locations.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Candidate:
    location_id: str
    available: int
    priority: int = 0
    name: str = ""
    is_active: bool = True


def rank_locations(candidates, quantity, preferred_location_id=None) -> list[str]:
    """Return location ids to try, in order. Empty when nothing can satisfy ``quantity``."""
    eligible = [c for c in candidates if c.is_active and c.available >= quantity]
    ranked = sorted(eligible, key=lambda c: (-c.priority, c.name, c.location_id))

    if preferred_location_id is not None:
        preferred = next((c for c in ranked if c.location_id == str(preferred_location_id)), None)
        if preferred is not None:
            ranked.remove(preferred)
            ranked.insert(0, preferred)

    return [c.location_id for c in ranked]
