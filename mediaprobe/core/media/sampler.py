# mediaprobe/core/media/sampler.py
from __future__ import annotations

import logging
import random

from mediaprobe.schemas.models import RowSet, SampledEntry

from .extractor import extract_entry

logger = logging.getLogger(__name__)


class Sampler:
    """Pick one row uniformly at random from a materialized RowSet and extract its fields."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def pick_index(self, count: int) -> int:
        return self._rng.randrange(count)

    def sample(self, rows: RowSet) -> SampledEntry | None:
        if rows.count <= 0:
            return None
        index = self.pick_index(rows.count)
        logger.debug("Sampling row %d of %d", index, rows.count)
        return extract_entry(rows.row_at(index), rows.columns)


__all__ = ["Sampler"]
