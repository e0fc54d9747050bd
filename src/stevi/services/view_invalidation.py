"""
View invalidation.

Marks rendered paths stale after a mutation. The portal front end polls
`revalidated_paths` on every ActionResult, so "invalidating" here means
collecting the distinct paths for the response, logging and counting them.
"""
from typing import Iterable, List
import logging

from stevi.metrics import view_invalidations_total

logger = logging.getLogger(__name__)


class ViewInvalidator:
    def __init__(self):
        self.paths: List[str] = []

    def invalidate(self, path: str) -> None:
        if path in self.paths:
            return
        self.paths.append(path)
        view_invalidations_total.inc()
        logger.debug(f"Invalidated view {path}")

    def invalidate_all(self, paths: Iterable[str]) -> List[str]:
        for path in paths:
            self.invalidate(path)
        return list(self.paths)
