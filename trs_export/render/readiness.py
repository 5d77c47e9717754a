"""Wait barrier that holds rasterisation until document images settle."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import time

from loguru import logger

from trs_export.config import GateTimings

from .backend import ImageState, RenderHost


@dc.dataclass(slots=True, frozen=True)
class GateResult:
    """Outcome of one pass through the readiness gate."""

    total: int
    settled: int
    timed_out: bool = False

    @property
    def all_settled(self) -> bool:
        return self.settled >= self.total


class ImageReadinessGate:
    """Block until every image in a render host has loaded or failed.

    Embedded (data URI) images only need a short settle delay. Remote images
    are reloaded with ``load``/``error`` listeners and polled until each has
    fired one of them. The whole wait is bounded by ``timings.timeout``; on
    timeout the gate logs how many images settled and lets the export
    continue.
    """

    def __init__(
        self,
        timings: GateTimings | None = None,
        *,
        sleep: cabc.Callable[[float], None] = time.sleep,
        clock: cabc.Callable[[], float] = time.monotonic,
    ) -> None:
        self.timings = timings or GateTimings()
        self._sleep = sleep
        self._clock = clock

    def wait(self, host: RenderHost) -> GateResult:
        """Return once ``host`` images have settled or the timeout elapsed.

        Parameters
        ----------
        host : RenderHost
            Render host holding the laid-out document.

        Returns
        -------
        GateResult
            Counts of total and settled images and whether the timeout hit.
        """
        images = host.images()
        if not images:
            return GateResult(total=0, settled=0)

        deadline = self._clock() + self.timings.timeout
        for image in images:
            if not image.is_data_uri:
                host.reload_image(image.index)
        if any(image.is_data_uri for image in images):
            self._sleep(self.timings.data_uri_settle)

        while True:
            current = host.images()
            total = len(current)
            settled = _count_settled(current)
            if settled >= total:
                break
            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.warning(
                    "Image loading timed out after {}s: {}/{} images settled",
                    self.timings.timeout,
                    settled,
                    total,
                )
                return GateResult(total=total, settled=settled, timed_out=True)
            self._sleep(min(self.timings.poll_interval, remaining))

        logger.debug("All {} images settled", total)
        self._sleep(self.timings.post_settle)
        return GateResult(total=total, settled=settled)


def _count_settled(images: cabc.Iterable[ImageState]) -> int:
    return sum(1 for image in images if image.is_data_uri or image.settled)


__all__ = ["GateResult", "ImageReadinessGate"]
