import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MAX_PARTICLES = 50


@dataclass(frozen=True)
class ConfettiBurst:
    particle_count: float
    origin_x: float
    origin_y: float
    start_velocity: int = 30
    spread: int = 360
    ticks: int = 60
    z_index: int = 9999

    def to_dict(self) -> dict:
        return {
            "particle_count": self.particle_count,
            "origin": {"x": self.origin_x, "y": self.origin_y},
            "start_velocity": self.start_velocity,
            "spread": self.spread,
            "ticks": self.ticks,
            "z_index": self.z_index,
        }


class Celebration:
    """Confetti for one shown notification.

    Fires a left and a right burst every `interval` seconds, thinning out
    linearly until `duration` has elapsed. Runs as its own task so it can be
    cancelled independently of the settling delay.
    """

    def __init__(self, sink: Callable[[ConfettiBurst], None], duration: float = 3.0,
                 interval: float = 0.25, rng: Optional[random.Random] = None):
        self.sink = sink
        self.duration = duration
        self.interval = interval
        self.rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        return self._task

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def bursts_at(self, time_left: float):
        """The pair of bursts fired when `time_left` seconds remain."""
        particle_count = MAX_PARTICLES * (time_left / self.duration)
        return (
            ConfettiBurst(particle_count, self.rng.uniform(0.1, 0.3), self.rng.random() - 0.2),
            ConfettiBurst(particle_count, self.rng.uniform(0.7, 0.9), self.rng.random() - 0.2),
        )

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        end = loop.time() + self.duration
        while True:
            await asyncio.sleep(self.interval)
            time_left = end - loop.time()
            if time_left <= 0:
                return
            for burst in self.bursts_at(time_left):
                try:
                    self.sink(burst)
                except Exception as e:
                    logger.warning(f"Confetti burst dropped: {e}")
