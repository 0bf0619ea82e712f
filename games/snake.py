import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Optional

from core.config import GameConfig

logger = logging.getLogger(__name__)

GAME_NAME = "snake"


@dataclass(frozen=True)
class GameSession:
    """One simulated game: the score reached and how long it took (seconds)."""

    score: int
    duration: int


class SnakeGameSimulator:
    """
    Stand-in for real snake gameplay.

    Scores and play times are drawn uniformly from the inclusive ranges in
    :class:`GameConfig`; :meth:`play` waits for the drawn play time before
    returning the score. No network or chain calls are made.
    """

    def __init__(self, config: GameConfig, rng: Optional[random.Random] = None):
        self.config = config
        self.rng = rng or random.Random()

    def draw(self) -> GameSession:
        score = self.rng.randint(self.config.min_score, self.config.max_score)
        duration = self.rng.randint(self.config.min_play_time, self.config.max_play_time)
        return GameSession(score=score, duration=duration)

    async def play(self) -> int:
        session = self.draw()
        logger.info(
            f"Simulating Snake game for {session.duration} seconds, "
            f"aiming for score {session.score}"
        )
        await asyncio.sleep(session.duration)
        return session.score
