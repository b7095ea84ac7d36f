"""
Training Missions

A mission is a condition on the published snapshot that must hold for a
given time. Missions run in order; progress accrues while the condition
holds and decays at half rate when it is lost.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .state import SimulationSnapshot


logger = logging.getLogger(__name__)

PROGRESS_DECAY = 0.5


@dataclass
class Mission:
    id: str
    name: str
    description: str
    check: Callable[[SimulationSnapshot], bool]
    duration: float
    progress: float = 0.0
    completed: bool = False

    @property
    def fraction(self) -> float:
        """Progress in [0, 1]."""
        if self.duration <= 0:
            return 1.0
        return min(1.0, self.progress / self.duration)


def default_missions() -> List[Mission]:
    return [
        Mission(
            id='hover_test',
            name='Hover Check',
            description='Maintain 5m altitude for 5 seconds',
            check=lambda s: abs(s.body.position[1] - 5.0) < 1.0,
            duration=5.0
        ),
        Mission(
            id='speed_test',
            name='Speed Run',
            description='Reach 10 m/s',
            check=lambda s: s.body.speed > 10.0,
            duration=1.0
        ),
        Mission(
            id='endurance',
            name='Endurance',
            description='Fly for 30 seconds without crashing',
            check=lambda s: s.body.position[1] > 0.5 and not s.collided,
            duration=30.0
        ),
    ]


class MissionManager:
    """Runs a list of missions in sequence."""

    def __init__(self, missions: Optional[List[Mission]] = None):
        self.missions = missions if missions is not None else default_missions()
        self.current_index = 0

    @property
    def current(self) -> Optional[Mission]:
        if self.current_index >= len(self.missions):
            return None
        return self.missions[self.current_index]

    @property
    def completed(self) -> List[Mission]:
        return [m for m in self.missions if m.completed]

    @property
    def all_complete(self) -> bool:
        return self.current_index >= len(self.missions)

    def update(self, snapshot: SimulationSnapshot, dt: float) -> Optional[Mission]:
        """
        Advance the active mission.

        Returns:
            The mission completed on this update, if any
        """
        mission = self.current
        if mission is None:
            return None

        if mission.check(snapshot):
            mission.progress += dt
        else:
            mission.progress = max(0.0, mission.progress - dt * PROGRESS_DECAY)

        if mission.progress >= mission.duration:
            mission.completed = True
            self.current_index += 1
            logger.info("Mission complete: %s", mission.name)
            return mission

        return None

    def status(self) -> str:
        mission = self.current
        if mission is None:
            return "All missions complete"
        return f"MISSION: {mission.name} - {mission.description} ({mission.fraction * 100:.0f}%)"

    def reset(self):
        self.current_index = 0
        for mission in self.missions:
            mission.progress = 0.0
            mission.completed = False
