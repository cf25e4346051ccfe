"""world package — reference world model (robot, scene, collision)."""

from .models import Obstacle, RobotModel, RobotState
from .scene import MODEL_FRAME, Scene
from .collision import CollisionChecker
from .planning_world import PlanningWorld, load_world

__all__ = [
    "Obstacle",
    "RobotModel",
    "RobotState",
    "MODEL_FRAME",
    "Scene",
    "CollisionChecker",
    "PlanningWorld",
    "load_world",
]
