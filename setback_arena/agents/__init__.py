from .base import SeatAgent
from .heuristic_agent import HeuristicAgent
from .random_agent import RandomAgent

__all__ = [
    "SeatAgent",
    "HeuristicAgent",
    "RandomAgent",
]
