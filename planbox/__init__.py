"""planbox: timeline scheduling core for a personal task/time planner."""

__version__ = "0.1.0"
