"""repcoach: keypoint stabilization and repetition counting.

This package turns per-frame pose estimator output into stable skeleton
coordinates, a debounced rep count for the chosen exercise, and heuristic
form feedback.
"""

__all__ = [
    "cli",
    "config",
    "pipeline",
]

__version__ = "0.1.0"
