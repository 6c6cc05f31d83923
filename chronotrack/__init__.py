"""ChronoTrack: stopwatch engine with laps, goals and session history."""

__version__ = "0.3.0"
