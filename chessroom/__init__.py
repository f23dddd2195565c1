"""Two-player timed chess rooms with spectators and a live lobby."""

__version__ = "0.1.0"
