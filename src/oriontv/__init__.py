"""OrionTV session sync - keeps the app's login state in step with the server session."""

__version__ = "1.0.0"
