from .runtime import LineupSession, open_session

__all__ = ["LineupSession", "open_session"]
