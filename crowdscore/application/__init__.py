from .controller import AppState, Controller

__all__ = ["AppState", "Controller"]
