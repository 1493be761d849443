from .editor_session import EditorSession, SessionOutcome

__all__ = ["EditorSession", "SessionOutcome"]
