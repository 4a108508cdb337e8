# backend/app/exceptions.py
class SwiftNotesError(Exception):
    """Base exception for the SwiftNotes backend."""
    pass

class RuleConfigError(SwiftNotesError):
    """Raised when the form rule tables cannot be loaded or compiled."""
    pass

class TaskFinalizationError(SwiftNotesError):
    """Raised when a task draft without goal text reaches the finalizer."""
    pass
