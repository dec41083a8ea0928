"""
Engine Errors
Error taxonomy for the schedule and adherence engine
"""


class EngineError(Exception):
    """Base class for all engine errors"""
    pass


class InvalidInputError(EngineError, ValueError):
    """Raised when an operation receives input it must reject"""
    pass


class InconsistentRecordError(EngineError):
    """Raised when a record read from outside the engine is corrupted"""

    def __init__(self, record_id, problem: str):
        self.record_id = record_id
        self.problem = problem
        super().__init__(f"Adherence record {record_id} is inconsistent: {problem}")


class RecordNotFoundError(EngineError, LookupError):
    """Raised when a lookup by id finds nothing"""

    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")
