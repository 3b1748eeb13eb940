"""
Sustainability Decision-Support — Error Taxonomy
ConfigurationError and NumericDegeneracyError are fatal at construction.
InfeasibleConstraintsError is fatal per call.
InsufficientDataError is recovered by the facade into report warnings.
"""


class EngineError(Exception):
    """Base class for every error the engines raise deliberately."""


class ConfigurationError(EngineError):
    pass


class InfeasibleConstraintsError(EngineError):
    pass


class InsufficientDataError(EngineError):
    def __init__(self, message, missing=(), components=()):
        super().__init__(message)
        self.missing = list(missing)
        self.components = list(components)


class NumericDegeneracyError(EngineError):
    pass
