"""
Custom exceptions for the trip wizard.
"""


class TripWizardError(Exception):
    """Base exception for wizard errors"""
    pass


class IntelligenceError(TripWizardError):
    """Raised when the AI service cannot produce a usable result"""
    pass


class AnalysisError(IntelligenceError):
    """Route analysis failed"""
    pass


class PlanGenerationError(IntelligenceError):
    """Plan generation failed"""
    pass


class AuthenticationError(TripWizardError):
    """Bad credentials or duplicate registration"""
    pass


class PermissionDeniedError(TripWizardError):
    """The session's user may not perform this action"""
    pass


class InvalidTransitionError(TripWizardError):
    """The current step does not accept this intent"""

    def __init__(self, intent: str, step):
        self.intent = intent
        self.step = step
        super().__init__(f"'{intent}' is not allowed in step {getattr(step, 'value', step)}")


class InvalidSelectionError(TripWizardError):
    """A choice outside of what the current step offers"""
    pass
