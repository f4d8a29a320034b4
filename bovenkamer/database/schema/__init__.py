from .base import Base, metadata
from .forms import FormDefinition, FormField, FormResponse, FormSection
from .ledger import PointsLedger
from .outcomes import PredictionOutcome
from .participants import Participant

__all__ = [
    "Base",
    "metadata",
    "FormDefinition",
    "FormSection",
    "FormField",
    "FormResponse",
    "Participant",
    "PredictionOutcome",
    "PointsLedger",
]
