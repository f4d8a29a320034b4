from .interface import (
    AnswerRepository,
    FieldRepository,
    LedgerRepository,
    OutcomeRepository,
    ParticipantRepository,
)

__all__ = [
    "AnswerRepository",
    "FieldRepository",
    "LedgerRepository",
    "OutcomeRepository",
    "ParticipantRepository",
]
