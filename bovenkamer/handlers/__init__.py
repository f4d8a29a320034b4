from .leaderboard import LeaderboardHandler
from .outcomes import OutcomeRecorder
from .points import PointsAdjuster
from .reconcile import LedgerReconciler

__all__ = ["LeaderboardHandler", "OutcomeRecorder", "PointsAdjuster", "LedgerReconciler"]
