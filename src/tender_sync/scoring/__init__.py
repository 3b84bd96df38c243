"""Rule-based relevance scoring and subscriber matching."""

from tender_sync.scoring.engine import MatchingEngine
from tender_sync.scoring.scorer import MAX_SCORE, ScoreResult, score, score_record

__all__ = ["MAX_SCORE", "MatchingEngine", "ScoreResult", "score", "score_record"]
