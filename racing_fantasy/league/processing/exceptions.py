"""
Exceptions raised by the scoring and Chase engine.

Services raise these; flows catch FantasyEngineError, record it and
return a summary; management commands turn them into CommandError.

`retryable` tells the pipeline whether running the same operation again
later can succeed without anyone changing data.
"""


class FantasyEngineError(Exception):
    """Base class for engine errors"""
    retryable = False


class ResultsNotAvailableError(FantasyEngineError):
    """Race results are not published yet (or the feed is unreachable)"""
    retryable = True


class LeagueConfigurationError(FantasyEngineError):
    """League setup is missing something the engine needs (members, rounds)"""
    pass


class StateViolationError(FantasyEngineError):
    """Operation not allowed in the current state"""
    pass


class ScoringInProgressError(StateViolationError):
    """Another run is already scoring this race for this league"""
    retryable = True


class ChaseStateError(StateViolationError):
    """Chase transition requested out of order"""
    pass


class PickLockedError(FantasyEngineError):
    """Picks are locked once the race has started"""
    pass


class PickNotAllowedError(FantasyEngineError):
    """Driver can no longer be picked (usage cap reached)"""
    pass
