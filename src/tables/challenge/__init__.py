from .gate import AccessDecision, authorize, resolve_caller_uid
from .reader import read_window
from .resolver import ResolvedQuery, resolve, resolve_offset, resolve_paths
from .table import CHALLENGE_COLUMNS, ChallengeTable

__all__ = [
    'AccessDecision',
    'CHALLENGE_COLUMNS',
    'ChallengeTable',
    'ResolvedQuery',
    'authorize',
    'read_window',
    'resolve',
    'resolve_caller_uid',
    'resolve_offset',
    'resolve_paths',
]
