from clubbracket.models.club_admin import ClubAdmin
from clubbracket.models.generation_lock import BracketGenerationLock
from clubbracket.models.match import KNOCKOUT_ROUND_ORDER, MatchStatus, RoundType, TournamentMatch
from clubbracket.models.pool import TournamentPool
from clubbracket.models.registration import Registration
from clubbracket.models.tournament import POOLS_BASED_TYPES, Tournament, TournamentType

__all__ = [
    "Tournament",
    "TournamentType",
    "POOLS_BASED_TYPES",
    "TournamentPool",
    "Registration",
    "TournamentMatch",
    "RoundType",
    "MatchStatus",
    "KNOCKOUT_ROUND_ORDER",
    "ClubAdmin",
    "BracketGenerationLock",
]
