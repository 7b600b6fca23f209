# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from clubbracket.models.club_admin import ClubAdmin  # noqa: F401
from clubbracket.models.generation_lock import BracketGenerationLock  # noqa: F401
from clubbracket.models.match import TournamentMatch  # noqa: F401
from clubbracket.models.pool import TournamentPool  # noqa: F401
from clubbracket.models.registration import Registration  # noqa: F401
from clubbracket.models.tournament import Tournament  # noqa: F401
