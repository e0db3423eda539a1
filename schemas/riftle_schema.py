from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CategoricalFeedback = Literal["correct", "wrong"]
NumericFeedback = Literal["exact", "high", "low"]


class CamelModel(BaseModel):
    """Snake case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CardAttributes(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    rarity: Optional[str] = None
    collector_number: str = ""
    type: Optional[str] = None
    faction: Optional[str] = None
    energy: int = 0
    might: int = 0
    power: int = 0


class AttributeFeedback(CamelModel):
    model_config = ConfigDict(extra="forbid")

    type: CategoricalFeedback
    faction: CategoricalFeedback
    rarity: CategoricalFeedback
    energy: NumericFeedback
    might: NumericFeedback
    power: NumericFeedback


class GuessRecord(CamelModel):
    attempt_number: int
    card_id: str
    card_name: str
    is_correct: bool
    attributes: CardAttributes
    feedback: AttributeFeedback


class CardMetadata(CamelModel):
    set_code: Optional[str] = None
    rarity: Optional[str] = None


class CardAnswer(CamelModel):
    id: str
    name: str
    set_code: Optional[str] = None
    collector_number: Optional[str] = None
    rarity: Optional[str] = None
    image_url: Optional[str] = None
    attributes: CardAttributes


class PuzzleView(CamelModel):
    puzzle_id: int
    puzzle_date: date
    is_solved: bool = False
    is_failed: bool = False
    game_over: bool = False
    guesses_used: int = 0
    guess_history: list[GuessRecord] = []
    max_guesses: int
    card_metadata: CardMetadata
    # Only set once the player's state is terminal
    answer: Optional[CardAnswer] = None


class GuessRequest(CamelModel):
    puzzle_id: int
    guessed_card_id: str = Field(min_length=1, max_length=128)
    # Attempt the client believes it is making; a replay of a recorded attempt is not counted again
    attempt_number: Optional[int] = Field(default=None, ge=1)
    time_in_seconds: Optional[int] = Field(default=None, ge=0)


class GuessResult(PuzzleView):
    correct: bool
    feedback: AttributeFeedback
    guessed_attributes: CardAttributes
    score: int = 0
    persisted: bool = True


class CardSummary(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    set_code: Optional[str] = None
    collector_number: Optional[str] = None
    rarity: Optional[str] = None
    image_url: Optional[str] = None


class PlayCountPoint(CamelModel):
    day: int
    date: date
    plays: int


class PlaySeries(CamelModel):
    launch_date: date
    points: list[PlayCountPoint] = []


class RecentGame(CamelModel):
    date: date
    guesses_used: int
    is_solved: bool
    time_in_seconds: Optional[int] = None


class PlayerStats(CamelModel):
    total_games: int = 0
    wins: int = 0
    failed_games: int = 0
    win_percent: float = 0
    solved_distribution: dict[str, int] = {}
    current_streak: int = 0
    max_streak: int = 0
    average_guesses: float = 0
    total_score: int = 0
    last_played_date: Optional[date] = None
    recent_games: list[RecentGame] = []


class ScheduledPuzzle(CamelModel):
    puzzle_id: int
    puzzle_date: date
    card_id: str
    card_name: str


class ScheduleResponse(CamelModel):
    success: bool = True
    puzzles: list[ScheduledPuzzle] = []
