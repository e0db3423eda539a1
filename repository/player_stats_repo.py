from datetime import date

from sqlalchemy.orm import Session

from db import models
from repository import guess_state_repo, puzzle_calendar
from schemas.riftle_schema import PlayerStats, RecentGame
from utils.errors import store_errors
from utils.feedback import calculate_game_score

RECENT_GAMES_LIMIT = 10


def player_stats(db: Session, player_id: str, today: date, max_guesses: int) -> PlayerStats:
    """
    Statistics derived from the player's guess states.

    Streaks count consecutive puzzles (by day index) the player solved. A
    failed or skipped puzzle ends a streak; the current puzzle only counts once
    it is finished, so an unfinished game today does not break it.
    """
    puzzles = puzzle_calendar.activated_puzzles(db, today)
    with store_errors(db, "player_stats"):
        rows = (
            db.query(models.GuessState, models.DailyPuzzle.puzzle_date)
            .join(models.DailyPuzzle, models.DailyPuzzle.id == models.GuessState.puzzle_id)
            .filter(
                models.GuessState.player_id == player_id,
                models.GuessState.guesses_used >= 1,
                models.DailyPuzzle.puzzle_date <= today,
            )
            .order_by(models.DailyPuzzle.puzzle_date.asc())
            .all()
        )

    finished = {
        state.puzzle_id: (state, puzzle_date)
        for state, puzzle_date in rows
        if guess_state_repo.is_terminal(state, max_guesses)
    }
    if not rows:
        return PlayerStats()

    wins = [state for state, _ in finished.values() if state.solved]
    distribution: dict[str, int] = {}
    for state in wins:
        key = str(state.guesses_used)
        distribution[key] = distribution.get(key, 0) + 1

    streak, max_streak = 0, 0
    for index, puzzle in enumerate(puzzles):
        entry = finished.get(puzzle.id)
        if entry is None and index == len(puzzles) - 1:
            break
        if entry is not None and entry[0].solved:
            streak += 1
            max_streak = max(max_streak, streak)
        else:
            streak = 0

    total_games = len(finished)
    # Recent games include the one in progress, if any
    recent = sorted(rows, key=lambda item: item[1], reverse=True)[:RECENT_GAMES_LIMIT]

    return PlayerStats(
        total_games=total_games,
        wins=len(wins),
        failed_games=total_games - len(wins),
        win_percent=round(len(wins) / total_games * 100, 1) if total_games else 0,
        solved_distribution=distribution,
        current_streak=streak,
        max_streak=max_streak,
        average_guesses=round(sum(s.guesses_used for s in wins) / len(wins), 2) if wins else 0,
        total_score=sum(calculate_game_score(s.guesses_used, max_guesses) for s in wins),
        last_played_date=rows[-1][1],
        recent_games=[
            RecentGame(
                date=puzzle_date,
                guesses_used=state.guesses_used,
                is_solved=state.solved,
                time_in_seconds=state.time_taken_seconds,
            )
            for state, puzzle_date in recent
        ],
    )
