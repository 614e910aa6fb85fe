"""
Badge catalogue and award rules.
"""

from typing import Callable, Dict, List, Tuple

from skillsync.progress.models import Badge, UserStatistics

FINANCE_EXPERT_THRESHOLD = 50

# badge id -> (title, description, earned?)
BADGE_RULES: Dict[str, Tuple[str, str, Callable[[UserStatistics], bool]]] = {
    "first_question": (
        "First Question!",
        "You answered your first question!",
        lambda s: s.total_questions_answered >= 1,
    ),
    "streak_5": (
        "5 Streak!",
        "Amazing! 5 questions in a row!",
        lambda s: s.current_streak >= 5,
    ),
    "streak_10": (
        "10 Streak!",
        "Incredible! 10 questions streak!",
        lambda s: s.current_streak >= 10,
    ),
    "streak_20": (
        "20 Streak!",
        "Legendary! 20 questions streak!",
        lambda s: s.current_streak >= 20,
    ),
    "first_hint": (
        "Hint Master!",
        "You used your first hint!",
        lambda s: s.hints_used >= 1,
    ),
    "solution_master": (
        "Solution Seeker!",
        "You viewed your first solution!",
        lambda s: s.solutions_viewed >= 1,
    ),
    "marked_questions": (
        "Bookmarker!",
        "You saved your first question!",
        lambda s: s.marked_questions >= 1,
    ),
    "finance_expert": (
        "Finance Expert!",
        f"You completed {FINANCE_EXPERT_THRESHOLD} Finance questions!",
        lambda s: s.major_counts.get("finance", 0) >= FINANCE_EXPERT_THRESHOLD,
    ),
}


def award_badges(stats: UserStatistics) -> List[str]:
    """Append newly earned badges to stats.badges and return their ids. Badges are never removed."""
    new_badges = [
        badge_id
        for badge_id, (_, _, earned) in BADGE_RULES.items()
        if badge_id not in stats.badges and earned(stats)
    ]
    stats.badges.extend(new_badges)
    return new_badges


def describe(badge_id: str) -> Badge:
    title, description, _ = BADGE_RULES[badge_id]
    return Badge(id=badge_id, title=title, description=description)
