"""
Prompt builder for the solution, hint and check-answer operations.
Each major has its own tutor persona and hint ladder.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from skillsync.shared.config import settings

PLAIN_TEXT_INSTRUCTION = (
    "IMPORTANT: Provide clean, plain text responses without markdown formatting "
    "(no **, ##, or other markdown symbols)."
)

HINT_LEVEL_COUNT = 5


@dataclass(frozen=True)
class MajorProfile:
    """How the tutor presents itself for one major."""
    persona: str
    audience: str
    solution_points: List[str]
    hint_levels: List[str]  # "{subject}" is filled in


MAJOR_PROFILES: Dict[str, MajorProfile] = {
    "finance": MajorProfile(
        persona="an expert finance educator",
        audience="university students",
        solution_points=[
            "A clear, detailed answer",
            "Step-by-step explanation if applicable",
            "Key concepts and formulas used",
            "Real-world examples or applications where relevant",
            "Common mistakes to avoid",
        ],
        hint_levels=[
            "Provide a gentle nudge or key concept to consider",
            "Give a more specific hint about the approach or formula",
            "Offer a step-by-step breakdown of the solution approach",
            "Provide a detailed explanation of the key concepts involved",
            "Give the complete solution with full explanation",
        ],
    ),
    "law": MajorProfile(
        persona="an expert law tutor",
        audience="a law student",
        solution_points=[
            "A clear and detailed answer",
            "Key legal principles involved",
            "Relevant case law or statutes (if applicable)",
            "Step-by-step reasoning",
            "Important considerations",
        ],
        hint_levels=[
            "Point to the key legal principles in {subject}",
            "Identify what area of law this question relates to",
            "Outline the main elements that need to be addressed",
            "Direct the student to relevant case law or statutory provisions",
            "Walk through the practical application of the legal principles in full",
        ],
    ),
    "biomed": MajorProfile(
        persona="an expert biomedical sciences tutor",
        audience="a biomedical sciences student",
        solution_points=[
            "A clear and detailed answer",
            "Key scientific principles involved",
            "Relevant biological processes or mechanisms",
            "Step-by-step reasoning",
            "Important considerations for biomedical practice",
        ],
        hint_levels=[
            "Point to the key biomedical principles in {subject}",
            "Identify which biological processes this question relates to",
            "Outline the main scientific concepts that need to be addressed",
            "Direct the student to the relevant physiological or pathological mechanisms",
            "Walk through the practical application in biomedical practice in full",
        ],
    ),
}

DEFAULT_PROFILE = MajorProfile(
    persona="an expert tutor",
    audience="a university student",
    solution_points=MAJOR_PROFILES["finance"].solution_points,
    hint_levels=MAJOR_PROFILES["finance"].hint_levels,
)


def hint_level(hints_used: int) -> int:
    """0-based hint level for the number of hints already shown."""
    return min(max(hints_used, 0), HINT_LEVEL_COUNT - 1)


class PromptBuilder:
    """Build oracle prompts from question context."""

    def __init__(self, max_input_chars: Optional[int] = None):
        self.max_input_chars = max_input_chars or settings.llm.max_input_chars

    def profile(self, major: Optional[str]) -> MajorProfile:
        return MAJOR_PROFILES.get((major or "").lower(), DEFAULT_PROFILE)

    def _truncate(self, text: str) -> str:
        """Keep head and tail of over-long input."""
        text = text.strip()
        if len(text) <= self.max_input_chars:
            return text
        marker = "\n\n[... content truncated ...]\n\n"
        head_chars = self.max_input_chars // 2
        tail_chars = max(0, self.max_input_chars - head_chars - len(marker))
        return text[:head_chars] + marker + (text[-tail_chars:] if tail_chars else "")

    def solution_prompt(self, question: str, subject: str, difficulty: str, major: Optional[str] = None) -> str:
        profile = self.profile(major)
        points = "\n".join(f"{i}. {point}" for i, point in enumerate(profile.solution_points, start=1))
        return (
            f"You are {profile.persona}. Provide a comprehensive, step-by-step solution "
            f"for this {difficulty} level question in {subject}:\n\n"
            f"Question: {self._truncate(question)}\n\n"
            f"Please provide:\n{points}\n\n"
            f"Format your response in a clear, educational manner suitable for {profile.audience}.\n\n"
            f"{PLAIN_TEXT_INSTRUCTION}"
        )

    def hint_prompt(
        self,
        question: str,
        subject: str,
        difficulty: str,
        hints_used: int,
        major: Optional[str] = None,
    ) -> str:
        profile = self.profile(major)
        level = hint_level(hints_used)
        guidance = profile.hint_levels[level].format(subject=subject)
        return (
            f"You are {profile.persona}. Provide a helpful hint for this {difficulty} "
            f"level question in {subject}:\n\n"
            f"Question: {self._truncate(question)}\n\n"
            f"Hint level: {level + 1} of {HINT_LEVEL_COUNT} ({guidance})\n\n"
            "Provide a hint that helps the student think about the problem without giving "
            "away more than this hint level allows. Make it educational and encouraging.\n\n"
            f"{PLAIN_TEXT_INSTRUCTION}"
        )

    def check_answer_prompt(
        self,
        question: str,
        user_answer: str,
        subject: str,
        difficulty: str,
        major: Optional[str] = None,
    ) -> str:
        profile = self.profile(major)
        return (
            f"You are {profile.persona} specialising in {subject}. Please evaluate the student's answer "
            f"to this {difficulty.lower()} question.\n\n"
            f"Question: \"{self._truncate(question)}\"\n\n"
            f"Student's Answer: \"{self._truncate(user_answer)}\"\n\n"
            "Respond with only a JSON object with exactly these four fields:\n"
            "{\n"
            '  "isCorrect": true/false,\n'
            '  "confidence": "high/medium/low",\n'
            '  "feedback": "Brief explanation of why the answer is correct or incorrect",\n'
            '  "suggestions": "If incorrect, provide helpful suggestions for improvement"\n'
            "}\n\n"
            "Be fair but thorough in your evaluation. Consider partial credit for answers "
            "that show understanding but may have minor errors.\n\n"
            f"{PLAIN_TEXT_INSTRUCTION} Do not wrap the JSON in code fences."
        )
