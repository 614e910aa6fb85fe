"""
CLI entry point for checking the question corpus.
"""

import argparse
from pathlib import Path

from skillsync.core.questions.repository import QuestionRepository
from skillsync.shared.config import settings
from skillsync.shared.logging import setup_logging


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="SkillSync question corpus check")
    parser.add_argument(
        "--root",
        type=Path,
        default=Path(settings.question_bank.root),
        help="Question bank root directory"
    )

    args = parser.parse_args()

    setup_logging()

    repository = QuestionRepository.load(args.root)
    summary = repository.summary()

    print("\n" + "=" * 60)
    print("Question Corpus Summary")
    print("=" * 60)
    for major, subjects in summary.items():
        print(f"[{major}] {len(subjects)} subjects")
        for subject, counts in subjects.items():
            total = sum(counts.values())
            print(
                f"  {subject:<45} easy={counts['easy']:<4} "
                f"medium={counts['medium']:<4} hard={counts['hard']:<4} total={total}"
            )
    print("-" * 60)
    print(f"Subjects processed: {repository.subject_count()}")
    print("=" * 60)


if __name__ == "__main__":
    main()
