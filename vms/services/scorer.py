from typing import Mapping

from vms.models.training import TrainingModule

def round_half_up(numerator: int, denominator: int) -> int:
    """Integer rounding of numerator/denominator with halves rounded up."""
    return (2 * numerator + denominator) // (2 * denominator)

def score(module: TrainingModule, selected_answers: Mapping[int, int]) -> int:
    """
    Percentage of questions answered correctly, rounded to the nearest integer.
    Unanswered questions count as incorrect. A module without questions scores 0.
    """
    total = len(module.questions)
    if total == 0:
        return 0
    correct = sum(
        1
        for idx, question in enumerate(module.questions)
        if selected_answers.get(idx) == question.correct_option
    )
    return round_half_up(100 * correct, total)

def is_passing(module: TrainingModule, percent: int) -> bool:
    return percent >= module.required_score
