from datetime import datetime
from typing import List, Optional

from vms.models.progress import CompletionState
from vms.models.training import TrainingModule


class CompletionTracker:
    """Per-module media, answer and score state for one contractor. Never talks to the backend."""

    def __init__(self, catalog: List[TrainingModule]):
        self.catalog = catalog
        self.states = [CompletionState() for _ in catalog]

    def _module(self, module_index: int) -> TrainingModule:
        if not 0 <= module_index < len(self.catalog):
            raise IndexError(f"No training module at index {module_index}")
        return self.catalog[module_index]

    def state(self, module_index: int) -> CompletionState:
        self._module(module_index)
        return self.states[module_index]

    def touch(self, module_index: int):
        state = self.state(module_index)
        if state.started_at is None:
            state.started_at = datetime.now()

    def mark_video_watched(self, module_index: int, video_name: str):
        module = self._module(module_index)
        if video_name not in {video.name for video in module.videos}:
            raise ValueError(f"'{module.title}' has no video named '{video_name}'")
        self.states[module_index].videos_watched.add(video_name)

    def mark_book_signed(self, module_index: int, book_name: str):
        module = self._module(module_index)
        if book_name not in {book.name for book in module.books}:
            raise ValueError(f"'{module.title}' has no book named '{book_name}'")
        self.states[module_index].books_signed.add(book_name)

    def set_answer(self, module_index: int, question_index: int, option_index: int):
        module = self._module(module_index)
        if not 0 <= question_index < len(module.questions):
            raise ValueError(f"'{module.title}' has no question {question_index}")
        options = module.questions[question_index].options
        if not 0 <= option_index < len(options):
            raise ValueError(f"Question {question_index} has no option {option_index}")
        self.states[module_index].selected_answers[question_index] = option_index

    def clear_answers(self, module_index: int):
        self.state(module_index).selected_answers.clear()

    def unanswered(self, module_index: int) -> List[int]:
        module = self._module(module_index)
        answers = self.states[module_index].selected_answers
        return [idx for idx in range(len(module.questions)) if idx not in answers]

    def all_media_complete(self, module_index: int) -> bool:
        module = self._module(module_index)
        state = self.states[module_index]
        return all(video.name in state.videos_watched for video in module.videos) and all(
            book.name in state.books_signed for book in module.books
        )

    def record_score(self, module_index: int, score: Optional[int], passed: bool):
        state = self.state(module_index)
        state.last_score = score
        state.passed = passed
        state.attempts += 1

    def mark_recorded(self, module_index: int, score: Optional[int] = None):
        """Module completion is known to the backend, either just reported or restored."""
        state = self.state(module_index)
        state.recorded = True
        state.passed = True
        if score is not None:
            state.last_score = score

    def attempted_scores(self) -> List[int]:
        return [state.last_score for state in self.states if state.last_score is not None]

    def reset(self):
        self.states = [CompletionState() for _ in self.catalog]
