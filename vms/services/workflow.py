import logging
from datetime import datetime
from typing import Iterable, List, Optional

from vms.errors import (
    ApiError,
    MissingContractorContext,
    SessionExpired,
    SubmissionFailed,
    ValidationFailure,
)
from vms.models.progress import CompletionRecord, CourseResult, ModuleStatus, QuizOutcome
from vms.models.training import TrainingModule
from vms.services import scorer
from vms.services.api_client import TrainingAPI
from vms.services.catalog import load_catalog
from vms.services.finalizer import SessionFinalizer
from vms.services.gating import GatingController
from vms.services.local_store import LocalStore
from vms.services.tracker import CompletionTracker

logger = logging.getLogger(__name__)


class TrainingWorkflow:
    """
    Training flow for one contractor over a fixed catalog.

    Media, answers and unlocking are local state. The backend is contacted only
    when a module is passed (per-module completion) and when the last module is
    passed (course completion).
    """

    def __init__(
        self,
        catalog: List[TrainingModule],
        contractor_id: str,
        api: TrainingAPI,
        store: LocalStore,
    ):
        if not contractor_id:
            raise MissingContractorContext("No contractor ID found. Please start from the check-in page.")
        self.catalog = catalog
        self.contractor_id = contractor_id
        self.api = api
        self.store = store
        self.tracker = CompletionTracker(catalog)
        self.gating = GatingController(catalog, self.tracker)
        self.finalizer = SessionFinalizer(api, store)

    # State

    def status(self, module_index: int) -> ModuleStatus:
        return self.gating.status(module_index)

    def current_index(self) -> Optional[int]:
        return self.gating.current_index()

    def progress(self) -> float:
        if not self.catalog:
            return 0.0
        passed = sum(1 for idx in range(len(self.catalog)) if self.status(idx) == ModuleStatus.PASSED)
        return passed / len(self.catalog)

    @property
    def finished(self) -> bool:
        return self.finalizer.result is not None

    @property
    def awaiting_finalize(self) -> bool:
        return bool(self.catalog) and self.gating.all_passed() and not self.finished

    def elapsed(self, module_index: int) -> int:
        started_at = self.tracker.state(module_index).started_at
        if started_at is None:
            return 0
        return int((datetime.now() - started_at).total_seconds())

    def restore(self, records: Iterable[CompletionRecord]) -> int:
        """Mark modules the backend already has as completed, in catalog order."""
        completed = {record.training_id: record for record in records}
        restored = 0
        for idx, module in enumerate(self.catalog):
            record = completed.get(module.id)
            if record is None:
                break
            self.tracker.mark_recorded(idx, record.score)
            self.gating.record_pass(idx)
            restored += 1
        if restored:
            logger.info(f"Restored {restored} completed module(s) for {self.contractor_id}")
        return restored

    # Interaction

    def open_module(self, module_index: int):
        self.gating.begin(module_index)

    def _ensure_started(self, module_index: int):
        if self.status(module_index) != ModuleStatus.IN_PROGRESS:
            self.gating.begin(module_index)

    def mark_video_watched(self, module_index: int, video_name: str):
        self._ensure_started(module_index)
        self.tracker.mark_video_watched(module_index, video_name)

    def mark_book_signed(self, module_index: int, book_name: str):
        self._ensure_started(module_index)
        self.tracker.mark_book_signed(module_index, book_name)

    def set_answer(self, module_index: int, question_index: int, option_index: int):
        self._ensure_started(module_index)
        self.tracker.set_answer(module_index, question_index, option_index)

    def can_submit(self, module_index: int) -> bool:
        return self.gating.can_submit(module_index)

    def blocked_reason(self, module_index: int) -> Optional[str]:
        return self.gating.blocked_reason(module_index)

    def submit_quiz(self, module_index: int) -> QuizOutcome:
        """
        Score the module and move it to PASSED or FAILED.

        A passing module is reported to the backend before its state changes; if
        that call fails the module keeps its previous state. Passing the last
        module finalizes the course. Submitting an already passed module returns
        its recorded outcome without contacting the backend again.
        """
        module = self.catalog[module_index]
        state = self.tracker.state(module_index)
        if self.status(module_index) == ModuleStatus.PASSED:
            return self._outcome(module_index, state.last_score, True, self.finalizer.result)

        self.gating.check_submit(module_index)
        self._ensure_started(module_index)

        if module.has_quiz:
            percent = scorer.score(module, state.selected_answers)
            self.store.last_score = percent
            passed = scorer.is_passing(module, percent)
        else:
            # Modules without a quiz pass once their media are complete
            percent = None
            passed = True

        if not passed:
            self.tracker.record_score(module_index, percent, False)
            self.gating.record_fail(module_index)
            logger.info(
                f"{self.contractor_id} scored {percent}% on '{module.title}', "
                f"{module.required_score}% required"
            )
            return self._outcome(module_index, percent, False)

        with self.gating.submission():
            try:
                self.api.mark_training_completed(self.contractor_id, module.id, module.title, percent)
            except ApiError as e:
                logger.error(f"Error completing training '{module.title}': {str(e)}")
                raise SubmissionFailed(f"Failed to mark '{module.title}' as complete: {str(e)}") from e

        self.tracker.record_score(module_index, percent, True)
        self.tracker.mark_recorded(module_index)
        self.gating.record_pass(module_index)

        result = None
        if self.gating.is_last(module_index):
            result = self.finish()
        return self._outcome(module_index, percent, True, result)

    def _outcome(
        self, module_index: int, percent: Optional[int], passed: bool, result: Optional[CourseResult] = None
    ) -> QuizOutcome:
        module = self.catalog[module_index]
        return QuizOutcome(
            module_index=module_index,
            training_id=module.id,
            score=percent,
            required_score=module.required_score,
            passed=passed,
            next_index=self.gating.next_index(module_index) if passed else None,
            finished=result is not None,
            result=result,
        )

    def finish(self) -> CourseResult:
        if self.finalizer.result is not None:
            return self.finalizer.result
        if not self.catalog:
            raise ValidationFailure("No training modules available")
        if not self.gating.all_passed():
            raise ValidationFailure("All training modules must be passed before finishing")
        aggregate = self.finalizer.aggregate(self.tracker.attempted_scores())
        titles = [module.title for module in self.catalog]
        return self.finalizer.finish(self.contractor_id, aggregate, titles)

    def redo(self):
        """Start the whole course over locally."""
        self.store.last_score = None
        self.tracker.reset()
        self.gating.reset()
        self.finalizer.result = None


def start_training(api: TrainingAPI, store: LocalStore) -> TrainingWorkflow:
    """
    Entry point of the training flow. Requires a contractor id from check-in;
    without one nothing is fetched.
    """
    contractor_id = store.contractor_id
    if not contractor_id:
        logger.warning("Training flow started without a contractor id")
        raise MissingContractorContext("No contractor ID found. Please start from the check-in page.")

    catalog = load_catalog(api)
    workflow = TrainingWorkflow(catalog, contractor_id, api, store)

    try:
        records = api.get_completed_trainings(contractor_id)
    except SessionExpired:
        raise
    except ApiError as e:
        logger.warning(f"Could not load training progress for {contractor_id}: {str(e)}")
    else:
        workflow.restore(records)
    return workflow
