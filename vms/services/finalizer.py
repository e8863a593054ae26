import logging
from typing import List, Optional, Sequence

from vms.errors import ApiError, SubmissionFailed, SubmissionInProgress
from vms.models.progress import CourseResult
from vms.services.api_client import TrainingAPI
from vms.services.local_store import LocalStore
from vms.services.scorer import round_half_up

logger = logging.getLogger(__name__)


class SessionFinalizer:
    def __init__(self, api: TrainingAPI, store: LocalStore):
        self.api = api
        self.store = store
        self.pending = False
        self.result: Optional[CourseResult] = None

    @staticmethod
    def aggregate(scores: Sequence[int]) -> int:
        """Unweighted mean of the per-module scores, rounded to the nearest integer."""
        if not scores:
            return 0
        return round_half_up(sum(scores), len(scores))

    def finish(self, contractor_id: str, aggregate: int, completed_titles: Optional[List[str]] = None) -> CourseResult:
        """
        Report course completion. Per-module completions already recorded on the
        backend are left as they are if this call fails.
        """
        if self.pending:
            raise SubmissionInProgress("Course completion is already being submitted")
        self.pending = True
        try:
            response = self.api.submit_training(contractor_id, aggregate)
        except ApiError as e:
            logger.error(f"Error completing training for {contractor_id}: {str(e)}")
            raise SubmissionFailed(f"Failed to submit training as complete: {str(e)}") from e
        finally:
            self.pending = False

        self.store.contractor_id = None
        self.store.last_score = None
        self.result = CourseResult(
            contractor_id=contractor_id,
            score=aggregate,
            completed_titles=completed_titles or [],
            response=response,
        )
        logger.info(f"Training course completed for {contractor_id} with score {aggregate}%")
        return self.result
