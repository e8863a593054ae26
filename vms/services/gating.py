import logging
from contextlib import contextmanager
from typing import List, Optional

from vms.errors import SubmissionInProgress, ValidationFailure
from vms.models.progress import ModuleStatus
from vms.models.training import TrainingModule
from vms.services.tracker import CompletionTracker

logger = logging.getLogger(__name__)

UNLOCKED = (ModuleStatus.UNLOCKABLE, ModuleStatus.IN_PROGRESS, ModuleStatus.FAILED, ModuleStatus.PASSED)


class GatingController:
    """
    Decides which modules are reachable and when a quiz may be submitted.

    Modules unlock strictly in order: module i+1 leaves LOCKED only once module i
    has PASSED. A FAILED module can be retried any number of times.
    """

    def __init__(self, catalog: List[TrainingModule], tracker: CompletionTracker):
        self.catalog = catalog
        self.tracker = tracker
        self.statuses = self._initial_statuses()
        self.pending = False

    def _initial_statuses(self) -> List[ModuleStatus]:
        return [
            ModuleStatus.UNLOCKABLE if idx == 0 else ModuleStatus.LOCKED
            for idx in range(len(self.catalog))
        ]

    def status(self, module_index: int) -> ModuleStatus:
        return self.statuses[module_index]

    def is_reachable(self, module_index: int) -> bool:
        return self.statuses[module_index] in UNLOCKED

    def is_last(self, module_index: int) -> bool:
        return module_index == len(self.catalog) - 1

    def next_index(self, module_index: int) -> Optional[int]:
        return None if self.is_last(module_index) else module_index + 1

    def all_passed(self) -> bool:
        return all(status == ModuleStatus.PASSED for status in self.statuses)

    def current_index(self) -> Optional[int]:
        """First module that has not been passed yet."""
        for idx, status in enumerate(self.statuses):
            if status != ModuleStatus.PASSED:
                return idx
        return None

    def begin(self, module_index: int):
        status = self.statuses[module_index]
        if status == ModuleStatus.LOCKED:
            previous = self.catalog[module_index - 1].title
            raise ValidationFailure(f"Complete '{previous}' before starting this module")
        if status in (ModuleStatus.UNLOCKABLE, ModuleStatus.FAILED):
            self.statuses[module_index] = ModuleStatus.IN_PROGRESS
            self.tracker.touch(module_index)

    def can_submit(self, module_index: int) -> bool:
        return (
            not self.pending
            and self.statuses[module_index] in (ModuleStatus.UNLOCKABLE, ModuleStatus.IN_PROGRESS, ModuleStatus.FAILED)
            and self.tracker.all_media_complete(module_index)
        )

    def blocked_reason(self, module_index: int) -> Optional[str]:
        """Text shown next to a disabled submit control."""
        status = self.statuses[module_index]
        if status == ModuleStatus.LOCKED:
            return "This module is locked until the previous one is passed."
        if status == ModuleStatus.PASSED:
            return "This module is already completed."
        if self.pending:
            return "Submitting..."
        if not self.tracker.all_media_complete(module_index):
            return "Watch every video and sign every book before taking the quiz."
        return None

    def check_submit(self, module_index: int):
        if self.pending:
            raise SubmissionInProgress("A submission is already in progress")
        reason = self.blocked_reason(module_index)
        if reason is not None:
            raise ValidationFailure(reason)

    @contextmanager
    def submission(self):
        if self.pending:
            raise SubmissionInProgress("A submission is already in progress")
        self.pending = True
        try:
            yield
        finally:
            self.pending = False

    def record_pass(self, module_index: int):
        self.statuses[module_index] = ModuleStatus.PASSED
        next_index = self.next_index(module_index)
        if next_index is not None and self.statuses[next_index] == ModuleStatus.LOCKED:
            self.statuses[next_index] = ModuleStatus.UNLOCKABLE
        logger.info(f"Module '{self.catalog[module_index].title}' passed")

    def record_fail(self, module_index: int):
        self.statuses[module_index] = ModuleStatus.FAILED

    def reset(self):
        self.statuses = self._initial_statuses()
        self.pending = False
