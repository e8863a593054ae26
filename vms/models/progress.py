from datetime import datetime
from enum import Enum
from pydantic import AliasChoices, BaseModel, Field
from typing import Dict, List, Optional, Set

class ModuleStatus(str, Enum):
    LOCKED = "locked"
    UNLOCKABLE = "unlockable"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"

class CompletionState(BaseModel):
    videos_watched: Set[str] = set()
    books_signed: Set[str] = set()
    selected_answers: Dict[int, int] = {}  # question index -> option index
    last_score: Optional[int] = None
    passed: bool = False
    recorded: bool = False  # completion already reported to the backend
    attempts: int = 0
    started_at: Optional[datetime] = None

class CompletionRecord(BaseModel):
    training_id: str = Field(validation_alias=AliasChoices("trainingId", "training_id"))
    title: str = ""
    score: Optional[int] = None
    completed_at: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("completedAt", "completed_at")
    )

class TrainingEnrollment(BaseModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    visitor_id: str = Field(validation_alias=AliasChoices("visitorId", "visitor_id"))
    training_id: str = Field(validation_alias=AliasChoices("trainingId", "training_id"))
    status: str = "NotStarted"  # "NotStarted", "InProgress", "Completed"
    score: Optional[int] = None
    passed: Optional[bool] = None

class TrainingSubmissionResponse(BaseModel):
    score: int
    passed: bool
    completion: Optional[dict] = None

class Certificate(BaseModel):
    certificate_id: str = Field(validation_alias=AliasChoices("certificateId", "certificate_id"))
    visitor_name: str = Field(validation_alias=AliasChoices("visitorName", "visitor_name"))
    training_title: str = Field(validation_alias=AliasChoices("trainingTitle", "training_title"))
    training_type: str = Field("", validation_alias=AliasChoices("trainingType", "training_type"))
    score: int
    completion_date: str = Field(validation_alias=AliasChoices("completionDate", "completion_date"))
    issue_date: str = Field(validation_alias=AliasChoices("issueDate", "issue_date"))

class CourseResult(BaseModel):
    contractor_id: str
    score: int
    completed_titles: List[str] = []
    response: Optional[TrainingSubmissionResponse] = None

class QuizOutcome(BaseModel):
    module_index: int
    training_id: str
    score: Optional[int]  # None for modules without a quiz
    required_score: int
    passed: bool
    next_index: Optional[int] = None
    finished: bool = False
    result: Optional[CourseResult] = None
