from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from typing import List, Optional

class Video(BaseModel):
    name: str
    url: str

class Book(BaseModel):
    name: str
    url: str

class Question(BaseModel):
    question: str
    options: List[str]
    correct_option: int = Field(
        validation_alias=AliasChoices("correctOptionIndex", "correctAnswer", "answer", "correct_option")
    )

    @model_validator(mode="after")
    def check_correct_option(self):
        if not 0 <= self.correct_option < len(self.options):
            raise ValueError(
                f"correct option {self.correct_option} is out of range for {len(self.options)} options"
            )
        return self

class TrainingModule(BaseModel):
    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    title: str
    description: str = ""
    type: Optional[str] = None  # "safety", "security", "procedure", "quiz", "other"
    content: Optional[str] = None
    videos: List[Video] = []
    books: List[Book] = []
    questions: List[Question] = []
    required_score: int = Field(
        70, ge=0, le=100,
        validation_alias=AliasChoices("requiredScore", "requiredScorePercent", "required_score"),
    )
    is_active: bool = Field(False, validation_alias=AliasChoices("isActive", "is_active"))

    @field_validator("videos", "books", "questions", mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return [] if value is None else value

    @property
    def has_quiz(self) -> bool:
        return len(self.questions) > 0
