"""
Heart Mirror data models
========================
Pydantic records shared by the gateway, the session and the history log.
Field aliases are the camelCase names used on the wire and on disk.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# question id -> option id
AnswerMap = Dict[int, str]


class QuizOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    weight: float = Field(..., ge=0, le=10, description="intensity, 0-10")


class QuizQuestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    question: str
    options: List[QuizOption] = Field(..., min_length=1)

    @field_validator("options")
    @classmethod
    def _unique_option_ids(cls, options):
        ids = [o.id for o in options]
        if len(ids) != len(set(ids)):
            raise ValueError("option ids must be unique within a question")
        return options

    def find_option(self, option_id: str) -> Optional[QuizOption]:
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None


class Quiz(BaseModel):
    """A generated quiz. Never changes once the session has it."""
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    questions: List[QuizQuestion] = Field(..., min_length=1)

    @field_validator("questions")
    @classmethod
    def _unique_question_ids(cls, questions):
        ids = [q.id for q in questions]
        if len(ids) != len(set(ids)):
            raise ValueError("question ids must be unique within a quiz")
        return questions

    def question_ids(self) -> List[int]:
        return [q.id for q in self.questions]

    def find_question(self, question_id: int) -> Optional[QuizQuestion]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None


class AssessmentResult(BaseModel):
    """The healing report."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    emotional_state: str = Field(..., alias="emotionalState")
    coping_style: str = Field(..., alias="copingStyle")
    potential_needs: str = Field(..., alias="potentialNeeds")
    psychological_insight: str = Field(..., alias="psychologicalInsight")
    suggestions: List[str]
    crisis_warning: Optional[bool] = Field(None, alias="crisisWarning")


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    date: str
    rant_snippet: str = Field(..., alias="rantSnippet")
    full_result: AssessmentResult = Field(..., alias="fullResult")
