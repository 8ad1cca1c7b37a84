"""
Session state machine for Heart Mirror.

One ``MirrorSession`` owns one ``SessionState`` and is the only thing that
mutates it. The Streamlit layer calls a transition per user intent and renders
whatever screen the state ends up on.

    LANDING -> RANTING -> QUIZ_GENERATING -> QUIZ_TAKING -> ANALYZING -> REPORT
    LANDING -> HISTORY
    any     -> LANDING (reset)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from mirror_gateway import AnalysisError, GenerationError
from mirror_history import make_entry
from mirror_models import AnswerMap, AssessmentResult, HistoryEntry, Quiz, QuizQuestion

logger = logging.getLogger(__name__)

GENERATION_NOTICE = "Heart Mirror hit a small bump while listening. Please try again in a moment."
ANALYSIS_NOTICE = "The analysis was interrupted. Your answers are saved, please try again."
GENERATING_MESSAGE = "Listening closely and building a reflection quiz just for you..."
ANALYZING_MESSAGE = "Reading your emotional fingerprint..."


class Screen(Enum):
    LANDING = "landing"
    RANTING = "ranting"
    QUIZ_GENERATING = "quiz_generating"
    QUIZ_TAKING = "quiz_taking"
    ANALYZING = "analyzing"
    REPORT = "report"
    HISTORY = "history"


class ValidationError(Exception):
    """A transition was attempted from the wrong screen or with its guard unmet."""


@dataclass
class SessionState:
    screen: Screen = Screen.LANDING
    rant: str = ""
    quiz: Optional[Quiz] = None
    current_idx: int = 0
    answers: AnswerMap = field(default_factory=dict)
    result: Optional[AssessmentResult] = None
    history: List[HistoryEntry] = field(default_factory=list)
    history_loaded: bool = False
    selected_history_id: Optional[str] = None
    notice: Optional[str] = None
    loading_message: str = ""


class MirrorSession:
    def __init__(self, gateway, history_store, state: Optional[SessionState] = None):
        self.gateway = gateway
        self.history_store = history_store
        self.state = state or SessionState()

    # ── helpers ──────────────────────────────────────────────────────────
    def _require(self, *screens: Screen) -> None:
        if self.state.screen not in screens:
            names = ", ".join(s.name for s in screens)
            raise ValidationError(f"expected screen {names}, on {self.state.screen.name}")

    def _go(self, screen: Screen) -> None:
        logger.info("Screen %s -> %s", self.state.screen.name, screen.name)
        self.state.screen = screen

    def _ensure_history(self) -> None:
        if not self.state.history_loaded:
            self.state.history = self.history_store.load()
            self.state.history_loaded = True

    # ── queries ──────────────────────────────────────────────────────────
    @property
    def current_question(self) -> Optional[QuizQuestion]:
        quiz = self.state.quiz
        if quiz is None or not 0 <= self.state.current_idx < len(quiz.questions):
            return None
        return quiz.questions[self.state.current_idx]

    @property
    def is_last_question(self) -> bool:
        quiz = self.state.quiz
        return quiz is not None and self.state.current_idx == len(quiz.questions) - 1

    @property
    def can_submit(self) -> bool:
        return bool(self.state.rant.strip())

    @property
    def can_go_prev(self) -> bool:
        return self.state.current_idx > 0

    @property
    def can_go_next(self) -> bool:
        q = self.current_question
        return q is not None and q.id in self.state.answers and not self.is_last_question

    @property
    def can_complete(self) -> bool:
        quiz = self.state.quiz
        if quiz is None or not self.is_last_question:
            return False
        answers = self.state.answers
        if set(answers) != set(quiz.question_ids()):
            return False
        return all(q.find_option(answers[q.id]) is not None for q in quiz.questions)

    @property
    def progress(self) -> float:
        quiz = self.state.quiz
        if quiz is None:
            return 0.0
        return (self.state.current_idx + 1) / len(quiz.questions)

    @property
    def selected_history_entry(self) -> Optional[HistoryEntry]:
        for entry in self.state.history:
            if entry.id == self.state.selected_history_id:
                return entry
        return None

    def selected_answer(self, question_id: int) -> Optional[str]:
        return self.state.answers.get(question_id)

    def take_notice(self) -> Optional[str]:
        notice, self.state.notice = self.state.notice, None
        return notice

    # ── landing ──────────────────────────────────────────────────────────
    def start(self) -> None:
        self._require(Screen.LANDING)
        self._go(Screen.RANTING)

    def view_history(self) -> None:
        self._require(Screen.LANDING)
        self._ensure_history()
        self._go(Screen.HISTORY)

    # ── rant ─────────────────────────────────────────────────────────────
    def set_rant(self, text: str) -> None:
        self._require(Screen.RANTING)
        self.state.rant = text

    def submit_rant(self) -> None:
        self._require(Screen.RANTING)
        if not self.can_submit:
            raise ValidationError("rant is empty")
        self.state.loading_message = GENERATING_MESSAGE
        self._go(Screen.QUIZ_GENERATING)

    def generate_quiz(self) -> bool:
        """Run the pending quiz request. Returns True when a quiz is ready."""
        self._require(Screen.QUIZ_GENERATING)
        try:
            quiz = self.gateway.generate_quiz(self.state.rant)
        except GenerationError:
            self.state.notice = GENERATION_NOTICE
            self._go(Screen.RANTING)
            return False
        self.state.quiz = quiz
        self.state.current_idx = 0
        self.state.answers = {}
        self._go(Screen.QUIZ_TAKING)
        return True

    # ── quiz ─────────────────────────────────────────────────────────────
    def select_answer(self, question_id: int, option_id: str) -> None:
        self._require(Screen.QUIZ_TAKING)
        question = self.state.quiz.find_question(question_id)
        if question is None:
            raise ValidationError(f"no question {question_id} in this quiz")
        if question.find_option(option_id) is None:
            raise ValidationError(f"no option {option_id!r} for question {question_id}")
        self.state.answers[question_id] = option_id

    def next_question(self) -> None:
        self._require(Screen.QUIZ_TAKING)
        if not self.can_go_next:
            raise ValidationError("answer this question before moving on")
        self.state.current_idx += 1

    def prev_question(self) -> None:
        self._require(Screen.QUIZ_TAKING)
        if not self.can_go_prev:
            raise ValidationError("already on the first question")
        self.state.current_idx -= 1

    def complete_quiz(self) -> None:
        self._require(Screen.QUIZ_TAKING)
        if not self.can_complete:
            raise ValidationError("every question needs an answer first")
        self.state.loading_message = ANALYZING_MESSAGE
        self._go(Screen.ANALYZING)

    def analyze(self) -> bool:
        """Run the pending analysis. Returns True when the report is ready."""
        self._require(Screen.ANALYZING)
        try:
            result = self.gateway.analyze_result(self.state.rant, self.state.quiz, dict(self.state.answers))
        except AnalysisError:
            self.state.notice = ANALYSIS_NOTICE
            self._go(Screen.QUIZ_TAKING)
            return False
        self.state.result = result
        entry = make_entry(self.state.rant, result, taken_ids=[e.id for e in self.state.history])
        # the stored log may hold entries from another tab on the same journal
        self.state.history = self.history_store.append(entry)
        self.state.history_loaded = True
        self._go(Screen.REPORT)
        return True

    # ── history ──────────────────────────────────────────────────────────
    def select_history_entry(self, entry_id: str) -> None:
        self._require(Screen.HISTORY)
        if not any(e.id == entry_id for e in self.state.history):
            raise ValidationError(f"no history entry {entry_id}")
        self.state.selected_history_id = entry_id

    def close_history_entry(self) -> None:
        self._require(Screen.HISTORY)
        self.state.selected_history_id = None

    # ── reset ────────────────────────────────────────────────────────────
    def reset(self) -> None:
        s = self.state
        s.rant = ""
        s.quiz = None
        s.answers = {}
        s.current_idx = 0
        s.result = None
        s.selected_history_id = None
        s.notice = None
        s.loading_message = ""
        self._go(Screen.LANDING)
