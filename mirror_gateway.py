"""
Claude gateway for Heart Mirror.

Two structured-generation calls: build a quiz from a rant, and turn the rant
plus the chosen answers into a healing report. Each call forces Claude to
answer through a tool whose ``input_schema`` mirrors the target record, then
decodes that input into the pydantic model. Anything that goes wrong on the
way (network, auth, timeout, a reply that does not fit the schema) surfaces as
one error type per call.
"""

import logging

import anthropic
from pydantic import BaseModel

from mirror_models import AnswerMap, AssessmentResult, Quiz

logger = logging.getLogger(__name__)

QUIZ_TOOL = "submit_quiz"
ASSESSMENT_TOOL = "submit_assessment"

QUIZ_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "question": {"type": "string"},
                    "options": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "id": {"type": "string"},
                                "text": {"type": "string"},
                                "weight": {"type": "number"},
                            },
                            "required": ["id", "text", "weight"],
                        },
                    },
                },
                "required": ["id", "question", "options"],
            },
        },
    },
    "required": ["title", "description", "questions"],
}

ASSESSMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "emotionalState": {"type": "string"},
        "copingStyle": {"type": "string"},
        "potentialNeeds": {"type": "string"},
        "psychologicalInsight": {"type": "string"},
        "suggestions": {"type": "array", "items": {"type": "string"}},
        "crisisWarning": {"type": "boolean"},
    },
    "required": ["emotionalState", "copingStyle", "potentialNeeds", "psychologicalInsight", "suggestions"],
}

QUIZ_SYSTEM = (
    "You are a professional psychological counselling AI. Your task is to turn a user's "
    "rant into a personalised self-reflection quiz that helps them understand their own "
    "emotions. Always answer by calling the submit_quiz tool."
)

ANALYSIS_SYSTEM = (
    "You are a senior psychologist. Based on the user's rant and their quiz answers, "
    "give a thoughtful analysis.\n"
    "Requirements:\n"
    "1. Warm, healing, non-judgmental language.\n"
    "2. Analyse their emotional state, coping style and potential needs.\n"
    "3. Offer an insight from a psychological perspective.\n"
    "4. Give 3-5 concrete, doable suggestions.\n"
    "5. If there is ANY sign of self-harm or suicidal ideation, you MUST set crisisWarning to true.\n"
    "Always answer by calling the submit_assessment tool."
)


class GatewayError(Exception):
    """Base class for failed Claude calls."""


class GenerationError(GatewayError):
    """Quiz generation failed."""


class AnalysisError(GatewayError):
    """Result analysis failed."""


def extract_payload(response, tool_name):
    """Return the input Claude passed to the forced ``tool_name`` call."""
    for block in response.content:
        if getattr(block, "type", None) == "tool_use" and block.name == tool_name:
            return block.input
    raise ValueError(f"reply has no {tool_name} block")


def build_transcript(quiz: Quiz, answers: AnswerMap) -> str:
    lines = []
    for q in quiz.questions:
        option = q.find_option(answers.get(q.id, ""))
        if option is None:
            raise KeyError(f"question {q.id} has no valid answer")
        lines.append(f"Question: {q.question} - Chosen: {option.text} (weight: {option.weight:g})")
    return "\n".join(lines)


class MirrorGateway:
    def __init__(self, client, quiz_model, analysis_model, question_count=5, max_tokens=2048):
        self.client = client
        self.quiz_model = quiz_model
        self.analysis_model = analysis_model
        self.question_count = question_count
        self.max_tokens = max_tokens

    def _structured_call(self, model, system, prompt, tool_name, schema, target: type[BaseModel]):
        response = self.client.messages.create(
            model=model,
            max_tokens=self.max_tokens,
            system=system,
            messages=[{"role": "user", "content": prompt}],
            tools=[{
                "name": tool_name,
                "description": f"Return the result as {target.__name__} JSON.",
                "input_schema": schema,
            }],
            tool_choice={"type": "tool", "name": tool_name},
        )
        return target.model_validate(extract_payload(response, tool_name))

    def generate_quiz(self, rant: str) -> Quiz:
        prompt = (
            f'User rant: "{rant}"\n\n'
            f"Based on the rant above, create a psychological self-assessment with "
            f"{self.question_count} questions. The questions should feel healing and professional.\n"
            f"- question ids are integers starting at 1\n"
            f"- option ids are short strings (a, b, c, ...), unique within a question\n"
            f"- weight = emotional intensity of the option, from 0 (calm) to 10 (intense)"
        )
        logger.info("Requesting quiz from %s (rant length %d)", self.quiz_model, len(rant))
        try:
            quiz = self._structured_call(
                self.quiz_model, QUIZ_SYSTEM, prompt, QUIZ_TOOL, QUIZ_SCHEMA, Quiz
            )
        except (anthropic.APIError, ValueError) as exc:
            logger.exception("Quiz generation failed")
            raise GenerationError("Could not generate a quiz.") from exc
        logger.info("Quiz generated: %d questions", len(quiz.questions))
        return quiz

    def analyze_result(self, rant: str, quiz: Quiz, answers: AnswerMap) -> AssessmentResult:
        try:
            transcript = build_transcript(quiz, answers)
        except KeyError as exc:
            raise AnalysisError("Quiz answers are incomplete.") from exc

        prompt = f'Original rant: "{rant}"\n\nQuiz details:\n{transcript}'
        logger.info("Requesting analysis from %s (%d answers)", self.analysis_model, len(answers))
        try:
            result = self._structured_call(
                self.analysis_model, ANALYSIS_SYSTEM, prompt, ASSESSMENT_TOOL, ASSESSMENT_SCHEMA, AssessmentResult
            )
        except (anthropic.APIError, ValueError) as exc:
            logger.exception("Result analysis failed")
            raise AnalysisError("Could not analyse the quiz.") from exc
        logger.info("Analysis complete (crisis warning: %s)", bool(result.crisis_warning))
        return result
