import pytest

from mirror_history import HistoryStore, JsonFileStore
from mirror_models import AssessmentResult, Quiz
from tests.fixtures import quiz_payload, result_payload


@pytest.fixture
def quiz():
    return Quiz.model_validate(quiz_payload())


@pytest.fixture
def result():
    return AssessmentResult.model_validate(result_payload())


@pytest.fixture
def history_store(tmp_path):
    return HistoryStore(JsonFileStore(tmp_path / "history.json"))
