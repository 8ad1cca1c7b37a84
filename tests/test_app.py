from pathlib import Path
from unittest.mock import Mock, patch

import anthropic
import httpx
import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest

from mirror_config import Config
from mirror_gateway import ASSESSMENT_TOOL, QUIZ_TOOL
from mirror_session import GENERATION_NOTICE, Screen
from tests.fixtures import quiz_payload, result_payload, tool_response

APP = str(Path(__file__).resolve().parent.parent / "heart_mirror_app.py")
RANT = "I lost my job today and I can't stop replaying it"


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "HISTORY_PATH", str(tmp_path / "history.json"))
    st.cache_resource.clear()
    fake = Mock()
    with patch("anthropic.Anthropic", return_value=fake):
        yield fake
    st.cache_resource.clear()


@pytest.fixture
def app(client):
    at = AppTest.from_file(APP, default_timeout=10)
    at.secrets["ANTHROPIC_API_KEY"] = "sk-test"
    return at.run()


def _click(at, text):
    next(b for b in at.button if text in b.label).click().run()


def _screen(at):
    return at.session_state["mirror"].state.screen


def _rant(at, text=RANT):
    _click(at, "Start my mood journey")
    at.text_area(key="rant_input").input(text)
    _click(at, "Done, build my quiz")


def _replies(client, crisis=False):
    client.messages.create.side_effect = [
        tool_response(QUIZ_TOOL, quiz_payload(1)),
        tool_response(ASSESSMENT_TOOL, result_payload(crisis=crisis)),
    ]


def _through_report(at, client, crisis=False):
    _replies(client, crisis=crisis)
    _rant(at)
    assert _screen(at) == Screen.QUIZ_TAKING
    at.button(key="opt_1_b").click().run()
    _click(at, "See my analysis")


def test_landing_renders(app):
    assert not app.exception
    assert _screen(app) == Screen.LANDING
    assert any("How are you feeling today?" in m.value for m in app.markdown)


def test_rant_to_report(app, client):
    _through_report(app, client)

    assert not app.exception
    assert not app.error
    assert _screen(app) == Screen.REPORT
    assert any("Your emotional analysis" in m.value for m in app.markdown)
    assert any("Take a walk" in m.value for m in app.markdown)
    assert client.messages.create.call_count == 2
    assert RANT in client.messages.create.call_args_list[0].kwargs["messages"][0]["content"]


def test_crisis_report_shows_hotline(app, client):
    _through_report(app, client, crisis=True)

    assert _screen(app) == Screen.REPORT
    assert len(app.error) == 1
    assert Config.CRISIS_HOTLINE in app.error[0].value


def test_generation_failure_returns_to_rant_with_text_kept(app, client):
    client.messages.create.side_effect = anthropic.APIConnectionError(
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    )
    _rant(app)

    assert not app.exception
    assert _screen(app) == Screen.RANTING
    assert [w.value for w in app.warning] == [GENERATION_NOTICE]
    assert app.text_area(key="rant_input").value == RANT


def test_empty_rant_warns_and_stays(app, client):
    _click(app, "Start my mood journey")
    _click(app, "Done, build my quiz")

    assert _screen(app) == Screen.RANTING
    assert len(app.warning) == 1
    assert "Write a few words first" in app.warning[0].value
    client.messages.create.assert_not_called()


def test_history_detail_opens_and_closes(app, client):
    _through_report(app, client)
    _click(app, "Finish")
    assert _screen(app) == Screen.LANDING

    _click(app, "Mood footprints")
    assert _screen(app) == Screen.HISTORY
    entries = [b for b in app.button if b.key and b.key.startswith("hist_")]
    assert len(entries) == 1

    entries[0].click().run()
    assert any("Echoes from the past" in m.value for m in app.markdown)
    assert any("Take a walk" in m.value for m in app.markdown)

    _click(app, "Close")
    assert app.session_state["mirror"].selected_history_entry is None
    assert not any("Echoes from the past" in m.value for m in app.markdown)
    assert any("Mood footprints" in m.value for m in app.markdown)
