"""
Heart Mirror - Streamlit Web App
================================
Rant about your day, take a short AI-written reflection quiz, and get a
healing report. Past reports are kept in a history file on the machine
running the app, one journal per browser link (the ``?journal=`` URL param).

Run:      streamlit run heart_mirror_app.py
Requires: streamlit, anthropic, pydantic, python-dotenv
Secret:   ANTHROPIC_API_KEY = "sk-ant-..."   (Streamlit secrets or environment)
"""

import re
import uuid

import anthropic
import streamlit as st

from mirror_config import Config, setup_logging
from mirror_gateway import MirrorGateway
from mirror_history import HistoryStore, JsonFileStore, journal_key
from mirror_session import MirrorSession, Screen

# ─────────────────────────────────────────────────────────────────────────────
# PAGE CONFIG
# ─────────────────────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Heart Mirror",
    page_icon="🪞",
    layout="centered",
)

setup_logging()

# ─────────────────────────────────────────────────────────────────────────────
# CLAUDE API
# ─────────────────────────────────────────────────────────────────────────────
def _api_key():
    try:
        return st.secrets["ANTHROPIC_API_KEY"]
    except Exception:
        # No secrets.toml, or no key in it
        return Config.ANTHROPIC_API_KEY


@st.cache_resource
def get_client():
    """Create the Anthropic client once and reuse it."""
    key = _api_key()
    if not key:
        st.error(
            "🔑 **API key missing.** "
            "Add ANTHROPIC_API_KEY to your Streamlit secrets or to a .env file "
            "next to this app."
        )
        st.stop()
    return anthropic.Anthropic(api_key=key, timeout=Config.REQUEST_TIMEOUT, max_retries=0)

# ─────────────────────────────────────────────────────────────────────────────
# SESSION STATE
# ─────────────────────────────────────────────────────────────────────────────
JOURNAL_ID = re.compile(r"[0-9a-f]{32}")


def _journal_id():
    """Per-browser journal id, kept in the page URL so a bookmark reopens the same history."""
    jid = st.query_params.get("journal", "")
    if not JOURNAL_ID.fullmatch(jid):
        jid = uuid.uuid4().hex
        st.query_params["journal"] = jid
    return jid


def init_session():
    if "mirror" not in st.session_state:
        gateway = MirrorGateway(
            get_client(),
            quiz_model=Config.QUIZ_MODEL,
            analysis_model=Config.ANALYSIS_MODEL,
            question_count=Config.QUESTION_COUNT,
        )
        history = HistoryStore(JsonFileStore(Config.HISTORY_PATH), key=journal_key(_journal_id()))
        st.session_state.mirror = MirrorSession(gateway, history)
    return st.session_state.mirror


def _go_home(session):
    session.reset()
    st.session_state.pop("rant_input", None)
    st.rerun()

# ─────────────────────────────────────────────────────────────────────────────
# CSS
# ─────────────────────────────────────────────────────────────────────────────
CSS = """
<style>
.stApp { background-color: #f8fafc; color: #334155; }
h1, h2, h3 { color: #334155; }
.mirror-header { display: flex; justify-content: space-between; align-items: center;
    border-bottom: 1px solid #f1f5f9; padding-bottom: 8px; margin-bottom: 16px; }
.mirror-logo { font-weight: 700; font-size: 1.3rem; }
.mirror-tag { font-size: 12px; color: #94a3b8; }
.mirror-snippet { background: #fff; border: 1px solid #f1f5f9; border-radius: 12px;
    padding: 10px 14px; color: #64748b; font-style: italic; font-size: 13px; }
.mirror-footer { text-align: center; font-size: 11px; color: #94a3b8; margin-top: 32px; }
</style>
"""

FOOTER = "All results are for reference only and are not a medical diagnosis or advice."
EMPTY_RANT_WARNING = "Write a few words first. Anything on your mind is fine."


def _chrome():
    st.markdown(CSS, unsafe_allow_html=True)
    st.markdown(
        '<div class="mirror-header"><span class="mirror-logo">🪞 Heart Mirror</span>'
        '<span class="mirror-tag">rant healing room</span></div>',
        unsafe_allow_html=True,
    )


def _footer():
    st.markdown(f'<div class="mirror-footer">{FOOTER}</div>', unsafe_allow_html=True)


def render_assessment(res):
    if res.crisis_warning:
        st.error(f"**Please take care of yourself right now.**  \n{Config.CRISIS_HOTLINE}")

    with st.container(border=True):
        st.markdown("### 🌊 Emotional state")
        st.write(res.emotional_state)

    with st.container(border=True):
        st.markdown("### 🧩 Coping style")
        st.write(res.coping_style)

    with st.container(border=True):
        st.markdown("### 🫶 What you might need")
        st.write(res.potential_needs)

    with st.container(border=True):
        st.markdown("### 💡 Insight")
        st.markdown(f"*“{res.psychological_insight}”*")

    with st.container(border=True):
        st.markdown("### 🌱 Healing suggestions")
        for i, s in enumerate(res.suggestions, start=1):
            st.markdown(f"**{i}.** {s}")

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — LANDING
# ─────────────────────────────────────────────────────────────────────────────
def screen_landing(session):
    st.markdown("## How are you feeling today?")
    st.markdown(
        "Life doesn't always go your way. This is your private tree hollow: "
        "let it all out, and AI will help you see what's underneath."
    )
    st.write("")

    if st.button("✨ Start my mood journey", type="primary", use_container_width=True):
        session.start()
        st.rerun()
    if st.button("👣 Mood footprints (history)", use_container_width=True):
        session.view_history()
        st.rerun()

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — RANTING
# ─────────────────────────────────────────────────────────────────────────────
def screen_ranting(session):
    notice = session.take_notice()
    if notice:
        st.warning(notice)

    st.markdown("## ✍️ Let it all out…")
    if "rant_input" not in st.session_state:
        st.session_state.rant_input = session.state.rant
    text = st.text_area(
        "Your rant",
        key="rant_input",
        height=260,
        label_visibility="collapsed",
        placeholder="Heartbreak, pressure at work, just plain bad luck… nobody here will judge you.",
    )
    session.set_rant(text)

    if st.button("Done, build my quiz", type="primary", use_container_width=True):
        if session.can_submit:
            session.submit_rant()
            st.rerun()
        else:
            st.warning(EMPTY_RANT_WARNING)
    if st.button("← Back home"):
        _go_home(session)

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — LOADING (quiz generation and analysis)
# ─────────────────────────────────────────────────────────────────────────────
def screen_loading(session):
    st.markdown("## ⏳ One moment…")
    st.caption("Healing takes a little time.")

    with st.spinner(session.state.loading_message):
        if session.state.screen == Screen.QUIZ_GENERATING:
            session.generate_quiz()
        else:
            session.analyze()
    st.rerun()

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — QUIZ
# ─────────────────────────────────────────────────────────────────────────────
def screen_quiz(session):
    notice = session.take_notice()
    if notice:
        st.warning(notice)

    quiz  = session.state.quiz
    idx   = session.state.current_idx
    total = len(quiz.questions)
    q     = session.current_question

    left, right = st.columns([5, 1])
    with left:
        st.markdown(f"## {quiz.title}")
    with right:
        st.caption(f"**{idx + 1} / {total}**")
    st.caption(quiz.description)
    st.progress(session.progress)

    st.divider()
    st.markdown(f"### {q.question}")
    st.write("")

    chosen = session.selected_answer(q.id)
    for opt in q.options:
        picked = (opt.id == chosen)
        label  = f"✅ {opt.text}" if picked else opt.text
        if st.button(label, key=f"opt_{q.id}_{opt.id}", use_container_width=True,
                     type="primary" if picked else "secondary"):
            session.select_answer(q.id, opt.id)
            st.rerun()

    # ── Navigation ────────────────────────────────────────────────────────
    st.divider()
    nl, nr = st.columns([1, 2])

    with nl:
        if st.button("← Previous", use_container_width=True, disabled=not session.can_go_prev):
            session.prev_question()
            st.rerun()

    with nr:
        if session.is_last_question:
            if st.button("🏁 See my analysis", type="primary", use_container_width=True,
                         disabled=not session.can_complete):
                session.complete_quiz()
                st.rerun()
        else:
            if st.button("Next →", type="primary", use_container_width=True,
                         disabled=not session.can_go_next):
                session.next_question()
                st.rerun()

    with st.sidebar:
        if st.button("🏠 Home", use_container_width=True):
            _go_home(session)

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — REPORT
# ─────────────────────────────────────────────────────────────────────────────
def screen_report(session):
    st.caption("PSYCHOLOGICAL REPORT")
    st.markdown("# Your emotional analysis")
    st.write("")

    render_assessment(session.state.result)

    st.divider()
    if st.button("Finish", type="primary", use_container_width=True):
        _go_home(session)
    st.caption("Sending you a hug. Tomorrow is a new day.")

# ─────────────────────────────────────────────────────────────────────────────
# SCREEN — HISTORY
# ─────────────────────────────────────────────────────────────────────────────
def screen_history(session):
    entry = session.selected_history_entry
    if entry is not None:
        st.caption(entry.date)
        st.markdown("## Echoes from the past")
        st.markdown(f'<div class="mirror-snippet">“{entry.rant_snippet}”</div>', unsafe_allow_html=True)
        st.write("")
        render_assessment(entry.full_result)
        if st.button("Close", use_container_width=True):
            session.close_history_entry()
            st.rerun()
        return

    st.markdown("## 👣 Mood footprints")
    history = session.state.history
    if not history:
        st.info("No entries yet. Start your first rant to leave a footprint.")
    else:
        for e in history:
            if st.button(f"**{e.date}**  \n“{e.rant_snippet}”  \n_Tap to open the full report_",
                         key=f"hist_{e.id}", use_container_width=True):
                session.select_history_entry(e.id)
                st.rerun()

    st.divider()
    if st.button("← Back home", type="primary", use_container_width=True):
        _go_home(session)

# ─────────────────────────────────────────────────────────────────────────────
# MAIN
# ─────────────────────────────────────────────────────────────────────────────
SCREENS = {
    Screen.LANDING:         screen_landing,
    Screen.RANTING:         screen_ranting,
    Screen.QUIZ_GENERATING: screen_loading,
    Screen.QUIZ_TAKING:     screen_quiz,
    Screen.ANALYZING:       screen_loading,
    Screen.REPORT:          screen_report,
    Screen.HISTORY:         screen_history,
}


def main():
    session = init_session()
    _chrome()
    SCREENS[session.state.screen](session)
    _footer()

if __name__ == "__main__":
    main()
