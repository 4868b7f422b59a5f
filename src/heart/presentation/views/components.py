import streamlit as st

from src.heart.domain.models import PlayerProfile


def apply_styles():
    st.markdown("""
        <style>
            .block-container { padding-top: 2rem !important; }
            .stat-box { padding: 10px; background-color: #f0f2f6; border-radius: 5px; text-align: center; font-weight: bold; }
            .timer { font-size: 1.4rem; font-weight: 700; text-align: center; }
            .celebration { font-size: 2rem; text-align: center; padding: 1.5rem; }
        </style>
    """, unsafe_allow_html=True)


def render_messages(messages: list[tuple[str, str]]):
    for level, text in messages:
        if level == "error":
            st.error(text)
        elif level == "warning":
            st.warning(text)
        else:
            st.info(text)


def render_profile_card(profile: PlayerProfile):
    col_avatar, col_name = st.columns([1, 3])
    if profile.avatar_url:
        col_avatar.image(profile.avatar_url, width=64)
    col_name.subheader(profile.username)

    col1, col2 = st.columns(2)
    col1.markdown(f'<div class="stat-box">⭐ Score: {profile.score}</div>', unsafe_allow_html=True)
    col2.markdown(f'<div class="stat-box">🏆 Best: {profile.best_record}</div>', unsafe_allow_html=True)


def render_celebration(score: int | None):
    st.balloons()
    st.markdown(
        f'<div class="celebration">🎉 Correct! Your score: <b>{score or 0}</b></div>',
        unsafe_allow_html=True,
    )
