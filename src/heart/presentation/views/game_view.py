import streamlit as st

from src.config import GameConfig
from src.fsm import SessionStatus
from src.heart.presentation.viewmodel import SCREEN_GAME, GameViewModel
from src.heart.presentation.views import components


def render(vm: GameViewModel) -> None:
    session = vm.session
    if session is None:
        vm.leave_game()
        st.rerun()
        return

    header_left, header_right = st.columns([3, 1])
    header_left.title("❤️ How many hearts?")
    if header_right.button("🏠 Dashboard"):
        vm.leave_game()
        st.rerun()

    _render_timer(vm)

    status = session.status

    if status == SessionStatus.INITIALIZING:
        if session.last_error:
            if st.button("🔄 Refresh puzzle", type="primary"):
                vm.retry_puzzle()
                st.rerun()
        else:
            st.info("Loading puzzle...")

    elif status == SessionStatus.AWAITING_ANSWER:
        if session.image_reference:
            st.image(session.image_reference, use_container_width=True)

        with st.form("answer_form", clear_on_submit=True):
            raw = st.text_input("Your answer", placeholder="Number of hearts")
            if st.form_submit_button("Check", type="primary"):
                vm.submit_answer(raw)
                st.rerun()

    elif status == SessionStatus.CELEBRATING:
        components.render_celebration(session.last_score)
        st.caption(
            f"Back to the dashboard in {GameConfig.CELEBRATION_DELAY_UNITS} seconds..."
        )

    elif status == SessionStatus.TERMINATED:
        st.error("⏰ Time's up!")
        if st.button("🔁 Try again", type="primary"):
            vm.play_again()
            st.rerun()


@st.fragment(run_every=GameConfig.TIME_UNIT_SECONDS)
def _render_timer(vm: GameViewModel) -> None:
    """Reruns once per time unit and pushes the session clock forward."""
    session = vm.session
    if session is None:
        return

    before = session.status
    vm.advance_clock()

    # A state change (expiry, end of celebration) needs the full page
    if vm.session is not session or session.status != before or vm.screen != SCREEN_GAME:
        st.rerun()
        return

    st.markdown(f'<div class="timer">{session.timer_text}</div>', unsafe_allow_html=True)
