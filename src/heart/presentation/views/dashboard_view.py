import streamlit as st

from src.config import GameConfig, Mode
from src.heart.presentation.viewmodel import SCREEN_DASHBOARD, GameViewModel
from src.heart.presentation.views import components


def _mode_caption(mode: Mode) -> str:
    if not mode.is_timed:
        return "Unlimited time"
    return f"{mode.seconds}s per puzzle"


def render(vm: GameViewModel) -> None:
    profile = vm.load_profile()
    if profile is None:
        if vm.screen != SCREEN_DASHBOARD:
            st.rerun()
            return
        # Signed in but the profile could not be read
        components.render_messages(vm.pop_messages())
        if st.button("🔄 Retry"):
            st.rerun()
        if st.button("🚪 Log out", key="logout_no_profile"):
            vm.sign_out()
            st.rerun()
        return

    st.title(f"🎯 {GameConfig.APP_TITLE}")
    components.render_profile_card(profile)

    st.markdown("---")
    st.subheader("Choose your mode")

    columns = st.columns(len(Mode))
    for col, mode in zip(columns, Mode, strict=True):
        with col:
            if st.button(
                f"{mode.icon} {mode.label.title()}",
                key=f"mode_{mode.label}",
                use_container_width=True,
            ):
                vm.start_game(mode)
                st.rerun()
            st.caption(_mode_caption(mode))

    st.markdown("---")
    if st.button("🚪 Log out"):
        vm.sign_out()
        st.rerun()
