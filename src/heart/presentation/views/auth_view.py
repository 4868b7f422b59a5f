import streamlit as st

from src.heart.presentation.viewmodel import GameViewModel


def render(vm: GameViewModel) -> None:
    st.title("❤️ Heart Quiz")
    st.caption("Count the hearts, beat the clock.")

    tab_login, tab_signup = st.tabs(["Sign in", "Sign up"])

    with tab_login:
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            if st.form_submit_button("Sign in", type="primary"):
                if vm.sign_in(email, password):
                    st.rerun()

    with tab_signup:
        with st.form("signup_form"):
            username = st.text_input("Username")
            email = st.text_input("Email", key="signup_email")
            password = st.text_input("Password", type="password", key="signup_password")
            if st.form_submit_button("Create account"):
                if vm.sign_up(email, password, username):
                    st.rerun()
