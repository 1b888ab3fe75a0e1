"""
Login Page - email sign-in

Users are looked up by their auth ID and registered as editors on first
sign-in.
"""
import logging

import streamlit as st

from fracturelab.services.annotation import DataGateway, GatewayError
from fracturelab.pages.review import get_app_state, get_gateway

logger = logging.getLogger(__name__)


def is_valid_email(email: str) -> bool:
    local, _, domain = email.partition("@")
    return bool(local) and "." in domain and not domain.startswith(".") and not domain.endswith(".")


def sign_in(gateway: DataGateway, email: str) -> bool:
    """Sign in with an email address. Returns True on success."""
    email = email.strip()
    if not is_valid_email(email):
        st.error("Please enter a valid email address")
        return False

    try:
        user = gateway.check_and_create_user(email=email, auth_id=email.lower())
    except GatewayError as e:
        st.error(f"Sign-in failed: {e}")
        return False

    logger.info(f"User {user.email} signed in")
    get_app_state().user = user
    return True


def render_login_page():
    """Main login page render function"""
    st.title("FractureLab")
    st.write("Sign in to review fracture detections")

    email = st.text_input("Email", key="login_email")
    if st.button("Sign In", type="primary", disabled=not email):
        if sign_in(get_gateway(), email):
            st.rerun()
