import streamlit as st

from config.app_config import get_config
from infrastructure.monitoring.logging_service import initialize_logging, get_logger
from services.chat_service.session import ConversationSession

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)

config = get_config()


def get_session() -> ConversationSession:
    """One conversation session per browser session"""
    if "chat_session" not in st.session_state:
        st.session_state.chat_session = ConversationSession.create()
        logger.info("Chat session created", extra={"session_id": st.session_state.chat_session.session_id})
    return st.session_state.chat_session


def render_messages(session: ConversationSession):
    for message in session.messages:
        role = "user" if message.is_user else "assistant"
        st.chat_message(role).markdown(message.text)


def main():
    st.set_page_config(page_title=config.ui.app_title, page_icon="🧵")
    st.title(config.ui.app_title)

    session = get_session()

    with st.sidebar:
        label = "Hide support chat" if session.is_open else "Open support chat"
        if st.button(label, use_container_width=True):
            session.toggle()
            st.rerun()

        if session.is_open and st.button("Start over", use_container_width=True, disabled=session.is_loading):
            session.reset()
            st.rerun()

    if not session.is_open:
        st.info("Questions about fabrics, custom orders or shipping? Open the support chat from the sidebar.")
        return

    render_messages(session)

    prompt = st.chat_input(config.ui.input_placeholder, disabled=session.is_loading)
    if prompt:
        with st.spinner("Looking that up..."):
            session.submit(prompt)
        st.rerun()


if __name__ == "__main__":
    main()
