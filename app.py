"""
Course Papers - Streamlit 入口
负责会话初始化和页面路由
"""
import streamlit as st

from api_client import PaperApiClient
from errors import RemoteError
from identity_session import IdentitySession
from ui_components import (
    SessionStateCredentialStore, render_admin_dashboard, render_admin_login, render_loading,
    render_public_home, render_student_dashboard, render_student_login,
)
from view_router import Action, Route, navigate, route_for_path

# ================= 核心配置 =================
st.set_page_config(
    page_title="Course Papers",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded"
)

PAGES = {
    Route.PUBLIC: render_public_home,
    Route.STUDENT_AUTH: render_student_login,
    Route.ADMIN_AUTH: render_admin_login,
    Route.STUDENT_AREA: render_student_dashboard,
    Route.ADMIN_AREA: render_admin_dashboard,
}


def get_client() -> PaperApiClient:
    """每个浏览器会话持有一个身份会话和对应的客户端"""
    if "client" not in st.session_state:
        session = IdentitySession(SessionStateCredentialStore())
        st.session_state.client = PaperApiClient(session)
        st.session_state.path = st.query_params.get("page", "/")
    return st.session_state.client


# ================= 主程序入口 =================
if __name__ == "__main__":
    client = get_client()

    decision = navigate(client.session, route_for_path(st.session_state.path))
    if decision.action == Action.PLACEHOLDER:
        render_loading()
        try:
            client.restore_session()
        except RemoteError as e:
            st.error(f"❌ 无法连接后端: {e.message}")
            st.stop()
        st.rerun()

    st.session_state.path = decision.path
    st.query_params["page"] = decision.path

    page = PAGES[decision.target]
    if decision.target == Route.PUBLIC:
        page()
    else:
        page(client)
