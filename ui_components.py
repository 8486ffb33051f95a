"""
UI组件模块 - 所有Streamlit渲染函数
"""
import streamlit as st
import pandas as pd

from errors import SubmissionError
from field_resolver import MAX_YEAR, MIN_YEAR, Existing, New
from filter_query import ALL, ListingTracker, PaperFilter, with_change
from identity_session import CredentialStore
from submission_lifecycle import PaperStatus, PaperType, SubmissionDraft
from utils import format_file_size
from view_router import ROUTE_PATHS, Route

SEMESTERS = ["Fall 2024", "Spring 2024", "Summer 2024", "Fall 2025", "Spring 2025", "Summer 2025"]
STATUS_BADGES = {"pending": "🟡 PENDING", "approved": "🟢 APPROVED", "rejected": "🔴 REJECTED"}


class SessionStateCredentialStore(CredentialStore):
    """把凭据保存在 st.session_state 中"""

    def load(self):
        return st.session_state.get("token")

    def save(self, token: str):
        st.session_state.token = token

    def clear(self):
        st.session_state.pop("token", None)


def go_to(route: Route):
    """导航到指定页面，实际渲染哪个页面由视图路由决定"""
    st.session_state.path = ROUTE_PATHS[route]
    st.rerun()


def show_error(error: SubmissionError):
    st.error(f"❌ {error.message}")


# ================= 占位与首页 =================
def render_loading():
    """会话尚未恢复时的占位页，不做任何跳转"""
    with st.spinner("正在加载..."):
        st.empty()


def render_public_home():
    st.markdown("<h1 style='text-align: center;'>📚 Course Papers</h1>", unsafe_allow_html=True)
    st.markdown("<p style='text-align: center;'>提交课程作业、测验和考试材料，由管理员审核后归档。</p>", unsafe_allow_html=True)

    c1, c2 = st.columns(2)
    with c1:
        if st.button("🎓 学生登录", use_container_width=True, type="primary"):
            go_to(Route.STUDENT_AUTH)
    with c2:
        if st.button("🛡️ 管理员登录", use_container_width=True):
            go_to(Route.ADMIN_AUTH)


# ================= 登录页面 =================
def _login_form(client, form_key: str, title: str):
    st.subheader(title)
    with st.form(form_key):
        email = st.text_input("邮箱")
        password = st.text_input("密码", type="password")
        if st.form_submit_button("立即登录", use_container_width=True, type="primary"):
            try:
                client.login(email, password)
            except SubmissionError as e:
                show_error(e)
            else:
                st.rerun()


def render_student_login(client):
    """渲染学生登录/注册页面"""
    if "auth_mode" not in st.session_state:
        st.session_state.auth_mode = "login"

    c1, c2, c3 = st.columns([1, 1.2, 1])
    with c2:
        with st.container(border=True):
            if st.session_state.auth_mode == "login":
                _login_form(client, "student_login_form", "学生登录")
                if st.button("✨ 注册新账户", use_container_width=True):
                    st.session_state.auth_mode = "register"
                    st.rerun()
            else:
                st.subheader("创建新账户")
                with st.form("register_form"):
                    email = st.text_input("邮箱")
                    name = st.text_input("姓名")
                    password = st.text_input("设置密码", type="password")
                    if st.form_submit_button("确认注册", use_container_width=True, type="primary"):
                        try:
                            client.register(email, name, password)
                        except SubmissionError as e:
                            show_error(e)
                        else:
                            st.success("✅ 注册成功，请登录")
                            st.session_state.auth_mode = "login"
                if st.button("⬅️ 返回登录", use_container_width=True):
                    st.session_state.auth_mode = "login"
                    st.rerun()

        if st.button("🏠 返回首页", use_container_width=True):
            go_to(Route.PUBLIC)


def render_admin_login(client):
    c1, c2, c3 = st.columns([1, 1.2, 1])
    with c2:
        with st.container(border=True):
            if client.session.has_session and not client.session.is_admin:
                st.warning("当前账户不是管理员，请使用管理员账户登录")
            _login_form(client, "admin_login_form", "管理员登录")
        if st.button("🏠 返回首页", use_container_width=True):
            go_to(Route.PUBLIC)


# ================= 侧边栏 =================
def render_sidebar(client):
    user = client.session.user
    with st.sidebar:
        st.title("📚 Course Papers")
        st.caption(f"👤 {user.name} ({user.email})")
        if user.is_admin:
            st.info("🛡️ 管理员权限已激活")
        if st.button("退出登录", use_container_width=True):
            client.session.logout()
            go_to(Route.PUBLIC)


# ================= 论文列表 =================
def _filter_controls(courses: list[dict], include_status: bool) -> PaperFilter:
    """筛选控件，每个字段变化都会生成新的筛选条件"""
    paper_filter = st.session_state.get("paper_filter", PaperFilter())
    course_options = {ALL: "全部课程"} | {str(c["id"]): c["code"] for c in courses}
    type_options = [ALL] + [t.value for t in PaperType]
    year_options = [ALL] + [str(y) for y in range(MAX_YEAR, MIN_YEAR - 1, -1)]
    semester_options = [ALL] + SEMESTERS
    status_options = [ALL] + [s.value for s in PaperStatus]

    cols = st.columns(5 if include_status else 4)
    changes = {
        "course_id": cols[0].selectbox("课程", list(course_options), format_func=course_options.get),
        "paper_type": cols[1].selectbox("类型", type_options),
        "year": cols[2].selectbox("年份", year_options),
        "semester": cols[3].selectbox("学期", semester_options),
    }
    if include_status:
        changes["status"] = cols[4].selectbox("状态", status_options)

    for name, value in changes.items():
        paper_filter = with_change(paper_filter, name, value)
    st.session_state.paper_filter = paper_filter
    return paper_filter


def _render_paper_table(papers: list[dict]):
    if not papers:
        st.info("暂无论文")
        return
    df = pd.DataFrame([
        {
            "ID": p["id"],
            "标题": p["title"],
            "课程": p.get("course_code"),
            "类型": p["paper_type"],
            "年份": p["year"],
            "学期": p.get("semester"),
            "文件": p["file_name"],
            "大小": format_file_size(p["file_size"]),
            "状态": STATUS_BADGES.get(p["status"], p["status"]),
            "驳回原因": p.get("rejection_reason") or "",
            "提交时间": p["uploaded_at"],
        }
        for p in papers
    ])
    st.dataframe(df, use_container_width=True, hide_index=True)


def render_paper_listing(client, courses: list[dict], include_status: bool = False):
    """按筛选条件刷新论文列表"""
    if "listing" not in st.session_state:
        st.session_state.listing = ListingTracker()
    tracker = st.session_state.listing

    paper_filter = _filter_controls(courses, include_status)
    try:
        client.fetch_listing(tracker, paper_filter)
    except SubmissionError as e:
        show_error(e)
    _render_paper_table(tracker.results)


# ================= 学生页面 =================
def _upload_form(client, courses: list[dict]):
    """上传表单：课程和年份都是“选择已有 / 手动输入”二选一"""
    course_labels = {str(c["id"]): f"{c['code']} - {c['name']}" for c in courses}

    with st.form("upload_form", clear_on_submit=False):
        title = st.text_input("标题 *")
        description = st.text_area("描述")

        course_mode = st.radio("课程 *", ["选择已有课程", "输入新课程代码"], horizontal=True)
        if course_mode == "选择已有课程":
            selected = st.selectbox("已有课程", [""] + list(course_labels),
                                    format_func=lambda k: course_labels.get(k, "请选择"))
            course = Existing(selected) if selected else None
        else:
            text = st.text_input("新课程代码", placeholder="例如 CS101")
            course = New(text) if text.strip() else None

        c1, c2, c3 = st.columns(3)
        paper_type = c1.selectbox("类型", [t.value for t in PaperType])
        year_mode = c2.radio("年份 *", ["选择", "输入"], horizontal=True)
        if year_mode == "选择":
            year_value = c2.selectbox("年份", [""] + [str(y) for y in range(MAX_YEAR, MIN_YEAR - 1, -1)])
            year = Existing(year_value) if year_value else None
        else:
            year_text = c2.text_input("输入年份", placeholder=f"{MIN_YEAR}-{MAX_YEAR}")
            year = New(year_text) if year_text.strip() else None
        semester = c3.selectbox("学期", SEMESTERS)

        uploaded = st.file_uploader("文件 *")
        submitted = st.form_submit_button("提交", type="primary", use_container_width=True)

    if not submitted:
        return

    draft = SubmissionDraft(
        title=title,
        description=description,
        paper_type=paper_type,
        semester=semester,
        course=course,
        year=year,
        file_name=uploaded.name if uploaded else None,
        file_size=uploaded.size if uploaded else None,
    )
    try:
        paper = client.submit_paper(draft, uploaded.getvalue() if uploaded else b"")
    except SubmissionError as e:
        # 失败时表单内容保留，便于修改后重试
        show_error(e)
        return
    st.success(f"✅ 《{paper['title']}》已提交，等待审核")


def render_student_dashboard(client):
    render_sidebar(client)
    st.title("🎓 我的提交")

    try:
        courses = client.get_courses()
    except SubmissionError as e:
        show_error(e)
        courses = []

    with st.expander("📤 上传新论文", expanded=True):
        _upload_form(client, courses)

    st.subheader("我的论文")
    render_paper_listing(client, courses, include_status=True)


# ================= 管理员页面 =================
def _review_card(client, paper: dict):
    with st.container(border=True):
        st.markdown(f"**#{paper['id']} {paper['title']}**")
        st.caption(
            f"{paper.get('course_code')} · {paper['paper_type']} · {paper['year']} · "
            f"{paper.get('semester') or ''} · {paper.get('owner_name') or ''}"
        )
        if paper.get("description"):
            st.write(paper["description"])

        reason = st.text_input("驳回原因", key=f"reason_{paper['id']}")
        c1, c2 = st.columns(2)
        action = None
        if c1.button("✅ 通过", key=f"approve_{paper['id']}", use_container_width=True, type="primary"):
            action = (PaperStatus.APPROVED.value, None)
        if c2.button("⛔ 驳回", key=f"reject_{paper['id']}", use_container_width=True):
            action = (PaperStatus.REJECTED.value, reason)

        if action:
            try:
                client.review_paper(paper, *action)
            except SubmissionError as e:
                show_error(e)
            else:
                st.rerun()


def _course_admin(client, courses: list[dict]):
    with st.form("create_course_form"):
        c1, c2 = st.columns([1, 2])
        code = c1.text_input("课程代码")
        name = c2.text_input("课程名称")
        description = st.text_input("描述")
        if st.form_submit_button("➕ 新建课程", type="primary"):
            try:
                client.create_course(code, name, description or None)
            except SubmissionError as e:
                show_error(e)
            else:
                st.rerun()

    for course in courses:
        c1, c2 = st.columns([4, 1])
        c1.markdown(f"**{course['code']}** - {course['name']}")
        if c2.button("删除", key=f"delete_course_{course['id']}"):
            try:
                client.delete_course(course["id"])
            except SubmissionError as e:
                show_error(e)
            else:
                st.rerun()


def render_admin_dashboard(client):
    render_sidebar(client)
    st.title("🛡️ 审核控制台")

    tab1, tab2, tab3 = st.tabs(["📋 待审核", "📚 全部论文", "🏷️ 课程管理"])

    try:
        stats = client.get_dashboard_stats()
        courses = client.get_courses()
        pending = client.get_pending_papers()
    except SubmissionError as e:
        show_error(e)
        return

    with tab1:
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("待审核", stats["pending_papers"])
        c2.metric("已通过", stats["approved_papers"])
        c3.metric("已驳回", stats["rejected_papers"])
        c4.metric("存储占用", format_file_size(stats["total_storage"]))

        if not pending:
            st.info("没有待审核的论文")
        for paper in pending:
            _review_card(client, paper)

    with tab2:
        render_paper_listing(client, courses, include_status=True)

    with tab3:
        _course_admin(client, courses)
