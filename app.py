"""
StudyTrack - Personal course progress tracker

Streamlit application for tracking progress through textbook-based
courses: chapter checklists, a study clock and long-term heatmaps.

Usage:
    streamlit run app.py
"""

import asyncio
import time
from datetime import timedelta

import streamlit as st

from studytrack.config import DEFAULT_COURSES_DIR, DEFAULT_PROGRESS_DB, configure_logging
from studytrack.errors import CourseFormatError, CourseNotFoundError, ErrorReport, LoggingErrorReporter
from studytrack.schemas import Settings
from studytrack.storage import CourseLibrary, DatabasePersistence, ProgressDatabase
from studytrack.tracking import (
    CourseSession,
    SystemClock,
    calculate_course_progress,
    is_course_complete,
    is_course_started,
    sort_courses,
)
from studytrack.viewer import (
    get_progress_css,
    render_chapter_map,
    render_overall_heatmaps,
    render_time_meter,
)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

configure_logging()

st.set_page_config(
    page_title="StudyTrack",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run(coro):
    """Run a coroutine to completion from a Streamlit callback."""
    return asyncio.run(coro)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def init_session_state():
    """Initialize session state variables."""
    if "database" not in st.session_state:
        st.session_state.database = ProgressDatabase(DEFAULT_PROGRESS_DB)

    if "library" not in st.session_state:
        st.session_state.library = CourseLibrary(DEFAULT_COURSES_DIR)

    if "clock" not in st.session_state:
        st.session_state.clock = SystemClock()

    if "reporter" not in st.session_state:
        st.session_state.reporter = LoggingErrorReporter()

    if "settings" not in st.session_state:
        st.session_state.settings = st.session_state.database.get_settings()

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "home"  # home, course, settings

    if "course_session" not in st.session_state:
        st.session_state.course_session = None

    if "checklist_revision" not in st.session_state:
        st.session_state.checklist_revision = 0


def show_errors():
    """Display errors reported since the last run."""
    for report in st.session_state.reporter.take():
        st.error(f"**{report.message}**: {report.cause}")


# -----------------------------------------------------------------------------
# Course Sessions
# -----------------------------------------------------------------------------

def open_textbook(course_id: str, textbook_index: int):
    """Open a textbook, closing any session still open."""
    close_textbook()

    try:
        course = st.session_state.library.get_course(course_id)
    except (CourseNotFoundError, CourseFormatError) as e:
        st.session_state.reporter.report(ErrorReport.from_exception("Unable to open course", e))
        return

    persistence = DatabasePersistence(st.session_state.database, st.session_state.clock)
    session = CourseSession(
        course,
        textbook_index,
        persistence,
        st.session_state.clock,
        st.session_state.reporter,
        settings=st.session_state.settings,
    )
    # Ticks are driven by the clock fragment, not by a background task
    run(session.open(start_timer=False))

    st.session_state.course_session = session
    st.session_state.view_mode = "course"


def close_textbook():
    """Close the open session with a final flush."""
    session = st.session_state.course_session
    if session is not None:
        run(session.close())
        st.session_state.course_session = None


def toggle_item(identifier: str, widget_key: str):
    """Checkbox callback: push the new state through the session."""
    session = st.session_state.course_session
    if session is None:
        return
    run(session.toggle(identifier, st.session_state[widget_key]))
    # Re-key the checklist so cascaded changes are redrawn
    st.session_state.checklist_revision += 1


# -----------------------------------------------------------------------------
# Sidebar
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with navigation."""
    st.sidebar.title("📚 StudyTrack")

    modes = ["home", "course", "settings"]
    labels = {"home": "Home", "course": "Course", "settings": "Settings"}
    available = [m for m in modes if m != "course" or st.session_state.course_session]

    current = st.session_state.view_mode if st.session_state.view_mode in available else "home"
    choice = st.sidebar.radio(
        "View",
        available,
        index=available.index(current),
        format_func=lambda m: labels[m],
        label_visibility="collapsed",
    )
    st.session_state.view_mode = choice

    if st.session_state.course_session:
        session = st.session_state.course_session
        st.sidebar.divider()
        st.sidebar.markdown(f"**Open:** {session.course.title} / {session.textbook.label}")
        if st.sidebar.button("Close textbook", use_container_width=True):
            close_textbook()
            st.session_state.view_mode = "home"
            st.rerun()


# -----------------------------------------------------------------------------
# Home View
# -----------------------------------------------------------------------------

def render_home_view():
    """Render overall heatmaps and course listing."""
    database = st.session_state.database
    library = st.session_state.library
    settings = st.session_state.settings
    today = st.session_state.clock.today()

    st.title("Progress")
    st.markdown(get_progress_css(), unsafe_allow_html=True)

    time_map, chapter_map = render_overall_heatmaps(database.get_overall_progress(), settings, today)
    col1, col2 = st.columns(2)
    with col1:
        st.markdown(time_map, unsafe_allow_html=True)
    with col2:
        st.markdown(chapter_map, unsafe_allow_html=True)

    st.divider()

    active_ids = database.get_active_courses()
    courses = []
    for course in library.get_courses():
        completion, _ = database.get_course_completion(course.id)
        courses.append((course, calculate_course_progress(course, completion, today)))

    if not courses:
        st.info("No courses found. Install one with `python scripts/install_course.py <path>`.")
        return

    for course, progress in sort_courses(courses, set(active_ids)):
        render_course_card(course, progress, course.id in active_ids)


def render_course_card(course, progress, active: bool):
    """Render one course with chapter maps and today's time."""
    settings = st.session_state.settings

    status = "✓" if is_course_complete(progress) else ("→" if is_course_started(progress) else "○")
    with st.expander(f"{status} **{course.title}**", expanded=active):
        if course.description:
            st.caption(course.description)

        for index, book in enumerate(course.books):
            col1, col2 = st.columns([4, 1])
            with col1:
                st.markdown(render_chapter_map(progress.completion[index], book.label), unsafe_allow_html=True)
            with col2:
                if st.button("Open", key=f"open_{course.id}_{index}", use_container_width=True):
                    open_textbook(course.id, index)
                    st.rerun()

        if settings.show_course_clock:
            st.markdown(
                render_time_meter(progress.time_spent_today, settings.maximum_course_time),
                unsafe_allow_html=True,
            )

        new_active = st.checkbox("Active course", value=active, key=f"active_{course.id}")
        if new_active != active:
            set_course_active(course.id, new_active)
            st.rerun()


def set_course_active(course_id: str, active: bool):
    database = st.session_state.database
    active_ids = [cid for cid in database.get_active_courses() if cid != course_id]
    if active:
        active_ids.append(course_id)
    database.set_active_courses(active_ids)


# -----------------------------------------------------------------------------
# Course View
# -----------------------------------------------------------------------------

def render_course_view():
    """Render the chapter checklist for the open textbook."""
    session = st.session_state.course_session
    if session is None:
        st.info("Open a textbook from the home page to begin.")
        return

    session.refresh_model()
    model = session.model
    progress = session.progress()

    st.title(session.textbook.label)
    st.caption(session.course.title)
    st.markdown(get_progress_css(), unsafe_allow_html=True)

    render_study_clock()

    st.progress(progress.overall_completion)

    next_item = session.next_item()
    next_chapter = model.chapter_index_of(next_item) if next_item else None
    revision = st.session_state.checklist_revision

    for index, chapter in enumerate(model.chapters):
        if not chapter.completable:
            continue

        title = f"Chapter {index + 1}" + (f" ({chapter.root})" if chapter.root else "")
        indicator = "✓" if model.is_chapter_complete(index) else ("→" if index == next_chapter else "○")

        with st.expander(f"{indicator} {title}", expanded=index == next_chapter):
            if chapter.root:
                key = f"chk_{revision}_{chapter.root}"
                st.checkbox(
                    "Chapter complete",
                    value=model.is_checked(chapter.root),
                    key=key,
                    on_change=toggle_item,
                    args=(chapter.root, key),
                )
            for section in chapter.leaves:
                key = f"chk_{revision}_{section}"
                st.checkbox(
                    section,
                    value=model.is_checked(section),
                    key=key,
                    on_change=toggle_item,
                    args=(section, key),
                )


@st.fragment(run_every=timedelta(seconds=1))
def render_study_clock():
    """
    Tick the study clock and show today's time for this course.

    The fragment also runs on every full rerun, so time is credited by
    elapsed wall time rather than per call. Streamlit gives no page
    visibility signal: the clock stays visible while the fragment keeps
    running, and a long pause (tab closed, machine asleep) is not credited.
    """
    session = st.session_state.course_session
    settings = st.session_state.settings
    if session is None or session.closed:
        return

    run(session.accumulator.tick_due(time.monotonic()))

    if settings.show_course_clock:
        st.markdown(
            render_time_meter(session.store.time_spent_today(), settings.maximum_course_time),
            unsafe_allow_html=True,
        )
    minutes, seconds = divmod(session.store.time_spent_today(), 60)
    st.caption(f"Studied today: {minutes} min {seconds:02d} s")


# -----------------------------------------------------------------------------
# Settings View
# -----------------------------------------------------------------------------

def render_settings_view():
    """Render the settings form."""
    settings: Settings = st.session_state.settings

    st.title("Settings")

    with st.form("settings"):
        show_clock = st.checkbox("Show course clock", value=settings.show_course_clock)
        course_time = st.number_input(
            "Daily goal per course (minutes)", min_value=1, value=settings.maximum_course_time
        )
        daily_time = st.number_input(
            "Daily study time at full heatmap intensity (minutes)", min_value=1, value=settings.maximum_daily_time
        )
        daily_chapters = st.number_input(
            "Daily chapters at full heatmap intensity", min_value=0.1, value=float(settings.maximum_daily_chapters)
        )
        weeks = st.slider("Weeks displayed", 1, 104, settings.weeks_displayed)

        if st.form_submit_button("Save", type="primary"):
            updated = Settings(
                show_course_clock=show_clock,
                maximum_course_time=int(course_time),
                maximum_daily_time=int(daily_time),
                maximum_daily_chapters=float(daily_chapters),
                weeks_displayed=int(weeks),
                tick_interval=settings.tick_interval,
            )
            st.session_state.database.set_settings(updated)
            st.session_state.settings = updated
            st.success("Settings saved.")


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()
    show_errors()

    if st.session_state.view_mode == "home":
        render_home_view()
    elif st.session_state.view_mode == "course":
        render_course_view()
    elif st.session_state.view_mode == "settings":
        render_settings_view()


if __name__ == "__main__":
    main()
