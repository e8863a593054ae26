import logging
import streamlit as st

from vms.config import settings
from vms.errors import (
    CatalogUnavailable,
    MissingContractorContext,
    SessionExpired,
    SubmissionFailed,
    TrainingError,
    ValidationFailure,
)
from vms.models.progress import ModuleStatus
from vms.services.api_client import TrainingAPI
from vms.services.local_store import default_store
from vms.services.workflow import start_training

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

STATUS_ICONS = {
    ModuleStatus.PASSED: "✅",
    ModuleStatus.IN_PROGRESS: "📚",
    ModuleStatus.FAILED: "❌",
    ModuleStatus.UNLOCKABLE: "▶️",
    ModuleStatus.LOCKED: "⏳",
}

def format_elapsed(seconds: int) -> str:
    return f"{seconds // 60:02d}:{seconds % 60:02d}"

def go_to(page: str):
    st.session_state.page = page
    st.rerun()

# Initialize session state
if "page" not in st.session_state:
    st.session_state.page = "training"

if "store" not in st.session_state:
    st.session_state.store = default_store()

if "api" not in st.session_state:
    st.session_state.api = TrainingAPI()

if "workflow" not in st.session_state:
    st.session_state.workflow = None

if "module_index" not in st.session_state:
    st.session_state.module_index = 0

store = st.session_state.store
api = st.session_state.api

st.set_page_config(layout="wide")


def render_check_in():
    st.title("Contractor Check-in")
    notice = st.session_state.pop("check_in_notice", None)
    if notice:
        st.warning(notice)
    st.write("Enter the contractor ID you received at check-in to start your site training.")
    contractor_id = st.text_input("Contractor ID")
    if st.button("Start Training", disabled=not contractor_id):
        store.contractor_id = contractor_id.strip()
        st.session_state.workflow = None
        go_to("training")


def load_workflow():
    try:
        workflow = start_training(api, store)
    except MissingContractorContext as e:
        st.session_state.check_in_notice = str(e)
        go_to("check-in")
    except SessionExpired as e:
        st.error(str(e))
        st.stop()
    except CatalogUnavailable as e:
        logger.error(f"Error loading training: {str(e)}")
        st.error(f"Failed to load training: {str(e)}")
        st.info("Reload the page to try again.")
        st.stop()
    st.session_state.workflow = workflow
    st.session_state.module_index = workflow.current_index() or 0
    return workflow


def render_sidebar(workflow):
    st.sidebar.title("Training Progress")
    st.sidebar.progress(workflow.progress())
    for idx, module in enumerate(workflow.catalog):
        status = workflow.status(idx)
        label = f"{STATUS_ICONS[status]} {module.title}"
        if status == ModuleStatus.LOCKED:
            st.sidebar.text(label)
        elif st.sidebar.button(label, key=f"nav-{idx}"):
            st.session_state.module_index = idx
            st.rerun()
    remaining = sum(1 for idx in range(len(workflow.catalog)) if workflow.status(idx) != ModuleStatus.PASSED)
    if remaining:
        st.sidebar.info(f"📝 {remaining} modules remaining")


def render_media(workflow, idx, module):
    state = workflow.tracker.state(idx)

    st.subheader(f"{module.title} - Videos")
    if not module.videos:
        st.write("No videos available")
    for video in module.videos:
        st.markdown(f"**{video.name}**")
        st.video(video.url)
        if video.name in state.videos_watched:
            st.success("✔ Video watched")
        elif st.button("I have watched this video", key=f"video-{idx}-{video.name}"):
            workflow.mark_video_watched(idx, video.name)
            st.rerun()

    st.subheader(f"{module.title} - Books")
    if not module.books:
        st.write("No books available")
    for book in module.books:
        st.markdown(f"**{book.name}** - [Read book]({book.url})")
        if book.name in state.books_signed:
            st.success("✔ Book Signed")
        elif st.button("✍️ Sign Book", key=f"book-{idx}-{book.name}"):
            workflow.mark_book_signed(idx, book.name)
            st.rerun()


def render_quiz(workflow, idx, module):
    state = workflow.tracker.state(idx)
    st.subheader(f"{module.title} - Quiz")
    if not module.has_quiz:
        st.write("No quiz available")

    for q_idx, question in enumerate(module.questions):
        current = state.selected_answers.get(q_idx)
        choice = st.radio(
            f"{q_idx + 1}. {question.question}",
            options=list(range(len(question.options))),
            format_func=lambda option, options=question.options: options[option],
            index=current,
            key=f"quiz-{idx}-{q_idx}",
            disabled=workflow.status(idx) == ModuleStatus.PASSED,
        )
        if choice is not None and choice != current:
            workflow.set_answer(idx, q_idx, choice)

    if state.last_score is not None:
        if state.passed:
            st.success(f"Score: {state.last_score}%")
        else:
            st.error(
                f"You scored {state.last_score}%. You need at least {module.required_score}% to pass. Try again."
            )

    if workflow.status(idx) == ModuleStatus.PASSED:
        st.success("✔ Training Completed")
        return

    reason = workflow.blocked_reason(idx)
    if reason:
        st.caption(reason)
    unanswered = workflow.tracker.unanswered(idx)
    if unanswered and not reason:
        st.caption(f"{len(unanswered)} question(s) unanswered; they will count as incorrect.")

    label = "Submit Quiz" if module.has_quiz else "✅ Mark as Completed & Continue"
    if st.button(label, disabled=not workflow.can_submit(idx), key=f"submit-{idx}"):
        try:
            outcome = workflow.submit_quiz(idx)
        except SubmissionFailed as e:
            st.error(str(e))
            return
        except ValidationFailure as e:
            st.warning(str(e))
            return
        if outcome.finished:
            go_to("success")
        if outcome.passed and outcome.next_index is not None:
            st.session_state.module_index = outcome.next_index
        st.rerun()


def render_training():
    workflow = st.session_state.workflow or load_workflow()

    if workflow.finished:
        go_to("success")

    if not workflow.catalog:
        st.title("No Training Available")
        st.write("There are currently no training modules available for you to complete.")
        return

    render_sidebar(workflow)

    if workflow.awaiting_finalize:
        st.title("All modules passed")
        st.write("Your course completion has not been recorded yet.")
        if st.button("Submit training"):
            try:
                workflow.finish()
            except TrainingError as e:
                st.error(str(e))
                return
            go_to("success")
        return

    idx = st.session_state.module_index
    module = workflow.catalog[idx]
    try:
        workflow.open_module(idx)
    except ValidationFailure as e:
        st.warning(str(e))
        return

    col1, col2 = st.columns([3, 1])
    with col1:
        st.title(module.title)
        st.write(module.description)
    with col2:
        st.metric("Time spent", format_elapsed(workflow.elapsed(idx)))
        st.caption(f"Pass mark: {module.required_score}%")

    render_media(workflow, idx, module)
    render_quiz(workflow, idx, module)


def render_success():
    workflow = st.session_state.workflow
    result = workflow.finalizer.result if workflow else None

    st.title("🎉 Training Completed!")
    st.balloons()
    score = result.score if result else store.last_score
    if score is not None:
        st.markdown(f"**Your Score:** {score}%")

    st.subheader("✅ Courses You Have Completed:")
    titles = []
    if workflow is not None:
        try:
            titles = [record.title for record in api.get_completed_trainings(workflow.contractor_id)]
        except TrainingError as e:
            logger.error(f"Failed to fetch completed trainings: {str(e)}")
            st.error("Error loading completed trainings")
            titles = result.completed_titles if result else []
    if titles:
        for title in titles:
            st.markdown(f"- {title}")
    else:
        st.write("No courses found.")

    if st.button("Go to Home"):
        store.last_score = None
        st.session_state.workflow = None
        go_to("check-in")


if st.session_state.page == "check-in":
    render_check_in()
elif st.session_state.page == "success":
    render_success()
else:
    render_training()
