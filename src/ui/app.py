"""
VoiceLedger Streamlit UI, main entry point.

Run with: ``streamlit run src/ui/app.py``

A pure projection of the service's session snapshot: typed input, the
auto-commit countdown with cancel, the search view vs. the default
collection view, manual edit forms and meal recommendations. Voice capture
is driven by a browser client connected to ``/ws/capture``.
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from src.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (src/ui/),
# which removes the project root needed for absolute ``src.*`` imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
import time  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import streamlit as st  # noqa: E402

from src.core.config import get_settings  # noqa: E402
from src.ui.api_client import APIError, get_api_client  # noqa: E402
from src.ui.components.item_card import render_habit, render_inventory_item  # noqa: E402

st.set_page_config(
    page_title="VoiceLedger",
    page_icon="\U0001f399\ufe0f",
    layout="centered",
)

_DEFAULTS = {
    "api_base_url": get_settings().service_base_url,
    "show_habits": False,
}

for key, value in _DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = value

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("\U0001f399\ufe0f VoiceLedger")
    st.caption("Say what changed; it is filed after 5 seconds unless you cancel")
    st.session_state.api_base_url = st.text_input(
        "Service URL",
        value=st.session_state.api_base_url,
    )
    client = get_api_client(st.session_state.api_base_url)
    conn_ok, conn_msg = client.check_connection()
    if conn_ok:
        st.success(f"Service: {conn_msg}")
    else:
        st.error(f"Service: {conn_msg}")
        st.stop()

    snapshot = client.get_session()
    language = st.radio(
        "Language",
        options=["zh", "en"],
        index=0 if snapshot["language"] == "zh" else 1,
        horizontal=True,
    )
    if language != snapshot["language"]:
        snapshot = client.set_language(language)

    st.session_state.show_habits = st.toggle(
        "Habits & shopping list", value=st.session_state.show_habits
    )
    if st.button("Reload collections", use_container_width=True):
        snapshot = client.refresh()

# ---------------------------------------------------------------------------
# Status and input
# ---------------------------------------------------------------------------
st.info(snapshot["status"])
if snapshot.get("error"):
    st.error(snapshot["error"])

mode = "secondary" if st.session_state.show_habits else "main"
busy = snapshot["state"] != "idle"

with st.form("utterance", clear_on_submit=False):
    text = st.text_area(
        "Utterance",
        value=snapshot["buffers"].get(mode, ""),
        placeholder="Type what changed, or record from the capture client...",
        disabled=busy,
    )
    if st.form_submit_button("Send", disabled=busy):
        try:
            snapshot = client.submit_text(text, mode=mode)
        except APIError as exc:
            st.error(exc.message)

# ---------------------------------------------------------------------------
# Verdict and countdown
# ---------------------------------------------------------------------------
verdict = snapshot.get("verdict")
if snapshot.get("countdown") is not None:
    col1, col2 = st.columns([3, 1])
    with col1:
        st.warning(snapshot["status"])
    with col2:
        if st.button("Cancel", type="primary", use_container_width=True):
            snapshot = client.cancel_pending_commit()
            st.rerun()
    time.sleep(1)
    st.rerun()
elif verdict and not verdict["retrieval"]:
    with st.expander("Classified change (not committed)", expanded=True):
        st.json(verdict["items"])
        if st.button("Commit now"):
            try:
                snapshot = client.confirm_verdict()
                st.rerun()
            except APIError as exc:
                st.error(exc.message)

# ---------------------------------------------------------------------------
# Search view or default view
# ---------------------------------------------------------------------------
search_view = snapshot.get("search_view")
if search_view is not None:
    titles = {
        "zh": {"lookup": "查询结果", "commit_result": "更新结果"},
        "en": {"lookup": "Search results", "commit_result": "Update results"},
    }
    st.subheader(titles.get(snapshot["language"], titles["zh"])[search_view["kind"]])
    st.caption(search_view["message"])
    for change in search_view.get("changes", []):
        st.markdown(f"- {change.get('type', '')} **{change.get('name', '')}** {change.get('desc', '')}")
    for item in search_view["items"]:
        if search_view["target"] == "HABIT":
            render_habit(item, client, editable=False)
        else:
            render_inventory_item(item, client, editable=False)
    if st.button("Back"):
        client.return_to_default_view()
        st.rerun()
elif st.session_state.show_habits:
    st.subheader("Habits")
    for habit in snapshot["habits"]:
        render_habit(habit, client)
else:
    st.subheader("Inventory")
    for item in snapshot["inventory"]:
        render_inventory_item(item, client)

# ---------------------------------------------------------------------------
# Meal plan
# ---------------------------------------------------------------------------
st.divider()
if st.button("Meal recommendations"):
    try:
        plan = client.recommend_meals()
        st.session_state["meal_plan"] = plan
    except APIError as exc:
        st.error(exc.message)

plan = st.session_state.get("meal_plan") or snapshot.get("meal_plan")
if plan:
    st.subheader("Meal plan")
    if plan.get("summary"):
        st.caption(plan["summary"])
    for suggestion in plan.get("suggestions", []):
        with st.container(border=True):
            st.markdown(f"**{suggestion['title']}**")
            if suggestion.get("rationale"):
                st.caption(suggestion["rationale"])
            st.write(suggestion.get("description", ""))
