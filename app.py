# app.py
# Run:
#   streamlit run app.py
#
# Data lives in data/habits.db (override the folder with HABITS_DATA_DIR).
# Completion flags are cleared automatically the first time the app starts
# on a new calendar day.

import html
import logging
import os
import sys

import plotly.graph_objects as go
import streamlit as st

from app_utils.plots import completion_chart
from app_utils.storage import DATA_DIR, DB_PATH, StorageError, default_store
from features.habits import HabitStore
from features.insights import day_summary, habits_frame


# =========================
# 0) APP CONFIG + THEME
# =========================
def setup_logging():
    handlers = [logging.StreamHandler(sys.stdout)]
    try:
        os.makedirs(DATA_DIR, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(DATA_DIR, "habits.log"), encoding="utf-8"))
    except OSError as exc:
        print(f"habits.log not writable, logging to stdout only: {exc}", file=sys.stderr)
    logging.basicConfig(
        level=os.environ.get("HABITS_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )
    return logging.getLogger(__name__)

logger = setup_logging()

st.set_page_config(page_title="Today's Habits", layout="centered", page_icon="✅")

CUSTOM_CSS = """
<style>
.block-container {padding-top: 1.2rem; padding-bottom: 2rem; max-width: 900px;}
h1, h2, h3 {letter-spacing: -0.02em;}
.card {
  border: 1px solid rgba(255,255,255,0.08);
  background: rgba(255,255,255,0.03);
  border-radius: 18px;
  padding: 16px 16px;
  box-shadow: 0 12px 30px rgba(0,0,0,0.18);
}
.small {opacity: 0.85; font-size: 0.92rem;}
.badge {
  display:inline-block;
  padding: 4px 10px;
  border-radius: 999px;
  background: rgba(34, 197, 94, 0.18);
  border: 1px solid rgba(34, 197, 94, 0.35);
  font-size: 0.85rem;
}
.done {text-decoration: line-through; opacity: 0.6;}
hr {opacity: 0.25;}
</style>
"""
st.markdown(CUSTOM_CSS, unsafe_allow_html=True)

# =========================
# 1) STORE (one per server process)
# =========================
@st.cache_resource
def get_store():
    store = HabitStore(default_store())
    store.subscribe(lambda habits: logger.debug("habit list now has %d entries", len(habits)))
    return store

try:
    store = get_store()
except (StorageError, OSError) as exc:
    logger.exception("cannot open habit database at %s", DB_PATH)
    st.error(f"Could not open the habit database at {DB_PATH}: {exc}")
    st.stop()

# =========================
# 2) PLOTS
# =========================
def progress_donut(summary):
    if summary["total"] == 0:
        return None
    fig = go.Figure(go.Pie(
        values=[summary["done"], summary["remaining"]],
        labels=["Done", "Open"],
        hole=0.65,
        sort=False,
        marker=dict(colors=["#22c55e", "rgba(255,255,255,0.12)"]),
        textinfo="none",
    ))
    fig.update_layout(
        template="plotly_dark",
        height=240,
        margin=dict(l=16, r=16, t=16, b=16),
        showlegend=False,
        annotations=[dict(text=f"{summary['score']:.0%}", x=0.5, y=0.5, font_size=28, showarrow=False)],
    )
    return fig

# =========================
# 3) UI BLOCKS
# =========================
def header_block(summary):
    st.markdown(f"""
    <div class="card">
      <div style="display:flex; justify-content:space-between; align-items:flex-start; gap:12px;">
        <div>
          <h2 style="margin:0;">Today's Habits</h2>
          <div class="small">{summary['done']} of {summary['total']} done · {summary['remaining']} to go</div>
        </div>
        <div class="badge">{summary['score']:.0%}</div>
      </div>
    </div>
    """, unsafe_allow_html=True)

def habit_list():
    habits = store.habits
    if not habits:
        st.caption("No habits yet. Add one below.")
        return
    for habit in habits:
        c1, c2 = st.columns([5, 1])
        with c1:
            css = "done" if habit.is_completed else ""
            st.markdown(f'<div class="{css}" style="padding-top:6px;">{html.escape(habit.name)}</div>', unsafe_allow_html=True)
        with c2:
            icon = "✅" if habit.is_completed else "⬜"
            if st.button(icon, key=f"toggle_{habit.id}"):
                store.toggle_habit(habit.id)
                st.rerun()

def add_form():
    with st.form("add_habit", clear_on_submit=True):
        name = st.text_input("Habit name", value="")
        submitted = st.form_submit_button("Add")
    if submitted:
        if not name.strip():
            st.warning("Give the habit a name first.")
            return
        store.add_habit(name.strip())
        st.rerun()

def delete_panel():
    habits = store.habits
    if not habits:
        return
    with st.expander("Delete habits"):
        picked = st.multiselect(
            "Habits to delete",
            options=list(range(len(habits))),
            format_func=lambda i: f"{i + 1}. {habits[i].name}",
            key="delete_positions",
        )
        if st.button("Delete selected", disabled=not picked):
            store.delete_habit(picked)
            st.rerun()

def storage_panel():
    with st.expander("Storage"):
        st.caption(f"Database: {DB_PATH}")
        try:
            st.dataframe(store.storage.load_entries(), use_container_width=True, hide_index=True)
        except StorageError as exc:
            logger.warning("storage panel unavailable: %s", exc)
            st.caption("Storage could not be read.")

# =========================
# 4) APP UI
# =========================
summary = day_summary(store.habits)

if store.reset_on_startup:
    st.info("New day: completions from yesterday were cleared.")

header_block(summary)

st.sidebar.markdown("### Actions")
if st.sidebar.button("Reset"):
    store.reset_habits()
    st.rerun()
st.sidebar.markdown("---")
st.sidebar.write("• Habits reset automatically each new day.")
st.sidebar.write(f"• Habits stored in **{DB_PATH}**")

habit_list()
add_form()
delete_panel()

st.markdown("---")
c1, c2 = st.columns([1, 2])
with c1:
    donut = progress_donut(summary)
    if donut is not None:
        st.plotly_chart(donut, use_container_width=True)
with c2:
    chart = completion_chart(habits_frame(store.habits))
    if chart is not None:
        st.pyplot(chart)

storage_panel()

st.caption(f"Local DB: {DB_PATH} · Single-user habit tracker")
