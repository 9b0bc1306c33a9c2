"""Streamlit app for weekly coach scheduling."""

import io
import json
from datetime import date

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from app.coach_scheduler.config import GeneratorConfig, TieBreak
from app.coach_scheduler.models import (
    Coach,
    ScheduleAssignment,
    ScheduleInputError,
    Store,
    parse_snapshot,
)
from app.coach_scheduler.repository import InMemoryAssignmentStore, merge_week
from app.coach_scheduler.solver import GenerationResult, generate_week_schedule
from app.coach_scheduler.timeutils import day_of_week, month_days, week_days
from app.coach_scheduler.validator import validate_schedule
from app.coach_scheduler.workload import compute_stats, sort_by_hours

# Page config
st.set_page_config(page_title="Coach Scheduler", page_icon="📅", layout="wide")

WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def main() -> None:
    """Main app entry point."""
    st.sidebar.title("📅 Coach Scheduler")
    page = st.sidebar.radio(
        "Navigation",
        [
            "Load / JSON",
            "Coaches",
            "Stores",
            "Generate",
            "Schedule",
            "Export",
        ],
    )

    # Initialize session state
    if "coaches" not in st.session_state:
        st.session_state.coaches = None
    if "stores" not in st.session_state:
        st.session_state.stores = None
    if "assignment_store" not in st.session_state:
        st.session_state.assignment_store = InMemoryAssignmentStore()
    if "result" not in st.session_state:
        st.session_state.result = None

    # Route to pages
    if page == "Load / JSON":
        page_load_json()
    elif page == "Coaches":
        page_coaches()
    elif page == "Stores":
        page_stores()
    elif page == "Generate":
        page_generate()
    elif page == "Schedule":
        page_schedule()
    elif page == "Export":
        page_export()


def page_load_json() -> None:
    """Page: Load a coaches/stores/schedules snapshot."""
    st.title("📂 Load data")

    uploaded_file = st.file_uploader(
        "JSON snapshot",
        type=["json"],
        help='Expected: {"coaches": [...], "stores": [...], "schedules": [...]}',
    )

    if uploaded_file is not None:
        try:
            coaches, stores, schedules = parse_snapshot(json.loads(uploaded_file.getvalue()))
        except (ValidationError, json.JSONDecodeError) as e:
            st.error(f"❌ Could not load snapshot: {e}")
            return

        st.session_state.coaches = coaches
        st.session_state.stores = stores
        st.session_state.assignment_store = InMemoryAssignmentStore(schedules)
        st.session_state.result = None
        st.success(
            f"✅ Loaded {len(coaches)} coaches, {len(stores)} stores, "
            f"{len(schedules)} existing assignments"
        )

    st.markdown("---")
    st.markdown("### 📊 Current status")
    col1, col2, col3 = st.columns(3)
    with col1:
        if st.session_state.coaches:
            st.success(f"✅ {len(st.session_state.coaches)} coaches")
        else:
            st.warning("⚠️ No coaches loaded")
    with col2:
        if st.session_state.stores:
            st.success(f"✅ {len(st.session_state.stores)} stores")
        else:
            st.warning("⚠️ No stores loaded")
    with col3:
        st.info(f"ℹ️ {len(st.session_state.assignment_store)} stored assignments")


def page_coaches() -> None:
    """Page: Coach overview."""
    st.title("👤 Coaches")

    coaches: list[Coach] | None = st.session_state.coaches
    if not coaches:
        st.warning("⚠️ Load data first ('Load / JSON')")
        return

    store_names = {s.id: s.name for s in st.session_state.stores or []}
    rows = []
    for c in coaches:
        rows.append({
            "ID": c.id,
            "Name": c.name,
            "Type": c.employment_type.value if c.employment_type else "-",
            "Primary store": store_names.get(c.primary_store_id or "", c.primary_store_id or "-"),
            "Secondary stores": ", ".join(
                store_names.get(link.store_id, link.store_id) for link in c.stores if not link.is_primary
            ),
            "Availability": (
                ", ".join(WEEKDAY_LABELS[d] for d in sorted(c.availability.week_schedule))
                if c.availability is not None
                else "any day"
            ),
        })
    st.dataframe(pd.DataFrame(rows), use_container_width=True)


def page_stores() -> None:
    """Page: Stores and shift definitions."""
    st.title("🏪 Stores")

    stores: list[Store] | None = st.session_state.stores
    if not stores:
        st.warning("⚠️ Load data first ('Load / JSON')")
        return

    for store in stores:
        label = f"{store.name} (archived)" if store.archived else store.name
        with st.expander(label, expanded=not store.archived):
            if not store.shifts:
                st.warning("⚠️ No shifts configured")
                continue
            rows = [
                {
                    "Shift": s.name,
                    "ID": s.id,
                    "Time": f"{s.start}-{s.end}",
                    "Hours": s.duration_hours(),
                    "Days": (
                        ", ".join(WEEKDAY_LABELS[d] for d in s.days_of_week)
                        if s.days_of_week
                        else "every day"
                    ),
                    "Coaches": f"{s.min_coaches}-{s.max_coaches}",
                }
                for s in store.shifts
            ]
            st.dataframe(pd.DataFrame(rows), use_container_width=True)


def page_generate() -> None:
    """Page: Generate a week."""
    st.title("🔨 Generate schedule")

    if not st.session_state.coaches or not st.session_state.stores:
        st.warning("⚠️ Load data first ('Load / JSON')")
        return

    anchor = st.date_input("Any day of the target week", value=date.today())
    week = week_days(anchor)
    st.info(f"📅 Week: {week[0]} - {week[-1]}")

    # SCHEDULER_* environment variables provide the defaults
    defaults = GeneratorConfig.from_env()
    tie_options = [TieBreak.RANDOM, TieBreak.COACH_ID]

    col1, col2 = st.columns(2)
    with col1:
        tie_break = st.selectbox(
            "Tie-break",
            options=tie_options,
            index=tie_options.index(defaults.tie_break),
            format_func=lambda x: "Random" if x == TieBreak.RANDOM else "Coach ID (reproducible)",
        )
    with col2:
        seed = defaults.random_seed if defaults.random_seed is not None else 42
        random_seed = st.number_input(
            "Random seed (optional)",
            min_value=min(0, seed),
            max_value=max(9999, seed),
            value=seed,
            step=1,
        )

    if st.button("🚀 Generate", type="primary"):
        config = defaults.model_copy(update={"tie_break": tie_break, "random_seed": int(random_seed)})
        try:
            result = generate_week_schedule(
                st.session_state.coaches, st.session_state.stores, week, config
            )
        except ScheduleInputError as e:
            st.error(f"❌ Generation failed: {e}")
            return

        st.session_state.result = result
        st.success(f"✅ Generated {len(result.assignments)} assignments")

        understaffed = result.understaffed_slots()
        if understaffed:
            st.warning(f"⚠️ {len(understaffed)} slots below minimum staffing")
        _show_diagnostics(result)

    result: GenerationResult | None = st.session_state.result
    if result is not None and st.button("💾 Save week"):
        st.session_state.assignment_store.replace_range(
            result.week[0], result.week[-1], result.assignments
        )
        st.success(f"✅ Saved {len(result.assignments)} assignments for {result.week[0]}")


def _show_diagnostics(result: GenerationResult) -> None:
    rows = [d.model_dump(mode="json") for d in result.diagnostics]
    if rows:
        st.markdown("### Diagnostics")
        st.dataframe(pd.DataFrame(rows), use_container_width=True, height=400)


def _current_assignments(week: list[str]) -> list[ScheduleAssignment]:
    """Stored assignments with any unsaved generated week laid over them."""
    stored = st.session_state.assignment_store.all()
    result: GenerationResult | None = st.session_state.result
    if result is not None and result.week == week:
        return merge_week(stored, result.assignments, week)
    return stored


def page_schedule() -> None:
    """Page: Calendar, workload statistics and validation."""
    st.title("📅 Schedule")

    coaches: list[Coach] | None = st.session_state.coaches
    stores: list[Store] | None = st.session_state.stores
    if not coaches or not stores:
        st.warning("⚠️ Load data first ('Load / JSON')")
        return

    anchor = st.date_input("Week", value=date.today(), key="view_week")
    week = week_days(anchor)
    assignments = _current_assignments(week)

    tab_calendar, tab_stats, tab_validation = st.tabs(["📆 Calendar", "📊 Workload", "✅ Validation"])

    coach_names = {c.id: c.name for c in coaches}
    active_stores = [s for s in stores if not s.archived]

    with tab_calendar:
        for store in active_stores:
            st.markdown(f"### {store.name}")
            rows = []
            for date_str in week:
                row = {"Date": date_str, "Day": WEEKDAY_LABELS[day_of_week(date_str)]}
                for shift in store.shifts_on(date_str):
                    names = [
                        coach_names.get(a.coach_id, a.coach_id)
                        for a in assignments
                        if a.store_id == store.id and a.date_str == date_str and a.shift_id == shift.id
                    ]
                    # Empty slots stay visible
                    row[shift.name] = ", ".join(names) if names else "⚠️ empty"
                rows.append(row)
            st.dataframe(pd.DataFrame(rows), use_container_width=True)

    with tab_stats:
        period = st.radio("Period", ["Week", "Month"], horizontal=True)
        dates = week if period == "Week" else month_days(anchor)
        stats = compute_stats(coaches, assignments, stores, dates)
        rows = [
            {
                "Coach": coach_names.get(coach_id, coach_id),
                "Hours": round(s.total_hours, 1),
                "Shifts": s.total_shifts,
                "Days": s.days_worked,
                "Rest days": s.rest_days(len(dates)),
            }
            for coach_id, s in sort_by_hours(stats)
        ]
        st.dataframe(pd.DataFrame(rows), use_container_width=True)

    with tab_validation:
        validation = validate_schedule(assignments, coaches, stores, dates=week)
        if validation.is_valid():
            st.success(f"✅ {validation}")
        else:
            st.error(f"❌ {validation}")
            for v in validation.hard_violations:
                st.text(str(v))
        for v in validation.soft_violations:
            st.text(str(v))


def page_export() -> None:
    """Page: Export the generated week."""
    st.title("💾 Export")

    result: GenerationResult | None = st.session_state.result
    if result is None:
        st.warning("⚠️ Generate a schedule first")
        return

    coach_names = {c.id: c.name for c in st.session_state.coaches}
    store_names = {s.id: s.name for s in st.session_state.stores}
    df_export = pd.DataFrame(
        [
            {
                "Date": a.date_str,
                "Day": WEEKDAY_LABELS[day_of_week(a.date_str)],
                "Store": store_names.get(a.store_id, a.store_id),
                "Shift": a.shift_name,
                "Coach": coach_names.get(a.coach_id, a.coach_id),
            }
            for a in sorted(result.assignments, key=lambda a: (a.date_str, a.store_id))
        ]
    )

    csv_buffer = io.StringIO()
    df_export.to_csv(csv_buffer, index=False, encoding="utf-8-sig")
    json_data = json.dumps(
        [a.model_dump(mode="json", by_alias=True, exclude_none=True) for a in result.assignments],
        ensure_ascii=False,
        indent=2,
    )

    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            label="📥 Download CSV",
            data=csv_buffer.getvalue(),
            file_name=f"schedule_{result.week[0]}.csv",
            mime="text/csv",
        )
    with col2:
        st.download_button(
            label="📥 Download JSON",
            data=json_data,
            file_name=f"schedule_{result.week[0]}.json",
            mime="application/json",
        )

    st.markdown("---")
    st.markdown("### Preview")
    st.dataframe(df_export, use_container_width=True, height=600)


if __name__ == "__main__":
    main()
