"""Streamlit workbench for the rating-weighting and compatibility engine."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pandas as pd
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from src.ratings.config import (  # noqa: E402
    RATING_SCALES,
    WEIGHT_PRESETS,
    settings,
)
from src.ratings.criteria import CRITERIA  # noqa: E402
from src.ratings.engine import (  # noqa: E402
    CompatibilityEngine,
    load_ratings_from_json,
    load_sample_ratings,
)
from src.ratings.models import (  # noqa: E402
    CompatibilityOutcome,
    CompatibilityResult,
    Rating,
    StoredPreferences,
)
from src.ratings.scoring.compatibility import compare_profiles  # noqa: E402
from src.ratings.scoring.weights import resolve, resolve_stored  # noqa: E402
from src.ratings.storage import (  # noqa: E402
    InMemoryPreferenceRepository,
    InMemoryRatingRepository,
)

logging.basicConfig(level=logging.INFO)

st.set_page_config(page_title="Reader Compatibility", layout="wide")
st.title("Rating Weights & Reader Compatibility")

VIEWER_ID = "workbench-viewer"

_UPLOAD_HELP = """\
Upload a JSON array of ratings.  Each entry needs the five criteria; `bookId`,
`authorId` and `userId` tie it to a book, an author and a reviewer:

```json
[
  {"bookId": 1, "authorId": 1, "userId": 101,
   "enjoyment": 5, "writing": 4, "themes": 4, "characters": 5, "worldbuilding": 3}
]
```
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _preferences_editor(key: str, label: str) -> StoredPreferences | None:
    """Sidebar-style editor for one reader's preferences."""
    mode = st.radio(
        label,
        ["Default", "Ranked order", "Explicit weights"],
        horizontal=True,
        key=f"{key}_mode",
    )
    if mode == "Ranked order":
        order = st.multiselect(
            "Most to least important",
            [c.value for c in CRITERIA],
            default=[c.value for c in CRITERIA],
            key=f"{key}_order",
        )
        return StoredPreferences(user_id=key, criteria_order=order)
    if mode == "Explicit weights":
        defaults = resolve(preset=st.session_state.get("preset"))
        weights = {
            c.value: st.slider(
                c.label, 0.0, 1.0, defaults.weight(c), 0.01,
                help=c.description, key=f"{key}_{c.value}",
            )
            for c in CRITERIA
        }
        return StoredPreferences(user_id=key, weights=weights)
    return None


def _ratings_frame(ratings: list[Rating]) -> pd.DataFrame:
    rows = [
        {"book": r.book_id, "author": r.author_id, "reviewer": r.user_id,
         **{c.value: r.value(c) for c in CRITERIA}}
        for r in ratings
    ]
    return pd.DataFrame(rows)


def _render_outcome(outcome: CompatibilityOutcome) -> None:
    agg = outcome.author_ratings
    if agg.has_data:
        cols = st.columns(len(CRITERIA) + 1)
        cols[0].metric("Overall", f"{agg.overall:.2f}")
        for col, (c, mean) in zip(cols[1:], agg.means().items()):
            col.metric(c.label, f"{mean:.2f}")

    if not outcome.has_enough_ratings:
        st.warning(
            f"Not enough ratings yet: {outcome.total_ratings} so far, "
            f"{outcome.ratings_needed} more needed.",
        )
        return

    _render_result(outcome)


def _render_result(result: CompatibilityResult) -> None:
    st.metric(
        "Compatibility",
        result.overall,
        delta=f"{result.score:+d}",
        help=f"Normalized difference {result.normalized_difference:.4f}",
    )
    df = pd.DataFrame(
        {
            c.label: {
                "compatibility": item.compatibility,
                "difference": round(item.difference, 4),
            }
            for c, item in result.criteria.items()
        },
    ).T
    st.dataframe(df, use_container_width=True)


def _render_workspace(ratings: list[Rating]) -> None:
    repo = InMemoryRatingRepository(ratings)
    prefs_repo = InMemoryPreferenceRepository()
    viewer = st.session_state.get("viewer_preferences")
    if viewer is not None:
        prefs_repo.save(viewer.model_copy(update={"user_id": VIEWER_ID}))

    engine = CompatibilityEngine(
        repo,
        prefs_repo,
        preset=st.session_state.get("preset"),
        scale=st.session_state.get("scale"),
        min_ratings=st.session_state.get("min_ratings"),
    )

    st.dataframe(_ratings_frame(ratings), use_container_width=True)

    books = sorted({r.book_id for r in ratings if r.book_id is not None}, key=str)
    authors = sorted({r.author_id for r in ratings if r.author_id is not None}, key=str)

    st.subheader("Books")
    for book_id in books:
        summary = engine.book_summary(book_id, viewer_id=VIEWER_ID)
        with st.expander(f"Book {book_id} — {summary.rating_count} ratings"):
            col1, col2 = st.columns(2)
            col1.metric("Your weighted overall", f"{summary.personalized.overall:.2f}")
            col2.metric("Straight average", f"{summary.straight_average:.2f}")
            st.caption(
                "Weights: " + ", ".join(
                    f"{c.label} {pct}" for c, pct in summary.weight_percentages.items()
                ),
            )

    st.subheader("Authors")
    for author_id in authors:
        with st.expander(f"Author {author_id}", expanded=True):
            _render_outcome(engine.author_compatibility(author_id, VIEWER_ID))


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------

with st.sidebar:
    st.header("Settings")
    st.session_state["preset"] = st.selectbox(
        "Default weight table",
        sorted(WEIGHT_PRESETS),
        index=sorted(WEIGHT_PRESETS).index(settings.default_weights),
    )
    st.session_state["scale"] = st.selectbox(
        "Rating scale",
        sorted(RATING_SCALES),
        index=sorted(RATING_SCALES).index(settings.rating_scale),
    )
    st.session_state["min_ratings"] = st.number_input(
        "Minimum ratings for compatibility", min_value=1, value=settings.min_ratings,
    )
    st.markdown("---")
    st.session_state["viewer_preferences"] = _preferences_editor(
        "viewer", "Your preferences",
    )


# ---------------------------------------------------------------------------
# Main tabs
# ---------------------------------------------------------------------------

tab_sample, tab_upload, tab_readers = st.tabs([
    "Sample Ratings", "Upload JSON", "Reader vs Reader",
])

# --- Tab 1: Sample ratings ---
with tab_sample:
    _render_workspace(load_sample_ratings())

# --- Tab 2: Upload JSON ---
with tab_upload:
    st.markdown(_UPLOAD_HELP)
    uploaded = st.file_uploader("Upload JSON", type=["json"])
    if uploaded:
        try:
            ratings = load_ratings_from_json(json.loads(uploaded.read()))
        except Exception as e:
            st.error(f"Error loading JSON: {e}")
        else:
            st.success(f"Loaded {len(ratings)} ratings")
            _render_workspace(ratings)

# --- Tab 3: Reader vs reader ---
with tab_readers:
    col_a, col_b = st.columns(2)
    with col_a:
        prefs_a = _preferences_editor("reader_a", "Reader A")
    with col_b:
        prefs_b = _preferences_editor("reader_b", "Reader B")
    preset = st.session_state.get("preset")
    _render_result(compare_profiles(
        resolve_stored(prefs_a, preset=preset),
        resolve_stored(prefs_b, preset=preset),
    ))
