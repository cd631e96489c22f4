"""Hypothesis strategies for property-based testing."""

from hypothesis import strategies as st

finite_seconds = st.floats(min_value=0.0, max_value=3600.0, allow_nan=False, allow_infinity=False)
fps_values = st.integers(min_value=1, max_value=240)
frame_indices = st.integers(min_value=0, max_value=1_000_000)


@st.composite
def generate_script(draw):
    """Random composition script, including malformed values the deriver must tolerate."""
    junk = st.one_of(
        st.none(),
        st.text(max_size=5),
        st.just(float("nan")),
        st.just(float("inf")),
        st.integers(min_value=-100, max_value=0),
    )
    fps = draw(st.one_of(fps_values, junk))
    meta = {
        "width": draw(st.one_of(st.integers(min_value=1, max_value=4096), junk)),
        "height": draw(st.one_of(st.integers(min_value=1, max_value=4096), junk)),
        "durationSeconds": draw(st.one_of(finite_seconds, junk)),
    }
    scenes = []
    for _ in range(draw(st.integers(min_value=0, max_value=5))):
        start = draw(finite_seconds)
        length = draw(st.floats(min_value=0.0, max_value=120.0, allow_nan=False))
        scenes.append({"startSec": start, "endSec": draw(st.one_of(st.just(start + length), junk))})
    return {"fps": fps, "meta": meta, "scenes": scenes}


@st.composite
def generate_frame_span(draw):
    """(first, last, workers) with last >= first."""
    first = draw(st.integers(min_value=0, max_value=10_000))
    length = draw(st.integers(min_value=1, max_value=5_000))
    workers = draw(st.integers(min_value=1, max_value=64))
    return first, first + length - 1, workers


words = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=8)
