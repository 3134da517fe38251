"""Hypothesis strategies for property-based testing."""

from hypothesis import strategies as st

from screencaster.models.events import ProgressEvent
from screencaster.models.pipeline import PipelineStepIndex


@st.composite
def generate_capabilities(draw):
    """Random (has_audio, has_screen, has_webcam, create_vertical) flags."""
    return tuple(draw(st.booleans()) for _ in range(4))


@st.composite
def generate_transition_script(draw):
    """Random sequence of ledger operations applied after start()."""
    ops = st.one_of(
        st.just(("advance",)),
        st.tuples(st.just("progress"), st.integers(-2, 7), st.floats(0, 100)),
        st.tuples(st.just("fail"), st.text(min_size=1, max_size=20)),
        st.just(("complete",)),
    )
    return draw(st.lists(ops, max_size=15))


@st.composite
def generate_event_stream(draw):
    """Arbitrary, possibly out-of-order worker events."""
    index = st.sampled_from([int(i) for i in PipelineStepIndex])
    event = st.one_of(
        index.map(ProgressEvent.started),
        index.map(ProgressEvent.completed),
        index.map(ProgressEvent.skipped),
        st.tuples(index, st.floats(0, 100)).map(lambda t: ProgressEvent.progress(*t)),
        st.tuples(index, st.text(min_size=1, max_size=10)).map(
            lambda t: ProgressEvent.failed(*t)
        ),
    )
    return draw(st.lists(event, max_size=20))
