"""Tests for the keyframe engine and the animation binding."""

import asyncio

import pytest

from framecast.animation import keyframes
from framecast.animation.sync import (
    AnimationBinding,
    BindingState,
    load_engine,
    safe_duration,
)
from framecast.timing.frame_time import TimeUnit


class FakeTimeline:
    def __init__(self, duration=1000.0):
        self.duration = duration
        self.seeks = []
        self.paused = False

    def seek(self, time):
        self.seeks.append(time)

    def pause(self):
        self.paused = True


def immediate(engine="engine"):
    async def loader():
        return engine

    return loader


class TestKeyframeTimeline:
    def test_seek_interpolates(self):
        root = {}
        timeline = keyframes.create_timeline(root).add("box", "x", [(0, 0.0), (1000, 100.0)])
        timeline.seek(250)
        assert root["box"]["x"] == pytest.approx(25.0)

    def test_seek_is_stateless(self):
        root = {}
        timeline = keyframes.create_timeline(root).add("box", "x", [(0, 0.0), (1000, 100.0)])
        timeline.seek(900)
        timeline.seek(100)
        after_jump = root["box"]["x"]
        fresh_root = {}
        keyframes.create_timeline(fresh_root).add("box", "x", [(0, 0.0), (1000, 100.0)]).seek(100)
        assert after_jump == fresh_root["box"]["x"]

    def test_holds_before_and_after(self):
        root = {}
        timeline = keyframes.create_timeline(root).add("box", "x", [(200, 5.0), (400, 9.0)])
        timeline.seek(0)
        assert root["box"]["x"] == 5.0
        timeline.seek(5000)
        assert root["box"]["x"] == 9.0

    def test_duration_is_last_keyframe(self):
        timeline = keyframes.create_timeline({})
        assert timeline.duration == 0.0
        timeline.add("a", "x", [(0, 0), (300, 1)]).add("b", "y", [(0, 0), (700, 1)])
        assert timeline.duration == 700.0

    def test_easing_applies(self):
        root = {}
        timeline = keyframes.create_timeline(root).add(
            "box", "x", [(0, 0.0), (1000, 1.0, "easeInCubic")]
        )
        timeline.seek(500)
        assert root["box"]["x"] == pytest.approx(0.125)

    def test_strings_snap_at_midpoint(self):
        root = {}
        timeline = keyframes.create_timeline(root).add("box", "color", [(0, "red"), (100, "blue")])
        timeline.seek(40)
        assert root["box"]["color"] == "red"
        timeline.seek(60)
        assert root["box"]["color"] == "blue"

    def test_empty_track_rejected(self):
        with pytest.raises(ValueError):
            keyframes.create_timeline({}).add("box", "x", [])


class TestAnimationBinding:
    def test_mount_builds_once_and_seeks_mount_frame(self):
        built = []

        def build(engine, root, ctx):
            built.append((engine, ctx["fps"]))
            return FakeTimeline()

        binding = AnimationBinding({}, immediate(), build)
        asyncio.run(binding.mount(15, 30))
        assert binding.state == BindingState.READY
        assert built == [("engine", 30)]
        assert binding.timeline.seeks == [500.0]

        binding.seek_frame(21)
        binding.seek_frame(3)
        assert len(built) == 1
        assert binding.timeline.seeks == pytest.approx([500.0, 700.0, 100.0])

    def test_seek_before_ready_only_records(self):
        binding = AnimationBinding({}, immediate(), lambda e, r, c: FakeTimeline())
        assert binding.seek_frame(12, 30) is None
        assert binding.frame == 12
        assert binding.last_seek is None

    def test_seek_clamped_into_duration(self):
        binding = AnimationBinding({}, immediate(), lambda e, r, c: FakeTimeline(duration=400))
        asyncio.run(binding.mount(0, 30))
        assert binding.seek_frame(300) == 400
        assert binding.seek_frame(0, start_frame=30) == 0.0

    @pytest.mark.parametrize("duration", [float("nan"), float("inf"), -5, "long", None])
    def test_bad_duration_clamps_to_zero(self, duration):
        timeline = FakeTimeline(duration=duration)
        assert safe_duration(timeline) == 0.0
        binding = AnimationBinding({}, immediate(), lambda e, r, c: timeline)
        asyncio.run(binding.mount(90, 30))
        assert timeline.seeks == [0.0]

    def test_start_frame_offsets_elapsed_time(self):
        binding = AnimationBinding(
            {}, immediate(), lambda e, r, c: FakeTimeline(), start_frame=75
        )
        asyncio.run(binding.mount(90, 30))
        assert binding.last_seek == 500.0

    def test_seconds_unit(self):
        binding = AnimationBinding(
            {}, immediate(), lambda e, r, c: FakeTimeline(duration=10), unit=TimeUnit.SECONDS
        )
        asyncio.run(binding.mount(45, 30))
        assert binding.last_seek == 1.5

    def test_unmount_pauses_and_releases(self):
        timeline = FakeTimeline()
        binding = AnimationBinding({}, immediate(), lambda e, r, c: timeline)
        asyncio.run(binding.mount(0, 30))
        binding.unmount()
        assert timeline.paused
        assert binding.state == BindingState.RELEASED
        assert binding.timeline is None
        assert binding.engine is None
        assert binding.seek_frame(10) is None

    def test_unmount_during_load_discards_engine(self):
        built = []

        async def scenario():
            gate = asyncio.Event()

            async def slow_loader():
                await gate.wait()
                return "late-engine"

            binding = AnimationBinding(
                {}, slow_loader, lambda e, r, c: built.append(e) or FakeTimeline()
            )
            task = asyncio.create_task(binding.mount(0, 30))
            await asyncio.sleep(0)
            assert binding.state == BindingState.LOADING
            binding.unmount()
            gate.set()
            await task
            return binding

        binding = asyncio.run(scenario())
        assert built == []
        assert binding.engine is None
        assert binding.state == BindingState.RELEASED

    def test_loader_failure_releases(self):
        async def broken():
            raise ImportError("no engine")

        binding = AnimationBinding({}, broken, lambda e, r, c: FakeTimeline())
        with pytest.raises(ImportError):
            asyncio.run(binding.mount(0, 30))
        assert binding.state == BindingState.RELEASED

    def test_double_mount_rejected(self):
        binding = AnimationBinding({}, immediate(), lambda e, r, c: FakeTimeline())
        asyncio.run(binding.mount(0, 30))
        with pytest.raises(RuntimeError):
            asyncio.run(binding.mount(0, 30))

    def test_context_manager_releases(self):
        timeline = FakeTimeline()

        async def scenario():
            binding = AnimationBinding({}, immediate(), lambda e, r, c: timeline)
            async with binding as bound:
                assert bound.is_ready
            return binding

        binding = asyncio.run(scenario())
        assert binding.state == BindingState.RELEASED
        assert timeline.paused

    def test_load_engine_imports_module(self):
        engine = asyncio.run(load_engine("framecast.animation.keyframes")())
        assert engine is keyframes
