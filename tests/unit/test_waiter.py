"""
Tests for the page state waiter.
"""

import pytest

from portal_e2e.core import (
    CssListTarget,
    DomReady,
    ElementCountStable,
    ElementVisible,
    NetworkIdle,
    PageLoaded,
    PageStateWaiter,
)
from portal_e2e.core.waiter import StabilityState, StabilityTracker
from portal_e2e.exceptions import TransportError
from tests.fakes import FakeClock, h


class SequenceResolver:
    """Resolver stub replaying element counts / lookups."""

    timeout_ms = 1000

    def __init__(self, counts=(), found_after=None):
        self.counts = list(counts)
        self.found_after = found_after
        self.count_calls = 0
        self.resolve_calls = 0

    async def count(self, target, scope=None, timeout_ms=None):
        value = self.counts[min(self.count_calls, len(self.counts) - 1)]
        self.count_calls += 1
        return value

    async def resolve(self, target, scope=None, timeout_ms=None):
        self.resolve_calls += 1
        if self.found_after is not None and self.resolve_calls > self.found_after:
            return object()
        return None


@pytest.fixture
def clock():
    return FakeClock()


def make_waiter(context, resolver, clock, **kwargs):
    return PageStateWaiter(context, resolver, clock=clock, sleep=clock.sleep, **kwargs)


TARGET = CssListTarget('div[class*="card"]')


class TestStabilityTracker:
    """Test the count stability rule."""

    def test_sequence_becomes_stable_on_fifth_poll(self):
        """Test 0, 3, 5, 5, 5 settles on the fifth observation."""
        tracker = StabilityTracker(required=3)
        states = [tracker.observe(count) for count in (0, 3, 5, 5, 5)]

        assert states == [
            StabilityState.COUNTING,
            StabilityState.COUNTING,
            StabilityState.COUNTING,
            StabilityState.STABILIZING,
            StabilityState.STABLE,
        ]
        assert tracker.history == [0, 3, 5, 5, 5]
        assert tracker.run_length == 3

    def test_zero_is_never_stable(self):
        """Test an empty page never counts as settled."""
        tracker = StabilityTracker(required=3)
        for _ in range(10):
            state = tracker.observe(0)

        assert state is StabilityState.COUNTING
        assert tracker.run_length == 0

    def test_change_restarts_the_run(self):
        """Test any change starts counting again."""
        tracker = StabilityTracker(required=3)
        for count in (4, 4, 6):
            tracker.observe(count)

        assert tracker.run_length == 1
        assert tracker.observe(6) is StabilityState.STABILIZING

    def test_stable_is_final(self):
        """Test later observations do not reopen a stable tracker."""
        tracker = StabilityTracker(required=1)
        assert tracker.observe(2) is StabilityState.STABLE
        assert tracker.observe(9) is StabilityState.STABLE
        assert tracker.mark_timed_out() is StabilityState.STABLE

    def test_required_must_be_positive(self):
        """Test a zero requirement is rejected."""
        with pytest.raises(ValueError):
            StabilityTracker(required=0)


class TestElementCountStable:
    """Test the count-stability wait."""

    @pytest.mark.asyncio
    async def test_stable_on_fifth_poll(self, context, clock):
        """Test the waiter returns True after the fifth poll."""
        resolver = SequenceResolver(counts=[0, 3, 5, 5, 5])
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=1000)

        assert await waiter.wait_for(ElementCountStable(TARGET), timeout_ms=30000)
        assert resolver.count_calls == 5
        assert clock.sleeps == [1.0, 1.0, 1.0, 1.0]

    @pytest.mark.asyncio
    async def test_empty_page_times_out(self, context, clock):
        """Test zero counts run out the budget."""
        resolver = SequenceResolver(counts=[0])
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=1000)

        assert not await waiter.wait_for(ElementCountStable(TARGET), timeout_ms=5000)
        assert resolver.count_calls == 6
        assert clock.now == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_flapping_count_times_out(self, context, clock):
        """Test a count that keeps changing never settles."""
        resolver = SequenceResolver(counts=[1, 2, 1, 2, 1, 2, 1, 2, 1, 2, 1, 2])
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=500)

        assert not await waiter.wait_for(ElementCountStable(TARGET), timeout_ms=5000)

    @pytest.mark.asyncio
    async def test_slow_count_stays_within_timeout(self, context, clock):
        """Test a count poll near the deadline only gets the time left."""
        class SlowResolver(SequenceResolver):
            timeout_ms = 5000

            def __init__(self):
                super().__init__(counts=[1, 2] * 25)
                self.budgets = []

            async def count(self, target, scope=None, timeout_ms=None):
                self.budgets.append(timeout_ms)
                if clock.now >= 29.5:
                    clock.now += timeout_ms / 1000
                return await super().count(target, scope, timeout_ms)

        resolver = SlowResolver()
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=1000)

        assert not await waiter.wait_for(ElementCountStable(TARGET), timeout_ms=30000)
        assert clock.now <= 30.01
        assert resolver.budgets[0] == 5000
        assert resolver.budgets[-1] == 1

    @pytest.mark.asyncio
    async def test_condition_overrides_interval_and_iterations(self, context, clock):
        """Test per-condition poll interval and run length."""
        resolver = SequenceResolver(counts=[2, 2])
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=1000)

        condition = ElementCountStable(TARGET, required_stable_iterations=2, poll_interval_ms=250)
        assert await waiter.wait_for(condition)
        assert clock.sleeps == [0.25]

    @pytest.mark.asyncio
    async def test_default_stability_budget(self, context, clock):
        """Test count waits use the stability timeout by default."""
        resolver = SequenceResolver(counts=[0])
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=1000, stability_timeout_ms=3000)

        assert not await waiter.wait_for(ElementCountStable(TARGET))
        assert clock.now == pytest.approx(3.0)

    @pytest.mark.asyncio
    async def test_real_resolver(self, page, context, resolver, clock):
        """Test the wait against the fake document."""
        page.document.append(h("div", class_="card"), h("div", class_="card"))
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=100)

        assert await waiter.wait_for(ElementCountStable(TARGET), timeout_ms=2000)


class TestElementVisible:
    """Test the visibility wait."""

    @pytest.mark.asyncio
    async def test_appears_after_polls(self, context, clock):
        """Test the wait polls until the element shows up."""
        resolver = SequenceResolver(found_after=2)
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=200)

        assert await waiter.wait_for(ElementVisible(TARGET), timeout_ms=5000)
        assert resolver.resolve_calls == 3

    @pytest.mark.asyncio
    async def test_never_appears(self, context, clock):
        """Test the wait gives up at the budget."""
        resolver = SequenceResolver()
        waiter = make_waiter(context, resolver, clock, poll_interval_ms=1000)

        assert not await waiter.wait_for(ElementVisible(TARGET, timeout_ms=2000))
        assert clock.now == pytest.approx(2.0)


class TestLoadStates:
    """Test load-state conditions."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("condition,state", [
        (DomReady(), "domcontentloaded"),
        (NetworkIdle(), "networkidle"),
        (PageLoaded(), "load"),
    ])
    async def test_state_reached(self, page, context, resolver, clock, condition, state):
        """Test each condition maps to its host load state."""
        waiter = make_waiter(context, resolver, clock, default_timeout_ms=10000)

        assert await waiter.wait_for(condition)
        assert page.load_state_calls == [(state, 10000)]

    @pytest.mark.asyncio
    async def test_state_timeout_is_false(self, page, context, resolver, clock):
        """Test a host timeout becomes False."""
        page.pending_states.add("networkidle")
        waiter = make_waiter(context, resolver, clock)

        assert not await waiter.wait_for(NetworkIdle(), timeout_ms=500)

    @pytest.mark.asyncio
    async def test_timeout_precedence(self, page, context, resolver, clock):
        """Test explicit timeout beats the condition's, which beats the default."""
        waiter = make_waiter(context, resolver, clock, default_timeout_ms=10000)

        await waiter.wait_for(DomReady(timeout_ms=2000), timeout_ms=300)
        await waiter.wait_for(DomReady(timeout_ms=2000))
        await waiter.wait_for(DomReady())

        assert [timeout for _, timeout in page.load_state_calls] == [300, 2000, 10000]

    @pytest.mark.asyncio
    async def test_closed_page_raises(self, page, context, resolver, clock):
        """Test transport failures are not swallowed as timeouts."""
        await page.close()
        waiter = make_waiter(context, resolver, clock)

        with pytest.raises(TransportError):
            await waiter.wait_for(DomReady())

    @pytest.mark.asyncio
    async def test_settle_after_navigation(self, page, context, resolver, clock):
        """Test settling waits for DOM then network."""
        page.pending_states.add("networkidle")
        waiter = make_waiter(context, resolver, clock)

        assert await waiter.settle_after_navigation(timeout_ms=100)
        assert [state for state, _ in page.load_state_calls] == ["domcontentloaded", "networkidle"]


class TestPause:
    """Test fixed pauses."""

    @pytest.mark.asyncio
    async def test_pause_is_capped(self, context, resolver, clock):
        """Test pauses never exceed the cap."""
        waiter = make_waiter(context, resolver, clock)

        await waiter.pause(10000)
        await waiter.pause(250)
        await waiter.pause(8000, cap_ms=8000)

        assert clock.sleeps == [5.0, 0.25, 8.0]
