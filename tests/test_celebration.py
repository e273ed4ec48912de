import asyncio
import random

import pytest

from achievement_alerts.application.services.celebration import Celebration, MAX_PARTICLES


def test_bursts_thin_out_and_spread_to_both_sides():
    c = Celebration(sink=lambda b: None, duration=3.0, interval=0.25, rng=random.Random(7))
    left, right = c.bursts_at(1.5)
    assert left.particle_count == pytest.approx(MAX_PARTICLES / 2)
    assert right.particle_count == left.particle_count
    assert 0.1 <= left.origin_x <= 0.3
    assert 0.7 <= right.origin_x <= 0.9
    assert -0.2 <= left.origin_y < 0.8
    assert (left.start_velocity, left.spread, left.ticks, left.z_index) == (30, 360, 60, 9999)


def test_burst_serializes_origin():
    c = Celebration(sink=lambda b: None, rng=random.Random(1))
    data = c.bursts_at(3.0)[0].to_dict()
    assert data["particle_count"] == pytest.approx(MAX_PARTICLES)
    assert set(data["origin"]) == {"x", "y"}


@pytest.mark.asyncio
async def test_runs_for_duration_then_stops():
    bursts = []
    c = Celebration(sink=bursts.append, duration=0.1, interval=0.02)
    task = c.start()
    assert c.start() is task
    await asyncio.wait_for(task, timeout=1)

    assert not c.running
    assert 2 <= len(bursts) <= 10
    assert len(bursts) % 2 == 0
    counts = [b.particle_count for b in bursts[::2]]
    assert counts == sorted(counts, reverse=True)


@pytest.mark.asyncio
async def test_cancel_stops_bursts():
    bursts = []
    c = Celebration(sink=bursts.append, duration=5.0, interval=0.01)
    c.start()
    await asyncio.sleep(0.035)
    c.cancel()
    await asyncio.sleep(0)
    seen = len(bursts)
    await asyncio.sleep(0.05)
    assert len(bursts) == seen
    assert not c.running
    c.cancel()


@pytest.mark.asyncio
async def test_failing_sink_does_not_end_celebration():
    calls = []

    def sink(burst):
        calls.append(burst)
        raise RuntimeError("renderer gone")

    c = Celebration(sink=sink, duration=0.06, interval=0.01)
    await asyncio.wait_for(c.start(), timeout=1)
    assert len(calls) >= 4
