from derby_sim.engine import LifecycleEvent, TelemetryCollector


def _event(kind, race_id=None):
    return LifecycleEvent(kind=kind, phase="idle", cursor=0, race_id=race_id)


def test_records_in_order_and_exports_snapshot():
    telemetry = TelemetryCollector()
    telemetry.record(_event("race_started", 1))
    telemetry.record(_event("race_completed", 1))
    exported = telemetry.export()
    assert [e.kind for e in exported] == ["race_started", "race_completed"]
    assert telemetry.kinds() == ["race_started", "race_completed"]

    telemetry.record(_event("race_reset", 1))
    assert len(exported) == 2

    telemetry.clear()
    assert telemetry.kinds() == []


def test_listeners_receive_events_until_unsubscribed():
    telemetry = TelemetryCollector()
    seen = []
    telemetry.subscribe(seen.append)
    telemetry.record(_event("horses_generated"))
    telemetry.unsubscribe(seen.append)
    telemetry.record(_event("schedule_generated"))
    assert [e.kind for e in seen] == ["horses_generated"]
    # unsubscribing twice is harmless
    telemetry.unsubscribe(seen.append)


def test_broken_listener_does_not_block_others(capsys):
    telemetry = TelemetryCollector()
    seen = []

    def broken(event):
        raise RuntimeError("listener bug")

    telemetry.subscribe(broken)
    telemetry.subscribe(seen.append)
    telemetry.record(_event("delay_started"))

    assert len(seen) == 1
    assert telemetry.kinds() == ["delay_started"]
    assert "Listener failed on 'delay_started'" in capsys.readouterr().out
