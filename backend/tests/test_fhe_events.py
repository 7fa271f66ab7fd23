from fhe_events import EventBus, FheEvent


def test_event_shapes():
    assert FheEvent.cost_updated("add", 1, 2) == {
        "type": "cost_updated",
        "data": {"operation": "add", "base_cost": 1, "per_byte_cost": 2},
    }
    assert FheEvent.subject_analyzed("0xa", 10)["data"] == {"subject_id": "0xa", "estimated_gas": 10}
    assert FheEvent.suggestion_emitted("0xa", "hint")["data"] == {"subject_id": "0xa", "suggestion": "hint"}


def test_typed_listener_only_gets_its_type():
    bus = EventBus()
    received = []
    bus.subscribe(received.append, "subject_analyzed")
    bus.emit(FheEvent.cost_updated("add", 1, 2))
    bus.emit(FheEvent.subject_analyzed("0xa", 10))
    assert [e["type"] for e in received] == ["subject_analyzed"]


def test_failing_listener_is_isolated():
    bus = EventBus()
    received = []

    def broken(event):
        raise ValueError("boom")

    bus.subscribe(broken)
    bus.subscribe(received.append)
    bus.emit(FheEvent.subject_analyzed("0xa", 10))
    assert len(received) == 1


def test_unsubscribe():
    bus = EventBus()
    received = []
    bus.subscribe(received.append)
    bus.subscribe(received.append, "cost_updated")
    bus.unsubscribe(received.append)
    bus.emit(FheEvent.cost_updated("add", 1, 2))
    assert received == []
