from locator.event_loop import EventLoop


def test_callbacks_run_in_due_order(loop: EventLoop) -> None:
    ran: list[str] = []
    loop.call_later(0.5, ran.append, "late")
    loop.call_soon(ran.append, "soon")
    loop.call_later(0.2, ran.append, "early")

    assert loop.run_until_idle() == 3
    assert ran == ["soon", "early", "late"]
    assert loop.time == 0.5


def test_same_time_callbacks_keep_insertion_order(loop: EventLoop) -> None:
    ran: list[int] = []
    for value in range(5):
        loop.call_soon(ran.append, value)

    loop.run_until_idle()

    assert ran == [0, 1, 2, 3, 4]


def test_advance_only_runs_due_callbacks(loop: EventLoop) -> None:
    ran: list[str] = []
    loop.call_later(0.2, ran.append, "settled")
    loop.call_later(1.5, ran.append, "cleared")

    loop.advance(0.2)
    assert ran == ["settled"]
    assert loop.time == 0.2
    assert loop.pending() == 1

    loop.advance(2)
    assert ran == ["settled", "cleared"]
    assert loop.time == 2.2


def test_cancelled_handles_are_skipped(loop: EventLoop) -> None:
    ran: list[str] = []
    handle = loop.call_later(1, ran.append, "never")
    handle.cancel()

    assert loop.pending() == 0
    assert loop.run_until_idle() == 0
    assert ran == []


def test_callbacks_scheduled_while_running_are_picked_up(loop: EventLoop) -> None:
    ran: list[str] = []

    def first() -> None:
        ran.append("first")
        loop.call_later(0.1, ran.append, "second")

    loop.call_soon(first)
    loop.run_until_idle()

    assert ran == ["first", "second"]


def test_run_until_idle_stops_at_callback_limit(loop: EventLoop) -> None:
    def forever() -> None:
        loop.call_soon(forever)

    loop.call_soon(forever)

    assert loop.run_until_idle(max_callbacks=10) == 10
    assert loop.pending() == 1
