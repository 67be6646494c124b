import io
import json
import logging

from archsetup.engine.executor import run_play
from archsetup.engine.task import Block, Section, Task
from archsetup.observers.console import ConsoleObserver
from archsetup.observers.dispatcher import EventBus
from archsetup.observers.events import RunSummary, TaskFinished, new_ctx
from archsetup.observers.jsonfile import JsonFileObserver, JsonStreamObserver
from archsetup.observers.logger import LoggerObserver

from conftest import Capture


class Exploding:
    def notify(self, event): raise RuntimeError("observer bug")


def boom(ctx):
    raise RuntimeError("boom")


def test_observer_receives_events(task_ctx):
    cap = Capture()
    run_play(
        [Section("s", ["s"], [Task("a", lambda ctx: True), Block("b", [Task("x", boom)], rescue=[Task("r", lambda ctx: False)])])],
        task_ctx,
        bus=EventBus([cap]),
    )
    kinds = [e.__class__.__name__ for e in cap.events]
    assert kinds[0] == "SectionStarted"
    assert "TaskFinished" in kinds
    assert "TaskFailed" in kinds
    assert "BlockRescued" in kinds
    assert kinds[-1] == "RunSummary"
    assert len({e.run_id for e in cap.events}) == 1


def test_broken_observer_never_breaks_a_run(task_ctx):
    cap = Capture()
    report = run_play([Section("s", ["s"], [Task("a", lambda ctx: True)])], task_ctx, bus=EventBus([Exploding(), cap]))
    assert not report.aborted
    assert cap.of(RunSummary)


def test_json_file_observer_writes_lines(tmp_path):
    path = tmp_path / "logs" / "run.jsonl"
    ob = JsonFileObserver(path)
    ob.notify(TaskFinished(name="t", changed=True, duration_ms=5, **new_ctx("h", "rid")))
    ob.notify(RunSummary(ok=1, changed=1, skipped=0, failed=0, rescued=0, **new_ctx("h", "rid")))
    rows = [json.loads(line) for line in path.read_text().splitlines()]
    assert [r["type"] for r in rows] == ["TaskFinished", "RunSummary"]
    assert rows[0]["run_id"] == "rid"


def test_json_stream_observer():
    buf = io.StringIO()
    JsonStreamObserver(buf).notify(TaskFinished(name="t", changed=False, duration_ms=1, **new_ctx("h")))
    assert json.loads(buf.getvalue())["name"] == "t"


def test_console_observer_lines(capsys):
    ConsoleObserver().notify(TaskFinished(name="Install utility packages", changed=True, duration_ms=1, **new_ctx("desk")))
    assert "changed: [desk] Install utility packages" in capsys.readouterr().out


def test_logger_observer_levels():
    records = []

    class ListHandler(logging.Handler):
        def emit(self, record): records.append(record)

    logger = logging.getLogger("archsetup.test-observer")
    logger.setLevel(logging.DEBUG)
    logger.addHandler(ListHandler())
    ob = LoggerObserver(logger)

    from archsetup.observers.events import TaskFailed

    ob.notify(TaskFailed(name="probe", error="x", ignored=True, **new_ctx("h")))
    ob.notify(TaskFailed(name="real", error="y", **new_ctx("h")))
    assert [r.levelno for r in records] == [logging.DEBUG, logging.WARNING]
