import pendulum

from matrixci.definitions import (
    DeployOutcome,
    JobResult,
    Report,
    ReportEntry,
    ScriptOutcome,
    Status,
)
from matrixci.reporters import Text, clean_logs


def test_clean_logs_strips_ansi_and_blank_lines():
    assert clean_logs("\x1b[1mbold\x1b[0m\r\n\nplain\n") == ["bold", "plain"]


def test_clean_logs_keeps_the_tail():
    assert clean_logs("abcdef", max_chars=3) == ["def"]


def test_clean_logs_handles_none():
    assert clean_logs(None) == []


def make_report():
    start = pendulum.datetime(2024, 1, 1, 12, 0, 0)
    failing = ScriptOutcome("cargo test", 101, ("thread main panicked",), start, start)
    results = (
        JobResult("A", (), Status.SUCCESS, start, start.add(seconds=75)),
        JobResult("B", (failing,), Status.FAILURE, start, start.add(seconds=5)),
        JobResult(
            "C",
            (),
            Status.SUCCESS,
            start,
            start.add(seconds=1),
            deploy=DeployOutcome.FAILURE,
            deploy_output=("403 denied",),
        ),
    )
    entries = tuple(ReportEntry(r.job_name, r.status, r.deploy) for r in results)
    return Report(entries=entries, status=Status.FAILURE, results=results)


def test_text_report_lists_jobs_in_order():
    text = Text().render(make_report(), sha="abcdef0123456789")
    lines = text.split("\n")
    rows = [line for line in lines if line.startswith("┃ ") and " : " in line]
    assert [row.split(" : ")[1].split()[0] for row in rows] == ["A", "B", "C"]
    assert "[sha abcdef0123]" in text
    assert "Pipeline failure" in text


def test_text_report_shows_durations_and_failures():
    text = Text().render(make_report())
    assert "  1:15" in text
    assert "deploy 🔴 failure" in text
    assert "--- B: `cargo test` exit 101" in text
    assert "thread main panicked" in text
    assert "403 denied" in text


def test_text_report_for_config_error():
    report = Report(entries=(), status=Status.FAILURE, error="Job name taken: x")
    text = Text().render(report)
    assert "Job name taken: x" in text
    assert "Pipeline failure" in text


def test_text_report_shows_crashed_jobs():
    start = pendulum.datetime(2024, 1, 1, 12, 0, 0)
    crashed = JobResult(
        "D", (), Status.FAILURE, start, start, error="RuntimeError('gone')"
    )
    report = Report(
        entries=(ReportEntry("D", Status.FAILURE, DeployOutcome.NOT_TRIGGERED),),
        status=Status.FAILURE,
        results=(crashed,),
    )
    text = Text().render(report)
    assert "--- D: crashed" in text
    assert "RuntimeError('gone')" in text
