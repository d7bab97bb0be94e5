import logging
from pathlib import Path

import pytest

from mobiletest.errors import SourceLocation, TestFailure
from mobiletest.harness.capture import Attachment
from mobiletest.harness.test_case import CoreTestCase, caller_location


class SampleCase(CoreTestCase):
    pass


def _case(continue_after_failure=True):
    case = SampleCase()
    case.continue_after_failure = continue_after_failure
    case.timeout = 0.02
    case.poll_interval = 0.005
    return case


def test_assert_true_records_failure_at_caller_line():
    case = _case()

    line = _current_line() + 1
    ok = case.assert_true(False, "went wrong")

    assert ok is False
    assert len(case.failures) == 1
    failure = case.failures[0]
    assert failure.description == "went wrong"
    assert failure.location.file == __file__
    assert failure.location.line == line


def test_lazy_reason_not_evaluated_on_success():
    case = _case()
    calls = []

    assert case.assert_true(True, lambda: calls.append("x") or "reason") is True
    assert case.assert_false(False, lambda: calls.append("y") or "reason") is True
    assert case.assert_not_none("value", lambda: calls.append("z") or "reason") is True

    assert calls == []
    assert case.failures == []


def test_assert_not_none_and_false_record_reasons():
    case = _case()

    case.assert_not_none(None, lambda: "was none")
    case.assert_false(True, "was true")

    assert [f.description for f in case.failures] == ["was none", "was true"]


def test_assert_string_contains_message():
    case = _case()

    assert case.assert_string_contains("hello world", "world") is True
    case.assert_string_contains(None, "world")

    assert case.failures[0].description == 'Expected "world" to be contained in ""'


def test_explicit_location_wins():
    case = _case()
    location = SourceLocation("steps.py", 42)

    case.fail_test("explicit", location)

    assert case.failures[0].location == location
    assert str(case.failures[0]) == "steps.py:42: explicit"


def test_stop_after_failure_raises_test_failure():
    case = _case(continue_after_failure=False)

    with pytest.raises(TestFailure) as excinfo:
        case.fail_test("stop here")

    assert isinstance(excinfo.value, AssertionError)
    assert excinfo.value.description == "stop here"
    assert case.failures == [excinfo.value]


def test_wait_until_or_assert_runs_on_failure_before_recording():
    case = _case()
    order = []

    def on_failure():
        order.append(len(case.failures))

    ok = case.wait_until_or_assert("never", lambda: "still waiting", on_failure=on_failure)

    assert ok is False
    assert order == [0]
    assert case.failures[0].description == "Timed out waiting until: 'never' - reason: 'still waiting'"
    assert case.failures[0].location.file == __file__


def test_wait_until_or_assert_on_failure_runs_even_when_stopping():
    case = _case(continue_after_failure=False)
    captured = []

    with pytest.raises(TestFailure):
        case.wait_until_or_assert("never", lambda: "nope", on_failure=lambda: captured.append("screenshot"))

    assert captured == ["screenshot"]


def test_wait_until_or_assert_success_records_nothing():
    case = _case()

    assert case.wait_until_or_assert("ready", lambda: None) is True
    assert case.failures == []


def test_set_logging_is_chainable_and_controls_info(caplog):
    case = _case()

    with caplog.at_level(logging.INFO, logger="mobiletest.harness.test_case"):
        case.info("first")
        assert case.set_logging(False) is case
        case.info("second")

    messages = [r.getMessage() for r in caplog.records]
    assert "SampleCase - first" in messages
    assert "SampleCase - second" not in messages


def test_set_up_clears_failures():
    case = _case()
    case.fail_test("old")

    case.set_up()

    assert case.failures == []


def test_caller_location_points_at_test_module():
    location = caller_location()

    assert location.file == __file__


def _current_line():
    import inspect

    return inspect.currentframe().f_back.f_lineno


def test_add_attachment_ignores_none():
    case = _case()
    attachment = Attachment(name="log.txt", path=Path("log.txt"), content_type="text/plain")

    case.add_attachment(None)
    case.add_attachment(attachment)

    assert case.attachments == [attachment]


def test_add_text_attachment_writes_file(tmp_path, monkeypatch):
    monkeypatch.setenv("MOBILETEST_ARTIFACTS_DIR", str(tmp_path))
    case = _case()

    case.add_text_attachment("response", '{"status": 503}')

    attachment = case.attachments[0]
    assert attachment.name == "response.txt"
    assert attachment.content_type == "text/plain"
    assert attachment.path == tmp_path / "attachments" / "response.txt"
    assert attachment.path.read_text(encoding="utf-8") == '{"status": 503}'


def test_set_up_clears_attachments():
    case = _case()
    case.add_attachment(Attachment(name="a", path=Path("a"), content_type="text/plain"))

    case.set_up()

    assert case.attachments == []
