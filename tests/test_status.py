from urllib.parse import parse_qs, urlsplit

from prlint.model import ValidationFailure
from prlint.rules import PatternError
from prlint.status import MAX_DESCRIPTION, build_status, error_status, no_config_status

DEFAULT_URL = "https://github.com/org/repo/blob/abc/.github/prlint.json"
ISSUES_URL = "https://github.com/VibrentHealth/prlint/issues"


def test_no_failures_is_success():
    status = build_status([], DEFAULT_URL, ISSUES_URL)

    assert status.to_request() == {
        "state": "success",
        "description": "Your validation rules passed",
        "context": "PRLint",
    }


def test_single_failure_uses_its_message_and_url():
    failures = [ValidationFailure("Rule `title[0]` failed", "https://example.com/rule")]

    status = build_status(failures, DEFAULT_URL, ISSUES_URL)

    assert status.state == "failure"
    assert status.description == "Rule `title[0]` failed"
    assert status.target_url == "https://example.com/rule"
    assert status.context == "PRLint"


def test_long_description_is_truncated():
    failures = [ValidationFailure("x" * 300, DEFAULT_URL)]

    status = build_status(failures, DEFAULT_URL, ISSUES_URL)

    assert len(status.description) == MAX_DESCRIPTION == 140


def test_multiple_failures_report_first_and_point_at_config():
    failures = [
        ValidationFailure("first", "https://example.com/first"),
        ValidationFailure("second", "https://example.com/second"),
        ValidationFailure("third", "https://example.com/third"),
    ]

    status = build_status(failures, DEFAULT_URL, ISSUES_URL)

    assert status.state == "failure"
    assert status.description == "1/2: first"
    assert status.target_url == DEFAULT_URL


def test_multiple_failures_with_long_message_are_truncated():
    failures = [ValidationFailure("y" * 200, "u"), ValidationFailure("z", "u")]

    status = build_status(failures, DEFAULT_URL, ISSUES_URL)

    assert status.description.startswith("1/1: yyy")
    assert len(status.description) == 140


def test_exception_message_gives_generic_payload():
    failures = [ValidationFailure(PatternError("bad pattern"), DEFAULT_URL)]

    status = build_status(failures, DEFAULT_URL, ISSUES_URL)

    assert status.state == "failure"
    assert status.description.startswith("Something went wrong with PRLint")
    assert status.target_url == f"{ISSUES_URL}/new"


def test_exception_message_among_several_is_described():
    failures = [
        ValidationFailure(PatternError("bad pattern"), DEFAULT_URL),
        ValidationFailure("other", DEFAULT_URL),
    ]

    status = build_status(failures, DEFAULT_URL, ISSUES_URL)

    assert status.description == "1/1: bad pattern"


def test_no_config_status():
    status = no_config_status("https://github.com")

    assert status.state == "success"
    assert status.description == "No rules are setup for PRLint"
    assert status.target_url == "https://github.com/apps/prlint"


def test_error_status_links_to_prefilled_issue():
    status = error_status(RuntimeError("boom & bust"), ISSUES_URL)

    assert status.state == "error"
    url = urlsplit(status.target_url)
    assert url.path == "/VibrentHealth/prlint/issues/new"
    query = parse_qs(url.query)
    assert query["title"] == ["Exception Report"]
    assert query["body"] == ["boom & bust"]
