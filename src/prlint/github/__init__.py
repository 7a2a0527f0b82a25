from dataclasses import dataclass
import json
from typing import Any, Dict, List, Mapping, Optional

import aiohttp
from gidgethub import BadRequest, GitHubException
import pydantic
from sanic.log import logger

from prlint import config as app_config
from prlint.flatten import flatten
from prlint.github.api import API
from prlint.github.model import PullRequest
from prlint.logger import capture_exception
from prlint.metric import status_post_counter
from prlint.model import RuleSet, StatusPayload, ValidationFailure
from prlint.rules import evaluate
from prlint.status import build_status, error_status, no_config_status

CONFIG_PATH = ".github/prlint.json"


class InvalidConfig(Exception):
    raw_config: str
    source_url: str

    def __init__(self, *args, **kwargs):
        self.raw_config = kwargs.pop("raw_config", None)
        self.source_url = kwargs.pop("source_url", None)
        super().__init__(*args, **kwargs)


@dataclass(frozen=True)
class ConfigLocation:
    repo_full_name: str
    ref: str


@dataclass
class LintResult:
    status: int
    body: Any


def config_location(pr: PullRequest) -> ConfigLocation:
    """Where to read the rules for ``pr`` from.

    App tokens cannot read a fork's contents, so forks are linted with the
    base repository's config at the head commit.
    """
    if pr.head.repo is None:
        raise ValueError(f"Head repository of {pr} is not available")
    if pr.head.repo.fork:
        if pr.base.repo is None:
            raise ValueError(f"Base repository of {pr} is not available")
        return ConfigLocation(pr.base.repo.full_name, pr.head.sha)
    return ConfigLocation(pr.head.repo.full_name, pr.merge_commit_sha or pr.head.ref)


def default_failure_url(github_url: str, pr: PullRequest) -> str:
    if pr.head.repo is None:
        raise ValueError(f"Head repository of {pr} is not available")
    return f"{github_url}/{pr.head.repo.full_name}/blob/{pr.head.sha}/{CONFIG_PATH}"


async def fetch_rule_set(api: API, location: ConfigLocation) -> RuleSet:
    """Load the rule set at ``location``.

    A missing file surfaces as :class:`gidgethub.BadRequest` with status 404,
    anything that cannot be read as a rule set as :class:`InvalidConfig`.
    """
    try:
        content = await api.get_content(
            location.repo_full_name, CONFIG_PATH, ref=location.ref
        )
    except pydantic.ValidationError as e:
        raise InvalidConfig(f"Unexpected contents response: {e}") from e

    try:
        decoded_content = content.decoded_content()
    except ValueError as e:
        raise InvalidConfig(
            f"Cannot decode {CONFIG_PATH}: {e}", source_url=content.html_url
        ) from e

    if app_config.OVERRIDE_CONFIG is not None:
        with open(app_config.OVERRIDE_CONFIG) as fh:
            decoded_content = fh.read()

    return parse_rule_set(decoded_content, source_url=content.html_url)


def parse_rule_set(raw: str, source_url: Optional[str] = None) -> RuleSet:
    try:
        return RuleSet.model_validate(json.loads(raw))
    except ValueError as e:
        raise InvalidConfig(str(e), raw_config=raw, source_url=source_url) from e


async def lint(
    api: API, location: ConfigLocation, pull_request: Mapping[str, Any], default_url: str
) -> List[ValidationFailure]:
    try:
        rule_set = await fetch_rule_set(api, location)
    except InvalidConfig as e:
        logger.debug("Invalid config file: \n%s", e)
        return [ValidationFailure(message=e, details_url=default_url)]

    logger.debug("Have %d configured fields", len(rule_set))
    return evaluate(rule_set, pull_request, default_url)


async def report_status(api: API, url: str, status: StatusPayload) -> LintResult:
    try:
        await api.post_status(url, status)
    except (GitHubException, aiohttp.ClientError) as e:
        capture_exception(e, "status_post", extra={"status": status.to_request()})
        return LintResult(
            500,
            {
                "exception": repr(e),
                "request_body": status.to_request(),
                "response": str(e),
            },
        )
    status_post_counter.labels(state=status.state).inc()
    return LintResult(200, status.to_request())


async def report_failure(
    api: API, payload: Dict[str, Any], exc: Exception, settings: Any
) -> LintResult:
    """Leave a status on the PR after the lint pipeline failed.

    A missing config file is not an error: the PR gets a success status and
    the webhook is answered with 200.
    """
    status_url = (
        f"{settings.GITHUB_API_URL}/repos/{payload['repository']['full_name']}"
        f"/statuses/{payload['pull_request']['head']['sha']}"
    )
    if isinstance(exc, BadRequest) and exc.status_code == 404:
        logger.info("No %s found, reporting success", CONFIG_PATH)
        status = no_config_status(settings.GITHUB_URL)
        code = 200
    else:
        capture_exception(exc, "lint")
        status = error_status(exc, settings.ISSUES_URL)
        code = 500

    try:
        await api.post_status(status_url, status)
    except (GitHubException, aiohttp.ClientError) as e:
        capture_exception(
            e, "fallback_status_post", extra={"status": status.to_request()}
        )
        return LintResult(500, str(e))
    status_post_counter.labels(state=status.state).inc()
    return LintResult(code, str(exc))


async def process_pull_request(
    api: API, payload: Dict[str, Any], settings: Any = app_config
) -> LintResult:
    """Lint the pull request of a webhook payload and post the result.

    ``settings`` provides ``GITHUB_URL``, ``GITHUB_API_URL`` and
    ``ISSUES_URL``, usually the sanic app config.
    """
    try:
        pr = PullRequest.model_validate(payload["pull_request"])
        logger.info("Begin handling %s", pr)
        location = config_location(pr)
        default_url = default_failure_url(settings.GITHUB_URL, pr)
        failures = await lint(api, location, flatten(payload["pull_request"]), default_url)
        status = build_status(failures, default_url, settings.ISSUES_URL)
    except Exception as e:
        return await report_failure(api, payload, e, settings)

    result = await report_status(api, pr.statuses_url, status)
    logger.info("Finished handling %s, API calls: %d", pr, api.call_count)
    return result
