import asyncio
from contextlib import asynccontextmanager
import json
import logging
from pathlib import Path

import typer
from gidgethub import aiohttp as gh_aiohttp
import aiohttp
import cachetools
from sanic.log import logger as sanic_logger

from prlint import config
from prlint.auth import AppJWT
from prlint.flatten import flatten
from prlint.github import (
    InvalidConfig,
    default_failure_url,
    parse_rule_set,
    process_pull_request,
)
from prlint.github.api import API
from prlint.github.model import PullRequest
from prlint.logger import get_log_handlers
from prlint.rules import evaluate
from prlint.status import build_status


logging.basicConfig(
    format="%(asctime)s %(name)s %(levelname)s - %(message)s", level=logging.INFO
)
logger = logging.getLogger("prlint")

app = typer.Typer()
httpcache = cachetools.LRUCache(maxsize=500)


@app.callback()
def init():
    logging.getLogger().setLevel(config.OVERRIDE_LOGGING)
    logger.setLevel(config.OVERRIDE_LOGGING)
    get_log_handlers(sanic_logger)


@app.command()
def serve(host: str = "0.0.0.0", port: int = 3000):
    from prlint.web import create_app

    create_app().run(host=host, port=port, single_process=True)


@asynccontextmanager
async def installation_api(installation: int):
    async with aiohttp.ClientSession() as session:
        gh = gh_aiohttp.GitHubAPI(session, "prlint", base_url=config.GITHUB_API_URL)
        jwt = AppJWT(config.GITHUB_APP_ID, config.GITHUB_PRIVATE_KEY)

        token = await API(gh).create_installation_token(installation, jwt.token)

        gh = gh_aiohttp.GitHubAPI(
            session,
            "prlint",
            oauth_token=token.token,
            cache=httpcache,
            base_url=config.GITHUB_API_URL,
        )

        yield API(gh, installation, dry_run=config.DRY_RUN)


@app.command()
def pr(repo: str, number: int, installation: int):
    """Lint one pull request and post its status."""

    async def handle():
        async with installation_api(installation) as api:
            data = await api.gh.getitem(f"/repos/{repo}/pulls/{number}")
            payload = {
                "action": "synchronize",
                "pull_request": data,
                "repository": data["base"]["repo"],
                "installation": {"id": installation},
            }
            result = await process_pull_request(api, payload, config)
            typer.echo(f"{result.status}: {json.dumps(result.body)}")

    asyncio.run(handle())


@app.command()
def check(config_file: Path, pr_file: Path):
    """Evaluate a local prlint.json against a saved pull request payload."""
    data = json.loads(pr_file.read_text())
    # accept both a bare pull request and a full webhook payload
    data = data.get("pull_request", data)

    try:
        rule_set = parse_rule_set(config_file.read_text(), source_url=str(config_file))
    except InvalidConfig as e:
        typer.echo(f"Invalid config file {config_file}: {e}", err=True)
        raise typer.Exit(code=2)

    default_url = default_failure_url(config.GITHUB_URL, PullRequest.model_validate(data))
    failures = evaluate(rule_set, flatten(data), default_url)

    for failure in failures:
        typer.echo(f"- {failure.message} ({failure.details_url})")

    status = build_status(failures, default_url, config.ISSUES_URL)
    typer.echo(json.dumps(status.to_request(), indent=2))

    if status.state != "success":
        raise typer.Exit(code=1)
