from importlib.metadata import PackageNotFoundError, version
import json
import logging
from typing import Any, Optional

from sanic import Sanic, response, Request
from sanic.response import HTTPResponse
import aiohttp
from gidgethub import ValidationFailure as SignatureFailure
from gidgethub import sansio
from gidgethub import aiohttp as gh_aiohttp
from sanic.log import logger
import sanic.log
import cachetools
from prometheus_client import core
from prometheus_client.exposition import generate_latest

from prlint import config
from prlint.auth import AppJWT
from prlint.cache import TokenCache
from prlint.github import LintResult, process_pull_request
from prlint.github.api import API
from prlint.github.model import InstallationToken
from prlint.logger import capture_exception, get_log_handlers
from prlint.metric import request_counter, webhook_counter


LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

logging.basicConfig(format=LOG_FORMAT, level=logging.INFO)


def make_api(
    app, oauth_token: Optional[str] = None, installation: Optional[int] = None
) -> API:
    gh = gh_aiohttp.GitHubAPI(
        app.ctx.aiohttp_session,
        "prlint",
        oauth_token=oauth_token,
        cache=app.ctx.http_cache,
        base_url=app.config.GITHUB_API_URL,
    )
    return API(gh, installation, dry_run=app.config.DRY_RUN)


async def mint_installation_token(app, installation_id: int) -> InstallationToken:
    api = make_api(app, installation=installation_id)
    return await api.create_installation_token(installation_id, app.ctx.app_jwt.token)


def build_version() -> str:
    if config.BUILD_VERSION:
        return config.BUILD_VERSION
    try:
        return version("prlint")
    except PackageNotFoundError:
        return "unknown"


def to_response(result: LintResult) -> HTTPResponse:
    if isinstance(result.body, str):
        return response.text(result.body, status=result.status)
    return response.json(result.body, status=result.status)


async def handle_webhook(app, body: Any) -> HTTPResponse:
    """Route one webhook delivery.

    Payloads without an open pull request are echoed back. Pull requests are
    linted with the cached installation token, a new one is minted first when
    there is none or it is about to expire.
    """
    # null, false, 0 and "" are empty payloads, anything else without a pull
    # request is echoed
    empty = body in (None, False, "")
    if not empty and not (isinstance(body, dict) and body.get("pull_request")):
        webhook_counter.labels(outcome="ignored").inc()
        return response.json(body)

    if isinstance(body, dict) and body.get("action") == "closed":
        logger.debug("Pull request is closed, nothing to lint")
        webhook_counter.labels(outcome="closed").inc()
        return response.json(body)

    installation = body.get("installation") if isinstance(body, dict) else None
    installation_id = installation.get("id") if isinstance(installation, dict) else None

    if not installation_id:
        webhook_counter.labels(outcome="invalid").inc()
        return response.text("invalid request payload", status=400)

    logger.debug("Installation id: %s", installation_id)
    token_cache: TokenCache = app.ctx.token_cache
    token = token_cache.fresh_token(installation_id)

    if token is None:
        try:
            token = await mint_installation_token(app, installation_id)
        except Exception as e:
            capture_exception(e, "installation_token")
            stale = token_cache.get(installation_id)
            webhook_counter.labels(outcome="token_error").inc()
            return response.json(
                {
                    "token": stale.model_dump(mode="json") if stale else None,
                    "exception": repr(e),
                },
                status=500,
            )
        token_cache.set(installation_id, token)

    api = make_api(app, oauth_token=token.token, installation=installation_id)
    result = await process_pull_request(api, body, app.config)
    webhook_counter.labels(outcome="linted").inc()
    return to_response(result)


def verify_signature(request: Request, secret: str) -> bool:
    signature = request.headers.get("x-hub-signature-256") or request.headers.get(
        "x-hub-signature"
    )
    if signature is None:
        return False
    try:
        sansio.validate_event(request.body, signature=signature, secret=secret)
    except SignatureFailure:
        return False
    return True


def create_app():

    app = Sanic("prlint")
    app.update_config(config)

    logging.getLogger().setLevel(config.OVERRIDE_LOGGING)

    for handler in get_log_handlers(sanic.log.logger):
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    app.ctx.http_cache = cachetools.LRUCache(maxsize=500)
    app.ctx.token_cache = TokenCache(expiry_margin=config.TOKEN_EXPIRY_MARGIN)
    app.ctx.app_jwt = AppJWT(
        config.GITHUB_APP_ID,
        config.GITHUB_PRIVATE_KEY,
        interval=config.JWT_REFRESH_INTERVAL,
    )

    @app.listener("before_server_start")
    async def init(app, loop):
        logger.debug("Creating aiohttp session")
        app.ctx.aiohttp_session = aiohttp.ClientSession()
        await app.ctx.app_jwt.start()

    @app.listener("after_server_stop")
    async def shutdown(app, loop):
        await app.ctx.app_jwt.stop()
        await app.ctx.aiohttp_session.close()

    @app.on_request
    async def on_request(request: Request):
        if request.path == "/metrics":
            return
        request_counter.labels(path=request.path).inc()

    def homepage():
        return response.redirect(app.config.HOMEPAGE_URL, status=301)

    # every route answers all methods so that unsupported ones get the redirect
    @app.route("/status", methods=ALL_METHODS)
    async def status(request):
        if request.method != "GET":
            return homepage()
        logger.debug("status check")
        return response.text("OK")

    @app.route("/version", methods=ALL_METHODS)
    async def version_info(request):
        if request.method != "GET":
            return homepage()
        return response.text(build_version())

    @app.route("/favicon.ico", methods=ALL_METHODS)
    async def favicon(request):
        if request.method != "GET":
            return homepage()
        return response.raw(b"", content_type="image/x-icon")

    @app.route("/metrics", methods=ALL_METHODS)
    async def metrics(request):
        if request.method != "GET":
            return homepage()
        return response.raw(generate_latest(core.REGISTRY))

    @app.route("/webhook", methods=ALL_METHODS)
    async def webhook(request):
        if request.method != "POST":
            return homepage()

        logger.debug("Webhook received")

        if app.config.GITHUB_WEBHOOK_SECRET and not verify_signature(
            request, app.config.GITHUB_WEBHOOK_SECRET
        ):
            logger.warning("Rejecting webhook with invalid signature")
            return response.text("invalid signature", status=401)

        try:
            body = json.loads(request.body)
        except ValueError:
            return response.text("invalid request payload", status=400)

        return await handle_webhook(app, body)

    @app.route("/", methods=ALL_METHODS, name="redirect_root")
    @app.route("/<path:path>", methods=ALL_METHODS, name="redirect_path")
    async def redirect(request, path=""):
        return homepage()

    return app
