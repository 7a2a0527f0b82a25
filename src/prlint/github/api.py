from typing import Optional

from gidgethub.abc import GitHubAPI
from sanic.log import logger

from prlint import config
from prlint.github.model import Content, InstallationToken
from prlint.metric import api_call_count, token_mint_counter
from prlint.model import StatusPayload


class API:
    gh: GitHubAPI
    installation: Optional[int]

    call_count: int

    def __init__(
        self,
        gh: GitHubAPI,
        installation: Optional[int] = None,
        *,
        accept: str = config.GITHUB_ACCEPT,
        dry_run: bool = False,
    ):
        self.gh = gh
        self.installation = installation
        self.accept = accept
        self.dry_run = dry_run
        self.call_count = 0

    def _count(self, kind: str) -> None:
        self.call_count += 1
        api_call_count.labels(kind=kind).inc()

    async def get_content(
        self, repo_full_name: str, path: str, ref: Optional[str] = None
    ) -> Content:
        self._count("contents")
        url = f"/repos/{repo_full_name}/contents/{path}"
        logger.debug("Get file content: %s (ref %s)", url, ref)
        data = await self.gh.getitem(
            url + "{?ref}", url_vars={"ref": ref}, accept=self.accept
        )
        return Content.model_validate(data)

    async def create_installation_token(
        self, installation_id: int, jwt: str
    ) -> InstallationToken:
        self._count("installation_token")
        url = f"/app/installations/{installation_id}/access_tokens"
        logger.debug("Getting NEW installation access token for %s", installation_id)
        data = await self.gh.post(url, data=b"", accept=self.accept, jwt=jwt)
        token_mint_counter.inc()
        return InstallationToken(
            installation_id=installation_id,
            token=data["token"],
            expires_at=data["expires_at"],
        )

    async def post_status(self, url: str, status: StatusPayload) -> None:
        payload = status.to_request()
        if self.dry_run:
            logger.info("Dry run, not posting status to %s: %s", url, payload)
            return
        self._count("statuses")
        logger.debug("Posting %s status to %s", status.state, url)
        await self.gh.post(url, data=payload, accept=self.accept)
