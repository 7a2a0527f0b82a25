import asyncio
from typing import Callable, Optional

from gidgethub.apps import get_jwt
from sanic.log import logger


class AppJWT:
    """Owns the GitHub App JWT and re-mints it on a fixed interval.

    Requests read :attr:`token`, which always holds the most recently minted
    JWT. The refresh loop runs independently of any request.
    """

    def __init__(
        self,
        app_id: int,
        private_key: Optional[str],
        *,
        interval: float = 300,
        mint: Optional[Callable[[], str]] = None,
    ):
        self.app_id = app_id
        self.private_key = private_key
        self.interval = max(0.0, float(interval))
        self._mint = mint or self._mint_jwt
        self._token: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    def _mint_jwt(self) -> str:
        return get_jwt(app_id=self.app_id, private_key=self.private_key)

    @property
    def token(self) -> str:
        if self._token is None:
            self.refresh()
        return self._token

    def refresh(self) -> str:
        logger.debug("Minting new App JWT")
        self._token = self._mint()
        return self._token

    async def start(self) -> None:
        self.refresh()
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.refresh()
            except asyncio.CancelledError:
                raise
            except Exception:
                # keep serving the previous JWT until the next tick
                logger.error("Refreshing the App JWT failed", exc_info=True)
