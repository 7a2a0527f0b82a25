from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from sanic.log import logger

from prlint.github.model import InstallationToken


class TokenCache:
    """In-memory installation access tokens, one per installation id.

    Entries are never evicted or refreshed here. Callers check
    :meth:`is_fresh` on lookup and :meth:`set` a newly minted token, the last
    write for an installation wins. This is a plain dict rather than a TTL
    cache so that an expired entry stays readable when a refresh fails.
    """

    def __init__(self, expiry_margin: float = 0.0):
        self.expiry_margin = timedelta(seconds=expiry_margin)
        self._tokens: Dict[int, InstallationToken] = {}

    def get(self, installation_id: int) -> Optional[InstallationToken]:
        return self._tokens.get(int(installation_id))

    def set(self, installation_id: int, token: InstallationToken) -> None:
        logger.debug("Caching access token for installation %s", installation_id)
        self._tokens[int(installation_id)] = token

    def is_fresh(
        self, token: Optional[InstallationToken], now: Optional[datetime] = None
    ) -> bool:
        if token is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = token.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at - self.expiry_margin > now

    def fresh_token(self, installation_id: int) -> Optional[InstallationToken]:
        token = self.get(installation_id)
        return token if self.is_fresh(token) else None

    def __len__(self) -> int:
        return len(self._tokens)
