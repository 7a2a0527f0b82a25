from datetime import datetime, timedelta, timezone

from prlint.cache import TokenCache
from prlint.github.model import InstallationToken


def make_token(installation_id=99, token="t1", expires_in=3600):
    return InstallationToken(
        installation_id=installation_id,
        token=token,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )


def test_get_missing_returns_none():
    cache = TokenCache()
    assert cache.get(99) is None
    assert cache.fresh_token(99) is None


def test_set_overwrites_entry():
    cache = TokenCache()
    cache.set(99, make_token(token="t1"))
    cache.set(99, make_token(token="t2"))

    assert len(cache) == 1
    assert cache.get(99).token == "t2"
    # ids from the payload may arrive as strings
    assert cache.get("99").token == "t2"


def test_expired_token_is_not_fresh():
    cache = TokenCache()
    cache.set(99, make_token(expires_in=-1))

    assert cache.get(99) is not None
    assert not cache.is_fresh(cache.get(99))
    assert cache.fresh_token(99) is None


def test_expiry_margin():
    cache = TokenCache(expiry_margin=60)
    token = make_token(expires_in=30)

    assert not cache.is_fresh(token)
    assert TokenCache().is_fresh(token)
    assert cache.is_fresh(make_token(expires_in=600))


def test_parses_github_timestamp():
    token = InstallationToken.model_validate(
        {"installation_id": 1, "token": "x", "expires_at": "2016-07-11T22:14:10Z"}
    )
    cache = TokenCache()

    assert not cache.is_fresh(token)
    assert cache.is_fresh(token, now=datetime(2016, 7, 11, 22, 0, tzinfo=timezone.utc))
