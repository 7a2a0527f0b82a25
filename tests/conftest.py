import base64
import json
from types import SimpleNamespace
from urllib.parse import urlsplit

import gidgethub.abc
import pytest


class FakeGitHub(gidgethub.abc.GitHubAPI):
    """GitHub client answering from ``responses`` keyed by (method, path)."""

    def __init__(self, responses=None, *, oauth_token=None):
        super().__init__("prlint-tests", oauth_token=oauth_token)
        self.responses = dict(responses or {})
        self.requests = []

    async def _request(self, method, url, headers, body=b""):
        self.requests.append(
            SimpleNamespace(
                method=method,
                url=url,
                headers=headers,
                body=json.loads(body) if body else None,
            )
        )
        response = self.responses.get(
            (method, urlsplit(url).path), (404, {"message": "Not Found"})
        )
        if isinstance(response, Exception):
            raise response
        status, data = response
        return (
            status,
            {"content-type": "application/json; charset=utf-8"},
            json.dumps(data).encode(),
        )

    async def sleep(self, seconds):
        pass


HEAD_SHA = "b" * 40
MERGE_SHA = "c" * 40


def make_pull_request(title="Update README", fork=False, **overrides):
    head_repo = "someone/repo" if fork else "org/repo"
    pull_request = {
        "id": 1001,
        "number": 42,
        "state": "open",
        "title": title,
        "body": None,
        "user": {"login": "octocat"},
        "labels": [{"name": "bug"}],
        "draft": False,
        "statuses_url": f"https://api.github.com/repos/org/repo/statuses/{HEAD_SHA}",
        "merge_commit_sha": MERGE_SHA,
        "head": {
            "ref": "feature/readme",
            "sha": HEAD_SHA,
            "label": "org:feature/readme",
            "repo": {"id": 2, "name": "repo", "full_name": head_repo, "fork": fork},
        },
        "base": {
            "ref": "main",
            "sha": "a" * 40,
            "label": "org:main",
            "repo": {"id": 1, "name": "repo", "full_name": "org/repo", "fork": False},
        },
    }
    pull_request.update(overrides)
    return pull_request


def make_payload(action="opened", installation_id=99, **kwargs):
    return {
        "action": action,
        "pull_request": make_pull_request(**kwargs),
        "repository": {"id": 1, "name": "repo", "full_name": "org/repo"},
        "installation": {"id": installation_id},
    }


def contents_response(data):
    raw = data if isinstance(data, str) else json.dumps(data)
    return (
        200,
        {
            "type": "file",
            "encoding": "base64",
            "size": len(raw),
            "name": "prlint.json",
            "path": ".github/prlint.json",
            "content": base64.b64encode(raw.encode()).decode(),
            "sha": "d" * 40,
            "url": "https://api.github.com/repos/org/repo/contents/.github/prlint.json",
            "html_url": "https://github.com/org/repo/blob/main/.github/prlint.json",
            "download_url": None,
        },
    )


def make_settings(**overrides):
    data = {
        "GITHUB_URL": "https://github.com",
        "GITHUB_API_URL": "https://api.github.com",
        "ISSUES_URL": "https://github.com/VibrentHealth/prlint/issues",
        "DRY_RUN": False,
    }
    data.update(overrides)
    return SimpleNamespace(**data)


CONTENTS_PATH = "/repos/org/repo/contents/.github/prlint.json"
STATUSES_PATH = f"/repos/org/repo/statuses/{HEAD_SHA}"


@pytest.fixture
def settings():
    return make_settings()
