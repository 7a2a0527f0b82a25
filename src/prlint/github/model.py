from datetime import datetime
from typing import Literal, Optional
import base64

import pydantic


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="ignore")


class Content(Model):
    type: str
    encoding: Literal["base64"]
    size: int
    name: str
    path: str
    content: str
    sha: str
    url: str
    html_url: Optional[str] = None
    download_url: Optional[str] = None

    def decoded_content(self) -> str:
        if self.encoding != "base64":
            raise ValueError(f"Unknown encoding {self.encoding}")
        return base64.b64decode(self.content).decode("utf-8")


class Repository(Model):
    id: int
    name: str
    full_name: str
    url: Optional[str] = None
    html_url: Optional[str] = None
    private: Optional[bool] = None
    fork: bool = False


class PrConnection(Model):
    ref: str
    sha: str
    label: Optional[str] = None
    # null when the source repository of a fork was deleted
    repo: Optional[Repository] = None


class PullRequest(Model):
    id: int
    number: int
    url: Optional[str] = None
    html_url: Optional[str] = None
    state: Optional[Literal["open", "closed"]] = None
    title: Optional[str] = None
    statuses_url: str
    merge_commit_sha: Optional[str] = None
    base: PrConnection
    head: PrConnection

    def __str__(self) -> str:
        name = self.base.repo.full_name if self.base.repo is not None else "?"
        return f"PR({name}#{self.number}, {self.id})"


class InstallationToken(Model):
    installation_id: int
    token: str
    expires_at: datetime
