from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Union

import pydantic


class Model(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(extra="ignore", populate_by_name=True)


class Rule(Model):
    pattern: Optional[str] = None
    flags: Optional[str] = None
    message: Optional[str] = None
    details_url: Optional[str] = pydantic.Field(None, alias="detailsURL")


class RuleSet(pydantic.RootModel[Dict[str, Optional[List[Rule]]]]):
    """Contents of ``.github/prlint.json``: field path to an ordered rule list."""

    def items(self):
        return self.root.items()

    def __len__(self) -> int:
        return len(self.root)


@dataclass
class ValidationFailure:
    # an exception instead of a string when the failure could not be described
    message: Union[str, Exception]
    details_url: str


class StatusPayload(Model):
    state: Literal["success", "failure", "error"]
    description: str
    target_url: Optional[str] = None
    context: str = "PRLint"

    def to_request(self) -> dict:
        return self.model_dump(exclude_none=True)
