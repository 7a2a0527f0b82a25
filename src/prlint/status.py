from typing import List
from urllib.parse import quote

from prlint.model import StatusPayload, ValidationFailure

# hard limit of the commit status API
MAX_DESCRIPTION = 140


def build_status(
    failures: List[ValidationFailure], default_url: str, issues_url: str
) -> StatusPayload:
    if len(failures) == 0:
        return StatusPayload(state="success", description="Your validation rules passed")

    description = failures[0].message
    target_url = failures[0].details_url
    if len(failures) > 1:
        description = f"1/{len(failures) - 1}: {description}"
        target_url = default_url

    if not isinstance(description, str):
        return StatusPayload(
            state="failure",
            description="Something went wrong with PRLint - "
            "You can help by opening an issue (click details)",
            target_url=f"{issues_url}/new",
        )

    return StatusPayload(
        state="failure",
        description=description[:MAX_DESCRIPTION],
        target_url=target_url,
    )


def no_config_status(github_url: str) -> StatusPayload:
    return StatusPayload(
        state="success",
        description="No rules are setup for PRLint",
        target_url=f"{github_url}/apps/prlint",
    )


def error_status(exc: BaseException, issues_url: str) -> StatusPayload:
    body = quote(str(exc), safe="!*'()")
    return StatusPayload(
        state="error",
        description="An error occurred with PRLint. Click details to open an issue",
        target_url=f"{issues_url}/new?title=Exception Report&body={body}",
    )
