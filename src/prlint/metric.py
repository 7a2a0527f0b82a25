from prometheus_client import Counter

request_counter = Counter(
    "prlint_num_req", "Total number of requests", labelnames=["path"]
)
webhook_counter = Counter(
    "prlint_num_webhook", "Total number of webhooks", labelnames=["outcome"]
)

status_post_counter = Counter(
    "prlint_num_status_post",
    "Number of commit statuses posted",
    labelnames=["state"],
)

token_mint_counter = Counter(
    "prlint_num_token_mint", "Number of installation access tokens minted"
)

error_counter = Counter(
    "prlint_error_counter", "Total number of errors", labelnames=["context"]
)

api_call_count = Counter(
    "prlint_num_api_calls", "Total number of GitHub API calls", labelnames=["kind"]
)
