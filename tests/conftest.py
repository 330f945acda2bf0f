"""
Shared fixtures for FeedbackSense tests.
"""

import os

# Use litellm's bundled model cost map instead of fetching it over the network
# at import time (the offline fetch-failure path deadlocks under pytest).
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import pytest

from feedbacksense.batching import rate_limiter
from feedbacksense.llm.agents import PROVIDER_API_KEY_ENV


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch) -> None:
    """Keep real credentials and overrides out of every test."""
    for env_vars in PROVIDER_API_KEY_ENV.values():
        for env_var in env_vars:
            monkeypatch.delenv(env_var, raising=False)

    for name in (
        "MODEL_NAME",
        "TEMPERATURE",
        "REQUEST_TIMEOUT",
        "MAX_RETRIES",
        "MAX_REQUESTS_PER_MINUTE",
        "DEFAULT_BATCH_SIZE",
        "MIN_BATCH_SIZE",
        "MAX_BATCH_SIZE",
        "BATCH_DELAY_MS",
        "MAX_TOKENS_PER_REQUEST",
        "CORRECTION_HISTORY_SIZE",
        "DATABASE_URL",
    ):
        monkeypatch.delenv(f"FEEDBACKSENSE_{name}", raising=False)


@pytest.fixture(autouse=True)
def fresh_shared_rate_limiter(monkeypatch) -> None:
    """Give every test its own process-wide rate limiter."""
    monkeypatch.setattr(rate_limiter, "_default_limiter", None)
