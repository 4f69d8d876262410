"""LiteLLM Router configuration for the oracle.

The router owns the provider wiring (model name, credential reference,
per-request timeout). Router-level retries are disabled: core/retry.py
retries with tenacity, on recoverable PipelineErrors only.

Routers are built lazily, once per model, the first time a call needs one.
Importing this module never touches the network or the environment.
"""

from functools import lru_cache

from litellm import Router

from lore_extractor.core.config import API_KEY_ENV_VAR, ORACLE_MODEL, OracleConfig


def _build_model_list(model: str, api_key_env: str) -> list[dict]:
    """Single deployment; litellm resolves the os.environ/ reference per call."""
    return [
        {
            "model_name": model,
            "litellm_params": {
                "model": model,
                "api_key": f"os.environ/{api_key_env}",
            },
        },
    ]


def build_router(model: str = ORACLE_MODEL, api_key_env: str = API_KEY_ENV_VAR) -> Router:
    """Build a Router for one oracle model with retries disabled."""
    return Router(
        model_list=_build_model_list(model, api_key_env),
        num_retries=0,
        timeout=OracleConfig.TIMEOUT_SECONDS,
    )


@lru_cache(maxsize=8)
def get_router(model: str = ORACLE_MODEL, api_key_env: str = API_KEY_ENV_VAR) -> Router:
    """Cached Router for (model, credential variable)."""
    return build_router(model, api_key_env)
