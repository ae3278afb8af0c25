import os
from typing import Sequence

from errors import MissingCredentialError


def require_api_key(provider: str, env_vars: Sequence[str]) -> str:
    """Return the first non-empty key among *env_vars* or raise."""
    for name in env_vars:
        key = os.getenv(name)
        if key:
            return key
    raise MissingCredentialError(provider, list(env_vars))
