"""Engine environment and provider configuration assembly."""

from __future__ import annotations

import os
from collections.abc import Collection, Mapping
from typing import Any

SECRET_ENV_PREFIX = "SST_SECRET_"
PASSPHRASE_ENV_VAR = "PULUMI_CONFIG_PASSPHRASE"

# Provider settings that reach the engine another way during runs.
RUN_SKIPPED_CONFIG: frozenset[tuple[str, str]] = frozenset({("cloudflare", "accountId")})
IMPORT_SKIPPED_KEYS: frozenset[str] = frozenset({"version"})


def build_engine_environment(
    *,
    backend_env: Mapping[str, str],
    secrets: Mapping[str, str],
    passphrase: str,
    host_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge backend, host, secret and passphrase variables, later entries winning."""
    env = dict(backend_env)
    env.update(os.environ if host_env is None else host_env)
    for name, value in secrets.items():
        env[f"{SECRET_ENV_PREFIX}{name}"] = value
    env[PASSPHRASE_ENV_VAR] = passphrase
    return env


def flatten_provider_config(
    providers: Mapping[str, Mapping[str, Any]],
    *,
    skipped: Collection[tuple[str, str]] = (),
    skipped_keys: Collection[str] = (),
) -> dict[str, str]:
    """Flatten provider settings into ``<provider>:<key>`` engine config entries.

    Sequences expand into ``<provider>:<key>[<index>]``. Mappings and null
    values have no flat representation and are left out.
    """
    config: dict[str, str] = {}
    for provider, args in providers.items():
        for key, value in args.items():
            if key in skipped_keys or (provider, key) in skipped:
                continue
            if isinstance(value, list | tuple):
                for index, item in enumerate(value):
                    scalar = _scalar(item)
                    if scalar is not None:
                        config[f"{provider}:{key}[{index}]"] = scalar
                continue
            scalar = _scalar(value)
            if scalar is not None:
                config[f"{provider}:{key}"] = scalar
    return config


def _scalar(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    return None
