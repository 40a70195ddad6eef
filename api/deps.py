"""
API Dependencies

Builds the service state (ledger, collaborators, proof source) from
RuntimeConfig and exposes it to route handlers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fastapi import Header, Request

from core.allowlist import AllowList, load_allowlist, load_claims_file
from core.config.runtime import RuntimeConfig
from core.http.client import HttpClient
from core.ledger import (
    AccessPolicy,
    Capability,
    ClaimLedger,
    HttpEligibilityOracle,
    HttpFulfillmentSink,
    InMemoryLedgerStore,
    JsonFileLedgerStore,
    LedgerStore,
    OpenAccessPolicy,
    RoleRegistry,
)
from core.schemas.allowlist import ClaimsFile, Commitment

logger = logging.getLogger(__name__)


@dataclass
class ServiceState:
    """What the routes operate on. Proofs come from ``allowlist`` if set, else ``claims_file``."""
    ledger: ClaimLedger
    allowlist: Optional[AllowList] = None
    claims_file: Optional[ClaimsFile] = None
    config: RuntimeConfig = field(default_factory=RuntimeConfig)


def load_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig from a config file, then overlay environment variables.

    Search order for config file:
      1. ./merkledrop.yaml
      2. ./merkledrop.json
      3. ~/.config/merkledrop/config.json

    Environment variables ALWAYS override config file values.
    The .env file is loaded automatically by core.config.runtime on import.
    """
    search_paths = [
        Path.cwd() / "merkledrop.yaml",
        Path.cwd() / "merkledrop.json",
        Path.home() / ".config" / "merkledrop" / "config.json",
    ]

    config: RuntimeConfig | None = None

    for path in search_paths:
        if not path.exists():
            continue
        try:
            if path.suffix == ".yaml":
                config = RuntimeConfig.from_yaml(path)
            else:
                with open(path) as f:
                    config = RuntimeConfig.from_dict(json.load(f))
            logger.info(f"Loaded config from {path}")
            break
        except Exception as e:
            logger.warning(f"Failed to parse {path}: {e}")

    if config is None:
        config = RuntimeConfig()

    return config.with_env_overrides()


def build_store(config: RuntimeConfig) -> LedgerStore:
    if config.ledger.store == "json":
        return JsonFileLedgerStore(config.ledger.path)
    if config.ledger.store != "memory":
        raise ValueError(f"Unknown ledger store: {config.ledger.store!r}")
    return InMemoryLedgerStore()


def build_access_policy(config: RuntimeConfig) -> AccessPolicy:
    """Without an admin token every caller is allowed; with one, only its holder."""
    token = config.api.admin_token
    if not token:
        return OpenAccessPolicy()
    return RoleRegistry({capability: {token} for capability in Capability})


def build_state(config: RuntimeConfig) -> ServiceState:
    """Wire the ledger and its collaborators from configuration."""
    allowlist = None
    claims_file = None
    published: Commitment | None = None
    if config.ledger.allowlist_file:
        allowlist = load_allowlist(config.ledger.allowlist_file)
        published = allowlist.commitment()
    elif config.ledger.claims_file:
        claims_file = load_claims_file(config.ledger.claims_file)
        published = claims_file.commitment

    client = HttpClient(
        timeout=config.http.timeout,
        default_headers={"User-Agent": config.http.user_agent},
        proxy=config.http.proxy,
    )
    oracle = HttpEligibilityOracle(config.oracle.base_url, client) if config.oracle.base_url else None
    sink = HttpFulfillmentSink(config.sink.base_url, client) if config.sink.base_url else None
    if oracle is None:
        logger.warning("No eligibility oracle configured; claims will be rejected")
    if sink is None:
        logger.warning("No fulfillment sink configured; claims will be rejected")

    store = build_store(config)
    # A persisted commitment wins over the one derived from the startup files
    persisted = store.get_commitment()
    initial = published if persisted is None else None
    if persisted is not None and published is not None and persisted.root != published.root:
        logger.warning(
            f"Persisted commitment {persisted.root} differs from the startup allow-list "
            f"root {published.root}; GET /proof answers 409 until they match"
        )

    ledger = ClaimLedger(
        store,
        commitment=initial,
        eligibility_oracle=oracle,
        fulfillment_sink=sink,
        access_policy=build_access_policy(config),
    )
    return ServiceState(ledger=ledger, allowlist=allowlist, claims_file=claims_file, config=config)


def get_state(request: Request) -> ServiceState:
    return request.app.state.merkledrop


def get_caller(x_admin_token: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller identity for administrative routes."""
    return x_admin_token
