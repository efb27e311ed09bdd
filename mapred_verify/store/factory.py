from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from mapred_verify.bench.errors import SetupError
from mapred_verify.store.http_client import HttpStoreClient

logger = logging.getLogger(__name__)

_BOOL_TRUE = {"true", "1", "yes", "y", "on"}


def load_backend_settings(path: Optional[str]) -> Dict[str, Any]:
    """
    Optional YAML describing the compound backend, e.g.::

        default: bitcask_mult
        backends:
          bitcask_mult: bitcask
          leveldb_mult: leveldb
    """
    if not path:
        return {}
    p = Path(path)
    if not p.is_file():
        raise SetupError(f"backend settings file not found: {p}")
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise SetupError(f"cannot load backend settings {p}: {e}") from e
    if not isinstance(data, dict):
        raise SetupError(f"backend settings {p} must be a mapping")
    return data


class StoreFactory:
    def build(self, node: Optional[str] = None, settings_path: Optional[str] = None) -> dict:
        # 1) node from the CLI, else env
        base_url = (node or os.getenv("MRV_NODE") or "").strip()
        if not base_url:
            raise SetupError("no store node given (-s or MRV_NODE)")
        if "://" not in base_url:
            base_url = f"http://{base_url}"

        timeout = float(os.getenv("MRV_HTTP_TIMEOUT_SECONDS", "60"))
        verify_tls = os.getenv("MRV_HTTP_VERIFY_TLS", "true").strip().lower() in _BOOL_TRUE

        # 2) compound backend layout, if any
        settings = load_backend_settings(settings_path or os.getenv("MRV_BACKENDS_FILE"))

        client = HttpStoreClient(
            base_url,
            timeout=timeout,
            verify_tls=verify_tls,
            backends=settings.get("backends") or {},
            default_backend=settings.get("default"),
        )
        logger.debug("store client for %s (timeout %.0fs, verify_tls=%s)", base_url, timeout, verify_tls)

        return {
            "node": base_url,
            "env": {
                "MRV_NODE": base_url,
                "MRV_HTTP_TIMEOUT_SECONDS": timeout,
                "MRV_HTTP_VERIFY_TLS": verify_tls,
            },
            "backends": settings,
            "client": client,
        }
