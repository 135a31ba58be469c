# hormone_health/storage.py
# ------------------------------------------------------------
# Key-value storage for saved survey responses and emails
#
# Two interchangeable backends behind one small interface:
#   • InMemoryStore  – dict-backed; tests and local dev
#   • UpstashStore   – Upstash Redis over its REST API (requests)
#
# Values are JSON-serialisable objects. Lists hold ids, newest first
# (LPUSH semantics).
# ------------------------------------------------------------

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class StoreError(RuntimeError):
    """A storage operation failed (network, auth, or server error)."""


class KeyValueStore:
    """Minimal interface the HTTP handlers rely on."""

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def lpush(self, list_name: str, key: str) -> int:
        raise NotImplementedError

    def lrange(self, list_name: str, start: int = 0, stop: int = -1) -> List[str]:
        raise NotImplementedError

    def hset(self, key: str, mapping: Mapping[str, Any]) -> int:
        raise NotImplementedError


def _slice(items: List[str], start: int, stop: int) -> List[str]:
    """Redis LRANGE indexing: inclusive stop, negatives count from the end."""
    n = len(items)
    if start < 0:
        start = max(n + start, 0)
    if stop < 0:
        stop = n + stop
    return items[start:stop + 1]


class InMemoryStore(KeyValueStore):
    def __init__(self) -> None:
        self._values: Dict[str, str] = {}
        self._lists: Dict[str, List[str]] = {}
        self._hashes: Dict[str, Dict[str, Any]] = {}

    def set(self, key, value):
        # Round-trip through JSON so callers never share mutable state with the store
        self._values[key] = json.dumps(value)

    def get(self, key):
        raw = self._values.get(key)
        return json.loads(raw) if raw is not None else None

    def lpush(self, list_name, key):
        items = self._lists.setdefault(list_name, [])
        items.insert(0, key)
        return len(items)

    def lrange(self, list_name, start=0, stop=-1):
        return _slice(list(self._lists.get(list_name, [])), start, stop)

    def hset(self, key, mapping):
        h = self._hashes.setdefault(key, {})
        added = sum(1 for f in mapping if f not in h)
        h.update(mapping)
        return added

    def hgetall(self, key) -> Dict[str, Any]:
        return dict(self._hashes.get(key, {}))


class UpstashStore(KeyValueStore):
    """
    Upstash Redis REST client.
    Each call POSTs a command array, e.g. ["SET", "k", "v"], to the base URL
    with a bearer token and reads {"result": ...} or {"error": "..."}.
    """

    def __init__(self, url: str, token: str, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None) -> None:
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _command(self, *args: Any) -> Any:
        try:
            r = self.session.post(self.url, json=list(args), timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreError(f"{args[0]} failed: {e}") from e
        try:
            body = r.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if r.status_code >= 400 or "error" in body:
            raise StoreError(f"{args[0]} failed ({r.status_code}): {body.get('error') or r.text[:200]}")
        return body.get("result")

    def set(self, key, value):
        self._command("SET", key, json.dumps(value))

    def get(self, key):
        raw = self._command("GET", key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            # Written by another client as a plain string
            return raw

    def lpush(self, list_name, key):
        return int(self._command("LPUSH", list_name, key) or 0)

    def lrange(self, list_name, start=0, stop=-1):
        return list(self._command("LRANGE", list_name, start, stop) or [])

    def hset(self, key, mapping):
        args: List[Any] = ["HSET", key]
        for field, value in mapping.items():
            args.extend([field, value])
        return int(self._command(*args) or 0)


def store_from_env(env: Optional[Mapping[str, str]] = None) -> Optional[KeyValueStore]:
    """
    Pick a backend from the environment:
      UPSTASH_REDIS_REST_URL + UPSTASH_REDIS_REST_TOKEN → UpstashStore
      HORMONE_STORE=memory                              → InMemoryStore
      otherwise                                         → None (not configured)
    """
    env = os.environ if env is None else env
    url = env.get("UPSTASH_REDIS_REST_URL")
    token = env.get("UPSTASH_REDIS_REST_TOKEN")
    if url and token:
        logger.info("Using Upstash store at %s", url)
        timeout = float(env.get("STORE_TIMEOUT") or DEFAULT_TIMEOUT)
        return UpstashStore(url, token, timeout=timeout)
    if (env.get("HORMONE_STORE") or "").lower() == "memory":
        logger.info("Using in-memory store")
        return InMemoryStore()
    logger.warning("No key-value store configured (set UPSTASH_REDIS_REST_URL/TOKEN)")
    return None
