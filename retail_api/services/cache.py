"""In-memory cache module for analysis results.

The snapshot is static between writes, so a result stays valid until its
TTL runs out or until a write (create, batch, dataset load) clears the cache.
"""
import hashlib
import inspect
import logging
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Callable, Optional, TypeVar, ParamSpec

from retail_api.settings import settings

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

_cache: dict[str, dict] = {}
_cache_stats = {"hits": 0, "misses": 0}


def _stringify(value: Any) -> str:
    if value is None:
        return "None"
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(x) for x in sorted(value) if x is not None)
    return str(value)


def _make_cache_key(prefix: str, *args, **kwargs) -> str:
    """Build a stable key from positional and keyword arguments.

    Long keys are hashed so entries stay small.
    """
    key_parts = [prefix]
    key_parts.extend(_stringify(arg) for arg in args)
    key_parts.extend(f"{k}={_stringify(v)}" for k, v in sorted(kwargs.items()))

    raw_key = ":".join(key_parts)
    if len(raw_key) > 200:
        return f"{prefix}:{hashlib.md5(raw_key.encode()).hexdigest()}"
    return raw_key


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_cache_stats() -> dict:
    """Return cache statistics for monitoring."""
    total = _cache_stats["hits"] + _cache_stats["misses"]
    hit_rate = (_cache_stats["hits"] / total * 100) if total > 0 else 0.0
    return {
        "entries": len(_cache),
        "keys": sorted(_cache.keys()),
        "hits": _cache_stats["hits"],
        "misses": _cache_stats["misses"],
        "hit_rate": round(hit_rate, 2),
    }


def get_cached(key: str) -> Optional[Any]:
    """Get a value from cache if not expired."""
    entry = _cache.get(key)
    if entry is None:
        _cache_stats["misses"] += 1
        return None

    expires_at = entry["expires_at"]
    if expires_at and _now() > expires_at:
        del _cache[key]
        _cache_stats["misses"] += 1
        return None

    _cache_stats["hits"] += 1
    return entry["value"]


def set_cached(key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
    """Store a value; a ttl of 0 keeps it until the next clear."""
    ttl = settings.CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
    _cache[key] = {
        "value": value,
        "expires_at": _now() + timedelta(seconds=ttl) if ttl else None,
        "created_at": _now(),
    }


def clear_cache(prefix: Optional[str] = None) -> int:
    """Clear cache entries. If prefix given, only clear matching keys."""
    global _cache

    if prefix is None:
        count = len(_cache)
        _cache = {}
        _cache_stats["hits"] = 0
        _cache_stats["misses"] = 0
    else:
        keys_to_delete = [k for k in _cache if k.startswith(prefix)]
        for key in keys_to_delete:
            del _cache[key]
        count = len(keys_to_delete)

    if count:
        logger.info("Cleared %d cached entr%s", count, "y" if count == 1 else "ies")
    return count


def cached(
    prefix: str,
    ttl_seconds: Optional[int] = None,
    defaults: Optional[dict[str, Callable[[], Any]]] = None,
):
    """
    Decorator for caching async analysis results.

    Arguments are bound to the function signature before keying, so a
    positional and a keyword call share an entry. The first parameter (the
    db session) is left out of the key. ``defaults`` maps a parameter to the
    setting it falls back to when passed as None, so ``top_n=None`` and the
    configured value hit the same entry.

    Usage:
        @cached("moving_averages", defaults={"window": lambda: settings.MOVING_AVERAGE_WINDOW})
        async def moving_averages(db, window=None, region=None):
            ...
    """
    resolvers = defaults or {}

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        signature = inspect.signature(func)
        session_param = next(iter(signature.parameters), None)

        def key_for(*args, **kwargs) -> str:
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            key_args = {}
            for name, value in bound.arguments.items():
                if name == session_param:
                    continue
                if value is None and name in resolvers:
                    value = resolvers[name]()
                key_args[name] = value
            return _make_cache_key(prefix, **key_args)

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            key = key_for(*args, **kwargs)

            cached_value = get_cached(key)
            if cached_value is not None:
                return cached_value

            result = await func(*args, **kwargs)
            set_cached(key, result, ttl_seconds)
            return result

        wrapper.cache_key = key_for
        return wrapper
    return decorator
