"""Tests for the Redis permission cache."""

import asyncio
import json
import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from neo_rbac.domain.entities.effective_permission_set import EffectivePermissionSet
from neo_rbac.domain.entities.permission import Permission
from neo_rbac.infrastructure.cache.redis_permission_cache import RedisPermissionCache, escape_glob


KEY = ("u1", "org-1")
FULL_KEY = "neo_rbac:eps:org-1:u1"


def glob_match(pattern, key):
    """Redis MATCH semantics for backslash escapes, ``*`` and ``?``."""
    regex = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            regex.append(re.escape(next(chars, "\\")))
        elif char == "*":
            regex.append(".*")
        elif char == "?":
            regex.append(".")
        else:
            regex.append(re.escape(char))
    return re.fullmatch("".join(regex), key, re.DOTALL) is not None


def make_redis(initial=None):
    """Mock redis client backed by a dict."""
    data = dict(initial or {})
    client = MagicMock()

    async def get(key):
        return data.get(key)

    async def set_value(key, value):
        data[key] = value.encode()

    async def setex(key, ttl, value):
        data[key] = value.encode()

    async def delete(*keys):
        return sum(1 for key in keys if data.pop(key.decode() if isinstance(key, bytes) else key, None) is not None)

    async def scan_iter(match):
        for key in list(data):
            if glob_match(match, key):
                yield key.encode()

    client.get = AsyncMock(side_effect=get)
    client.set = AsyncMock(side_effect=set_value)
    client.setex = AsyncMock(side_effect=setex)
    client.delete = AsyncMock(side_effect=delete)
    client.scan_iter = MagicMock(side_effect=scan_iter)
    client.data = data
    return client


def permission_set(principal_id="u1", organization_id="org-1"):
    return EffectivePermissionSet.build(
        principal_id, organization_id,
        [Permission("territory", "manage", "branch", {"branchId": "br-42"})],
        role_ids={"branchAdmin"},
    )


class TestRedisPermissionCache:

    @pytest.mark.asyncio
    async def test_miss_loads_and_stores(self):
        redis_client = make_redis()
        cache = RedisPermissionCache(redis_client)
        loader = AsyncMock(return_value=permission_set())

        result = await cache.get_or_load(KEY, loader)

        assert result.role_ids == {"branchAdmin"}
        loader.assert_awaited_once()
        redis_client.set.assert_awaited_once()
        stored = json.loads(redis_client.data[FULL_KEY])
        assert stored["principal_id"] == "u1"

    @pytest.mark.asyncio
    async def test_hit_skips_loader(self):
        redis_client = make_redis({FULL_KEY: json.dumps(permission_set().to_dict()).encode()})
        cache = RedisPermissionCache(redis_client)
        loader = AsyncMock()

        result = await cache.get_or_load(KEY, loader)

        assert result.permissions == permission_set().permissions
        loader.assert_not_awaited()
        assert cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_ttl_uses_setex(self):
        redis_client = make_redis()
        cache = RedisPermissionCache(redis_client, ttl_seconds=60)

        await cache.get_or_load(KEY, AsyncMock(return_value=permission_set()))

        redis_client.setex.assert_awaited_once()
        assert redis_client.setex.await_args.args[1] == 60

    @pytest.mark.asyncio
    async def test_redis_failure_degrades_to_loader(self):
        redis_client = make_redis()
        redis_client.get = AsyncMock(side_effect=ConnectionError("redis down"))
        redis_client.set = AsyncMock(side_effect=ConnectionError("redis down"))
        cache = RedisPermissionCache(redis_client)

        result = await cache.get_or_load(KEY, AsyncMock(return_value=permission_set()))

        assert result.key == KEY
        assert cache.stats()["errors"] == 2

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_ignored(self):
        redis_client = make_redis({FULL_KEY: b"not json"})
        cache = RedisPermissionCache(redis_client)
        assert await cache.get(KEY) is None

    @pytest.mark.asyncio
    async def test_entry_for_other_key_is_ignored(self):
        other = json.dumps(permission_set("u2").to_dict()).encode()
        cache = RedisPermissionCache(make_redis({FULL_KEY: other}))
        assert await cache.get(KEY) is None

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_load(self):
        cache = RedisPermissionCache(make_redis())
        release = asyncio.Event()
        calls = []

        async def loader():
            calls.append(1)
            await release.wait()
            return permission_set()

        waiters = [asyncio.ensure_future(cache.get_or_load(KEY, loader)) for _ in range(20)]
        await asyncio.sleep(0.01)
        release.set()
        await asyncio.gather(*waiters)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_invalidation_patterns(self):
        redis_client = make_redis({
            "neo_rbac:eps:org-1:u1": b"{}",
            "neo_rbac:eps:org-2:u1": b"{}",
            "neo_rbac:eps:org-1:u2": b"{}",
            "neo_rbac:eps:org-3:u3": b"{}",
            "other:key": b"{}",
        })
        cache = RedisPermissionCache(redis_client)

        await cache.invalidate_principal("u1")
        assert set(redis_client.data) == {"neo_rbac:eps:org-1:u2", "neo_rbac:eps:org-3:u3", "other:key"}

        await cache.invalidate_organization("org-1")
        assert set(redis_client.data) == {"neo_rbac:eps:org-3:u3", "other:key"}

        await cache.invalidate(("u3", "org-3"))
        assert set(redis_client.data) == {"other:key"}

        redis_client.data["neo_rbac:eps:org-9:u9"] = b"{}"
        await cache.invalidate_all()
        assert set(redis_client.data) == {"other:key"}

    @pytest.mark.asyncio
    async def test_invalidation_treats_ids_literally(self):
        redis_client = make_redis({
            "neo_rbac:eps:org-1:u*": b"{}",
            "neo_rbac:eps:org-1:u1": b"{}",
            "neo_rbac:eps:org[1]:u2": b"{}",
            "neo_rbac:eps:org1:u2": b"{}",
            "neo_rbac:eps:org-?:u3": b"{}",
            "neo_rbac:eps:org-2:u3": b"{}",
        })
        cache = RedisPermissionCache(redis_client)

        await cache.invalidate_principal("u*")
        await cache.invalidate_organization("org[1]")
        await cache.invalidate_organization("org-?")

        assert set(redis_client.data) == {
            "neo_rbac:eps:org-1:u1",
            "neo_rbac:eps:org1:u2",
            "neo_rbac:eps:org-2:u3",
        }

    def test_escape_glob(self):
        assert escape_glob("a*b?c[d]e\\f") == "a\\*b\\?c\\[d\\]e\\\\f"
        assert escape_glob("org-1") == "org-1"

    def test_from_settings(self, settings):
        cache = RedisPermissionCache.from_settings(make_redis(), settings)
        assert cache.stats()["key_prefix"] == "neo_rbac"
        assert cache.ttl_seconds is None
