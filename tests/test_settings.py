from electivehub.settings import build_caches


def test_shared_cache_from_redis_url():
    caches = build_caches("redis://cache.internal:6379/0")
    assert caches["default"]["BACKEND"] == "django.core.cache.backends.redis.RedisCache"
    assert caches["default"]["LOCATION"] == "redis://cache.internal:6379/0"


def test_local_memory_cache_by_default():
    assert build_caches("")["default"]["BACKEND"] == "django.core.cache.backends.locmem.LocMemCache"
