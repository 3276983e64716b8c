from storefront.core.shop_cache import ShopConfigCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_cache_returns_value_until_ttl_expires():
    clock = FakeClock()
    cache: ShopConfigCache[dict] = ShopConfigCache(ttl_seconds=60, clock=clock)
    assert cache.get() is None

    cache.set({"shop_code": "MAIN"})
    clock.now += 59
    assert cache.get() == {"shop_code": "MAIN"}

    clock.now += 1
    assert cache.get() is None


def test_invalidate_drops_entry():
    cache: ShopConfigCache[str] = ShopConfigCache(ttl_seconds=300, clock=FakeClock())
    cache.set("snapshot")
    cache.invalidate()
    assert cache.get() is None


def test_instances_do_not_share_state():
    first: ShopConfigCache[str] = ShopConfigCache()
    second: ShopConfigCache[str] = ShopConfigCache()
    first.set("a")
    assert second.get() is None
