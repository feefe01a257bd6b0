class MockCache:
    """Dict-backed stand-in for CacheClient."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.get_calls: list[str] = []
        self.should_fail = False

    @property
    def available(self) -> bool:
        return not self.should_fail

    def get(self, key: str) -> str | None:
        self.get_calls.append(key)
        if self.should_fail:
            raise RuntimeError("cache down")
        return self.store.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if self.should_fail:
            raise RuntimeError("cache down")
        self.store[key] = value
        self.ttls[key] = ttl_seconds

    def invalidate_prefix(self, prefix: str) -> int:
        keys = [k for k in self.store if k.startswith(prefix)]
        for key in keys:
            del self.store[key]
            self.ttls.pop(key, None)
        return len(keys)

    def close(self) -> None:
        pass
