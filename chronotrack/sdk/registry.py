from __future__ import annotations
from importlib import import_module
class RegistryError(RuntimeError):
    pass
class Registry:
    def __init__(self, initial: dict[str, str] | None = None):
        self._map: dict[str, str] = dict(initial or {})
    def register(self, key: str, target: str) -> None:
        self._map[key] = target
    def target(self, key: str) -> str:
        return self._map.get(key, key)
    def resolve(self, key: str):
        target = self.target(key)
        mod_path, _, obj = target.partition(":")
        try:
            mod = import_module(mod_path)
            return getattr(mod, obj) if obj else mod
        except (ImportError, AttributeError, ValueError) as exc:
            raise RegistryError(f"cannot load plugin {key!r} from {target!r}: {exc}") from exc
    def create(self, key: str, *args, **kwargs):
        return self.resolve(key)(*args, **kwargs)
