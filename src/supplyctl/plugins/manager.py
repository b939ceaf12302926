"""Observer discovery for the notification stream.

Observers come from two places:

* installed distributions exposing the ``supplyctl.plugins`` entry point;
* single-file modules in ``<registry>/.supplyctl/plugins/``.

A plugin that fails to import or construct is logged and skipped. It
never keeps the registry from opening.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from types import ModuleType

import pluggy

from supplyctl.plugins.hookspecs import SupplyHookSpec

PROJECT_NAME = "supplyctl"
ENTRY_POINT_GROUP = "supplyctl.plugins"
LOCAL_MODULE_PREFIX = "supplyctl_local_plugin_"

logger = logging.getLogger(__name__)


def _load_local_module(path: Path) -> ModuleType | None:
    module_name = LOCAL_MODULE_PREFIX + path.stem
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Cannot import observer file %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Observer file %s failed to import", path, exc_info=True)
        return None
    return module


class PluginManager:
    """Thin wrapper over :class:`pluggy.PluginManager` for registry observers."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(SupplyHookSpec)
        self._loaded = False

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Register installed and local observers; return every registered name."""
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        for plugin in list(self._pm.get_plugins()):
            # Entry points may name a class; hooks need an instance.
            if inspect.isclass(plugin) and self._has_hook_impls(plugin):
                name = self._pm.get_name(plugin) or plugin.__name__
                self._pm.unregister(plugin)
                self._register_class(plugin, name)
        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("*.py")):
                if not path.name.startswith("_"):
                    self._load_local(path)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register an observer instance, named after its class by default."""
        plugin_name = name or type(plugin).__name__
        self._pm.register(plugin, name=plugin_name)
        logger.debug("Registered observer %s", plugin_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def _load_local(self, path: Path) -> None:
        module = _load_local_module(path)
        if module is None:
            return
        for _, cls in inspect.getmembers(module, inspect.isclass):
            if cls.__module__ == module.__name__ and self._has_hook_impls(cls):
                self._register_class(cls, f"{module.__name__}.{cls.__name__}")

    def _register_class(self, cls: type, name: str) -> None:
        try:
            instance = cls()
        except Exception:
            logger.warning("Observer %s could not be constructed", name, exc_info=True)
            return
        self.register_plugin(instance, name=name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """True if any public attribute of *cls* carries a ``supplyctl_impl`` marker."""
        return any(
            getattr(getattr(cls, attr, None), f"{PROJECT_NAME}_impl", None)
            for attr in dir(cls)
            if not attr.startswith("_")
        )
