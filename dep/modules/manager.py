# dep/modules/manager.py
"""
Dep - fachada do gerenciador.

initialize(specs) monta o grafo (registro -> ordenação -> verificação de
ciclos -> raízes), roda o reload completo e sincroniza os pacotes
selecionados pelo modo de sync. As demais operações só podem ser
chamadas depois de uma inicialização bem sucedida.
"""

from __future__ import annotations

import functools
import traceback
from typing import Any, Dict, Optional

from dep.modules import logger as _logger
from dep.modules.clean import Cleaner
from dep.modules.config import config as _default_config
from dep.modules.graph import DependencyGraph
from dep.modules.hooks import HookManager
from dep.modules.host import Host
from dep.modules.lifecycle import Lifecycle
from dep.modules.listing import snapshot
from dep.modules.resolver import CycleError
from dep.modules.spec import RegistrationError, parse_collection
from dep.modules.sync import SyncManager, SyncReport
from dep.modules.utils import Utils
from dep.modules.vcs import GitClient

SYNC_MODES = ("new", "always", "never")


def should_sync(package, mode: str) -> bool:
    if mode == "new":
        return not package.exists
    return mode == "always"


def api(name: str):
    """Rejeita a chamada antes da inicialização e registra falhas inesperadas."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            if not self.initialized:
                self.log.event("error", f"cannot call {name}; dep is not initialized")
                return None
            try:
                return fn(self, *args, **kwargs)
            except Exception as e:
                self.log.event("error", f"{name} failed: {e}")
                self.log.debug(traceback.format_exc())
                return None
        return wrapper
    return decorator


class Dep:
    def __init__(self,
                 config=None,
                 log: Optional[_logger.Logger] = None,
                 vcs=None,
                 host: Optional[Host] = None,
                 hooks: Optional[HookManager] = None,
                 cleaner: Optional[Cleaner] = None,
                 exists=None):
        self.config = config or _default_config
        self.log = log or _logger.Logger("dep", config=self.config)
        self.vcs = vcs or GitClient(config=self.config, log=self.log)
        self.host = host or Host(config=self.config, log=self.log)
        self.hooks = hooks or HookManager(log=self.log)
        self.cleaner = cleaner or Cleaner(log=self.log)
        self._exists = exists

        self.graph: Optional[DependencyGraph] = None
        self.lifecycle: Optional[Lifecycle] = None
        self.syncer: Optional[SyncManager] = None
        self.initialized = False
        self.init_error: Optional[str] = None
        self.config_path: Optional[str] = None

    # -------------------------
    # Inicialização
    # -------------------------
    def initialize(self, specs, config_path: Optional[str] = None, sync: Optional[str] = None) -> bool:
        if self.graph is not None and self.graph.busy:
            self.log.event("warning", "cannot initialize while a sync is in progress")
            return False

        self.initialized = False
        self.init_error = None
        try:
            collection = parse_collection(specs)
            base_dir = Utils.resolve_base_dir(collection.settings.get("base_dir") or self.config.base_dir)
            kwargs = {"exists": self._exists} if self._exists else {}
            graph = DependencyGraph(base_dir, url_format=self.config.url_format, **kwargs)
            graph.build(collection)
        except (RegistrationError, CycleError) as e:
            self.init_error = str(e)
            self.log.event("error", self.init_error)
            return False

        self.graph = graph
        self.lifecycle = Lifecycle(graph, hooks=self.hooks, host=self.host, log=self.log)
        self.syncer = SyncManager(graph, self.lifecycle, self.cleaner, vcs=self.vcs,
                                  config=self.config, log=self.log)
        self.config_path = config_path or collection.source
        self.initialized = True

        self.lifecycle.reload_all()

        mode = str(sync or collection.settings.get("sync") or self.config.sync_mode).lower()
        if mode not in SYNC_MODES:
            self.log.event("warning", f"unknown sync mode '{mode}'; nothing will be synced")
        self.syncer.sync_list([p for p in graph if should_sync(p, mode)])
        return True

    # -------------------------
    # Operações
    # -------------------------
    @api("dep.sync")
    def sync(self) -> Optional[SyncReport]:
        return self.syncer.sync_list(self.graph)

    @api("dep.reload")
    def reload(self):
        self.lifecycle.reload_all()
        return True

    @api("dep.clean")
    def clean(self) -> Dict[str, Any]:
        return self.cleaner.clean(self.graph)

    @api("dep.list")
    def list(self) -> Dict[str, Any]:
        return snapshot(self.graph)

    @api("dep.open_log")
    def open_log(self) -> str:
        return self.log.path

    @api("dep.open_config")
    def open_config(self) -> Optional[str]:
        return self.config_path
