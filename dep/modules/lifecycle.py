# dep/modules/lifecycle.py
"""
Máquina de estados configure/load.

Cada fase é uma recursão em profundidade a partir das raízes, seguindo as
arestas de dependentes. Um nó só avança quando existe no disco, está
habilitado, não tem erro e todas as suas dependências já completaram a
mesma fase. Falhas ficam contidas no nó (error=True).

A recursão percorre todos os caminhos a partir das raízes: a profundidade
é limitada pelo limite de recursão do Python e grafos densos em camadas
revisitam nós várias vezes na mesma passada.
"""

from typing import Optional, Tuple

from dep.modules import logger as _logger
from dep.modules.hooks import HookManager
from dep.modules.host import Host


class Lifecycle:
    def __init__(self, graph, hooks: Optional[HookManager] = None, host: Optional[Host] = None,
                 log: Optional[_logger.Logger] = None):
        self.graph = graph
        self.log = log or _logger.Logger("lifecycle")
        self.hooks = hooks or HookManager(log=self.log)
        self.host = host or Host(log=self.log)

    def _ready(self, package, phase: str) -> bool:
        if not package.exists or not package.enabled or package.error:
            return False
        return all(getattr(dependency, phase) for dependency in package.dependencies)

    def ensure_added(self, package) -> Tuple[bool, Optional[Exception]]:
        if package.added:
            return True, None
        try:
            self.host.activate(package)
        except Exception as e:
            package.error = True
            return False, e
        package.added = True
        self.log.event("host", f"activation completed for {package.id}")
        return True, None

    # -------------------------
    # configure
    # -------------------------
    def configure_recursive(self, package):
        if not self._ready(package, "configured"):
            return

        propagate = False

        if not package.configured:
            ok, err = self.hooks.run_hooks(package, "on_setup")
            if not ok:
                self.log.event("error", f"failed to set up {package.id}; reason: {err.reason}")
                return

            ok, err = self.ensure_added(package)
            if not ok:
                self.log.event("error", f"failed to configure {package.id}; reason: {err}")
                return

            ok, err = self.hooks.run_hooks(package, "on_config")
            if not ok:
                self.log.event("error", f"failed to configure {package.id}; reason: {err.reason}")
                return

            package.configured, package.loaded = True, False
            propagate = True
            self.log.event("config", f"configured {package.id}")

        for dependent in package.dependents:
            dependent.configured = dependent.configured and not propagate
            self.configure_recursive(dependent)

    # -------------------------
    # load
    # -------------------------
    def load_recursive(self, package):
        if not self._ready(package, "loaded"):
            return

        propagate = False

        if not package.loaded:
            ok, err = self.ensure_added(package)
            if not ok:
                self.log.event("error", f"failed to load {package.id}; reason: {err}")
                return

            ok, err = self.hooks.run_hooks(package, "on_load")
            if not ok:
                self.log.event("error", f"failed to load {package.id}; reason: {err.reason}")
                return

            package.loaded = True
            propagate = True
            self.log.event("load", f"loaded {package.id}")

        for dependent in package.dependents:
            dependent.loaded = dependent.loaded and not propagate
            self.load_recursive(dependent)

    # -------------------------
    # reload
    # -------------------------
    def reload_meta(self):
        try:
            self.host.refresh_meta()
        except Exception as e:
            self.log.event("error", f"failed to refresh package metadata; reason: {e}")
            return
        self.log.event("host", "refreshed package metadata")

    def reload_all(self):
        # limpa todos os erros e tenta de novo
        for package in self.graph:
            package.error = False

        for root in self.graph.roots:
            self.configure_recursive(root)

        for root in self.graph.roots:
            self.load_recursive(root)

        self.reload_meta()
