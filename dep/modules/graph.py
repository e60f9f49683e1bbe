# dep/modules/graph.py
"""
DependencyGraph - sessão em memória com os nós e arestas de dependência.

- register(): cria ou atualiza (merge idempotente) um nó a partir de uma spec
- link_dependency(): liga pai -> filho sem duplicar arestas
- register_recursive(): percorre coleções aninhadas propagando pin/disable
- sort_dependencies(): ordenação estável por (nº de dependências, id)
- find_roots(): nós sem aresta de entrada
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from dep.modules.config import DEFAULT_URL_FORMAT
from dep.modules.package import Package
from dep.modules.resolver import ensure_acyclic, find_cycle
from dep.modules.spec import (
    RegistrationError,
    package_name,
    parse_collection,
    parse_spec,
    resolve_module,
)


class SessionBusyError(RuntimeError):
    pass


def sort_key(package: Package):
    return (len(package.dependencies), package.id)


class DependencyGraph:
    """
    Representa o grafo de dependências entre pacotes.
    Usado para ordenar o processamento e detectar ciclos.
    """

    def __init__(self,
                 base_dir: str,
                 url_format: str = DEFAULT_URL_FORMAT,
                 exists: Callable[[str], bool] = os.path.isdir):
        self.base_dir = base_dir
        self.url_format = url_format
        self._exists = exists
        self.packages: Dict[str, Package] = {}
        self.order: List[Package] = []
        self.roots: List[Package] = []
        self.busy = False

    def __iter__(self) -> Iterator[Package]:
        return iter(list(self.order))

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, package_id) -> bool:
        return package_id in self.packages

    def get(self, package_id: str) -> Optional[Package]:
        return self.packages.get(package_id)

    def names(self) -> List[str]:
        return [p.name for p in self.order]

    # -------------------------
    # Guard
    # -------------------------
    @contextmanager
    def hold(self):
        """Marca o grafo como ocupado (sync em andamento)."""
        self.busy = True
        try:
            yield self
        finally:
            self.busy = False

    def _check_idle(self, operation: str):
        if self.busy:
            raise SessionBusyError(f"cannot {operation} while a sync is in progress")

    # -------------------------
    # Registro
    # -------------------------
    def register(self, raw, overrides: Optional[Dict[str, bool]] = None) -> Package:
        self._check_idle("register packages")
        overrides = overrides or {}
        spec = parse_spec(raw)
        default_name = package_name(spec.id)

        package = self.packages.get(spec.id)
        if package is None:
            package = Package(spec.id)
            self.packages[spec.id] = package
            self.order.append(package)

        prev_dir = package.dir

        package.name = spec.alias or package.name or default_name
        package.url = spec.url or package.url or self.url_format.format(id=spec.id, name=default_name)
        package.branch = spec.branch or package.branch
        package.dir = os.path.join(self.base_dir, package.name)
        package.pin = bool(overrides.get("pin") or spec.pin or package.pin)
        package.enabled = not overrides.get("disable") and not spec.disable and package.enabled

        if prev_dir != package.dir:
            package.exists = self._exists(package.dir)

        for stage, hook in spec.hooks().items():
            if hook is None:
                continue
            getattr(package, "on_" + stage).append(hook)
            # hooks novos num nó já processado obrigam a rodar a fase de novo
            if stage == "load":
                package.loaded = False
            else:
                package.configured = False

        for requirement in spec.requires:
            self.link_dependency(self.register(requirement), package)

        for dependent in spec.deps:
            self.link_dependency(package, self.register(dependent))

        return package

    def link_dependency(self, parent: Package, child: Package):
        parent.dependents.add(child)
        if child.dependencies.add(parent):
            child.root = False

    def register_recursive(self, collection, overrides: Optional[Dict[str, bool]] = None):
        collection = parse_collection(collection)
        overrides = overrides or {}
        overrides = {
            "pin": bool(overrides.get("pin") or collection.pin),
            "disable": bool(overrides.get("disable") or collection.disable),
        }

        for raw in collection.entries:
            try:
                self.register(raw, overrides)
            except RegistrationError as e:
                raise RegistrationError(f"{e} (spec={raw!r})") from e

        for entry in collection.modules:
            name = entry if isinstance(entry, str) else "<unnamed module>"
            try:
                name, module = resolve_module(entry)
                self.register_recursive(module, overrides)
            except RegistrationError as e:
                raise RegistrationError(f"{e} <- {name}") from e

    # -------------------------
    # Ordenação / validação
    # -------------------------
    def sort_dependencies(self):
        self._check_idle("sort packages")
        self.order.sort(key=sort_key)
        for package in self.order:
            package.dependencies.sort(sort_key)
            package.dependents.sort(sort_key)

    def find_cycle(self) -> Optional[List[Package]]:
        return find_cycle(self.order)

    def ensure_acyclic(self):
        ensure_acyclic(self.order)

    def find_roots(self) -> List[Package]:
        self.roots = [p for p in self.order if p.root]
        return self.roots

    def build(self, collection):
        """Registra tudo, ordena, valida e encontra as raízes."""
        self.register_recursive(collection)
        self.sort_dependencies()
        self.ensure_acyclic()
        return self.find_roots()
