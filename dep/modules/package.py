# dep/modules/package.py
from typing import Callable, Dict, Iterator, List, Optional


class EdgeList:
    """
    Arestas de um nó: sequência ordenada + conjunto indexado pelo id.
    Ambos são escritos juntos em add(), nunca separadamente.
    """

    def __init__(self):
        self._order: List["Package"] = []
        self._by_id: Dict[str, "Package"] = {}

    def add(self, package: "Package") -> bool:
        if package.id in self._by_id:
            return False
        self._by_id[package.id] = package
        self._order.append(package)
        return True

    def sort(self, key: Callable[["Package"], object]):
        self._order.sort(key=key)

    def ids(self) -> List[str]:
        return [p.id for p in self._order]

    def __contains__(self, package_id) -> bool:
        return package_id in self._by_id

    def __iter__(self) -> Iterator["Package"]:
        return iter(list(self._order))

    def __len__(self) -> int:
        return len(self._order)

    def __getitem__(self, index) -> "Package":
        return self._order[index]

    def __repr__(self):
        return f"EdgeList({self.ids()})"


class Package:
    """Um nó do grafo, identificado por "owner/name"."""

    def __init__(self, package_id: str):
        self.id = package_id
        self.name: Optional[str] = None
        self.url: Optional[str] = None
        self.branch: Optional[str] = None
        self.dir: Optional[str] = None
        self.pin = False
        self.enabled = True
        self.exists = False
        self.added = False
        self.configured = False
        self.loaded = False
        self.error = False
        self.root = True
        self.on_setup: list = []
        self.on_config: list = []
        self.on_load: list = []
        self.dependencies = EdgeList()  # arestas de entrada
        self.dependents = EdgeList()    # arestas de saída

    def status(self) -> Dict[str, bool]:
        return {
            "exists": self.exists,
            "enabled": self.enabled,
            "pin": self.pin,
            "added": self.added,
            "configured": self.configured,
            "loaded": self.loaded,
            "error": self.error,
        }

    def __repr__(self):
        return f"Package({self.id!r})"
