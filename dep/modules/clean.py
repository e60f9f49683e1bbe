# dep/modules/clean.py
"""
Remove do diretório base tudo que não corresponde a um pacote conhecido.
Cada remoção é independente: uma falha é registrada e as demais seguem.
"""

from typing import Any, Dict, Optional

from dep.modules import logger as _logger
from dep.modules.utils import Utils


class Cleaner:
    def __init__(self, log: Optional[_logger.Logger] = None):
        self.log = log or _logger.Logger("clean")

    def scan(self, graph) -> Dict[str, str]:
        """Entradas órfãs: {nome: caminho}"""
        try:
            queue = Utils.list_entries(graph.base_dir)
        except OSError as e:
            self.log.event("error", f"failed to clean; reason: {e}")
            return {}
        for name in graph.names():
            queue.pop(name, None)
        return queue

    def clean(self, graph) -> Dict[str, Any]:
        report = {"deleted": [], "failed": []}
        for name, path in self.scan(graph).items():
            try:
                Utils.remove_tree(path)
            except OSError as e:
                self.log.event("error", f"failed to delete {name}; reason: {e}")
                report["failed"].append(name)
                continue
            self.log.event("clean", f"deleted {name}")
            report["deleted"].append(name)
        return report
