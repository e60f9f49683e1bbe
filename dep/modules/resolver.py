# dep/modules/resolver.py
"""
Detecção de dependências circulares (Tarjan, componentes fortemente conexos)
sobre as arestas de dependentes.
"""

from typing import Dict, Iterable, List, Optional, Tuple


class CycleError(Exception):
    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(
            "circular dependency detected in package graph: " + format_cycle(self.cycle))


def format_cycle(cycle) -> str:
    return " -> ".join(p.id for p in cycle)


def find_cycle(packages: Iterable) -> Optional[List]:
    """
    Retorna o primeiro ciclo encontrado como [a, b, ..., a], ou None.

    Componentes de um só nó são ignorados, exceto quando o nó se lista
    explicitamente como seu próprio dependente. A busca em profundidade usa
    uma pilha explícita, então cadeias longas não esbarram no limite de
    recursão.
    """
    counter = 0
    indexes: Dict[str, int] = {}
    lowlink: Dict[str, int] = {}
    stack: List = []
    on_stack = set()
    work: List[Tuple] = []

    def visit(package):
        nonlocal counter
        indexes[package.id] = lowlink[package.id] = counter
        counter += 1
        stack.append(package)
        on_stack.add(package.id)
        work.append((package, iter(package.dependents)))

    for start in packages:
        if start.id in indexes:
            continue
        visit(start)

        while work:
            package, edges = work[-1]
            descended = False
            for dependent in edges:
                if dependent.id not in indexes:
                    visit(dependent)
                    descended = True
                    break
                if dependent.id in on_stack:
                    lowlink[package.id] = min(lowlink[package.id], indexes[dependent.id])
            if descended:
                continue

            work.pop()
            if lowlink[package.id] == indexes[package.id]:
                cycle = [package]
                while True:
                    node = stack.pop()
                    on_stack.discard(node.id)
                    cycle.append(node)
                    if node is package:
                        break

                if len(cycle) > 2 or package.id in package.dependents:
                    return cycle

            if work:
                parent = work[-1][0]
                lowlink[parent.id] = min(lowlink[parent.id], lowlink[package.id])
    return None


def ensure_acyclic(packages: Iterable):
    cycle = find_cycle(packages)
    if cycle:
        raise CycleError(cycle)
