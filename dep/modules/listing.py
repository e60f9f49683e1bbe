# dep/modules/listing.py
"""
Snapshot da listagem: pacotes em ordem de dependência + árvore de dependentes.
render() desenha o snapshot com rich (Table + Tree).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.tree import Tree


def markers(package) -> List[str]:
    out = []
    if not package.exists:
        out.append("not installed")
    if not package.loaded:
        out.append("not loaded")
    if not package.enabled:
        out.append("disabled")
    if package.pin:
        out.append("pinned")
    if package.error:
        out.append("error")
    return out


def snapshot(graph) -> Dict[str, Any]:
    installed: List[Dict[str, Any]] = []
    listed = set()

    # recursivo, como o ciclo de vida: a profundidade segue a do grafo
    def dry_load(package):
        if package.id in listed:
            return
        for dependency in package.dependencies:
            if dependency.id not in listed:
                return
        listed.add(package.id)
        entry = {"id": package.id, "name": package.name, "markers": markers(package)}
        entry.update(package.status())
        installed.append(entry)
        for dependent in package.dependents:
            dry_load(dependent)

    def walk_graph(package) -> Dict[str, Any]:
        return {"id": package.id, "dependents": [walk_graph(d) for d in package.dependents]}

    for root in graph.roots:
        dry_load(root)

    return {
        "installed": installed,
        "graph": [walk_graph(root) for root in graph.roots],
    }


def render(snap: Dict[str, Any], console: Optional[Console] = None):
    console = console or Console()

    table = Table(title="Installed packages")
    table.add_column("Package", style="bold")
    table.add_column("Status", overflow="fold")
    for entry in snap.get("installed", []):
        status = ", ".join(entry["markers"]) or "[green]ok[/green]"
        table.add_row(entry["id"], status)
    console.print(table)

    tree = Tree("[bold green]Dependency graph[/bold green]")

    def walk(node: Dict[str, Any], branch):
        child = branch.add(node["id"])
        for dependent in node["dependents"]:
            walk(dependent, child)

    for root in snap.get("graph", []):
        walk(root, tree)
    console.print(tree)
