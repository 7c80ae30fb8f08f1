"""Graphviz rendering of registered providers, for diagnostics only."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._provider import type_name


if TYPE_CHECKING:
    from collections.abc import Sequence

    from ._provider import Provider
    from ._resolver import BindingResolver


def render_graph(providers: Sequence[Provider], resolver: BindingResolver) -> str:
    """Render providers as a DOT ``digraph``, one edge per satisfiable dependency."""
    ids = {p: f"p{i}" for i, p in enumerate(providers)}
    lines = ["digraph G {", "  rankdir=LR; node [shape=box, fontsize=10];"]

    for p in providers:
        label = f"{p.describe()}\\n{p.lifetime.value}"
        if p.interfaces:
            label += "\\nas " + ", ".join(type_name(i) for i in p.interfaces)
        lines.append(f'  {ids[p]} [label="{_escape(label)}"];')

    for p in providers:
        for dep in p.dependencies:
            if dep.type is None:
                continue
            for target in resolver.resolve_all(dep.type, dep.name, dep.tags):
                if target in ids:
                    lines.append(f'  {ids[p]} -> {ids[target]} [label="{_escape(dep.parameter)}"];')

    lines.append("}")
    return "\n".join(lines)


def _escape(text: str) -> str:
    return text.replace('"', '\\"')
