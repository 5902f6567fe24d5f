from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Callable, Iterable

import libcst as cst

from incinerator.rewrite.model import FunctionKind, FunctionSite, IncinerationRun
from incinerator.rewrite.probe import strip_probes

Replacement = cst.BaseStatement | cst.BaseExpression


def _none_binding(site: FunctionSite, node: cst.FunctionDef | cst.Lambda) -> Replacement:
    assert isinstance(node, cst.FunctionDef)
    return cst.SimpleStatementLine(
        body=[
            cst.Assign(
                targets=[cst.AssignTarget(target=cst.Name(node.name.value))],
                value=cst.Name("None"),
            )
        ],
        leading_lines=node.leading_lines,
    )


def _none_literal(site: FunctionSite, node: cst.FunctionDef | cst.Lambda) -> Replacement:
    assert isinstance(node, cst.Lambda)
    return cst.Name("None", lpar=node.lpar, rpar=node.rpar)


def _hollow_definition(site: FunctionSite, node: cst.FunctionDef | cst.Lambda) -> Replacement:
    assert isinstance(node, cst.FunctionDef)
    return node.with_changes(
        params=cst.Parameters(),
        body=cst.IndentedBlock(body=[cst.SimpleStatementLine(body=[cst.Pass()])]),
    )


_RULES: dict[FunctionKind, Callable[[FunctionSite, cst.FunctionDef | cst.Lambda], Replacement]] = {
    # `def f(x): ...` -> `f = None`; the name stays bound for any leftover reference.
    FunctionKind.DECLARATION: _none_binding,
    # Methods become a plain class attribute holding None.
    FunctionKind.METHOD: _none_binding,
    FunctionKind.EXPRESSION: _none_literal,
    # Decorators may register the function somewhere, so keep the shell.
    FunctionKind.OTHER: _hollow_definition,
}


class _Incinerator(cst.CSTTransformer):
    def __init__(self, sites: Iterable[FunctionSite]) -> None:
        super().__init__()
        self._sites: dict[cst.CSTNode, FunctionSite] = {site.node: site for site in sites}
        self.incinerated: list[FunctionSite] = []

    def _replace(
        self, original_node: cst.FunctionDef | cst.Lambda, updated_node: cst.FunctionDef | cst.Lambda
    ) -> Replacement | None:
        site = self._sites.get(original_node)
        if site is None:
            return None
        self.incinerated.append(site)
        return _RULES[site.kind](site, updated_node)

    def leave_FunctionDef(
        self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef
    ) -> cst.BaseStatement:
        replacement = self._replace(original_node, updated_node)
        if replacement is None:
            return updated_node
        assert isinstance(replacement, cst.BaseStatement)
        return replacement

    def leave_Lambda(
        self, original_node: cst.Lambda, updated_node: cst.Lambda
    ) -> cst.BaseExpression:
        replacement = self._replace(original_node, updated_node)
        if replacement is None:
            return updated_node
        assert isinstance(replacement, cst.BaseExpression)
        return replacement


def incinerate(run: IncinerationRun) -> list[FunctionSite]:
    """Empty every function still pending, then strip every remaining probe.

    The pending set is read once up front; reports arriving afterwards have no
    effect on this pass.
    """
    by_path: dict[Path, list[FunctionSite]] = defaultdict(list)
    for tag in list(run.pending):
        site = run.registry[tag]
        by_path[site.path].append(site)

    incinerated: list[FunctionSite] = []
    for source_file in run.files:
        module = source_file.module
        sites = by_path.get(source_file.path)
        if sites:
            transformer = _Incinerator(sites)
            module = module.visit(transformer)
            incinerated.extend(transformer.incinerated)
        source_file.module = strip_probes(module)
    return sorted(incinerated, key=lambda site: site.tag)
