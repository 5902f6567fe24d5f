from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Callable

import libcst as cst

from incinerator.config import DEFAULT_HOST
from incinerator.rewrite.model import (
    FunctionKind,
    FunctionSite,
    IncinerationRun,
    SourceFile,
    TagRegistry,
)
from incinerator.rewrite.probe import is_probe, strip_probes, synthesize_probe
from incinerator.runtime.env_policy import DEFAULT_PORT

ProbeFactory = Callable[[int], cst.FunctionDef]

_CLASS_BODY = "class"
_FUNCTION_BODY = "function"


def _is_docstring(stmt: cst.CSTNode) -> bool:
    if not isinstance(stmt, cst.SimpleStatementLine) or not stmt.body:
        return False
    expr = stmt.body[0]
    return isinstance(expr, cst.Expr) and isinstance(
        expr.value, (cst.SimpleString, cst.ConcatenatedString)
    )


def _def_kind(node: cst.FunctionDef, *, in_class_body: bool) -> FunctionKind:
    if node.decorators:
        return FunctionKind.OTHER
    if in_class_body:
        return FunctionKind.METHOD
    return FunctionKind.DECLARATION


def _as_indented_block(suite: cst.SimpleStatementSuite) -> cst.IndentedBlock:
    """Spread `def f(): a; b` over lines so the body can take a probe."""
    lines = [
        cst.SimpleStatementLine(body=[small.with_changes(semicolon=cst.MaybeSentinel.DEFAULT)])
        for small in suite.body
    ]
    # indent=None renders with the module's own default_indent.
    return cst.IndentedBlock(body=lines, header=suite.trailing_whitespace)


def _prepend_probe(body: cst.IndentedBlock, probe: cst.FunctionDef) -> cst.IndentedBlock:
    statements = list(body.body)
    insert_idx = 1 if statements and _is_docstring(statements[0]) else 0
    statements.insert(insert_idx, probe)
    return body.with_changes(body=statements)


class _Instrumentor(cst.CSTTransformer):
    """Registers every function construct and prepends probes to block bodies.

    Tags are allocated on the way down so they follow discovery order; sites
    are registered on the way up, once the node that ends up in the module
    exists.
    """

    def __init__(self, *, path: Path, registry: TagRegistry, probe_factory: ProbeFactory) -> None:
        super().__init__()
        self.path = path
        self.registry = registry
        self.probe_factory = probe_factory
        self.sites: list[FunctionSite] = []
        self._bodies: list[str] = []
        self._pending_tags: list[tuple[int, FunctionKind]] = []

    def _register(
        self, tag: int, kind: FunctionKind, node: cst.FunctionDef | cst.Lambda, *, probed: bool
    ) -> None:
        name = node.name.value if isinstance(node, cst.FunctionDef) else None
        site = FunctionSite(
            tag=tag,
            path=self.path,
            kind=kind,
            node=node,
            name=name,
            probed=probed,
        )
        self.registry.register(site)
        self.sites.append(site)

    def visit_ClassDef(self, node: cst.ClassDef) -> None:
        self._bodies.append(_CLASS_BODY)

    def leave_ClassDef(
        self, original_node: cst.ClassDef, updated_node: cst.ClassDef
    ) -> cst.ClassDef:
        self._bodies.pop()
        return updated_node

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        if is_probe(node):
            return False
        in_class_body = bool(self._bodies) and self._bodies[-1] == _CLASS_BODY
        self._pending_tags.append(
            (self.registry.allocate(), _def_kind(node, in_class_body=in_class_body))
        )
        self._bodies.append(_FUNCTION_BODY)
        return True

    def leave_FunctionDef(
        self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef
    ) -> cst.FunctionDef:
        if is_probe(original_node):
            return updated_node
        self._bodies.pop()
        tag, kind = self._pending_tags.pop()
        body = updated_node.body
        if isinstance(body, cst.SimpleStatementSuite):
            body = _as_indented_block(body)
        updated_node = updated_node.with_changes(
            body=_prepend_probe(body, self.probe_factory(tag))
        )
        self._register(tag, kind, updated_node, probed=True)
        return updated_node

    def visit_Lambda(self, node: cst.Lambda) -> None:
        self._pending_tags.append((self.registry.allocate(), FunctionKind.EXPRESSION))
        self._bodies.append(_FUNCTION_BODY)

    def leave_Lambda(self, original_node: cst.Lambda, updated_node: cst.Lambda) -> cst.Lambda:
        self._bodies.pop()
        tag, kind = self._pending_tags.pop()
        # Expression bodies have nowhere to hold a probe.
        self._register(tag, kind, updated_node, probed=False)
        return updated_node


def instrument_file(
    source_file: SourceFile,
    registry: TagRegistry,
    *,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> list[FunctionSite]:
    """Replace ``source_file.module`` with a freshly instrumented module.

    Probes left by an earlier run are removed first, so instrumenting twice
    still yields exactly one probe per block-bodied function.
    """
    module = strip_probes(source_file.module)
    probe_factory = partial(
        synthesize_probe,
        host=host,
        port=port,
        config=module.config_for_parsing,
    )
    instrumentor = _Instrumentor(
        path=source_file.path,
        registry=registry,
        probe_factory=probe_factory,
    )
    source_file.module = module.visit(instrumentor)
    return instrumentor.sites


def instrument(
    run: IncinerationRun,
    *,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> list[FunctionSite]:
    sites: list[FunctionSite] = []
    for source_file in run.files:
        sites.extend(instrument_file(source_file, run.registry, host=host, port=port))
    return sites
