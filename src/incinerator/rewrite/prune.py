from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import libcst as cst
from libcst.metadata import GlobalScope, MetadataWrapper, ScopeProvider


@dataclass(frozen=True)
class PruneResult:
    module: cst.Module
    removed: tuple[str, ...] = ()
    iterations: int = 0


def _bound_name(small: cst.BaseSmallStatement) -> str | None:
    if isinstance(small, cst.Assign):
        if len(small.targets) != 1:
            return None
        target = small.targets[0].target
        return target.value if isinstance(target, cst.Name) else None
    if isinstance(small, cst.AnnAssign):
        if small.value is None:
            return None
        return small.target.value if isinstance(small.target, cst.Name) else None
    return None


def _top_level_bindings(
    module: cst.Module,
) -> Iterator[tuple[str, cst.BaseSmallStatement]]:
    for statement in module.body:
        if not isinstance(statement, cst.SimpleStatementLine):
            continue
        for small in statement.body:
            name = _bound_name(small)
            if name is not None:
                yield name, small


def _string_items(value: cst.BaseExpression) -> list[str]:
    if not isinstance(value, (cst.List, cst.Tuple)):
        return []
    names: list[str] = []
    for element in value.elements:
        if isinstance(element.value, cst.SimpleString):
            evaluated = element.value.evaluated_value
            if isinstance(evaluated, str):
                names.append(evaluated)
    return names


def _exported_names(module: cst.Module) -> set[str]:
    exported: set[str] = set()
    for statement in module.body:
        if not isinstance(statement, cst.SimpleStatementLine):
            continue
        for small in statement.body:
            if isinstance(small, cst.AugAssign):
                if isinstance(small.target, cst.Name) and small.target.value == "__all__":
                    exported.update(_string_items(small.value))
            elif _bound_name(small) == "__all__":
                assert isinstance(small, (cst.Assign, cst.AnnAssign))
                if small.value is not None:
                    exported.update(_string_items(small.value))
    return exported


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def _global_scope(wrapper: MetadataWrapper) -> GlobalScope | None:
    scopes = wrapper.resolve(ScopeProvider)
    for scope in scopes.values():
        if isinstance(scope, GlobalScope):
            return scope
    return None


def _unused_bindings(
    wrapper: MetadataWrapper,
) -> tuple[set[cst.BaseSmallStatement], list[str]]:
    module = wrapper.module
    scope = _global_scope(wrapper)
    if scope is None:
        return set(), []
    exported = _exported_names(module)
    doomed: set[cst.BaseSmallStatement] = set()
    names: list[str] = []
    for name, small in _top_level_bindings(module):
        if _is_dunder(name) or name in exported:
            continue
        referenced = any(
            assignment.references for assignment in scope.assignments[name]
        )
        if referenced:
            continue
        doomed.add(small)
        names.append(name)
    return doomed, names


class _BindingRemover(cst.CSTTransformer):
    def __init__(self, doomed: set[cst.BaseSmallStatement]) -> None:
        super().__init__()
        self.doomed = doomed
        self._first: cst.BaseStatement | None = None
        self._first_removed = False

    def visit_Module(self, node: cst.Module) -> bool:
        self._first = node.body[0] if node.body else None
        return True

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        return False

    def visit_ClassDef(self, node: cst.ClassDef) -> bool:
        return False

    def leave_SimpleStatementLine(
        self, original_node: cst.SimpleStatementLine, updated_node: cst.SimpleStatementLine
    ) -> cst.SimpleStatementLine | cst.RemovalSentinel:
        kept = [
            updated
            for original, updated in zip(original_node.body, updated_node.body)
            if original not in self.doomed
        ]
        if len(kept) == len(updated_node.body):
            return updated_node
        if not kept:
            if original_node is self._first:
                self._first_removed = True
            return cst.RemovalSentinel.REMOVE
        kept[-1] = kept[-1].with_changes(semicolon=cst.MaybeSentinel.DEFAULT)
        return updated_node.with_changes(body=kept)

    def leave_Module(self, original_node: cst.Module, updated_node: cst.Module) -> cst.Module:
        if not self._first_removed or not updated_node.body:
            return updated_node
        # The new first statement moves up against the header; keep only its comments.
        first = updated_node.body[0]
        comments = [line for line in first.leading_lines if line.comment is not None]
        return updated_node.with_changes(
            body=[first.with_changes(leading_lines=comments), *updated_node.body[1:]]
        )


def prune_unused_bindings(module: cst.Module) -> PruneResult:
    """Drop module-level bindings nobody reads, until nothing more goes.

    Each round parses the module again and recomputes scopes from scratch:
    references resolved before an edit cannot be trusted after it. Dunder
    names and names listed in ``__all__`` are kept.
    """
    removed: list[str] = []
    iterations = 0
    while True:
        iterations += 1
        module = cst.parse_module(module.bytes)
        wrapper = MetadataWrapper(module, unsafe_skip_copy=True)
        doomed, names = _unused_bindings(wrapper)
        if not doomed:
            return PruneResult(module=module, removed=tuple(removed), iterations=iterations)
        module = module.visit(_BindingRemover(doomed))
        removed.extend(names)
