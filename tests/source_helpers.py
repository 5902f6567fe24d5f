from __future__ import annotations

import textwrap

import libcst as cst


def dedent_source(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


class _FunctionCounter(cst.CSTVisitor):
    def __init__(self) -> None:
        super().__init__()
        self.count = 0

    def visit_FunctionDef(self, node: cst.FunctionDef) -> None:
        self.count += 1

    def visit_Lambda(self, node: cst.Lambda) -> None:
        self.count += 1


def count_function_constructs(source: str) -> int:
    counter = _FunctionCounter()
    cst.parse_module(source).visit(counter)
    return counter.count
