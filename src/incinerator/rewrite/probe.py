"""Probe synthesis and removal.

A probe is a function definition named with :data:`PROBE_PREFIX` whose
decorator calls it immediately, so the probe runs the moment the enclosing
function body starts executing::

    @lambda tagging: tagging()
    def __incinerator__tagging():
        from incinerator.channel import shared_channel
        shared_channel('localhost', 8123).report(7)

Probes are always located by their name, never by their position.
"""

from __future__ import annotations

import libcst as cst

from incinerator.config import DEFAULT_HOST
from incinerator.runtime.env_policy import DEFAULT_PORT

PROBE_PREFIX = "__incinerator__"
PROBE_NAME = f"{PROBE_PREFIX}tagging"

_TEMPLATE_INDENT = "    "
_PROBE_TEMPLATE = """\
@lambda tagging: tagging()
def {name}():
    from incinerator.channel import shared_channel
    shared_channel({host!r}, {port}).report({tag})
"""


def is_probe(node: cst.CSTNode) -> bool:
    return isinstance(node, cst.FunctionDef) and node.name.value.startswith(PROBE_PREFIX)


def synthesize_probe(
    tag: int,
    *,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    config: cst.PartialParserConfig | None = None,
) -> cst.FunctionDef:
    """Build the probe that reports ``tag`` over the shared channel.

    ``config`` should be the target module's ``config_for_parsing`` so the
    probe is indented and terminated the same way as the code around it.
    """
    source = _PROBE_TEMPLATE.format(
        name=PROBE_NAME,
        host=str(host),
        port=int(port),
        tag=int(tag),
    )
    if config is None:
        config = cst.PartialParserConfig()
    else:
        source = source.replace(_TEMPLATE_INDENT, config.default_indent)
        source = source.replace("\n", config.default_newline)
    statement = cst.parse_statement(source, config=config)
    assert isinstance(statement, cst.FunctionDef)
    return statement


class _ProbeStripper(cst.CSTTransformer):
    def __init__(self) -> None:
        super().__init__()
        self.removed = 0

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        return not is_probe(node)

    def leave_FunctionDef(
        self, original_node: cst.FunctionDef, updated_node: cst.FunctionDef
    ) -> cst.BaseStatement | cst.RemovalSentinel:
        if is_probe(original_node):
            self.removed += 1
            return cst.RemovalSentinel.REMOVE
        return updated_node

    def leave_IndentedBlock(
        self, original_node: cst.IndentedBlock, updated_node: cst.IndentedBlock
    ) -> cst.IndentedBlock:
        if updated_node.body:
            return updated_node
        return updated_node.with_changes(
            body=[cst.SimpleStatementLine(body=[cst.Pass()])]
        )


class _ProbeCollector(cst.CSTVisitor):
    def __init__(self) -> None:
        super().__init__()
        self.probes: list[cst.FunctionDef] = []

    def visit_FunctionDef(self, node: cst.FunctionDef) -> bool:
        if is_probe(node):
            self.probes.append(node)
            return False
        return True


def strip_probes(module: cst.Module) -> cst.Module:
    return module.visit(_ProbeStripper())


def find_probes(module: cst.Module) -> list[cst.FunctionDef]:
    collector = _ProbeCollector()
    module.visit(collector)
    return collector.probes


def probe_tag(probe: cst.FunctionDef) -> int | None:
    """Tag reported by ``probe``, read back from its ``report(...)`` call."""
    tags: list[int] = []

    class _ReportCall(cst.CSTVisitor):
        def visit_Call(self, node: cst.Call) -> None:
            func = node.func
            if (
                isinstance(func, cst.Attribute)
                and func.attr.value == "report"
                and len(node.args) == 1
                and isinstance(node.args[0].value, cst.Integer)
            ):
                tags.append(int(node.args[0].value.value))

    probe.body.visit(_ReportCall())
    return tags[0] if tags else None
