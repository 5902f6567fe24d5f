from __future__ import annotations

import libcst as cst

from incinerator.rewrite.probe import (
    PROBE_NAME,
    PROBE_PREFIX,
    find_probes,
    is_probe,
    probe_tag,
    strip_probes,
    synthesize_probe,
)
from tests.source_helpers import dedent_source


def test_synthesized_probe_reports_its_tag() -> None:
    probe = synthesize_probe(7, host="127.0.0.1", port=9000)
    code = cst.Module(body=[probe]).code
    assert probe.name.value == PROBE_NAME
    assert is_probe(probe)
    assert "@lambda tagging: tagging()" in code
    assert "shared_channel('127.0.0.1', 9000).report(7)" in code
    assert probe_tag(probe) == 7
    compile(code, "<probe>", "exec")


def test_probe_follows_module_indentation() -> None:
    module = cst.parse_module("def f():\n\treturn 1\n")
    probe = synthesize_probe(0, config=module.config_for_parsing)
    code = module.with_changes(body=[probe]).code
    assert "\tfrom incinerator.channel import shared_channel\n" in code
    assert "    " not in code


def test_is_probe_only_matches_reserved_prefix() -> None:
    module = cst.parse_module(
        dedent_source(
            f"""
            def regular():
                pass

            def {PROBE_PREFIX}custom():
                pass
            """
        )
    )
    flags = [is_probe(statement) for statement in module.body]
    assert flags == [False, True]


def test_strip_probes_removes_probes_anywhere() -> None:
    source = dedent_source(
        """
        def outer():
            def inner():
                return 1
            return inner
        """
    )
    module = cst.parse_module(source)
    outer = module.body[0]
    assert isinstance(outer, cst.FunctionDef)
    inner = outer.body.body[0]
    assert isinstance(inner, cst.FunctionDef)
    probed_inner = inner.with_changes(
        body=inner.body.with_changes(body=[synthesize_probe(1), *inner.body.body])
    )
    probed_outer = outer.with_changes(
        body=outer.body.with_changes(
            body=[synthesize_probe(0), probed_inner, *outer.body.body[1:]]
        )
    )
    instrumented = module.with_changes(body=[probed_outer])
    assert len(find_probes(instrumented)) == 2

    stripped = strip_probes(instrumented)
    assert find_probes(stripped) == []
    assert stripped.code == source


def test_strip_probes_keeps_blocks_non_empty() -> None:
    module = cst.parse_module("def only_probe():\n    pass\n")
    function = module.body[0]
    assert isinstance(function, cst.FunctionDef)
    probe_only = module.with_changes(
        body=[function.with_changes(body=function.body.with_changes(body=[synthesize_probe(3)]))]
    )
    stripped = strip_probes(probe_only)
    assert stripped.code == "def only_probe():\n    pass\n"
