from __future__ import annotations

import libcst as cst

from incinerator.rewrite.incinerate import incinerate
from incinerator.rewrite.instrument import instrument
from incinerator.rewrite.model import IncinerationRun
from incinerator.rewrite.prune import prune_unused_bindings
from tests.source_helpers import dedent_source


def _module(text: str) -> cst.Module:
    return cst.parse_module(dedent_source(text))


def test_pruning_reaches_a_fixed_point_after_incineration(make_source_file) -> None:
    source_file = make_source_file(
        """
        def helper():
            return 1


        unused = helper
        """
    )
    run = IncinerationRun(files=[source_file])
    instrument(run)
    run.begin_observation()
    incinerate(run)
    assert source_file.module.code == "helper = None\n\n\nunused = helper\n"

    result = prune_unused_bindings(source_file.module)

    assert result.removed == ("unused", "helper")
    assert result.module.code == "\n"
    again = prune_unused_bindings(result.module)
    assert again.removed == ()
    assert again.module.code == result.module.code


def test_referenced_and_public_bindings_survive() -> None:
    module = _module(
        """
        import os

        __version__ = "1.0"
        __all__ = ["EXPORTED"]
        EXPORTED = 2
        CONSTANT = 1
        used = 3
        alias = used


        def reader():
            return CONSTANT
        """
    )
    result = prune_unused_bindings(module)

    assert result.removed == ("alias", "used")
    code = result.module.code
    for kept in ("import os", "__version__", "__all__", "EXPORTED = 2", "CONSTANT = 1"):
        assert kept in code
    assert "alias" not in code
    assert "used = 3" not in code
    assert result.iterations == 3


def test_only_module_level_single_name_bindings_are_candidates() -> None:
    source = dedent_source(
        """
        first, second = 1, 2
        left = right = 3
        config: dict


        def scope():
            local = 4
            return None


        class Holder:
            attribute = 5
        """
    )
    result = prune_unused_bindings(cst.parse_module(source))
    assert result.removed == ()
    assert result.module.code == source


def test_removal_inside_semicolon_line_keeps_the_rest() -> None:
    result = prune_unused_bindings(_module("kept = 1; dropped = 2\nprint(kept)\n"))
    assert result.removed == ("dropped",)
    assert result.module.code == "kept = 1\nprint(kept)\n"


def test_annotated_bindings_are_pruned() -> None:
    result = prune_unused_bindings(_module("limit: int = 10\n"))
    assert result.removed == ("limit",)
    assert result.module.code == "\n"


def test_first_statement_removal_does_not_leave_blank_lines_at_the_top() -> None:
    result = prune_unused_bindings(_module("a = None\n\n\n# keep me\nb = None\n\n\nprint(b)\n"))
    assert result.removed == ("a",)
    assert result.module.code == "# keep me\nb = None\n\n\nprint(b)\n"
