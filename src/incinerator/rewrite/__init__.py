from incinerator.rewrite.incinerate import incinerate
from incinerator.rewrite.instrument import instrument, instrument_file
from incinerator.rewrite.model import (
    FunctionKind,
    FunctionSite,
    IncinerationRun,
    PendingSet,
    SourceFile,
    TagRegistry,
)
from incinerator.rewrite.probe import (
    PROBE_PREFIX,
    find_probes,
    is_probe,
    strip_probes,
    synthesize_probe,
)
from incinerator.rewrite.prune import PruneResult, prune_unused_bindings

__all__ = [
    "FunctionKind",
    "FunctionSite",
    "IncinerationRun",
    "PROBE_PREFIX",
    "PendingSet",
    "PruneResult",
    "SourceFile",
    "TagRegistry",
    "find_probes",
    "incinerate",
    "instrument",
    "instrument_file",
    "is_probe",
    "prune_unused_bindings",
    "strip_probes",
    "synthesize_probe",
]
