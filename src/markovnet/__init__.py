"""
markovnet: exact and loopy-BP inference on discrete Markov networks.

Factors are flat potential tables indexed with a mixed-radix (odometer)
layout. Variable elimination gives partition functions and exact marginals;
loopy sum-product belief propagation gives approximate marginals.
"""

from markovnet.algebra import (
    full_joint,
    full_joint_sum,
    message_difference,
    product,
    product_all,
    union_scope,
)
from markovnet.belief_propagation import (
    BeliefPropagationEngine,
    BPConfig,
    BPInfo,
    BPResult,
    BPStatus,
    belief_propagate,
)
from markovnet.elimination import (
    DynamicMinNeighborOrdering,
    EliminationEngine,
    EliminationOrdering,
    FixedOrdering,
    StaticMinNeighborOrdering,
)
from markovnet.errors import (
    FileAccessError,
    InvalidOperationError,
    MalformedInputError,
    MarkovNetError,
)
from markovnet.factor import Factor, StrideKind, StrideLookup
from markovnet.network import Network, apply_evidence, build_network
from markovnet.sink import CollectingSink, ResultSink, StreamSink
from markovnet.uai_parser import (
    RawFactor,
    UAIModel,
    read_evidence_file,
    read_model_file,
    read_model_from_string,
)

__version__ = "0.1.0"
__all__ = [
    # Factor algebra
    "Factor",
    "StrideKind",
    "StrideLookup",
    "full_joint",
    "full_joint_sum",
    "message_difference",
    "product",
    "product_all",
    "union_scope",
    # Network
    "Network",
    "apply_evidence",
    "build_network",
    # Elimination
    "EliminationEngine",
    "EliminationOrdering",
    "StaticMinNeighborOrdering",
    "DynamicMinNeighborOrdering",
    "FixedOrdering",
    # Belief propagation
    "BeliefPropagationEngine",
    "BPConfig",
    "BPInfo",
    "BPResult",
    "BPStatus",
    "belief_propagate",
    # Result sinks
    "ResultSink",
    "StreamSink",
    "CollectingSink",
    # UAI parsing
    "RawFactor",
    "UAIModel",
    "read_evidence_file",
    "read_model_file",
    "read_model_from_string",
    # Errors
    "MarkovNetError",
    "FileAccessError",
    "MalformedInputError",
    "InvalidOperationError",
]
