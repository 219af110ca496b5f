"""
Command-line interface: read a UAI Markov network and print marginals or the partition function.
"""

from __future__ import annotations

import argparse
import logging
import sys

from markovnet.belief_propagation import BPConfig, belief_propagate
from markovnet.elimination import EliminationEngine
from markovnet.errors import FileAccessError
from markovnet.network import build_network
from markovnet.sink import ResultSink, StreamSink
from markovnet.uai_parser import read_evidence_file, read_model_file

USAGE = "Usage: markovnet [path/to/network/file]"


class UsageError(Exception):
    pass


class _Parser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = _Parser(
        prog="markovnet",
        description="Inference on discrete Markov networks in UAI format.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("network", help="Path to the .uai network file")
    parser.add_argument(
        "--mode",
        choices=["bp", "partition", "exact"],
        default="bp",
        help="Loopy BP marginals, partition function, or exact marginals",
    )
    parser.add_argument(
        "--max-iter",
        type=int,
        default=100,
        help="Belief propagation iteration cap",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=1e-6,
        help="Belief propagation convergence threshold",
    )
    parser.add_argument(
        "--evidence",
        default=None,
        help="Optional .evid file with observed states",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log inference progress to stderr",
    )
    return parser


def run(args: argparse.Namespace, sink: ResultSink) -> None:
    """Load the network named by ``args`` and send results to ``sink``."""
    model = read_model_file(args.network)
    evidence = read_evidence_file(args.evidence) if args.evidence else {}
    network = build_network(model, evidence)

    if args.mode == "bp":
        result = belief_propagate(
            network, BPConfig(max_iterations=args.max_iter, threshold=args.threshold)
        )
        for message in result.notices:
            sink.notice(message)
        sink.emit_marginals(result.marginals)
    elif args.mode == "partition":
        sink.scalar(EliminationEngine(network).partition_function())
    else:
        engine = EliminationEngine(network)
        sink.emit_marginals({var: engine.marginal(var) for var in network.variables})


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Usage errors and unreadable input files print a message and return 0.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 unless the input is malformed).
    """
    parser = create_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        print(USAGE)
        print(f"Error: {e}", file=sys.stderr)
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args, StreamSink(sys.stdout))
    except FileAccessError as e:
        print(f"Could not read input, quitting program. ({e})")
        return 0
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
