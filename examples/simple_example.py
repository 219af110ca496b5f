from markovnet import (
    EliminationEngine,
    belief_propagate,
    build_network,
    read_model_file,
)


def main():
    model = read_model_file("examples/loop.uai")

    result = belief_propagate(build_network(model))
    print(result.info)
    for var, marginal in result.marginals.items():
        print(f"Variable {var} BP marginal: {marginal.tolist()}")

    engine = EliminationEngine(build_network(model))
    for var in range(model.nvars):
        print(f"Variable {var} exact marginal: {engine.marginal(var).tolist()}")
    print(f"Partition function: {engine.partition_function()}")


if __name__ == "__main__":
    main()
