"""Configurable runner script that trains a preset model and plots its loss history.

Usage:
    python run.py --preset logistic
    python run.py --preset multinomial --iters 300 --step-size 0.5
    python run.py --preset least_squares --partitions 4 --output my_experiment
    python run.py --preset svm --no-plot
    python run.py --preset logistic_lbfgs --iters 50
    python run.py --preset xor --quiet
"""

import argparse

from gradcore import (
    DatasetSplit,
    LinearRegressionWithSGD,
    LogisticRegressionWithLBFGS,
    LogisticRegressionWithSGD,
    PartitionedDataset,
    SVMWithSGD,
    generate_gaussian_blobs,
    generate_linear_input,
    generate_logistic_input,
    make_xor_dataset,
    multi_layer_perceptron,
    split_train_test,
    train_network,
)
from gradcore.default_run_params import (
    default_blobs_dataset,
    default_lbfgs_config,
    default_linear_dataset,
    default_logistic_dataset,
    default_network_params,
    default_plot_options,
    default_sgd_config,
)
from gradcore.metrics import get_accuracy, get_mean_squared_error
from gradcore.plotting import plot_loss_histories


PRESETS = {
    "logistic": {
        "step_size": 10.0,
        "iters": 20,
        "reg_param": 0.0,
        "default_output": "logistic",
    },
    "logistic_lbfgs": {
        "step_size": 1.0,
        "iters": 100,
        "reg_param": 0.0,
        "default_output": "logistic_lbfgs",
    },
    "multinomial": {
        "step_size": 1.0,
        "iters": 200,
        "reg_param": 0.0,
        "default_output": "multinomial",
    },
    "least_squares": {
        "step_size": 1.0,
        "iters": 100,
        "reg_param": 0.0,
        "default_output": "least_squares",
    },
    "svm": {
        "step_size": 1.0,
        "iters": 100,
        "reg_param": 0.01,
        "default_output": "svm",
    },
    "xor": {
        "step_size": 1.0,
        "iters": 200,
        "default_output": "xor",
    },
}


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Train a preset model with the gradient core and plot its loss"
    )
    parser.add_argument(
        "--preset",
        type=str,
        required=True,
        choices=list(PRESETS.keys()),
        help="Preset configuration: " + ", ".join(f"'{p}'" for p in PRESETS),
    )
    parser.add_argument(
        "--iters",
        type=int,
        help="Number of optimizer iterations (overrides the preset)",
    )
    parser.add_argument(
        "--step-size",
        type=float,
        help="SGD step size (overrides the preset; ignored by the xor and logistic_lbfgs presets)",
    )
    parser.add_argument(
        "--reg-param",
        type=float,
        help="Regularization parameter (overrides the preset)",
    )
    parser.add_argument(
        "--partitions",
        type=int,
        default=2,
        help="Number of data partitions (default: 2)",
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Experiment name for output/plotting",
    )
    parser.add_argument(
        "--no-plot",
        action="store_true",
        help="Skip writing plots and results.npz",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Disable debug output during training",
    )

    args = parser.parse_args(argv)
    if args.partitions < 1:
        parser.error(f"--partitions must be >= 1, got {args.partitions}")
    if args.iters is not None and args.iters < 1:
        parser.error(f"--iters must be >= 1, got {args.iters}")
    return args


def apply_preset(args):
    """Fill unset arguments from the preset, respecting explicit overrides."""
    preset = PRESETS[args.preset]
    if args.iters is None:
        args.iters = preset["iters"]
    if args.step_size is None:
        args.step_size = preset["step_size"]
    if args.reg_param is None:
        args.reg_param = preset["reg_param"]
    if not args.output:
        args.output = preset["default_output"]
    return args


def run_preset(args):
    """
    Build the dataset and algorithm for a preset, then train.

    Returns:
        (run name, trained model, summary dict of metrics)
    """
    debug = not args.quiet

    if args.preset == "xor":
        data = make_xor_dataset()
        params = default_network_params(num_iterations=args.iters)
        topology = multi_layer_perceptron(data, params["hidden_layers"])
        model = train_network(
            PartitionedDataset(data, num_partitions=args.partitions),
            topology,
            num_iterations=params["num_iterations"],
            seed=params["seed"],
            debug=debug,
        )
        errors = [float(model.predict(p.features)[0] - p.label[0]) ** 2 for p in data]
        summary = {"mse": sum(errors) / len(errors)}
        return f"xor{topology.layer_sizes}", model, summary

    if args.preset == "logistic_lbfgs":
        config = default_lbfgs_config(num_iterations=args.iters, reg_param=args.reg_param)
    else:
        config = default_sgd_config(
            step_size=args.step_size, num_iterations=args.iters, reg_param=args.reg_param
        )

    if args.preset in ("logistic", "logistic_lbfgs"):
        train = generate_logistic_input(**default_logistic_dataset())
        test = generate_logistic_input(**default_logistic_dataset(n_points=1000, seed=17))
        algorithm_cls = (
            LogisticRegressionWithLBFGS
            if args.preset == "logistic_lbfgs"
            else LogisticRegressionWithSGD
        )
        algorithm = algorithm_cls(
            add_intercept=True, num_partitions=args.partitions, debug=debug, **config.as_kwargs()
        )
    elif args.preset == "multinomial":
        blobs = default_blobs_dataset()
        splits = split_train_test(generate_gaussian_blobs(**blobs), test_size=0.2, random_state=0)
        train, test = splits[DatasetSplit.Train], splits[DatasetSplit.Test]
        algorithm = LogisticRegressionWithSGD(
            add_intercept=True,
            num_classes=len(blobs["centers"]),
            num_partitions=args.partitions,
            debug=debug,
            **config.as_kwargs(),
        )
    elif args.preset == "least_squares":
        splits = split_train_test(
            generate_linear_input(**default_linear_dataset()), test_size=0.2, random_state=0
        )
        train, test = splits[DatasetSplit.Train], splits[DatasetSplit.Test]
        algorithm = LinearRegressionWithSGD(
            add_intercept=True, num_partitions=args.partitions, debug=debug, **config.as_kwargs()
        )
    else:  # svm
        blobs = default_blobs_dataset(centers=((-2.0, -2.0), (2.0, 2.0)))
        splits = split_train_test(generate_gaussian_blobs(**blobs), test_size=0.2, random_state=0)
        train, test = splits[DatasetSplit.Train], splits[DatasetSplit.Test]
        algorithm = SVMWithSGD(
            add_intercept=True, num_partitions=args.partitions, debug=debug, **config.as_kwargs()
        )

    model = algorithm.run(train)
    if args.preset == "least_squares":
        summary = {"mse": get_mean_squared_error(model, test)}
    else:
        summary = {"accuracy": get_accuracy(model, test)}
    return f"{args.preset}_{config.dir_name}", model, summary


def main(argv=None):
    """Main entry point."""
    args = apply_preset(parse_args(argv))

    print(f"Using preset: {args.preset}")
    print()
    print("Configuration:")
    print(f"  Iterations: {args.iters}")
    print(f"  Step size: {args.step_size}")
    print(f"  Partitions: {args.partitions}")
    print(f"  Experiment name: {args.output}")
    if args.quiet:
        print("  Debug mode: False (quiet)")
    print()

    print("Running training...")
    name, model, summary = run_preset(args)

    print()
    print(f"Model: {model.__class__.__name__}")
    print(f"  Weights: {model.weights.values.tolist()}")
    if hasattr(model, "intercept"):
        print(f"  Intercept: {model.intercept}")
    for metric, value in summary.items():
        print(f"  Test {metric}: {value:.6f}")
    print(f"  Final loss: {model.loss_history.last}")

    if not args.no_plot:
        print("Generating plots...")
        out_dir = plot_loss_histories(
            {name: model.loss_history},
            experiment_name=args.output,
            **default_plot_options(),
        )
        print(f"Plots written to {out_dir}")
    print("Done!")
    return model, summary


if __name__ == "__main__":
    main()
