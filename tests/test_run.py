import numpy as np
import pytest

import run
from gradcore.history import LossHistory
from gradcore.plotting import plot_loss_histories


def test_presets_fill_unset_arguments():
    args = run.apply_preset(run.parse_args(["--preset", "logistic"]))
    assert args.iters == 20
    assert args.step_size == 10.0
    assert args.output == "logistic"
    assert args.partitions == 2

    args = run.apply_preset(
        run.parse_args(["--preset", "logistic", "--iters", "3", "--step-size", "0.5", "--output", "x"])
    )
    assert args.iters == 3
    assert args.step_size == 0.5
    assert args.output == "x"


def test_invalid_arguments_exit():
    with pytest.raises(SystemExit):
        run.parse_args(["--preset", "unknown"])
    with pytest.raises(SystemExit):
        run.parse_args(["--preset", "svm", "--partitions", "0"])


def test_least_squares_preset_without_plots():
    model, summary = run.main(
        ["--preset", "least_squares", "--iters", "50", "--no-plot", "--quiet", "--partitions", "3"]
    )
    assert len(model.loss_history) == 50
    assert summary["mse"] < 1.0


def test_svm_preset_writes_plots(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    model, summary = run.main(["--preset", "svm", "--iters", "10", "--quiet"])

    assert summary["accuracy"] > 0.9
    out_dirs = list((tmp_path / "experiments" / "svm").iterdir())
    assert len(out_dirs) == 1
    assert (out_dirs[0] / "loss.png").exists()
    assert (out_dirs[0] / "results.npz").exists()
    assert len(list((out_dirs[0] / "separate").glob("*.png"))) == 1


def _record_init(monkeypatch, name):
    seen = {}
    base = getattr(run, name)

    class Recording(base):
        def __init__(self, **kwargs):
            seen.update(kwargs)
            super().__init__(**kwargs)

    monkeypatch.setattr(run, name, Recording)
    return seen


def test_svm_preset_keeps_regularization(monkeypatch):
    seen = _record_init(monkeypatch, "SVMWithSGD")
    run.main(["--preset", "svm", "--iters", "5", "--no-plot", "--quiet"])
    assert seen["reg_param"] == 0.01

    run.main(["--preset", "svm", "--iters", "5", "--reg-param", "0.5", "--no-plot", "--quiet"])
    assert seen["reg_param"] == 0.5


def test_sgd_presets_default_to_no_regularization(monkeypatch):
    seen = _record_init(monkeypatch, "LinearRegressionWithSGD")
    run.main(["--preset", "least_squares", "--iters", "5", "--no-plot", "--quiet"])
    assert seen["reg_param"] == 0.0
    assert seen["step_size"] == 1.0


def test_logistic_lbfgs_preset(monkeypatch):
    seen = _record_init(monkeypatch, "LogisticRegressionWithLBFGS")
    model, summary = run.main(["--preset", "logistic_lbfgs", "--iters", "30", "--no-plot", "--quiet"])

    assert seen["num_iterations"] == 30
    assert "step_size" not in seen
    assert len(model.loss_history) >= 1
    assert -1.7 <= model.weights[0] <= -1.3
    assert summary["accuracy"] >= 0.8


def test_xor_preset(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    model, summary = run.main(["--preset", "xor", "--no-plot", "--quiet"])
    assert model.topology.layer_sizes == (2, 5, 4, 1)
    assert summary["mse"] < 0.25


def test_save_results_npz_round_trip(tmp_path):
    history = LossHistory()
    for loss in [1.0, 0.5]:
        history.record(loss)

    out_dir = plot_loss_histories({"run": history}, output_dir=tmp_path / "plots")

    saved = np.load(out_dir / "results.npz")
    np.testing.assert_allclose(saved["run_loss"], [1.0, 0.5])
    np.testing.assert_array_equal(saved["run_step"], [1, 2])
