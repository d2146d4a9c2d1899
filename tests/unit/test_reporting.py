import csv
import json

import numpy as np

from logicnet.core.network import Network
from logicnet.core.rng import MinStdRandom
from logicnet.data.logic import truth_table
from logicnet.reporting.metrics import CsvSink, JsonlSink
from logicnet.reporting.plots import PlotAdapter
from logicnet.reporting.summary import compute_auc, write_summary
from logicnet.reporting.tables import format_parameters, format_predictions, predict_table


def test_format_predictions_table():
    inputs, _ = truth_table(["OR", "AND"])
    preds = np.array([[0.1, 0.0], [0.9, 0.2], [0.95, 0.25], [0.99, 0.8]])
    text = format_predictions(inputs, preds, ["OR", "AND"], "Initial results:")
    lines = text.splitlines()
    assert lines[0] == "Initial results:"
    assert lines[1] == " Input -> (OR, AND)"
    assert lines[2] == "0, 0 = 0.100 0.000"
    assert lines[5] == "1, 1 = 0.990 0.800"


def test_format_parameters_uses_fixed_columns():
    net = Network(2, 3, 1, MinStdRandom(1))
    lines = format_parameters(net).splitlines()
    assert lines[0] == "Weights (Input -> Hidden):"
    assert lines[1] == " ".join(f"{v:9.6f}" for v in net.weights_hidden[0])
    assert lines[3] == "Biases (Hidden):"
    assert lines[4] == " 0.000000  0.000000  0.000000"
    assert lines[5] == "Weights (Hidden -> Output):"
    assert len(lines) == 1 + 2 + 1 + 1 + 1 + 3 + 1 + 1


def test_predict_table_copies_each_row():
    inputs, _ = truth_table()
    net = Network(2, 4, 6, MinStdRandom(1))
    table = predict_table(net, inputs)
    assert table.shape == (4, 6)
    assert np.array_equal(table[-1], net.output)
    assert not np.array_equal(table[0], table[-1])


def test_sinks_write_jsonl_and_csv(tmp_path):
    jsonl = JsonlSink(tmp_path / "metrics.jsonl", seed=3, sha="abc")
    csv_sink = CsvSink(tmp_path / "metrics.csv")
    for step, loss in [(10, 0.5), (20, 0.25)]:
        jsonl.on_step(step, {"loss": loss})
        csv_sink(step, {"loss": loss})

    records = [json.loads(line) for line in (tmp_path / "metrics.jsonl").read_text().splitlines()]
    assert records[0] == {"step": 10, "phase": "train", "seed": 3, "sha": "abc", "loss": 0.5}
    with (tmp_path / "metrics.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["step"] for row in rows] == ["10", "20"]
    assert float(rows[1]["loss"]) == 0.25


def test_summary_aggregates_series(tmp_path):
    jsonl = JsonlSink(tmp_path / "metrics.jsonl", seed=0, sha="abc")
    for step, loss in enumerate([0.4, 0.2, 0.1], start=1):
        jsonl.on_step(step, {"loss": loss})
    path = write_summary(jsonl.path, tmp_path / "summary.json", tail=2, extra={"mse": 0.1})
    summary = json.loads((tmp_path / "summary.json").read_text())
    assert path.endswith("summary.json")
    assert summary["records"] == 3
    assert summary["metrics"]["loss"]["min"] == 0.1
    assert summary["metrics"]["loss"]["last"] == 0.1
    assert summary["final"] == {"mse": 0.1}
    assert np.isclose(compute_auc([0.2, 0.1]), 0.15)


def test_plot_adapter_headless(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_step(100, {"loss": 0.3})
    adapter.on_step(200, {"loss": 0.1})
    adapter.mark_phase(200)
    assert adapter.close() == tmp_path / "loss.png"
    assert (tmp_path / "loss.png").exists()


def test_plot_adapter_disabled_writes_nothing(tmp_path):
    adapter = PlotAdapter(tmp_path / "plots", enable_plots=False)
    adapter.on_step(1, {"loss": 0.3})
    assert adapter.close() is None
    assert not (tmp_path / "plots").exists()


def test_csv_columns_fixed_by_first_row(tmp_path):
    sink = CsvSink(tmp_path / "metrics.csv", phase="phase_2")
    sink.on_step(5, {"loss": 0.5, "mse": 0.4, "note": "skip"})
    sink.on_step(10, {"loss": 0.25, "mse": 0.2, "extra": 1.0})

    lines = (tmp_path / "metrics.csv").read_text().splitlines()
    assert lines[0] == "step,phase,loss,mse"
    assert lines[2] == "10,phase_2,0.25,0.2"
