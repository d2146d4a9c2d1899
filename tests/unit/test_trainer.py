import numpy as np
import pytest

from logicnet.checkpoint import read_checkpoint_shape
from logicnet.core.errors import ShapeError
from logicnet.core.network import Network
from logicnet.core.rng import MinStdRandom
from logicnet.data.logic import cycle_examples, truth_table
from logicnet.training.trainer import Trainer


def _sigmoid(x):
    return 1.0 / (1.0 + np.exp(-x))


def _manual_step(net, x, y, lr):
    hidden = _sigmoid(x @ net.weights_hidden + net.biases_hidden)
    output = _sigmoid(hidden @ net.weights_output + net.biases_output)
    grad_output = (output - y) * output * (1.0 - output)
    grad_hidden = (net.weights_output @ grad_output) * hidden * (1.0 - hidden)
    return hidden, output, grad_output, grad_hidden


def test_trainer_buffers_start_at_zero():
    net = Network(2, 10, 6, MinStdRandom(1))
    trainer = Trainer(net)
    assert trainer.grad_hidden.shape == (10,)
    assert trainer.grad_output.shape == (6,)
    assert trainer.velocity_hidden.shape == (2, 10)
    assert trainer.velocity_output.shape == (10, 6)
    for buf in (
        trainer.grad_hidden,
        trainer.grad_output,
        trainer.velocity_hidden,
        trainer.velocity_output,
    ):
        assert np.all(buf == 0.0)


def test_zero_momentum_is_plain_gradient_descent():
    net = Network(2, 4, 3, MinStdRandom(9))
    trainer = Trainer(net)
    x = np.array([1.0, 0.0])
    y = np.array([1.0, 0.0, 1.0])
    lr = 0.25
    before = net.copy_parameters()
    hidden, _, grad_output, grad_hidden = _manual_step(net, x, y, lr)

    trainer.train(net, x, y, lr, 0.0)

    np.testing.assert_allclose(
        net.weights_output,
        before["weights_output"] - lr * np.outer(hidden, grad_output),
        rtol=1e-12,
        atol=1e-15,
    )
    np.testing.assert_allclose(
        net.weights_hidden,
        before["weights_hidden"] - lr * np.outer(x, grad_hidden),
        rtol=1e-12,
        atol=1e-15,
    )
    np.testing.assert_allclose(
        net.biases_output, before["biases_output"] - lr * grad_output, rtol=1e-12, atol=1e-15
    )
    np.testing.assert_allclose(
        net.biases_hidden, before["biases_hidden"] - lr * grad_hidden, rtol=1e-12, atol=1e-15
    )


def test_hidden_gradient_uses_output_weights_before_update():
    net = Network(2, 5, 2, MinStdRandom(4))
    trainer = Trainer(net)
    x = np.array([0.0, 1.0])
    y = np.array([1.0, 0.0])
    _, _, grad_output, grad_hidden = _manual_step(net, x, y, 0.5)
    trainer.train(net, x, y, 0.5, 0.9)
    np.testing.assert_allclose(trainer.grad_output, grad_output, rtol=1e-12)
    np.testing.assert_allclose(trainer.grad_hidden, grad_hidden, rtol=1e-12)


def test_velocity_blends_new_delta_before_subtraction():
    net = Network(2, 3, 2, MinStdRandom(21))
    trainer = Trainer(net)
    x = np.array([1.0, 1.0])
    y = np.array([0.0, 1.0])
    lr, momentum = 0.1, 0.9

    trainer.train(net, x, y, lr, momentum)
    v_out = trainer.velocity_output.copy()
    v_hid = trainer.velocity_hidden.copy()
    w_out = net.weights_output.copy()
    b_out = net.biases_output.copy()

    trainer.train(net, x, y, lr, momentum)
    delta_out = np.outer(net.hidden, lr * trainer.grad_output)
    delta_hid = np.outer(x, lr * trainer.grad_hidden)

    np.testing.assert_allclose(trainer.velocity_output, momentum * v_out + delta_out, rtol=1e-12)
    np.testing.assert_allclose(trainer.velocity_hidden, momentum * v_hid + delta_hid, rtol=1e-12)
    np.testing.assert_allclose(net.weights_output, w_out - trainer.velocity_output, rtol=1e-12)
    # Biases never see the velocity term.
    np.testing.assert_allclose(net.biases_output, b_out - lr * trainer.grad_output, rtol=1e-12)


def test_train_returns_squared_error_of_forward_pass():
    net = Network(2, 3, 2, MinStdRandom(2))
    trainer = Trainer(net)
    x = np.array([0.0, 1.0])
    y = np.array([1.0, 0.0])
    expected = np.mean(np.square(net.predict(x) - y))
    loss = trainer.train(net, x, y, 0.1, 0.9)
    assert loss == pytest.approx(expected)


def test_shape_mismatch_raises_without_mutation():
    net = Network(2, 3, 2, MinStdRandom(1))
    other = Network(2, 4, 2, MinStdRandom(1))
    trainer = Trainer(net)
    before = other.copy_parameters()
    with pytest.raises(ShapeError):
        trainer.train(other, [0.0, 1.0], [1.0, 0.0], 0.1, 0.9)
    for name, value in other.parameters().items():
        assert np.array_equal(value, before[name])
    with pytest.raises(ShapeError):
        trainer.train(net, [0.0, 1.0], [1.0, 0.0, 1.0], 0.1, 0.9)
    with pytest.raises(ShapeError):
        trainer.train(net, [0.0], [1.0, 0.0], 0.1, 0.9)


def test_single_example_learns_or_and_and():
    net = Network(2, 10, 6, MinStdRandom(1))
    trainer = Trainer(net)
    x = [0.0, 1.0]
    # XOR, XNOR, OR, AND, NOR, NAND for input (0, 1)
    y = [1.0, 0.0, 1.0, 0.0, 0.0, 1.0]
    for _ in range(1000):
        trainer.train(net, x, y, 0.1, 0.9)
    out = net.predict(x)
    assert out[2] > 0.9
    assert out[3] < 0.1


def test_error_decreases_on_truth_table():
    inputs, targets = truth_table()
    net = Network(2, 10, 6, MinStdRandom(1))
    trainer = Trainer(net)
    losses = []
    examples = cycle_examples(inputs, targets)
    for _ in range(2000):
        x, y = next(examples)
        losses.append(trainer.train(net, x, y, 0.1, 0.9))
    assert np.mean(losses[-100:]) < np.mean(losses[:100])


def test_degenerate_topology_trains_to_finite_values():
    net = Network(2, 1, 1, MinStdRandom(1))
    trainer = Trainer(net)
    for _ in range(50):
        trainer.train(net, [1.0, 0.0], [1.0], 0.5, 0.9)
    assert np.all(np.isfinite(net.predict([1.0, 0.0])))
    for value in net.parameters().values():
        assert np.all(np.isfinite(value))


def test_reset_clears_velocity():
    net = Network(2, 3, 1, MinStdRandom(1))
    trainer = Trainer(net)
    trainer.train(net, [1.0, 1.0], [0.0], 0.1, 0.9)
    assert np.any(trainer.velocity_output != 0.0)
    trainer.reset()
    assert np.all(trainer.velocity_output == 0.0)
    assert np.all(trainer.velocity_hidden == 0.0)


def test_run_emits_window_losses_and_checkpoints(tmp_path):
    inputs, targets = truth_table()
    net = Network(2, 10, 6, MinStdRandom(1))
    seen = []
    trainer = Trainer(net, callbacks=[lambda step, metrics: seen.append((step, metrics["loss"]))])
    ckpt = tmp_path / "checkpoint.dat"

    last = trainer.run(
        cycle_examples(inputs, targets),
        250,
        lr=0.1,
        momentum=0.9,
        log_every=100,
        checkpoint_path=ckpt,
        checkpoint_interval=100,
        step_offset=1000,
    )

    assert [step for step, _ in seen] == [1100, 1200, 1250]
    assert last == seen[-1][1]
    assert read_checkpoint_shape(ckpt).as_tuple() == (2, 10, 6)


def test_run_rejects_exhausted_examples():
    inputs, targets = truth_table()
    net = Network(2, 3, 6, MinStdRandom(1))
    trainer = Trainer(net)
    with pytest.raises(ValueError):
        trainer.run(zip(inputs, targets), 5, lr=0.1, momentum=0.9)


def test_train_accepts_the_network_hidden_buffer_as_input():
    twin = Network(3, 3, 1, MinStdRandom(5))
    net = Network(3, 3, 1, MinStdRandom(5))
    for model in (twin, net):
        model.predict([0.2, 0.7, 1.0])
    assert np.array_equal(net.hidden, twin.hidden)

    Trainer(twin).train(twin, twin.hidden.copy(), [1.0], lr=0.5, momentum=0.9)
    Trainer(net).train(net, net.hidden, [1.0], lr=0.5, momentum=0.9)

    assert np.array_equal(net.weights_hidden, twin.weights_hidden)
    assert np.array_equal(net.biases_hidden, twin.biases_hidden)


def test_run_keeps_training_when_checkpoint_cannot_be_written(tmp_path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    inputs, targets = truth_table()
    net = Network(2, 4, 6, MinStdRandom(1))
    seen = []
    trainer = Trainer(net, callbacks=[lambda step, metrics: seen.append(step)])

    with caplog.at_level("DEBUG", logger="logicnet.training.trainer"):
        trainer.run(
            cycle_examples(inputs, targets),
            20,
            lr=0.1,
            momentum=0.9,
            log_every=10,
            checkpoint_path=blocker / "checkpoint.dat",
            checkpoint_interval=10,
        )

    assert seen == [10, 20]
    assert "Skipping checkpoint at step 0" in caplog.text
    assert "Finished 20 steps, last window loss" in caplog.text
