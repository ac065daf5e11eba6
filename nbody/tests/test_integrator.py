import math

import numpy as np
import pytest

from nbody.conditions import InitialCondition, construct_system, normalize_conditions
from nbody.errors import NumericDegeneracy
from nbody.forces import accelerations, total_energy
from nbody.presets import FIGURE_EIGHT_PERIOD, get_preset


def _state(system):
    return system.positions(), system.velocities()


def test_step_is_kick_drift_kick():
    system = construct_system(get_preset("default"), softening=0.02, dt=0.01)
    r0, v0 = _state(system)
    m = system.masses()
    dt = 0.01

    v_half = v0 + 0.5 * dt * accelerations(r0, m, 0.02)
    r1 = r0 + dt * v_half
    v1 = v_half + 0.5 * dt * accelerations(r1, m, 0.02)

    system.step()
    np.testing.assert_allclose(system.positions(), r1, rtol=1e-14, atol=1e-15)
    np.testing.assert_allclose(system.velocities(), v1, rtol=1e-14, atol=1e-15)
    assert system.step_count == 1


def test_step_is_deterministic():
    a = construct_system(get_preset("default"), softening=0.02, dt=0.005)
    b = construct_system(get_preset("default"), softening=0.02, dt=0.005)
    a.advance(300)
    b.advance(300)
    assert np.array_equal(a.positions(), b.positions())
    assert np.array_equal(a.velocities(), b.velocities())
    assert a.energy() == b.energy()


@pytest.mark.parametrize("dt", [0.01, -0.01, 0.003])
def test_step_is_reversible(dt):
    system = construct_system(get_preset("default"), softening=0.02, dt=dt)
    r0, v0 = _state(system)

    system.step(dt)
    system.step(-dt)
    np.testing.assert_allclose(system.positions(), r0, rtol=1e-9, atol=1e-12)
    np.testing.assert_allclose(system.velocities(), v0, rtol=1e-9, atol=1e-12)
    assert system.step_count == 2
    assert abs(system.time) < 1e-15


def test_many_steps_reverse():
    system = construct_system(get_preset("default"), softening=0.02, dt=0.01)
    r0, v0 = _state(system)
    system.advance(100)
    assert not np.allclose(system.positions(), r0)
    system.advance(100, dt=-0.01)
    np.testing.assert_allclose(system.positions(), r0, rtol=1e-9, atol=1e-9)
    np.testing.assert_allclose(system.velocities(), v0, rtol=1e-9, atol=1e-9)


def test_single_body_at_rest_stays_put():
    system = construct_system([InitialCondition(2.0, 1.0, -1.0, 0.0, 0.0)], softening=0.0)
    system.advance(50)
    assert system.positions().tolist() == [[1.0, -1.0]]
    assert system.velocities().tolist() == [[0.0, 0.0]]
    assert np.all(system.accelerations() == 0.0)


def test_single_body_drifts_in_a_straight_line():
    system = construct_system(
        [InitialCondition(3.0, 0.5, 0.25, 0.125, -0.5)], softening=0.0, dt=0.25
    )
    system.advance(40)
    np.testing.assert_allclose(system.velocities(), [[0.125, -0.5]], rtol=0, atol=0)
    np.testing.assert_allclose(
        system.positions(), [[0.5 + 0.125 * 10.0, 0.25 - 0.5 * 10.0]], rtol=1e-14
    )


def test_normalized_system_keeps_zero_momentum():
    system = construct_system(
        normalize_conditions(get_preset("default")), softening=0.02, dt=1e-3
    )
    np.testing.assert_allclose(system.momentum(), 0.0, atol=1e-14)
    system.advance(2000)
    np.testing.assert_allclose(system.momentum(), 0.0, atol=1e-12)


def test_binary_returns_after_one_period():
    conditions = get_preset("binary")
    d = 1.0
    total_mass = 2.0
    period = 2.0 * math.pi * math.sqrt(d**3 / total_mass)
    dt = 1e-4

    system = construct_system(conditions, softening=0.02, dt=dt)
    start = system.positions()
    e0 = system.energy()

    system.advance(int(round(period / dt)))

    offsets = np.linalg.norm(system.positions() - start, axis=1)
    assert np.all(offsets < 0.01 * d)
    assert abs(system.energy() - e0) < 0.01 * abs(e0)


def test_figure_eight_stays_on_orbit():
    dt = 1e-3
    system = construct_system(get_preset("figure_eight"), softening=0.0, dt=dt)
    start = system.positions()
    e0 = system.energy()
    steps_per_period = int(round(FIGURE_EIGHT_PERIOD / dt))

    energies = []
    for period in range(3):
        for _ in range(10):
            system.advance(steps_per_period // 10)
            energies.append(system.energy())
        system.advance(steps_per_period - 10 * (steps_per_period // 10))
        offsets = np.linalg.norm(system.positions() - start, axis=1)
        assert np.all(offsets < 0.01), f"orbit not closed after period {period + 1}"

    assert max(abs(e - e0) for e in energies) < 1e-4 * abs(e0)


def test_leapfrog_beats_euler_on_energy():
    dt = 0.01
    system = construct_system(get_preset("figure_eight"), softening=0.02, dt=dt)
    e0 = system.energy()
    r, v, m = system.positions(), system.velocities(), system.masses()
    for _ in range(500):
        acc = accelerations(r, m, 0.02)
        r, v = r + v * dt, v + acc * dt
    euler_energy = total_energy(r, v, m, 0.02)

    system.advance(500)
    assert abs(system.energy() - e0) < abs(euler_energy - e0)


def test_step_counter_and_time():
    system = construct_system(get_preset("binary"), dt=0.25)
    system.step()
    system.step(dt=-0.5)
    assert system.step_count == 2
    assert system.time == -0.25
    assert system.dt == 0.25


def test_coincident_bodies_propagate_nan_by_default():
    conditions = [InitialCondition(1.0, 0.0, 0.0, 0.0, 0.0)] * 2
    system = construct_system(conditions, softening=0.0)
    system.step()
    assert system.step_count == 1
    assert not system.is_finite()
    assert not math.isfinite(system.energy())


def test_strict_mode_raises_numeric_degeneracy():
    conditions = [InitialCondition(1.0, 0.0, 0.0, 0.0, 0.0)] * 2
    system = construct_system(conditions, softening=0.0, strict=True)
    with pytest.raises(NumericDegeneracy) as info:
        system.step()
    assert info.value.step == 1
    assert system.step_count == 1


def test_invalid_dt_rejected():
    system = construct_system(get_preset("binary"))
    with pytest.raises(ValueError):
        system.step(float("nan"))
    with pytest.raises(ValueError):
        construct_system(get_preset("binary"), softening=-0.1)
