
from recorder.simulation import SimulatedAnalysis


def test_simulated_values_are_biased_and_bounded():
    sim = SimulatedAnalysis(seed=3)
    for _ in range(200):
        eye = sim.eye_movement()
        assert 0.6 <= eye.focused < 0.9
        assert 0.0 <= eye.distracted < 0.3
        g = sim.gestures()
        assert 0.7 <= g.none < 0.9
        assert 0.0 <= g.hand_raise < 0.2


def test_simulated_values_deterministic_with_seed():
    a, b = SimulatedAnalysis(seed=11), SimulatedAnalysis(seed=11)
    assert a.eye_movement() == b.eye_movement()
    assert a.gestures() == b.gestures()
