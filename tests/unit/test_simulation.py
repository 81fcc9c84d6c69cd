import math

import numpy as np
import pytest

from sonarping.core.acoustics import attenuation_factor
from sonarping.core.intersector import Ray, Triangle
from sonarping.core.mesh import Mesh
from sonarping.core.scene import Scene
from sonarping.core.simulation import Simulation, SimulationConfig
from sonarping.core.vector import Vec3, unit
from sonarping.sensors.patterns import BeamPattern, BeamSample
from sonarping.sensors.transducer import Transducer


def _reference_mesh() -> Mesh:
    return Mesh([Triangle(Vec3(10.0, -10.0, 0.0), Vec3(10.0, 10.0, 0.0), Vec3(10.0, 0.0, -10.0))])


def test_reference_scenario_single_transducer() -> None:
    transducer = Transducer(point=Vec3(0.0, 0.0, 0.0), direction=Vec3(1.0, 0.0, 0.0))
    scene = Scene(mesh=_reference_mesh(), transducers=[transducer])

    result = Simulation(scene).run()

    assert result.stats() == {"rays": 1, "hits": 1, "echoes": 1}
    hit = result.hits[0]
    assert math.isclose(hit.point.x, 10.0)
    assert math.isclose(hit.point.y, 0.0, abs_tol=1e-9)
    assert math.isclose(hit.point.z, 0.0, abs_tol=1e-9)
    assert len(transducer.echoes) == 1
    echo = transducer.echoes[0]
    assert math.isclose(echo.time, 20.0 / 1500.0)
    assert math.isclose(echo.magnitude, attenuation_factor(10.0))


def test_every_receiver_hears_every_hit() -> None:
    # Second transducer looks straight up and misses, but still receives.
    emitter = Transducer(point=Vec3(0.0, 0.0, 0.0), direction=Vec3(1.0, 0.0, 0.0))
    listener = Transducer(point=Vec3(0.0, 1.0, 0.0), direction=Vec3(0.0, 0.0, 1.0))
    scene = Scene(mesh=_reference_mesh(), transducers=[emitter, listener])

    result = Simulation(scene).run()

    assert result.rays == 2
    assert len(result.hits) == 1
    assert result.hits[0].emitter_index == 0
    assert result.echoes == 2
    returned = math.sqrt(101.0)
    assert len(listener.echoes) == 1
    assert math.isclose(listener.echoes[0].time, (10.0 + returned) / 1500.0)
    assert math.isclose(listener.echoes[0].magnitude, attenuation_factor(returned))
    assert math.isclose(emitter.echoes[0].time, 20.0 / 1500.0)


def test_outbound_leg_measured_from_emitter_not_world_origin() -> None:
    emitter = Transducer(point=Vec3(0.0, 1.0, -1.0), direction=Vec3(1.0, 0.0, 0.0))
    receiver = Transducer(point=Vec3(0.0, 0.0, 0.0), direction=Vec3(0.0, 1.0, 0.0))
    Simulation(Scene(mesh=_reference_mesh(), transducers=[emitter, receiver])).run()

    assert math.isclose(emitter.echoes[0].time, 20.0 / 1500.0)
    assert math.isclose(receiver.echoes[0].time, (10.0 + math.sqrt(102.0)) / 1500.0)


def test_miss_records_nothing() -> None:
    transducer = Transducer(point=Vec3.zero(), direction=Vec3(-1.0, 0.0, 0.0))
    result = Simulation(Scene(mesh=_reference_mesh(), transducers=[transducer])).run()
    assert result.hits == []
    assert result.echoes == 0
    assert transducer.echoes == []


def test_empty_mesh_and_zero_direction_are_not_errors() -> None:
    still = Transducer(point=Vec3.zero(), direction=Vec3.zero())
    result = Simulation(Scene(mesh=_reference_mesh(), transducers=[still])).run()
    assert result.stats() == {"rays": 1, "hits": 0, "echoes": 0}

    result = Simulation(Scene(transducers=[Transducer(Vec3.zero(), Vec3(1.0, 0.0, 0.0))])).run()
    assert result.hits == []


class _NormalisingPattern(BeamPattern):
    def sample(self, point, direction):
        return [BeamSample(Ray(point, unit(direction)), 0.5)]


def test_degenerate_beam_skips_only_that_transducer() -> None:
    broken = Transducer(point=Vec3.zero(), direction=Vec3.zero(), pattern=_NormalisingPattern())
    healthy = Transducer(point=Vec3.zero(), direction=Vec3(3.0, 0.0, 0.0), pattern=_NormalisingPattern())
    scene = Scene(mesh=_reference_mesh(), transducers=[broken, healthy])

    result = Simulation(scene).run()

    assert result.rays == 1
    assert len(result.hits) == 1
    assert result.hits[0].emitter_index == 1
    # The broken transducer still listens.
    assert len(broken.echoes) == 1
    # Relative beam intensity scales the source level.
    assert math.isclose(healthy.echoes[0].magnitude, 0.5 * attenuation_factor(10.0))


def test_trace_and_receive_are_separate_stages() -> None:
    transducer = Transducer(point=Vec3.zero(), direction=Vec3(1.0, 0.0, 0.0))
    sim = Simulation(Scene(mesh=_reference_mesh(), transducers=[transducer]))
    hits, n_rays = sim.trace()
    assert n_rays == 1 and len(hits) == 1
    assert transducer.echoes == []
    assert sim.receive(hits) == 1
    assert len(transducer.echoes) == 1


def test_echoes_accumulate_across_runs() -> None:
    transducer = Transducer(point=Vec3.zero(), direction=Vec3(1.0, 0.0, 0.0))
    scene = Scene(mesh=_reference_mesh(), transducers=[transducer])
    sim = Simulation(scene)
    sim.run()
    sim.run()
    assert len(transducer.echoes) == 2
    scene.clear_echoes()
    assert transducer.echoes == []


def test_config_overrides_constants_and_mode() -> None:
    far = Triangle(Vec3(20.0, -10.0, 0.0), Vec3(20.0, 10.0, 0.0), Vec3(20.0, 0.0, -10.0))
    near = Triangle(Vec3(10.0, -10.0, 0.0), Vec3(10.0, 10.0, 0.0), Vec3(10.0, 0.0, -10.0))
    transducer = Transducer(point=Vec3(0.0, 1.0, -1.0), direction=Vec3(1.0, 0.0, 0.0))
    scene = Scene(mesh=Mesh([far, near]), transducers=[transducer])

    cfg = SimulationConfig(speed_of_sound=1000.0, attenuation_db_per_m=0.0, collision_mode="nearest")
    result = Simulation(scene, cfg=cfg).run()

    assert result.hits[0].triangle_index == 1
    assert math.isclose(transducer.echoes[0].time, 20.0 / 1000.0)
    assert transducer.echoes[0].magnitude == 1.0


def test_behind_origin_flag() -> None:
    transducer = Transducer(point=Vec3(15.0, 0.0, -1.0), direction=Vec3(1.0, 0.0, 0.0))
    scene = Scene(mesh=_reference_mesh(), transducers=[transducer])
    assert len(Simulation(scene).run().hits) == 1
    strict = SimulationConfig(allow_behind_origin=False)
    assert Simulation(scene, cfg=strict).run().hits == []


def test_invalid_config_is_rejected() -> None:
    with pytest.raises(ValueError):
        SimulationConfig(speed_of_sound=0.0)
    with pytest.raises(ValueError):
        SimulationConfig(collision_mode="closest")  # type: ignore[arg-type]


def test_hit_batch_attributes() -> None:
    transducer = Transducer(point=Vec3.zero(), direction=Vec3(1.0, 0.0, 0.0))
    result = Simulation(Scene(mesh=_reference_mesh(), transducers=[transducer])).run()
    batch = result.hit_batch()
    np.testing.assert_allclose(batch.xyz, [[10.0, 0.0, 0.0]], atol=1e-6)
    np.testing.assert_allclose(batch.attrs["range_m"], [10.0])
    assert batch.attrs["emitter_id"].tolist() == [0]
    assert batch.attrs["triangle_id"].tolist() == [0]
    np.testing.assert_allclose(batch.attrs["intensity01"], [attenuation_factor(10.0)], rtol=1e-6)
