"""
Tests for the environment, terrain providers and turbulence noise.
"""

import numpy as np
import pytest
from rotorsim.environment import EnvironmentConfiguration, air_density, ISA_RHO0
from rotorsim.noise import PerlinNoise, ZeroNoise
from rotorsim.terrain import FlatTerrain, CallableTerrain, HeightmapTerrain, as_terrain_provider


class TestAirDensity:

    def test_isa_sea_level(self):
        assert air_density(15.0) == pytest.approx(ISA_RHO0)

    def test_hot_air_is_thinner(self):
        assert air_density(35.0) < air_density(0.0)

    def test_environment_derives_density(self):
        env = EnvironmentConfiguration(temperature_c=15.0)
        assert env.air_density == pytest.approx(1.225)


class TestWind:

    def test_wind_vector_direction(self):
        env = EnvironmentConfiguration(wind_speed=4.0, wind_direction_deg=0.0)
        np.testing.assert_array_almost_equal(env.wind_vector, [0.0, 0.0, 4.0])

        env = EnvironmentConfiguration(wind_speed=4.0, wind_direction_deg=90.0)
        np.testing.assert_array_almost_equal(env.wind_vector, [4.0, 0.0, 0.0])

    def test_configuration_is_immutable(self):
        env = EnvironmentConfiguration(wind_speed=4.0)
        with pytest.raises(Exception):
            env.wind_speed = 10.0
        with pytest.raises(ValueError):
            env.wind_vector[0] = 1.0

    def test_steady_wind_without_noise(self):
        env = EnvironmentConfiguration(wind_speed=3.0, wind_direction_deg=90.0)
        wind = env.get_wind(np.array([12.3, 4.0, -7.0]), 5.0, None)
        np.testing.assert_array_almost_equal(wind, env.wind_vector)

    def test_turbulence_scaled_by_wind_speed(self):
        noise = PerlinNoise(seed=3)
        position = np.array([12.3, 4.5, -7.1])
        calm = EnvironmentConfiguration(wind_speed=0.0)
        np.testing.assert_array_equal(calm.get_wind(position, 2.3, noise), np.zeros(3))

        windy = EnvironmentConfiguration(wind_speed=5.0)
        gust = windy.get_wind(position, 2.3, noise) - windy.wind_vector
        assert np.all(np.abs(gust) <= np.array([0.3, 0.2, 0.3]) * 5.0 * 1.5)

    def test_zero_noise_is_steady(self):
        env = EnvironmentConfiguration(wind_speed=5.0, wind_direction_deg=45.0)
        wind = env.get_wind(np.array([1.0, 2.0, 3.0]), 1.0, ZeroNoise())
        np.testing.assert_array_almost_equal(wind, env.wind_vector)


class TestEnvironmentLoading:

    def test_from_dict(self):
        env = EnvironmentConfiguration.from_dict({
            'wind_speed': 2.0,
            'wind_direction_deg': 180.0,
            'temperature_c': 30.0,
            'terrain_height': 1.5,
        })
        assert env.wind_speed == 2.0
        assert env.height_at(100.0, -50.0) == 1.5

    def test_yaml_roundtrip(self, tmp_path):
        import yaml
        path = tmp_path / "env.yaml"
        original = EnvironmentConfiguration(wind_speed=3.0, wind_direction_deg=90.0, temperature_c=10.0)
        path.write_text(yaml.safe_dump(original.to_dict()))

        loaded = EnvironmentConfiguration.from_yaml(str(path))
        assert loaded.to_dict() == original.to_dict()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            EnvironmentConfiguration.from_yaml(str(tmp_path / "missing.yaml"))


class TestTerrain:

    def test_flat(self):
        assert FlatTerrain(2.0).height_at(123.0, -45.0) == 2.0

    def test_callable_is_adapted(self):
        env = EnvironmentConfiguration(terrain=lambda x, z: 0.1 * x)
        assert isinstance(env.terrain, CallableTerrain)
        assert env.height_at(10.0, 0.0) == pytest.approx(1.0)

    def test_default_is_flat_zero(self):
        assert EnvironmentConfiguration().height_at(5.0, 5.0) == 0.0

    def test_heightmap_bilinear(self):
        terrain = HeightmapTerrain([0.0, 10.0], [0.0, 10.0], [[0.0, 2.0], [4.0, 6.0]])
        assert terrain.height_at(0.0, 0.0) == pytest.approx(0.0)
        assert terrain.height_at(5.0, 5.0) == pytest.approx(3.0)
        assert terrain.height_at(10.0, 0.0) == pytest.approx(4.0)

    def test_heightmap_outside_is_zero(self):
        terrain = HeightmapTerrain([0.0, 10.0], [0.0, 10.0], np.full((2, 2), 7.0))
        assert terrain.height_at(50.0, 5.0) == 0.0

    def test_heightmap_shape_mismatch(self):
        with pytest.raises(ValueError):
            HeightmapTerrain([0.0, 1.0, 2.0], [0.0, 1.0], np.zeros((2, 2)))

    def test_unsupported_provider(self):
        with pytest.raises(TypeError):
            as_terrain_provider(42)


class TestPerlinNoise:

    def test_same_seed_same_field(self):
        a, b = PerlinNoise(seed=7), PerlinNoise(seed=7)
        points = [(0.3, 1.7, 2.2), (10.5, -3.25, 0.75), (-4.1, 0.0, 9.9)]
        for p in points:
            assert a.noise3d(*p) == b.noise3d(*p)

    def test_different_seeds_differ(self):
        a, b = PerlinNoise(seed=1), PerlinNoise(seed=2)
        samples_a = [a.noise3d(x * 0.37, 0.5, 0.25) for x in range(20)]
        samples_b = [b.noise3d(x * 0.37, 0.5, 0.25) for x in range(20)]
        assert samples_a != samples_b

    def test_zero_on_lattice(self):
        assert PerlinNoise(seed=0).noise3d(3.0, -2.0, 5.0) == 0.0

    def test_bounded(self):
        noise = PerlinNoise(seed=11)
        rng = np.random.default_rng(0)
        values = [noise.noise3d(*p) for p in rng.uniform(-50, 50, size=(500, 3))]
        assert max(abs(v) for v in values) <= 1.5

    def test_continuous(self):
        noise = PerlinNoise(seed=5)
        a = noise.noise3d(1.2345, 2.5, 0.5)
        b = noise.noise3d(1.2346, 2.5, 0.5)
        assert abs(a - b) < 1e-3
