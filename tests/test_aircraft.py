"""
Tests for aircraft configuration and derived properties.
"""

import numpy as np
import pytest
from pathlib import Path
from rotorsim.aircraft import (
    AircraftConfiguration,
    FrameSpec,
    FrameType,
    PayloadSpec,
    MIN_MASS_KG,
    MIN_ARM_LENGTH_M,
)


CONFIG_DIR = Path(__file__).parent.parent / "configs"


class TestDerivedProperties:

    @pytest.fixture
    def props(self):
        return AircraftConfiguration().derived

    def test_default_build_mass(self, props):
        # frame 200 + motors 160 + props 80 + battery 225 + controller 30 (g)
        assert props.total_mass == pytest.approx(0.695)

    def test_arm_length_is_half_frame(self, props):
        assert props.arm_length == pytest.approx(0.225)

    def test_default_build_can_hover(self, props):
        assert props.thrust_to_weight > 2.0

    def test_inertia(self, props):
        assert props.inertia == pytest.approx(props.total_mass * props.arm_length**2)

    def test_areas(self, props):
        assert props.area_top == pytest.approx(0.45**2)
        assert props.area_side == pytest.approx(0.35 * props.area_top)

    def test_voltages(self, props):
        assert props.full_voltage == pytest.approx(25.2)
        assert props.empty_voltage == pytest.approx(21.0)

    @pytest.mark.parametrize("frame_type,count", [
        ('quad-x', 4), ('quad-plus', 4), ('hexa', 6), ('octa', 8),
    ])
    def test_motor_count(self, frame_type, count):
        aircraft = AircraftConfiguration(frame=FrameSpec(type=frame_type))
        assert aircraft.motor_count == count
        assert aircraft.frame.type == FrameType(frame_type)

    def test_payload_adds_mass(self):
        base = AircraftConfiguration().derived.total_mass
        loaded = AircraftConfiguration(payload=PayloadSpec('delivery')).derived.total_mass
        assert loaded == pytest.approx(base + 0.3)

    def test_degenerate_build_is_floored(self):
        aircraft = AircraftConfiguration(frame=FrameSpec(size_mm=0.0))
        props = aircraft.derived
        assert props.arm_length == MIN_ARM_LENGTH_M
        assert props.total_mass >= MIN_MASS_KG
        assert props.inertia > 0.0
        assert np.isfinite(props.thrust_to_weight)


class TestValidation:

    def test_unknown_material(self):
        with pytest.raises(ValueError):
            FrameSpec(material='balsa')

    def test_unknown_payload(self):
        with pytest.raises(ValueError):
            PayloadSpec('piano')

    def test_unknown_frame_type(self):
        with pytest.raises(ValueError):
            AircraftConfiguration.from_dict({'frame': {'type': 'tricopter'}})

    def test_immutable(self):
        aircraft = AircraftConfiguration()
        with pytest.raises(Exception):
            aircraft.name = "changed"


class TestSerialization:

    def test_dict_roundtrip(self):
        original = AircraftConfiguration(name="Test", frame=FrameSpec(type='hexa', size_mm=550.0))
        restored = AircraftConfiguration.from_dict(original.to_dict())
        assert restored == original
        assert restored.derived == original.derived

    def test_yaml_roundtrip(self, tmp_path):
        original = AircraftConfiguration(name="Yaml Quad")
        path = tmp_path / "quad.yaml"
        original.save_yaml(str(path))

        loaded = AircraftConfiguration.from_yaml(str(path))
        assert loaded == original

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AircraftConfiguration.from_yaml(str(tmp_path / "nope.yaml"))

    def test_shipped_config_matches_default(self):
        loaded = AircraftConfiguration.from_yaml(str(CONFIG_DIR / "quad_x_450.yaml"))
        assert loaded.derived == AircraftConfiguration(name=loaded.name).derived
