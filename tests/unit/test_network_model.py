"""
test_network_model.py - Tests for configuration-driven feature queries
"""

import pytest

from conftest import conn_record

from commsnet.core.config import NetworkConfig
from commsnet.network.conn import Conn
from commsnet.network.network_model import NetworkModel
from commsnet.network.schema.equipment_function import (
    EquipmentFunction,
    FanOut,
    FAN_OUT_POLICY,
    out_pins_for,
)
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.pin_range import PinRange, Side


@pytest.fixture
def model():
    return NetworkModel()


# =============================================================================
# EQUIPMENT FUNCTIONS
# =============================================================================

class TestEquipmentFunction:
    """Tests for the fan out policy table."""

    def test_parse_unknown_is_terminal(self):
        assert EquipmentFunction.parse('widget') is EquipmentFunction.TERMINAL
        assert EquipmentFunction.parse(None) is EquipmentFunction.TERMINAL

    def test_parse_known(self):
        assert EquipmentFunction.parse('mux') is EquipmentFunction.MUX
        assert EquipmentFunction.parse(EquipmentFunction.SPLITTER) is EquipmentFunction.SPLITTER

    def test_policy_table_complete(self):
        assert set(FAN_OUT_POLICY) == set(EquipmentFunction)
        assert FAN_OUT_POLICY[EquipmentFunction.CONNECTOR] is FanOut.SAME

    def test_mux(self):
        assert out_pins_for(EquipmentFunction.MUX, 7, 1) == PinRange(Side.OUT, 1)

    def test_splitter(self):
        assert out_pins_for(EquipmentFunction.SPLITTER, 1, 8) == PinRange(Side.OUT, 1, 8)

    def test_splitter_without_out_ports(self):
        assert out_pins_for(EquipmentFunction.SPLITTER, 1, None) is None

    def test_connector(self):
        assert out_pins_for(EquipmentFunction.CONNECTOR, 5, None) == PinRange(Side.OUT, 5)

    def test_terminal_and_slack(self):
        assert out_pins_for(EquipmentFunction.TERMINAL, 1, 4) is None
        assert out_pins_for(EquipmentFunction.SLACK, 1, 4) is None


# =============================================================================
# FEATURE TYPES
# =============================================================================

class TestFeatureTypes:
    """Tests for type classification."""

    def test_is_segment(self, model):
        assert model.is_segment('fiber_segment/1')
        assert model.is_segment(Feature('copper_segment/2'))
        assert not model.is_segment('fiber_cable/1')

    def test_is_cable(self, model):
        assert model.is_cable(Feature('coax_cable/1'))
        assert not model.is_cable(None)

    def test_route_and_conduit(self, model):
        assert model.is_route(Feature('ug_route/1'))
        assert model.is_conduit(Feature('blown_fiber_tube/1'))

    def test_types_for_cable(self, model):
        cable = Feature('copper_cable/1')
        assert model.segment_type_for_cable(cable) == 'copper_segment'
        assert model.slack_type_for_cable(cable) == 'copper_slack'
        assert model.slack_type_for_segment(Feature('coax_segment/1')) == 'coax_slack'
        assert model.segment_type_for_cable(Feature('mystery_cable/1')) is None

    def test_function_override_property(self, model):
        equip = Feature('fiber_patch_panel/1', {'function': 'splitter'})
        assert model.equipment_function(equip) is EquipmentFunction.SPLITTER


# =============================================================================
# PIN COUNTS
# =============================================================================

class TestPinCounts:
    """Tests for pin counts and pin state."""

    def test_cable_pin_count(self, model):
        assert model.cable_pin_count(Feature('fiber_cable/1', {'fiber_count': 48})) == 48
        assert model.cable_pin_count(None) is None

    def test_segment_pin_count_from_cable(self, model):
        cable = Feature('fiber_cable/1', {'fiber_count': 24})
        seg = Feature('fiber_segment/1', {'cable': 'fiber_cable/1'})
        assert model.pin_count_for(seg, features={cable.get_urn(): cable}) == 24
        assert model.pin_count_for(seg) is None

    def test_equipment_side_pin_count(self, model):
        splitter = Feature('fiber_splitter/1', {'n_fiber_in_ports': 1, 'n_fiber_out_ports': 32})
        assert model.pin_count_for(splitter, 'in') == 1
        assert model.pin_count_for(splitter, 'out') == 32
        assert model.pin_count_for(splitter) is None

    def test_equipment_shared_pin_count(self, model):
        panel = Feature('fiber_patch_panel/1', {'n_fiber_ports': 12})
        assert model.pin_count_for(panel, 'out') == 12
        assert model.equip_out_pin_count(panel) == 12
        assert model.equip_fan_out_count(panel) is None

    def test_pin_state(self, model):
        panel = Feature('fiber_patch_panel/P', {'n_fiber_ports': 4})
        conns = [
            Conn(conn_record('c/1', 'fiber_patch_panel/P', 'out', 2, 'x/1', 'in', 2, in_high=3, out_high=3)),
            Conn(conn_record('c/2', 'x/2', 'out', 1, 'fiber_patch_panel/P', 'in', 1)),
        ]

        assert model.pin_state_for(panel, 'out', conns) == {1: True, 2: False, 3: False, 4: True}
        assert model.free_pins_on(panel, 'out', conns) == [1, 4]
        assert model.used_pins_on(panel, 'in', conns) == [1]
        assert model.high_pin_used_on(panel, 'out', conns) == 3
        assert model.high_pin_used_on(Feature('fiber_patch_panel/Q', {'n_fiber_ports': 2}), 'out', conns) is None

    def test_custom_network_type(self):
        config = NetworkConfig(cable_types={'drop_cable': 'fiber'})
        model = NetworkModel(config)
        assert model.cable_pin_count(Feature('drop_cable/1', {'fiber_count': 2})) == 2
        assert not model.is_cable(Feature('fiber_cable/1'))


# =============================================================================
# INTERNAL CABLES
# =============================================================================

class TestInternalCable:
    """Tests for internal cable detection."""

    def test_internal(self, model):
        cable = Feature('fiber_cable/K')
        segs = [Feature('fiber_segment/1', {'cable': 'fiber_cable/K', 'in_structure': 'building/B', 'out_structure': 'building/B'})]
        assert model.is_internal_cable(cable, segs)

    def test_external(self, model):
        cable = Feature('fiber_cable/K')
        segs = [
            Feature('fiber_segment/1', {'cable': 'fiber_cable/K', 'in_structure': 'building/B', 'out_structure': 'building/B'}),
            Feature('fiber_segment/2', {'cable': 'fiber_cable/K', 'in_structure': 'building/B', 'out_structure': 'pole/P'}),
        ]
        assert not model.is_internal_cable(cable, segs)

    def test_detached(self, model):
        assert not model.is_internal_cable(Feature('fiber_cable/K'), [])
