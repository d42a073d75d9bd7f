"""
test_conn.py - Tests for the direction-aware connection view
"""

import pytest

from conftest import conn_record

from commsnet.errors.exceptions import PinRangeMismatchError
from commsnet.errors.taxonomy import ErrorCode
from commsnet.network.conn import Conn, as_connection_record, build_conn
from commsnet.network.schema.feature import Feature
from commsnet.network.schema.pin_range import PinRange, Side
from commsnet.network.schema.records import ConnectionRecord


@pytest.fixture
def features():
    return {
        f.get_urn(): f
        for f in (
            Feature('fiber_cable/K1', {'fiber_count': 12, 'directed': True}),
            Feature('fiber_cable/KU', {'fiber_count': 12, 'directed': False}),
            Feature('fiber_segment/S1', {'cable': 'fiber_cable/K1'}),
            Feature('fiber_segment/U1', {'cable': 'fiber_cable/KU'}),
            Feature('fiber_patch_panel/P1', {'n_fiber_ports': 24, 'housing': 'cabinet/C1'}),
            Feature('cabinet/C1', {}),
        )
    }


@pytest.fixture
def seg_to_panel():
    return conn_record(
        'fiber_connection/10', 'fiber_segment/S1', 'out', 1, 'fiber_patch_panel/P1', 'in', 5,
        in_high=4, out_high=8, housing='cabinet/C1',
    )


# =============================================================================
# RECORDS
# =============================================================================

class TestConnectionRecord:
    """Tests for raw record coercion."""

    def test_from_dict(self, seg_to_panel):
        rec = as_connection_record(seg_to_panel)
        assert isinstance(rec, ConnectionRecord)
        assert rec.in_pins == PinRange(Side.OUT, 1, 4)
        assert rec.out_pins == PinRange(Side.IN, 5, 8)
        assert rec.id == '10'

    def test_from_feature(self, seg_to_panel):
        """Connection features carry the record fields as properties."""
        props = {k: v for k, v in seg_to_panel.items() if k != 'urn'}
        rec = as_connection_record(Feature('fiber_connection/10', props))
        assert rec.urn == 'fiber_connection/10'
        assert rec.in_object == 'fiber_segment/S1'

    def test_pin_zero_rejected(self):
        with pytest.raises(ValueError):
            as_connection_record(conn_record('c/1', 'a/1', 'out', 0, 'b/1', 'in', 1))

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError):
            as_connection_record(conn_record('c/1', 'a/1', 'out', 5, 'b/1', 'in', 1, in_high=2))


# =============================================================================
# DIRECTION
# =============================================================================

class TestConnDirection:
    """Tests for forward and reversed views."""

    def test_forward(self, seg_to_panel, features):
        conn = Conn(seg_to_panel, True, features)
        assert conn.from_ref == 'fiber_segment/S1'
        assert conn.to_ref == 'fiber_patch_panel/P1'
        assert conn.from_pins == PinRange(Side.OUT, 1, 4)
        assert conn.to_pins == PinRange(Side.IN, 5, 8)
        assert conn.from_cable.get_urn() == 'fiber_cable/K1'
        assert conn.to_cable is None
        assert conn.housing_feature.get_urn() == 'cabinet/C1'
        assert conn.is_valid

    def test_backward(self, seg_to_panel, features):
        conn = Conn(seg_to_panel, False, features)
        assert conn.from_ref == 'fiber_patch_panel/P1'
        assert conn.to_ref == 'fiber_segment/S1'
        assert conn.to_cable.get_urn() == 'fiber_cable/K1'

    def test_reversed_twice_restores_direction(self, seg_to_panel, features):
        conn = Conn(seg_to_panel, True, features)
        again = conn.reversed().reversed()
        assert again.endpoints() == conn.endpoints()
        assert again.forward == conn.forward

    def test_reversed_swaps_endpoints(self, seg_to_panel, features):
        conn = Conn(seg_to_panel, True, features)
        rev = conn.reversed()
        assert rev.endpoints() == (conn.to_ref, conn.to_pins, conn.from_ref, conn.from_pins)
        assert rev.conn_rec is conn.conn_rec

    def test_reversed_unresolved_stays_unresolved(self, seg_to_panel):
        """Without features, the reversed view resolves nothing either."""
        conn = Conn(seg_to_panel)
        rev = conn.reversed()
        assert rev.from_feature is None
        assert rev.is_valid

    def test_build_conn(self, seg_to_panel):
        conn = build_conn(seg_to_panel, forward=False)
        assert conn.from_ref == 'fiber_patch_panel/P1'


# =============================================================================
# PIN MAPPING
# =============================================================================

class TestConnPinMapping:
    """Tests for mapping pins across a connection."""

    def test_to_pin_for(self, seg_to_panel):
        conn = Conn(seg_to_panel)
        assert conn.to_pin_for(1) == 5
        assert conn.to_pin_for(4) == 8

    def test_from_pin_for(self, seg_to_panel):
        conn = Conn(seg_to_panel)
        assert conn.from_pin_for(5) == 1
        assert conn.from_pin_for(7) == 3

    def test_mismatched_sizes_raise(self):
        rec = conn_record('c/1', 'a/1', 'out', 1, 'b/1', 'in', 1, in_high=4, out_high=2)
        conn = Conn(rec)
        with pytest.raises(PinRangeMismatchError):
            conn.to_pin_for(1)
        with pytest.raises(PinRangeMismatchError):
            conn.from_pin_for(1)


# =============================================================================
# LOGICAL SIDES
# =============================================================================

class TestConnLogicalSides:
    """Tests for logical sides of undirected cables."""

    def test_directed_cable_uses_stored_side(self, features):
        rec = conn_record('c/1', 'fiber_segment/S1', 'in', 1, 'fiber_patch_panel/P1', 'in', 1)
        conn = Conn(rec, True, features)
        assert conn.logical_from_side() is Side.IN
        assert conn.logical_to_side() is Side.IN

    def test_undirected_cable_side_from_port(self, features):
        """Undirected segment takes the side opposite the port it meets."""
        rec = conn_record('c/1', 'fiber_segment/U1', 'in', 1, 'fiber_patch_panel/P1', 'in', 1)
        conn = Conn(rec, True, features)
        assert conn.logical_from_side() is Side.OUT
        assert conn.logical_to_side() is Side.IN

    def test_undirected_cable_on_to_end(self, features):
        rec = conn_record('c/1', 'fiber_patch_panel/P1', 'out', 1, 'fiber_segment/U1', 'out', 1)
        conn = Conn(rec, True, features)
        assert conn.logical_to_side() is Side.IN
        assert conn.logical_from_side() is Side.OUT

    def test_segment_to_segment_uses_stored_sides(self, features):
        rec = conn_record('c/1', 'fiber_segment/U1', 'in', 1, 'fiber_segment/S1', 'out', 1)
        conn = Conn(rec, True, features)
        assert conn.logical_from_side() is Side.IN
        assert conn.logical_to_side() is Side.OUT


# =============================================================================
# VALIDITY
# =============================================================================

class TestConnValidity:
    """Tests for unresolved references."""

    def test_missing_in_object(self, features):
        rec = conn_record('c/1', 'fiber_segment/GONE', 'out', 1, 'fiber_patch_panel/P1', 'in', 1)
        conn = Conn(rec, True, features)
        assert not conn.is_valid
        assert conn.missing_refs == ['fiber_segment/GONE']

        problems = conn.problems()
        assert len(problems) == 1
        assert problems[0].code == ErrorCode.REF_UNRESOLVED
        assert problems[0].urn == 'c/1'

    def test_no_features_is_valid(self, seg_to_panel):
        """Nothing is checked when no features are supplied."""
        conn = Conn(seg_to_panel)
        assert conn.is_valid
        assert conn.problems() == []

    def test_features(self, seg_to_panel, features):
        conn = Conn(seg_to_panel, True, features)
        assert set(conn.features()) == {
            'fiber_segment/S1', 'fiber_cable/K1', 'fiber_patch_panel/P1', 'cabinet/C1',
        }

    def test_proposed(self, seg_to_panel):
        rec = dict(seg_to_panel, proposed=True, delta='design/7', delta_owner_title='Extension')
        conn = Conn(rec)
        assert conn.is_proposed()
        assert conn.delta == 'design/7'
        assert conn.delta_title == 'Extension'

    def test_not_proposed(self, seg_to_panel):
        conn = Conn(seg_to_panel)
        assert not conn.is_proposed()
        assert conn.delta is None
