"""
test_network_service.py - End to end tests of NetworkService over a feature index
"""

import pytest

from conftest import conn_record, seg_chain

from commsnet.errors.taxonomy import ErrorCode
from commsnet.network.conn import build_conn as conn_build_conn
from commsnet.network.schema.feature import Feature, FeatureIndex
from commsnet.network.schema.pin_range import PinRange, Side
from commsnet.network.service import NetworkService, build_conn


@pytest.fixture
def splice_service(splice_network):
    features, conns = splice_network
    return NetworkService(FeatureIndex(features.values())), features, conns


# =============================================================================
# CONNECTIONS
# =============================================================================

class TestServiceConns:
    """Tests for building connections from the source."""

    def test_pin_range_of(self):
        assert NetworkService.pin_range_of('out', 3) == PinRange(Side.OUT, 3, 3)

    def test_build_conn_resolves_from_source(self, splice_service):
        service, features, conns = splice_service

        conn = service.build_conn(conns[0])

        assert conn.is_valid
        assert conn.from_feature.get_urn() == 'fiber_segment/S1'
        assert conn.from_cable.get_urn() == 'fiber_cable/K1'
        assert conn.to_cable.get_urn() == 'fiber_cable/K2'
        assert conn.housing_feature.get_urn() == 'splice_closure/SC1'
        assert len(service.errors) == 0

    def test_features_for_includes_outer_housing(self, splice_service):
        service, features, conns = splice_service
        found = service.features_for(conns[:1])
        assert 'manhole/M1' in found
        assert 'fiber_splitter/SP1' not in found

    def test_unresolved_conn_reported(self, splice_service):
        service, features, conns = splice_service
        bad = conn_record('fiber_connection/9', 'fiber_segment/GONE', 'out', 1, 'fiber_segment/S2', 'in', 1)

        conn = service.build_conn(bad)

        assert not conn.is_valid
        problems = service.errors.get_by_urn('fiber_connection/9')
        assert [p.code for p in problems] == [ErrorCode.REF_UNRESOLVED]
        assert problems[0].actual_value == 'fiber_segment/GONE'

    def test_module_build_conn_without_features(self, splice_network):
        features, conns = splice_network
        conn = build_conn(conns[1], forward=False)
        assert conn.from_ref == 'fiber_splitter/SP1'
        assert conn.from_feature is None

    def test_module_build_conn_is_conn_builder(self):
        assert build_conn is conn_build_conn


# =============================================================================
# TRACE TREES
# =============================================================================

class TestServiceTrace:
    """Tests for trace trees built from the source."""

    def test_features_fetched(self, splice_service):
        service, features, conns = splice_service

        result = service.build_trace_trees(conns)

        assert result.is_valid
        assert len(result.trees) == 2
        assert result.trees[0].housing.get_urn() == 'splice_closure/SC1'

    def test_problems_collected(self, splice_service):
        service, features, conns = splice_service
        bad = conn_record('fiber_connection/9', 'fiber_segment/S2', 'out', 2, 'ont/GONE', 'in', 1)

        result = service.build_trace_trees([*conns, bad])

        assert not result.is_valid
        assert len(service.errors.get_by_urn('fiber_connection/9')) == 1


# =============================================================================
# TICK MARKS
# =============================================================================

class TestServiceTickMarks:
    """Tests for tick mark reconciliation through the service."""

    def test_reconcile(self, cable, abc_chain, abc_index):
        service = NetworkService(abc_index)
        a, b, c = abc_chain
        c.properties['out_tick'] = 30

        result = service.reconcile_tick_mark(a, 0, 'in_tick', 1, 'm')

        assert result.success
        assert [seg.properties['length'] for seg in abc_chain] == [pytest.approx(10.0)] * 3
        assert len(service.errors) == 0

    def test_overlap_reported(self, abc_chain, abc_index):
        service = NetworkService(abc_index)
        a, b, c = abc_chain
        a.properties.update({'in_tick': 0, 'out_tick': 10})
        b.properties['in_tick'] = 10
        c.properties['out_tick'] = 30

        result = service.reconcile_tick_mark(c, 5, 'in_tick', 1, 'm')

        assert not result.success
        assert c.properties.get('in_tick') is None
        assert [e.code for e in service.errors] == [ErrorCode.MEA_OVERLAPPING_TICK]

    def test_reset_errors(self, abc_chain, abc_index):
        """Problems from earlier calls can be dropped between requests."""
        service = NetworkService(abc_index)
        service.reconcile_tick_mark(abc_chain[0], 0, 'in_tick', 1, 'furlongs')
        assert len(service.errors) == 1

        service.reset_errors()

        assert len(service.errors) == 0
        assert service.errors.generate_report().total_errors == 0

    def test_shared_transaction_manager(self, abc_chain, abc_index):
        service = NetworkService(abc_index)
        abc_chain[2].properties['out_tick'] = 30

        result = service.reconcile_tick_mark(abc_chain[0], 0, 'in_tick', 1, 'm')

        assert service.tx_manager.get_history()[-1].transaction_id == result.transaction_id


# =============================================================================
# CONTAINMENT
# =============================================================================

class TestServiceContainment:
    """Tests for containment trees."""

    def test_struct_tree(self, splice_service):
        service, features, conns = splice_service

        result = service.build_containment_tree(
            features['manhole/M1'],
            segments=[features['fiber_segment/S1'], features['fiber_segment/S2']],
            equipment=[features['splice_closure/SC1']],
            cables=[features['fiber_cable/K1'], features['fiber_cable/K2']],
            conns=conns[:1],
        )

        assert result.is_valid
        tree = result.tree
        assert [node.feature.get_urn() for node in tree.children] == ['fiber_cable/K1', 'fiber_cable/K2']

        s1 = tree.find('fiber_segment/S1')
        assert (s1.side, s1.cable_side, s1.n_connected) == (Side.IN, Side.IN, 2)
        s2 = tree.find('fiber_segment/S2')
        assert (s2.side, s2.n_connected) == (Side.OUT, 2)
        assert s2.pins == PinRange(Side.IN, 1, 2)

    def test_route_tree(self):
        route = Feature('ug_route/R1')
        conduit = Feature('conduit/D1', {'housing': 'ug_route/R1'})
        k = Feature('fiber_cable/K', {'fiber_count': 24})
        s1 = Feature('fiber_segment/1', {'cable': 'fiber_cable/K', 'housing': 'conduit/D1'})
        s2 = Feature('fiber_segment/2', {'cable': 'fiber_cable/K', 'housing': 'ug_route/R1'})
        service = NetworkService(FeatureIndex([route, conduit, k, s1, s2]))

        result = service.build_containment_tree(route, [s1, s2], conduits=[conduit], cables=[k])

        assert result.is_valid
        assert [n.feature.get_urn() for n in result.tree.children] == ['conduit/D1', 'fiber_segment/2']
        assert result.tree.find('fiber_segment/1').pins == PinRange(Side.IN, 1, 24)

    def test_route_tree_problems_collected(self):
        route = Feature('ug_route/R1')
        s1 = Feature('fiber_segment/1', {'housing': 'conduit/GONE'})
        service = NetworkService(FeatureIndex([route, s1]))

        result = service.build_containment_tree(route, [s1])

        assert not result.is_valid
        assert [e.code for e in service.errors] == [ErrorCode.REF_HOUSING_UNRESOLVED]

    def test_struct_content(self, splice_service):
        service, features, conns = splice_service
        content = service.struct_content(
            features['manhole/M1'],
            {'cable_segs': [features['fiber_segment/S1'], features['fiber_segment/S2']]},
        )
        assert [s.get_urn() for s in content.segs_by_side()['in']] == ['fiber_segment/S1']


# =============================================================================
# PIN STATE
# =============================================================================

class TestServicePins:
    """Tests for pin queries resolving cables from the source."""

    def test_segment_pin_count(self, splice_service):
        service, features, conns = splice_service
        assert service.pin_count_for(features['fiber_segment/S1']) == 2

    def test_pin_state(self, splice_service):
        service, features, conns = splice_service
        built = [service.build_conn(rec) for rec in conns]

        assert service.pin_state_for(features['fiber_segment/S2'], 'in', built) == {1: False, 2: False}
        assert service.pin_state_for(features['fiber_segment/S2'], 'out', built) == {1: False, 2: True}
        assert service.high_pin_used_on(features['fiber_splitter/SP1'], 'in', built) == 1

    def test_internal_cable_from_source(self):
        cable = Feature('fiber_cable/K')
        segs = seg_chain(['1', '2'], 'fiber_cable/K', in_structure='building/B', out_structure='building/B')
        service = NetworkService(FeatureIndex([cable, *segs]))

        assert service.is_internal_cable(cable)

    def test_unknown_cable_type_not_internal(self):
        service = NetworkService(FeatureIndex())
        assert not service.is_internal_cable(Feature('rope/1'))
