"""
commsnet Test Configuration and Fixtures

Small in-memory fiber networks shared by the unit and integration tests.
"""

import pytest
from typing import Any, Dict, List

from commsnet.network.schema.feature import Feature, FeatureIndex


def conn_record(
    urn: str,
    in_object: str,
    in_side: str,
    in_low: int,
    out_object: str,
    out_side: str,
    out_low: int,
    in_high: int = None,
    out_high: int = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Raw connection record as returned by the datasource."""
    return {
        'urn': urn,
        'in_object': in_object,
        'in_side': in_side,
        'in_low': in_low,
        'in_high': in_high or in_low,
        'out_object': out_object,
        'out_side': out_side,
        'out_low': out_low,
        'out_high': out_high or out_low,
        **extra,
    }


def seg_chain(
    ids: List[str],
    cable_urn: str = 'fiber_cable/K1',
    length: float = 100.0,
    **props: Any,
) -> List[Feature]:
    """Cable segments linked in order via in_segment/out_segment."""
    segs = []
    for i, seg_id in enumerate(ids):
        properties = {'cable': cable_urn, **props}
        if i > 0:
            properties['in_segment'] = ids[i - 1]
        if i < len(ids) - 1:
            properties['out_segment'] = ids[i + 1]
        segs.append(Feature(f'fiber_segment/{seg_id}', properties, geom_length=length))
    return segs


@pytest.fixture
def cable():
    """12 fiber directed cable."""
    return Feature('fiber_cable/K1', {'fiber_count': 12, 'directed': True})


@pytest.fixture
def abc_chain(cable):
    """Three equal length segments A -> B -> C of one cable."""
    return seg_chain(['A', 'B', 'C'], cable.get_urn())


@pytest.fixture
def abc_index(cable, abc_chain):
    """FeatureIndex over the A -> B -> C chain."""
    return FeatureIndex([cable, *abc_chain])


@pytest.fixture
def splice_network():
    """
    Two cables spliced 1:1 in a closure, feeding a 1x4 splitter.

    cable K1 (seg S1) -> closure splice -> cable K2 (seg S2) -> splitter -> 4 drops
    """
    k1 = Feature('fiber_cable/K1', {'fiber_count': 2, 'directed': True})
    k2 = Feature('fiber_cable/K2', {'fiber_count': 2, 'directed': True})
    manhole = Feature('manhole/M1', {})
    closure = Feature('splice_closure/SC1', {'housing': 'manhole/M1'})
    cabinet = Feature('cabinet/CB1', {})
    splitter = Feature('fiber_splitter/SP1', {
        'housing': 'cabinet/CB1',
        'n_fiber_in_ports': 1,
        'n_fiber_out_ports': 4,
    })
    s1 = Feature('fiber_segment/S1', {
        'cable': 'fiber_cable/K1',
        'directed': True,
        'out_structure': 'manhole/M1',
    }, geom_length=50.0)
    s2 = Feature('fiber_segment/S2', {
        'cable': 'fiber_cable/K2',
        'directed': True,
        'in_structure': 'manhole/M1',
        'out_structure': 'cabinet/CB1',
    }, geom_length=80.0)

    features = [k1, k2, manhole, closure, cabinet, splitter, s1, s2]
    conns = [
        conn_record(
            'fiber_connection/1', 'fiber_segment/S1', 'out', 1, 'fiber_segment/S2', 'in', 1,
            in_high=2, out_high=2, housing='splice_closure/SC1',
        ),
        conn_record(
            'fiber_connection/2', 'fiber_segment/S2', 'out', 1, 'fiber_splitter/SP1', 'in', 1,
            housing='cabinet/CB1',
        ),
    ]

    return {f.get_urn(): f for f in features}, conns
