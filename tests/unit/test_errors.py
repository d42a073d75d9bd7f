"""
test_errors.py - Tests for the problem taxonomy and aggregator
"""

import pytest

from commsnet.errors.aggregator import ErrorAggregator
from commsnet.errors.exceptions import InvalidPinRangeError, PinRangeMismatchError
from commsnet.errors.taxonomy import (
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    create_chain_error,
    create_housing_error,
    create_overlapping_tick_error,
    create_reference_error,
    create_unit_error,
)


@pytest.fixture
def aggregator():
    agg = ErrorAggregator()
    agg.add(create_reference_error("in_object not found", "trace_tree", urn="fiber_connection/1"))
    agg.add(create_chain_error("segment not chained", "cable_tree", urn="fiber_segment/9"))
    agg.add(create_overlapping_tick_error("ticks out of order", "tick_marks", urn="fiber_segment/2", ticks=[0, 5, 3]))
    return agg


# =============================================================================
# FACTORIES
# =============================================================================

class TestFactories:
    """Tests for problem factories."""

    def test_reference_error_is_soft(self):
        error = create_reference_error("missing", "trace_tree", urn="fiber_connection/1", missing="x/1")
        assert error.code == ErrorCode.REF_UNRESOLVED
        assert error.severity == ErrorSeverity.WARNING
        assert error.recoverable
        assert error.actual_value == "x/1"

    def test_housing_error(self):
        error = create_housing_error("no housing", "equip_tree", "fiber_splitter/1", "cabinet/9")
        assert error.code == ErrorCode.REF_HOUSING_UNRESOLVED
        assert error.category == ErrorCategory.REFERENCE

    def test_chain_error_is_info(self):
        assert create_chain_error("loose", "cable_tree").severity == ErrorSeverity.INFO

    def test_overlapping_tick_not_recoverable(self):
        error = create_overlapping_tick_error("bad", "tick_marks", ticks=[1, 0, 2], transaction_id="abc")
        assert not error.recoverable
        assert error.transaction_id == "abc"
        assert error.to_dict()["code"] == 3001

    def test_unit_error(self):
        error = create_unit_error("no such unit", "tick_marks", unit="furlongs")
        assert error.code == ErrorCode.MEA_UNIT
        assert error.actual_value == "furlongs"


# =============================================================================
# AGGREGATOR
# =============================================================================

class TestErrorAggregator:
    """Tests for ErrorAggregator."""

    def test_len_and_iter(self, aggregator):
        assert len(aggregator) == 3
        assert [e.source for e in aggregator] == ["trace_tree", "cable_tree", "tick_marks"]

    def test_get_by_source(self, aggregator):
        assert len(aggregator.get_by_source("cable_tree")) == 1
        assert aggregator.get_by_source("nowhere") == []

    def test_get_by_urn(self, aggregator):
        found = aggregator.get_by_urn("fiber_segment/2")
        assert [e.code for e in found] == [ErrorCode.MEA_OVERLAPPING_TICK]

    def test_get_by_severity_and_category(self, aggregator):
        assert len(aggregator.get_by_severity(ErrorSeverity.WARNING)) == 1
        assert len(aggregator.get_by_category(ErrorCategory.TOPOLOGY)) == 1

    def test_has_errors(self, aggregator):
        assert aggregator.has_errors()
        assert not aggregator.has_critical()

    def test_warnings_only_are_not_errors(self):
        agg = ErrorAggregator()
        agg.add_all([
            create_reference_error("a", "s"),
            create_chain_error("b", "s"),
        ])
        assert not agg.has_errors()

    def test_report(self, aggregator):
        report = aggregator.generate_report()
        assert report.total_errors == 3
        assert report.by_severity == {"info": 1, "warning": 1, "error": 1}
        assert report.urns == ["fiber_connection/1", "fiber_segment/2", "fiber_segment/9"]
        assert report.summary == "1 error(s) found"
        assert report.to_dict()["total_errors"] == 3

    def test_empty_report(self):
        assert ErrorAggregator().generate_report().summary == "No significant issues"

    def test_clear(self, aggregator):
        aggregator.clear()
        assert len(aggregator) == 0
        assert aggregator.get_by_source("trace_tree") == []


# =============================================================================
# EXCEPTIONS
# =============================================================================

class TestExceptions:
    """Tests for exception messages."""

    def test_invalid_pin_range_is_value_error(self):
        error = InvalidPinRangeError("in", 5, 2)
        assert isinstance(error, ValueError)
        assert "in:5:2" in str(error)

    def test_mismatch_names_conn(self):
        error = PinRangeMismatchError(2, 3, "fiber_connection/7")
        assert "fiber_connection/7" in str(error)
        assert (error.from_size, error.to_size) == (2, 3)
