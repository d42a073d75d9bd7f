"""
commsnet/network/length/tick_marks.py - Tick Mark Length Reconciliation

Sets a tick mark on one end of a cable segment and rescales the
measured length of every segment between it and the next known tick,
so that their lengths sum to the calibrated distance while keeping
their relative digitised proportions.

All writes of one call are grouped in a single transaction: a failed
call leaves every segment as it was.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import logging

from commsnet.contracts.protocols import FeatureSource
from commsnet.core.config import NetworkConfig, DEFAULT_CONFIG
from commsnet.core.unit_converter import UnitConverter, UnitConversionError
from commsnet.errors.exceptions import OverlappingTickMarkError, ZeroLengthChainError
from commsnet.errors.taxonomy import (
    NetworkError,
    create_overlapping_tick_error,
    create_zero_length_error,
    create_unit_error,
)
from commsnet.network.schema.feature import Feature
from commsnet.transactions.manager import TransactionManager

__all__ = ['TickMarkReconciler', 'TickMarkResult', 'TICK_FIELDS']

logger = logging.getLogger(__name__)

TICK_FIELDS = ('in_tick', 'out_tick')

SOURCE = "tick_marks"


@dataclass
class TickMarkResult:
    """Result of one tick mark update."""
    success: bool
    updated_segments: List[Feature] = field(default_factory=list)
    errors: List[NetworkError] = field(default_factory=list)
    transaction_id: Optional[str] = None

    @property
    def error(self) -> Optional[NetworkError]:
        """First error (if any)."""
        return self.errors[0] if self.errors else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'updated_segments': [seg.get_urn() for seg in self.updated_segments],
            'errors': [err.to_dict() for err in self.errors],
            'transaction_id': self.transaction_id,
        }


# Position of a tick along a chain: (segment, tick field)
TickPoint = Tuple[Feature, str]


class TickMarkReconciler:
    """
    Engine for setting segment tick marks and measured lengths.

    Usage:
        reconciler = TickMarkReconciler(index)
        result = reconciler.set_tick_mark(seg, 120, 'in_tick', 1.0, 'm')

        if not result.success:
            report(result.errors)
    """

    def __init__(
        self,
        source: FeatureSource,
        config: NetworkConfig = None,
        tx_manager: TransactionManager = None,
    ):
        self.source = source
        self.config = config or DEFAULT_CONFIG
        self.tx_manager = tx_manager or TransactionManager()

    # =========================================================================
    # Public API
    # =========================================================================

    def set_tick_mark(
        self,
        seg: Feature,
        tick_mark: Optional[int],
        field_name: str,
        spacing: float,
        unit: str,
    ) -> TickMarkResult:
        """
        Set tick mark of 'seg' and of the adjoining segment to 'tick_mark'.

        Traces up and downstream to update the measured length of the
        segments between the new tick and the nearest known ticks.

        Args:
            seg: Cable segment
            tick_mark: New tick mark, or None to clear it
            field_name: 'in_tick' or 'out_tick'
            spacing: Distance between tick marks (in the configured length unit)
            unit: Unit the tick marks are counted in (e.g. 'm' or 'ft')

        Returns:
            TickMarkResult with the segments written (empty on failure)
        """
        if field_name not in TICK_FIELDS:
            raise ValueError(f"Bad tick field: {field_name}")

        tx = self.tx_manager.begin(
            source=SOURCE,
            description=f"{field_name}={tick_mark} on {seg.get_urn()}",
        )
        tx_id = tx.transaction_id

        try:
            if tick_mark is None:
                self._set_tick_mark_null(seg, field_name)
            else:
                self._set_tick_mark(seg, tick_mark, field_name, spacing, unit)

        except OverlappingTickMarkError as e:
            self.tx_manager.rollback(tx_id)
            logger.warning(f"{seg.get_urn()}: {e}")
            error = create_overlapping_tick_error(
                str(e), SOURCE, urn=seg.get_urn(), ticks=e.ticks, transaction_id=tx_id,
            )
            return TickMarkResult(success=False, errors=[error], transaction_id=tx_id)

        except ZeroLengthChainError as e:
            self.tx_manager.rollback(tx_id)
            logger.warning(f"{seg.get_urn()}: {e}")
            error = create_zero_length_error(
                str(e), SOURCE, urn=seg.get_urn(), transaction_id=tx_id,
            )
            return TickMarkResult(success=False, errors=[error], transaction_id=tx_id)

        except UnitConversionError as e:
            self.tx_manager.rollback(tx_id)
            logger.warning(f"{seg.get_urn()}: {e}")
            error = create_unit_error(str(e), SOURCE, unit=unit)
            return TickMarkResult(success=False, errors=[error], transaction_id=tx_id)

        except Exception:
            self.tx_manager.rollback(tx_id)
            raise

        self.tx_manager.commit(tx_id)

        return TickMarkResult(
            success=True,
            updated_segments=tx.updated_features(),
            transaction_id=tx_id,
        )

    def find_downstream_segs_to_tick(self, seg: Optional[Feature]) -> Tuple[List[Feature], Optional[int]]:
        """
        Segments downstream from 'seg' up to the next tick.

        Returns:
            (segs, tick): tick is the tick mark at the end of the last
            segment, or ([], None) when the chain ends without one
        """
        segs, point = self._find_tick(seg, 'out')
        if point is None:
            return [], None
        return segs, self._tick_at(point)

    def find_upstream_segs_to_tick(self, seg: Optional[Feature]) -> Tuple[List[Feature], Optional[int]]:
        """
        Segments upstream from 'seg' up to the previous tick.

        Returns:
            (segs, tick): tick is the tick mark at the start of the first
            segment, or ([], None) when the chain ends without one
        """
        segs, point = self._find_tick(seg, 'in')
        if point is None:
            return [], None
        return segs, self._tick_at(point)

    def compute_tick_dist(self, seg_tick: int, tick: int, spacing: float, unit: str) -> float:
        """
        Distance between 'seg_tick' and 'tick', in the configured length unit.

        Raises:
            UnitConversionError: If 'unit' is not supported
        """
        length_unit = self.config.length_unit
        tick_spacing = UnitConverter.normalize(spacing, length_unit, unit)
        tick_dist = abs(seg_tick - tick) * tick_spacing
        return UnitConverter.normalize(tick_dist, unit, length_unit)

    def adjust_measured_lengths(self, segs: List[Feature], tick_dist: float) -> None:
        """
        Scale measured lengths of 'segs' so that they sum to 'tick_dist'.

        Each segment keeps its share of the chain's geometric length.

        Raises:
            ZeroLengthChainError: If the chain has no geometric length
        """
        calc_dist = sum(seg.geometry_length() for seg in segs)
        if calc_dist <= 0:
            raise ZeroLengthChainError([seg.get_urn() for seg in segs])

        factor = tick_dist / calc_dist
        for seg in segs:
            self.tx_manager.set_property(seg, 'length', factor * seg.geometry_length(), SOURCE)

    # =========================================================================
    # Setting ticks
    # =========================================================================

    def _set_tick_mark(self, seg: Feature, tick_mark: int, field_name: str, spacing: float, unit: str) -> None:
        # Bounding ticks: downstream of the new tick (in) and upstream of it (out)
        in_point = None
        out_point = None

        if field_name == 'in_tick':
            in_point = self._set_in_tick_mark(seg, tick_mark, spacing, unit)
            prev_seg = self.source.follow_reference(seg, 'in_segment')
            if prev_seg is not None:
                out_point = self._set_out_tick_mark(prev_seg, tick_mark, spacing, unit)
        else:
            out_point = self._set_out_tick_mark(seg, tick_mark, spacing, unit)
            next_seg = self.source.follow_reference(seg, 'out_segment')
            if next_seg is not None:
                in_point = self._set_in_tick_mark(next_seg, tick_mark, spacing, unit)

        self._assert_end_seg_valid(seg, tick_mark, in_point, out_point)

        in_tick = self._tick_at(in_point) if in_point else None
        out_tick = self._tick_at(out_point) if out_point else None
        self._assert_tick_mark_valid(tick_mark, in_tick, out_tick, seg)

    def _set_in_tick_mark(self, seg: Feature, tick_mark: int, spacing: float, unit: str) -> Optional[TickPoint]:
        """Set in tick of 'seg' and adjust downstream lengths. Returns where the downstream tick is."""
        self.tx_manager.set_property(seg, 'in_tick', tick_mark, SOURCE)

        segs, point = self._find_tick(seg, 'out')

        # No next tick - cannot set measured length
        if point is None:
            return None

        tick_dist = self.compute_tick_dist(tick_mark, self._tick_at(point), spacing, unit)
        self.adjust_measured_lengths(segs, tick_dist)

        return point

    def _set_out_tick_mark(self, seg: Feature, tick_mark: int, spacing: float, unit: str) -> Optional[TickPoint]:
        """Set out tick of 'seg' and adjust upstream lengths. Returns where the upstream tick is."""
        self.tx_manager.set_property(seg, 'out_tick', tick_mark, SOURCE)

        segs, point = self._find_tick(seg, 'in')

        if point is None:
            return None

        tick_dist = self.compute_tick_dist(tick_mark, self._tick_at(point), spacing, unit)
        self.adjust_measured_lengths(segs, tick_dist)

        return point

    def _set_tick_mark_null(self, seg: Feature, field_name: str) -> None:
        """Clear 'field_name' of 'seg' and the matching tick of the adjoining segment."""
        self.tx_manager.set_property(seg, field_name, None, SOURCE)

        if field_name == 'in_tick':
            prev_seg = self.source.follow_reference(seg, 'in_segment')
            if prev_seg is not None:
                self.tx_manager.set_property(prev_seg, 'out_tick', None, SOURCE)
        else:
            next_seg = self.source.follow_reference(seg, 'out_segment')
            if next_seg is not None:
                self.tx_manager.set_property(next_seg, 'in_tick', None, SOURCE)

    # =========================================================================
    # Chain walking
    # =========================================================================

    def _find_tick(self, seg: Optional[Feature], direction: str) -> Tuple[List[Feature], Optional[TickPoint]]:
        """
        Walk from 'seg' in 'direction' ('out' = downstream) to the next tick.

        The far end of each segment is checked before the near end of
        the next one, so a tick on the near end of 'seg' is never found.
        """
        far_field = f'{direction}_tick'
        near_field = 'in_tick' if direction == 'out' else 'out_tick'
        link_field = f'{direction}_segment'

        segs = []
        visited = set()
        while seg is not None and seg.get_urn() not in visited:
            visited.add(seg.get_urn())
            segs.append(seg)

            if self._seg_has_tick(seg, far_field):
                return segs, (seg, far_field)

            seg = self.source.follow_reference(seg, link_field)
            if self._seg_has_tick(seg, near_field):
                return segs, (seg, near_field)

        return segs, None

    def _tick_beyond(self, point: TickPoint, direction: str) -> Optional[int]:
        """The next tick further out in 'direction' than the tick at 'point'."""
        seg, field_name = point
        if field_name == f'{direction}_tick':
            seg = self.source.follow_reference(seg, f'{direction}_segment')
        if seg is None:
            return None

        _, further = self._find_tick(seg, direction)
        return self._tick_at(further) if further else None

    @staticmethod
    def _tick_at(point: TickPoint) -> int:
        seg, field_name = point
        return seg.properties[field_name]

    @staticmethod
    def _seg_has_tick(seg: Optional[Feature], field_name: str) -> bool:
        """True if 'seg' has tick 'field_name' set (0 is a tick)."""
        if seg is None:
            return False
        return seg.properties.get(field_name) is not None

    # =========================================================================
    # Validation
    # =========================================================================

    def _assert_end_seg_valid(
        self,
        seg: Feature,
        tick_mark: int,
        in_point: Optional[TickPoint],
        out_point: Optional[TickPoint],
    ) -> None:
        """
        Check ordering where only one bounding tick exists (end of a chain).

        Finds the next tick beyond the bounding one and checks that the
        new tick, the bound and that tick are in order.
        """
        if (in_point is None) == (out_point is None):
            return

        if in_point is not None:
            further = self._tick_beyond(in_point, 'out')
            self._assert_tick_mark_valid(self._tick_at(in_point), tick_mark, further, seg)
        else:
            further = self._tick_beyond(out_point, 'in')
            self._assert_tick_mark_valid(self._tick_at(out_point), further, tick_mark, seg)

    @staticmethod
    def _assert_tick_mark_valid(
        tick_mark: Optional[int],
        in_tick: Optional[int],
        out_tick: Optional[int],
        seg: Feature = None,
    ) -> None:
        """
        Raise if 'tick_mark' overlaps its neighbouring ticks.

        The ticks [in_tick, tick_mark, out_tick] must be strictly
        increasing or strictly decreasing.
        """
        if tick_mark is None or in_tick is None or out_tick is None:
            return

        ticks = [in_tick, tick_mark, out_tick]
        increasing = in_tick < tick_mark < out_tick
        decreasing = in_tick > tick_mark > out_tick
        if not (increasing or decreasing):
            raise OverlappingTickMarkError(ticks, seg.get_urn() if seg is not None else None)
