"""
commsnet/network/containment/route_content.py - Route Content

Containment tree for the content of a route: route -> conduit -> segment,
built from each feature's direct housing reference.
"""

from collections import defaultdict
from typing import Any, Dict, List, Mapping, Union
import logging

from commsnet.core.config import NetworkConfig
from commsnet.errors.taxonomy import NetworkError, create_housing_error
from commsnet.network.network_model import NetworkModel
from commsnet.network.schema.feature import Feature

from .cable_tree import ContainmentNode
from .content import ContainmentContent

__all__ = ['RouteContent']

logger = logging.getLogger(__name__)

SOURCE = "route_content"


class RouteContent:
    """Containment tree for the content of a route."""

    def __init__(
        self,
        route: Feature,
        content: Union[ContainmentContent, Mapping[str, Any]],
        config: NetworkConfig = None,
    ):
        self.route = route
        self.model = NetworkModel(config)

        content = ContainmentContent.coerce(content)

        self.features: Dict[str, Feature] = {route.get_urn(): route}
        for ftr in content.all_features():
            self.features[ftr.get_urn()] = ftr

        self.conduits = content.conduits
        self.segs = content.cable_segs

        self.seg_circuit_infos = defaultdict(list)
        for info in content.seg_circuits:
            if info.seg_urn:
                self.seg_circuit_infos[info.seg_urn].append(info)

        self.problems: List[NetworkError] = []

    @property
    def is_valid(self) -> bool:
        return not self.problems

    def cable_tree(self) -> ContainmentNode:
        """Tree of the conduits and cable segments in self's route."""
        self.problems = []

        urn = self.route.get_urn()
        nodes = {urn: ContainmentNode.feature_node(self.route)}

        for conduit in self.conduits:
            node = ContainmentNode.feature_node(conduit)
            node.conduit_run = self.features.get(conduit.ref_urn('conduit_run') or '')
            nodes[conduit.get_urn()] = node

        for seg in self.segs:
            seg_urn = seg.get_urn()
            cable = self.features.get(seg.ref_urn('cable') or '')
            nodes[seg_urn] = ContainmentNode.seg_node(
                seg,
                cable,
                self.model.cable_pin_count(cable),
                circuits=self.seg_circuit_infos.get(seg_urn, []),
            )

        # Build tree
        for feature in [*self.conduits, *self.segs]:
            housing_urn = feature.ref_urn('housing')
            parent = nodes.get(housing_urn)

            if parent is not None:
                parent.children.append(nodes[feature.get_urn()])
            else:
                logger.warning(f"{feature.get_urn()}: cannot find housing {housing_urn}")
                self.problems.append(create_housing_error(
                    f"Cannot find housing {housing_urn} of {feature.get_urn()}",
                    SOURCE, urn=feature.get_urn(), housing_urn=housing_urn,
                ))

        return nodes[urn]
