"""
commsnet - Telecommunications Network Modelling Core

Connectivity and containment modelling for physical telecom networks
(cables, segments, splices, equipment and structures).

This package provides:
- PinRange interval arithmetic and the direction-aware Conn view
- Trace tree construction over pin-to-pin connections
- Containment trees for structures and routes
- Tick-mark based measured length reconciliation
"""

__version__ = '1.0.0'
