"""Resonance search, map field and supervised match tracking."""

from .resonance import ResonanceEngine, EngineParams, SearchResult
from .mapfield import MapField
from .artmap import ARTMAP, SimpleARTMAP, ARTMAPParams, ARTMAPResult, ResonanceState, UNMAPPED
from .channels import ChannelEnsemble

__all__ = [
    "ResonanceEngine",
    "EngineParams",
    "SearchResult",
    "MapField",
    "ARTMAP",
    "SimpleARTMAP",
    "ARTMAPParams",
    "ARTMAPResult",
    "ResonanceState",
    "UNMAPPED",
    "ChannelEnsemble",
]
