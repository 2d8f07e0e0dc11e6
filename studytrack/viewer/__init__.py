"""
StudyTrack Viewer - Viewer adapter contract and progress graph rendering.

This module provides:
- The adapter contract document renderers implement
- HTML rendering for heatmaps, chapter maps and time meters
"""

from .adapter import (
    ListingItem,
    LocationChange,
    LocationCallback,
    ViewerSyncAdapter,
    LocationEmitter,
    AdapterRegistry,
    iter_listing,
    listing_identifiers,
    find_listing_path,
)

from .graphs import (
    get_progress_css,
    render_heatmap,
    render_heatmap_key,
    render_overall_heatmaps,
    render_chapter_map,
    render_time_meter,
)

__all__ = [
    # Adapter contract
    "ListingItem",
    "LocationChange",
    "LocationCallback",
    "ViewerSyncAdapter",
    "LocationEmitter",
    "AdapterRegistry",
    "iter_listing",
    "listing_identifiers",
    "find_listing_path",
    # Graphs
    "get_progress_css",
    "render_heatmap",
    "render_heatmap_key",
    "render_overall_heatmaps",
    "render_chapter_map",
    "render_time_meter",
]
