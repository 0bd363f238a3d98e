"""Dashboard grid layout normalization.

Stored dashboards may carry the legacy ``{"type": "row"|"column"|"grid"}``
layout; everything is read back as ``{"charts_per_row": n}``.
"""

# flake8: noqa: E501

import math
from typing import Any, Dict, Optional, Tuple

DEFAULT_CHARTS_PER_ROW = 2


def auto_grid_dimensions(chart_count: int) -> Tuple[int, int]:
    """
    Pick a near-square grid for ``chart_count`` charts.

    Returns:
        (rows, cols)
    """
    count = max(1, chart_count)
    root = math.isqrt(count)

    if root * root == count:
        return root, root

    if count % 2 == 0:
        cols = root + 1
        return math.ceil(count / cols), cols

    return root + 1, root + 1


def normalize_layout(layout: Optional[Dict[str, Any]], chart_count: int) -> Dict[str, int]:
    """Convert any stored or submitted layout into ``{"charts_per_row": n}``."""
    if layout and layout.get("charts_per_row") is not None:
        try:
            return {"charts_per_row": max(1, int(layout["charts_per_row"]))}
        except (TypeError, ValueError):
            return {"charts_per_row": DEFAULT_CHARTS_PER_ROW}

    layout_type = (layout or {}).get("type")
    if layout_type == "column":
        return {"charts_per_row": 1}
    if layout_type == "row":
        return {"charts_per_row": max(1, chart_count or 1)}
    if layout_type == "grid":
        _, cols = auto_grid_dimensions(chart_count or 1)
        return {"charts_per_row": max(1, cols)}

    return {"charts_per_row": DEFAULT_CHARTS_PER_ROW}
