"""
STARSIGHT Shared Type Definitions

Type aliases shared by the analysis services. They document units at the
seams between pipeline stages.

Usage:
    from starsight.types import ADU, Pixels, PixelBuffer
"""

from typing import Sequence, TypeAlias, Union

import numpy as np


# =============================================================================
# Basic Type Aliases
# =============================================================================

ADU: TypeAlias = float          # Analog-to-digital units (raw sensor counts)
Pixels: TypeAlias = float       # Distances measured in pixels
Percent: TypeAlias = float      # 0-100

# Raw frame data as handed over by a capture collaborator: a 2-D array,
# or a flat row-major buffer accompanied by width/height.
PixelBuffer: TypeAlias = Union[np.ndarray, Sequence[int], Sequence[float], bytes]

# (x, y, width, height) rectangle in pixel coordinates
Region: TypeAlias = tuple[int, int, int, int]
