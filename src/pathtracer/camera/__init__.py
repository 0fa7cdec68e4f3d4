"""Camera: turns image coordinates into primary rays.

``s`` runs 0 to 1 from the left edge to the right edge and ``t`` runs 0 to 1
from the bottom edge to the top edge.
"""

from .thin_lens import (
    ThinLensCamera,
    generate_ray,
    get_camera_info,
    get_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "get_ray",
    "generate_ray",
    "get_camera_info",
]
