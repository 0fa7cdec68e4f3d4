"""Shapes rays can hit. Spheres are the only primitive.

Hit records carry a normal turned toward the arriving ray plus a
``front_face`` flag saying which side was struck.
"""

from .sphere import HitRecord, Sphere, hit_sphere, set_face_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "set_face_normal",
]
