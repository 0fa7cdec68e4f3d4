"""A Taichi-based CPU path tracer for sphere scenes.

This package renders scenes of spheres with Lambertian, metal and dielectric
materials through a thin-lens camera and writes plain-text PPM images:
- Iterative path tracing with fixed-depth termination
- Sky-gradient background as the only light
- Defocus blur from a finite lens aperture
- Deterministic per-pixel random streams for reproducible, parallel renders

Subpackages:
    core: Vector utilities, RNG, the integrator and the scanline renderer
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering models
    scene: Sphere storage, scene management and preset scenes
    camera: Thin-lens camera with ray generation
    output: PPM pixel sinks

Taichi must be initialised (``ti.init(arch=ti.cpu, default_fp=ti.f64)``)
before any submodule is imported.
"""

__version__ = "0.1.0"
