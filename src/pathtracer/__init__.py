"""Monte Carlo path tracer for scenes of spheres, built on Taichi.

Subpackages:
    core: Rays, random sampling, render settings and the integrator
    geometry: Ray-sphere intersection
    materials: Diffuse, metal and glass scattering
    camera: Viewport camera and primary ray generation
    scene: Sphere storage, scene building and scene files
    output: Framebuffer encoding and image files

Taichi must be initialized with ti.init() before importing the subpackages,
since they allocate Taichi fields at import time.
"""

__version__ = "0.1.0"
