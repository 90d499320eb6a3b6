"""modelgen: compile scene meshes into one shared vertex/index buffer pair
with a manifest describing how to read it back."""

__version__ = "0.1.0"
