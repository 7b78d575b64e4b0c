"""Polyprep - Prepare 2D polygons for constrained triangulation.

Polyprep takes arbitrary, possibly self-intersecting polygons with holes and
turns them into a tree of simple, correctly wound, non-overlapping rings plus
the constraint edges a constrained Delaunay triangulator needs.

Example:
    $ polyprep prepare shapes.json -o prepared.json
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
