"""Parcel Boundary & Protected-Area Verification Engine.

Turns a field-captured sequence of GPS boundary points into parcel
geometry (area, perimeter, centroid) and a confidence-scored verdict on
whether the parcel overlaps a protected or reserved area, reconciled
across several independent geospatial authorities.
"""

__version__ = "0.1.0"
