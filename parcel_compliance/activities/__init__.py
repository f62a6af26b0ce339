"""Activity functions.

- compute_geometry: Area, perimeter, centroid and quality grading of a boundary
- compose_record: Merge geometry, verdict and parcel metadata into a record
"""
