"""Camera module for primary ray generation.

Components:
    pinhole: Look-at pinhole camera with jittered ray generation

Ray generation uses normalized viewport coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image
"""
