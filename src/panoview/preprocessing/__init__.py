"""
===============================================================================
PANOVIEW - Preprocessing Module
===============================================================================
Structures built once per session before orientation traces are processed.

Submodules:
    area_set -- Sphere partition, field-of-view visibility, usage counters
===============================================================================
"""
