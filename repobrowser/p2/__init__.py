"""
p2 metadata synthesis: software units, manifest parsing and the
composite / update-site document generators.
"""
