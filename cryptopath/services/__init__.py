"""
Application services composed from the graph and explorer layers.
"""
