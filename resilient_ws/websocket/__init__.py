"""
The connection layer: the reconnecting client and its collaborators.
"""
