"""
Window state module.

Holds the single-writer reference price slot that anchors each window.
"""
