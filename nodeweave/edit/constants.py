"""
Shared constants for the interaction layer.

Pixel distances assume the chart maps canvas units 1:1 to pixels (see
chart_builder.build_echart_options).
"""

# Releasing a dragged node closer than this to its nearest neighbour connects them
CONNECTION_RADIUS = 110

# Radius in pixels for a click to land on a node (matches the drawn circle)
NODE_CLICK_RADIUS = 40

# Distance in pixels from an edge segment that still counts as a click on it
EDGE_HOVER_TOLERANCE = 8

# The only global key binding
DELETE_KEY = 'Delete'

# Template for labels of nodes created by double-clicking the canvas
NEW_NODE_LABEL = 'Node {n}'
