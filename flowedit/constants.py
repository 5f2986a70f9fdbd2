"""
Shared constants for the flowedit engine.

These are the defaults behind EditorConfig; a flowedit.json config file
or environment variables can override them (see flowedit.config).
"""

# Undo stack depth. The oldest snapshot is evicted once this is exceeded.
DEFAULT_MAX_HISTORY_SIZE = 50

# Auto-arrange sizing in canvas units
NODE_WIDTH = 150
NODE_HEIGHT = 60
HORIZONTAL_GAP = 100
VERTICAL_GAP = 50

# Node created when a connection is dropped on the canvas with no resolver
DEFAULT_NODE_TYPE = 'workflow'
DEFAULT_NODE_LABEL = 'New Node'
