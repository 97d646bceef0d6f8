"""
Runtime configuration for signalflow.

Values are read from the environment once, at import time. Tests patch the
module attributes directly.
"""

import os

# Name given to the implicit layer every fresh Signal starts in
ROOT_LAYER = os.getenv("SIGNALFLOW_ROOT_LAYER", "root")

# Upper bound on the length of a rendered value in trace() output
MAX_REPR_LENGTH = int(os.getenv("SIGNALFLOW_MAX_REPR", "120"))

# Containers nested deeper than this are not walked by export or detach
MAX_DEPTH = int(os.getenv("SIGNALFLOW_MAX_DEPTH", "100"))

CIRCULAR_MARKER = "[Circular]"
MAX_DEPTH_MARKER = "[MaxDepth]"
