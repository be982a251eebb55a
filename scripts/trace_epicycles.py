#!/usr/bin/env python3
"""Trace image edges into Fourier epicycles.

Thin wrapper around epicycle_tracer.cli.main (same flags as the
`epicycle-tracer` console script):

    python scripts/trace_epicycles.py --input shape_0.png --output outputs/shape_0/
"""

import sys

from epicycle_tracer.cli import main

if __name__ == "__main__":
    sys.exit(main())
