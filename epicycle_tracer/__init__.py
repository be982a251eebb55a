"""Epicycle Tracer: image edges → ordered stroke → Fourier epicycles.

This package turns a binary edge mask into a single drawable stroke and
re-expresses that stroke as a sum of rotating circles ("Fourier drawing").

Architecture layers (strict one-way dependency):
    scripts/ → epicycle_tracer/data_pipeline/ → epicycle_tracer/utils/

Key invariants:
    - Masks are numpy arrays (H, W); foreground = value > threshold
    - Points are image-centered float64 (x = col - W/2, y = row - H/2)
    - The ordered path is a permutation of the skeleton pixels
    - Epicycles are immutable and sorted by amplitude (largest first)
    - YAML-only configs and outputs
"""

__version__ = "1.0.0"
