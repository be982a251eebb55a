"""Mask → skeleton → ordered path → epicycles.

Modules:
    - edge_mask: Image decode, Canny edges, dilation (input collaborator)
    - skeleton: Zhang–Suen thinning to a 1-px skeleton
    - path_order: Greedy nearest-neighbor ordering strategies
    - spectral: DFT → ranked epicycles, reconstruction
    - pipeline: Stage runner, EpicycleTrace result, YAML save/load
    - preview: Static render of a trace

Workflow:
    1. Image → edge mask (edge_mask.edge_mask_from_image)
    2. Mask → skeleton → centered points (skeleton.SkeletonThinner)
    3. Points → ordered path (path_order.make_orderer)
    4. Path → epicycles (spectral.SpectralDecomposer)
    5. Save epicycles.v1 YAML + preview PNG

All outputs are deterministic for a given mask and config.
"""
