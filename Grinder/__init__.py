"""
StripeGrinder package.

Cuts labeled training windows for stripe detection out of Hi-C contact
matrices:
- Configuration (config/)
- Core window geometry, extraction and labeling (core/)
- Batched output writer (batch_writer.py)
- Per-task diagonal band scanner (diagonal_scanner.py)
- Parallel task orchestrator (task_orchestrator.py)
- Contact stores: in-memory (contact_store.py), cooler-backed (cooler_store.py)
- 2D feature index (feature_index.py)

Typical run::

    from Grinder.config import ScanConfig
    from Grinder.cooler_store import CoolerContactDataset
    from Grinder.feature_index import Feature2DIndex
    from Grinder.task_orchestrator import GrindOrchestrator

    dataset = CoolerContactDataset("sample.mcool")
    index = Feature2DIndex.from_dataframe(stripes_df, dataset.get_chromosomes())
    config = ScanConfig.from_dict({"resolutions": (10_000,), "normalization": "weight"})
    GrindOrchestrator(dataset, index, config, "out/").make_examples()
"""

__version__ = '2025.1'
