__all__ = [
    "Pose",
    "ItemDefinition",
    "AnchorDefinition",
    "SceneRecord",
    "OutputRecord",
    "ReanchorEngine",
    "ClassificationResolver",
    "AnchorRegistry",
    "BatchProcessor",
    "BatchStats",
    "PlacementPipeline",
    "PlacementStats",
]

_EXPORTS = {
    "Pose": "models",
    "ItemDefinition": "models",
    "AnchorDefinition": "models",
    "SceneRecord": "models",
    "OutputRecord": "models",
    "ReanchorEngine": "reanchor",
    "ClassificationResolver": "classification",
    "AnchorRegistry": "anchor_registry",
    "BatchProcessor": "batch_processor",
    "BatchStats": "batch_processor",
    "PlacementPipeline": "placement_pipeline",
    "PlacementStats": "placement_pipeline",
}


def __getattr__(name):
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(name)
    from importlib import import_module
    return getattr(import_module(f".{module_name}", __name__), name)
