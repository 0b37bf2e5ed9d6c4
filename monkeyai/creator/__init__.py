"""Custom model creation through the ollama CLI"""

from monkeyai.creator.builder import MonkeyZeroCreator
from monkeyai.creator.modelfile import (
    MONKEYZERO_MINI,
    MONKEYZERO_SIMPLE,
    ModelProfile,
    TrainingExample,
    render_training_data,
)

__all__ = [
    "MonkeyZeroCreator",
    "MONKEYZERO_MINI",
    "MONKEYZERO_SIMPLE",
    "ModelProfile",
    "TrainingExample",
    "render_training_data",
]
