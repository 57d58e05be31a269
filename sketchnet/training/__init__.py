"""Training loop, losses and run pipelines."""

from . import losses
from .trainer import Trainer
from .worker import TrainingWorker

__all__ = ["Trainer", "TrainingWorker", "losses"]
