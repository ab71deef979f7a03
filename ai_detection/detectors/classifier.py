"""
Classifier adapter.

Runs the fixed pretrained model on the 1x1x28x28 grayscale grid and turns
its raw score vector into the probability of the positive class (index 0)
with a numerically stable softmax.

The model is loaded on first use through a ModelHandle and shared
read-only by every request afterwards. Two execution engines are
supported, picked from the artifact suffix:

- ``.onnx``: onnxruntime, providers tried in settings.EXECUTION_PROVIDERS
  order with a CPU fallback
- ``.pt`` / ``.pth`` / ``.ts``: TorchScript on settings.DEVICE with a
  CPU fallback

A fallback changes where the model runs, never what it returns.
"""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

import numpy as np

from lib.exceptions import ClassifierError, ModelLoadError
from synthscan import settings

from .base import ClassifierOutput


logger = logging.getLogger(__name__)

CPU_PROVIDER = "CPUExecutionProvider"


def softmax(scores: Sequence[float]) -> np.ndarray:
    """Softmax with the max subtracted before exponentiating."""
    values = np.asarray(scores, dtype=np.float64).ravel()
    if values.size == 0:
        raise ClassifierError("Classifier returned an empty score vector")
    exps = np.exp(values - values.max())
    return exps / exps.sum()


class InferenceBackend(ABC):
    """A loaded model that maps an input tensor to a raw score vector."""

    name = "backend"

    @abstractmethod
    def run(self, grid: np.ndarray) -> np.ndarray:
        """Run one forward pass and return the raw output."""
        pass


class OnnxBackend(InferenceBackend):
    """onnxruntime InferenceSession."""

    name = "onnxruntime"

    def __init__(self, model_path: Path, providers: Optional[Sequence[str]] = None):
        import onnxruntime as ort

        preferred = list(providers or settings.EXECUTION_PROVIDERS)
        available = set(ort.get_available_providers())
        chosen = [p for p in preferred if p in available]
        skipped = [p for p in preferred if p not in available]
        if skipped:
            logger.info("onnxruntime providers not available: %s", ", ".join(skipped))
        if not chosen:
            chosen = [CPU_PROVIDER]

        try:
            self.session = ort.InferenceSession(str(model_path), providers=chosen)
        except Exception as e:
            if chosen == [CPU_PROVIDER]:
                raise
            logger.warning("Could not create session on %s (%s), falling back to CPU",
                           chosen[0], e)
            self.session = ort.InferenceSession(str(model_path), providers=[CPU_PROVIDER])

        self.input_name = self.session.get_inputs()[0].name
        self.output_name = self.session.get_outputs()[0].name
        self.providers = self.session.get_providers()

    def run(self, grid: np.ndarray) -> np.ndarray:
        outputs = self.session.run([self.output_name], {self.input_name: grid})
        return np.asarray(outputs[0])


class TorchScriptBackend(InferenceBackend):
    """TorchScript module loaded with torch.jit.load."""

    name = "torch"

    def __init__(self, model_path: Path, device: Optional[str] = None):
        import torch

        device = device or settings.DEVICE
        if device.startswith("cuda") and not torch.cuda.is_available():
            logger.warning("CUDA requested but not available, falling back to CPU")
            device = "cpu"

        try:
            model = torch.jit.load(str(model_path), map_location=device)
        except Exception as e:
            if device == "cpu":
                raise
            logger.warning("Could not load model on %s (%s), falling back to CPU", device, e)
            device = "cpu"
            model = torch.jit.load(str(model_path), map_location=device)

        model.eval()
        self.torch = torch
        self.model = model
        self.device = torch.device(device)

    def run(self, grid: np.ndarray) -> np.ndarray:
        tensor = self.torch.from_numpy(np.ascontiguousarray(grid)).to(self.device)
        with self.torch.no_grad():
            output = self.model(tensor)
        if isinstance(output, (tuple, list)):
            output = output[0]
        return output.detach().cpu().numpy()


BACKENDS = {
    '.onnx': OnnxBackend,
    '.pt': TorchScriptBackend,
    '.pth': TorchScriptBackend,
    '.ts': TorchScriptBackend,
}


def load_backend(model_path) -> InferenceBackend:
    """
    Load a model artifact on the engine matching its suffix.

    Raises:
        ModelLoadError: missing file, unknown suffix, missing engine or
                        a load failure on every device
    """
    path = Path(model_path)
    if not path.exists():
        raise ModelLoadError(f"Model file not found: {path}")

    backend_cls = BACKENDS.get(path.suffix.lower())
    if backend_cls is None:
        raise ModelLoadError(
            f"Unsupported model format '{path.suffix}', "
            f"must be one of {sorted(BACKENDS)}"
        )

    try:
        backend = backend_cls(path)
    except ImportError as e:
        raise ModelLoadError(f"{backend_cls.name} is not installed: {e}") from e
    except Exception as e:
        raise ModelLoadError(f"Could not load model {path.name}: {e}") from e

    logger.info("Loaded classifier %s on %s", path.name, backend.name)
    return backend


class ModelHandle:
    """
    Lazily loaded, shared, read-only model.

    The first get() loads the backend while holding a lock; concurrent
    callers wait for it and then all see the same backend. After that
    get() is a plain attribute read. A failed load is not remembered, so
    the next request tries again.
    """

    def __init__(self, model_path, loader: Callable[[Path], InferenceBackend] = load_backend):
        self.model_path = Path(model_path)
        self._loader = loader
        self._backend: Optional[InferenceBackend] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._backend is not None

    def get(self) -> InferenceBackend:
        backend = self._backend
        if backend is not None:
            return backend

        with self._lock:
            if self._backend is None:
                logger.info("Loading classifier from %s", self.model_path)
                backend = self._loader(self.model_path)
                if backend is None:
                    raise ModelLoadError(f"Loader returned no model for {self.model_path}")
                self._backend = backend
            return self._backend


_handles: Dict[Path, ModelHandle] = {}
_handles_lock = threading.Lock()


def get_model_handle(model_path=None) -> ModelHandle:
    """Process-wide handle for a model artifact, one per resolved path."""
    path = Path(model_path or settings.MODEL_PATH).resolve()
    with _handles_lock:
        handle = _handles.get(path)
        if handle is None:
            handle = _handles[path] = ModelHandle(path)
        return handle


class ClassifierAdapter:
    """Validates the grid, runs the shared model and applies softmax."""

    name = "Classifier"

    def __init__(self, handle: Optional[ModelHandle] = None, grid_size: int = None,
                 positive_index: int = None):
        self.handle = handle or get_model_handle()
        self.grid_size = grid_size or settings.GRID_SIZE
        if positive_index is None:
            positive_index = settings.POSITIVE_CLASS_INDEX
        self.positive_index = positive_index

    def load(self) -> InferenceBackend:
        """Make sure the model is loaded. Raises ModelLoadError."""
        return self.handle.get()

    def classify(self, grid: np.ndarray) -> ClassifierOutput:
        """
        Run the model on a (1, 1, size, size) grid.

        Returns:
            ClassifierOutput with the softmax probability at positive_index

        Raises:
            ClassifierError: shape mismatch, inference failure or an
                             unusable score vector
        """
        expected = (1, 1, self.grid_size, self.grid_size)
        if tuple(grid.shape) != expected:
            raise ClassifierError(f"Expected input of shape {expected}, got {tuple(grid.shape)}")

        backend = self.load()
        try:
            raw = backend.run(grid.astype(np.float32, copy=False))
        except ClassifierError:
            raise
        except Exception as e:
            raise ClassifierError(f"Inference failed: {e}") from e

        scores = np.asarray(raw, dtype=np.float64).ravel()
        if scores.size <= self.positive_index:
            raise ClassifierError(
                f"Classifier returned {scores.size} scores, "
                f"need index {self.positive_index}"
            )
        if not np.all(np.isfinite(scores)):
            raise ClassifierError("Classifier returned non-finite scores")

        probs = softmax(scores)
        probability = float(probs[self.positive_index])
        logger.debug("Classifier scores %s -> p=%.4f", scores.tolist(), probability)
        return ClassifierOutput(probability=probability, scores=tuple(scores.tolist()))
