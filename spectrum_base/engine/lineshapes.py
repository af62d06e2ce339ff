"""Closed-form peak shapes and their sums.

Every shape is parametrised by ``(center, scale, height)``.  Evaluation is
vectorised: pass a scalar for a scalar result or an array for an array.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Iterable, List, Sequence, Type

import numpy as np

from spectrum_base.engine.errors import DimensionMismatch, InvalidScale

__all__ = [
    "LineShape",
    "Gaussian",
    "Cauchy",
    "Lorentzian",
    "RaisedCosine",
    "CompositeShape",
    "LINE_SHAPES",
    "composite_profile",
    "resolve_shape",
]


@dataclass(frozen=True)
class LineShape:
    center: float
    scale: float
    height: float

    n_params: ClassVar[int] = 3

    def __post_init__(self) -> None:
        if not self.scale > 0:
            raise InvalidScale(f"scale of {type(self).__name__} should be positive, got {self.scale}")

    @staticmethod
    def profile(x, center, scale, height):
        raise NotImplementedError

    @classmethod
    def from_params(cls, params: Sequence[float]) -> "LineShape":
        if len(params) != cls.n_params:
            raise DimensionMismatch(f"{cls.__name__} takes {cls.n_params} parameters, got {len(params)}")
        return cls(*(float(value) for value in params))

    @property
    def params(self) -> tuple:
        return (self.center, self.scale, self.height)

    def evaluate(self, x):
        return type(self).profile(np.asarray(x, dtype=float), self.center, self.scale, self.height)

    __call__ = evaluate


@dataclass(frozen=True)
class Gaussian(LineShape):
    """``height / scale * exp(-((x - center) / scale) ** 2 / 2)``"""

    @staticmethod
    def profile(x, center, scale, height):
        scaled = (x - center) / scale
        return height / scale * np.exp(-0.5 * scaled**2)


@dataclass(frozen=True)
class Cauchy(LineShape):
    """``height / (scale * (1 + ((x - center) / scale) ** 2))``"""

    @staticmethod
    def profile(x, center, scale, height):
        scaled = (x - center) / scale
        return height / (scale * (1.0 + scaled**2))


Lorentzian = Cauchy


@dataclass(frozen=True)
class RaisedCosine(LineShape):
    """``height * (1 + cos(pi * (x - center) / scale))``"""

    @staticmethod
    def profile(x, center, scale, height):
        scaled = (x - center) / scale
        return height * (1.0 + np.cos(np.pi * scaled))


LINE_SHAPES: Dict[str, Type[LineShape]] = {
    "gaussian": Gaussian,
    "cauchy": Cauchy,
    "lorentzian": Cauchy,
    "raised_cosine": RaisedCosine,
}


def resolve_shape(kind: str | Type[LineShape]) -> Type[LineShape]:
    """Map a shape name (``"gaussian"``, ``"lorentzian"`` ...) or class to the class."""

    if isinstance(kind, type) and issubclass(kind, LineShape):
        return kind
    key = str(kind).strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return LINE_SHAPES[key]
    except KeyError:
        raise ValueError(f"Unsupported line shape '{kind}'; expected one of {', '.join(LINE_SHAPES)}") from None


def _layout(kind: Type[LineShape], params: Iterable[float]) -> np.ndarray:
    flat = np.asarray(params, dtype=float).ravel()
    if flat.size == 0 or flat.size % kind.n_params:
        raise DimensionMismatch(
            f"{kind.__name__} parameters come in groups of {kind.n_params}, got {flat.size} values"
        )
    return flat.reshape(-1, kind.n_params).T


def composite_profile(kind: Type[LineShape], params: Iterable[float], x):
    """Sum of ``kind`` profiles for a flat ``(center, scale, height) * count`` buffer.

    No scale validation is done here so optimisers can probe any vector.
    """

    centers, scales, heights = _layout(kind, params)
    x_arr = np.asarray(x, dtype=float)[..., np.newaxis]
    return np.sum(kind.profile(x_arr, centers, scales, heights), axis=-1)


@dataclass(frozen=True, eq=False)
class CompositeShape:
    """Sum of same-family line shapes sharing one flat parameter buffer.

    ``params`` is ``[c0, s0, h0, c1, s1, h1, ...]``; ``layout`` exposes it as
    a ``(3, count)`` array with one column per constituent shape.
    """

    kind: Type[LineShape]
    params: np.ndarray

    def __post_init__(self) -> None:
        kind = resolve_shape(self.kind)
        layout = _layout(kind, self.params)
        if not np.all(layout[1] > 0):
            raise InvalidScale(f"all {kind.__name__} scales should be positive, got {layout[1].tolist()}")
        flat = np.array(layout.T.ravel(), dtype=float)
        flat.setflags(write=False)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "params", flat)

    @classmethod
    def from_shapes(cls, shapes: Sequence[LineShape]) -> "CompositeShape":
        if not shapes:
            raise DimensionMismatch("a composite shape needs at least one constituent")
        kinds = {type(shape) for shape in shapes}
        if len(kinds) != 1:
            raise TypeError("composite shapes must combine a single line shape family")
        return cls(kinds.pop(), [value for shape in shapes for value in shape.params])

    @property
    def layout(self) -> np.ndarray:
        return _layout(self.kind, self.params)

    @property
    def shapes(self) -> List[LineShape]:
        return [self.kind(*(float(v) for v in column)) for column in self.layout.T]

    def __len__(self) -> int:
        return self.params.size // self.kind.n_params

    def evaluate(self, x):
        return composite_profile(self.kind, self.params, x)

    __call__ = evaluate
