"""Genome — the heritable weights and biases of an ant's neural network.

A genome is a stack of dense layers.  Layer ``i`` holds a weight matrix of
shape ``(neurons_i, inputs_i)`` and a bias vector of shape
``(neurons_i,)``; the input width of each layer after the first equals the
neuron count of the layer before it.  Shapes are checked once at
construction so the forward pass never has to guard against misaligned
dot products.

Genomes are treated as immutable.  Every reproduction path (clone,
crossover, mutation) allocates fresh arrays, so no two ants ever share
parameter storage.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from formicary.errors import GenomeShapeError

if TYPE_CHECKING:
    from numpy.random import Generator

# Sensory input width: the 3x3 neighbourhood around an ant.
SENSORY_INPUTS = 9
# Output width: one score per adult action.
ACTION_OUTPUTS = 9
DEFAULT_LAYER_SIZES: tuple[int, ...] = (SENSORY_INPUTS, 12, ACTION_OUTPUTS)


@dataclass(frozen=True, eq=False)
class Genome:
    """Layered network parameters.

    Attributes:
        weights: One ``(neurons, inputs)`` matrix per layer.
        biases: One ``(neurons,)`` vector per layer.
    """

    weights: list[NDArray[np.float64]]
    biases: list[NDArray[np.float64]]

    def __post_init__(self) -> None:
        """Reject genomes whose layers do not chain together."""
        if not self.weights:
            msg = "genome must have at least one layer"
            raise GenomeShapeError(msg)
        if len(self.weights) != len(self.biases):
            msg = (
                f"genome has {len(self.weights)} weight layers "
                f"but {len(self.biases)} bias layers"
            )
            raise GenomeShapeError(
                msg, expected=len(self.weights), got=len(self.biases)
            )

        prev_neurons: int | None = None
        for i, (w, b) in enumerate(zip(self.weights, self.biases)):
            if w.ndim != 2 or b.ndim != 1:
                msg = f"layer {i}: weights must be 2D and biases 1D"
                raise GenomeShapeError(msg)
            neurons, inputs = w.shape
            if b.shape[0] != neurons:
                msg = f"layer {i}: {neurons} neurons but {b.shape[0]} biases"
                raise GenomeShapeError(msg, expected=neurons, got=b.shape[0])
            if prev_neurons is not None and inputs != prev_neurons:
                msg = (
                    f"layer {i}: expects {inputs} inputs but previous layer "
                    f"has {prev_neurons} neurons"
                )
                raise GenomeShapeError(msg, expected=prev_neurons, got=inputs)
            prev_neurons = neurons

    # -- Shape queries --------------------------------------------------------

    @property
    def input_size(self) -> int:
        """Width of the vector the first layer accepts."""
        return int(self.weights[0].shape[1])

    @property
    def output_size(self) -> int:
        """Number of scores the last layer produces."""
        return int(self.weights[-1].shape[0])

    @property
    def layer_sizes(self) -> tuple[int, ...]:
        """``(input_size, neurons_0, neurons_1, ...)``."""
        return (self.input_size, *(int(w.shape[0]) for w in self.weights))

    def same_shape(self, other: Genome) -> bool:
        """Return True if ``other`` has identical layer shapes."""
        return len(self.weights) == len(other.weights) and all(
            a.shape == b.shape for a, b in zip(self.weights, other.weights)
        )

    @property
    def color(self) -> tuple[int, int, int]:
        """Display colour derived from the first layer's weights.

        Each channel is the sigmoid of the mean incoming weight of one of
        the first three neurons, so related genomes look alike.
        """
        first = self.weights[0]
        channels = []
        for i in range(3):
            row = first[min(i, first.shape[0] - 1)]
            v = float(row.mean())
            channels.append(int(255 / (1.0 + np.exp(-v))))
        return (channels[0], channels[1], channels[2])

    # -- Construction ---------------------------------------------------------

    @classmethod
    def random(
        cls,
        rng: Generator,
        layer_sizes: Sequence[int] = DEFAULT_LAYER_SIZES,
    ) -> Genome:
        """Create a genome with parameters drawn uniformly from ``[-1, 1)``.

        Args:
            rng: Seeded random generator.
            layer_sizes: ``(input_size, *hidden_sizes, output_size)``.

        Raises:
            GenomeShapeError: If fewer than two sizes are given or any is
                not positive.
        """
        if len(layer_sizes) < 2 or any(n <= 0 for n in layer_sizes):
            msg = f"invalid layer sizes {tuple(layer_sizes)}"
            raise GenomeShapeError(msg)
        weights = []
        biases = []
        for inputs, neurons in zip(layer_sizes[:-1], layer_sizes[1:]):
            weights.append(rng.uniform(-1.0, 1.0, size=(neurons, inputs)))
            biases.append(rng.uniform(-1.0, 1.0, size=neurons))
        return cls(weights=weights, biases=biases)

    def clone(self) -> Genome:
        """Return an exact copy that shares no storage with this genome."""
        return Genome(
            weights=[w.copy() for w in self.weights],
            biases=[b.copy() for b in self.biases],
        )

    def mutated(self, noise: float, rng: Generator) -> Genome:
        """Return a copy with uniform noise in ``[-noise/2, noise/2]`` added.

        Used for seeding a population from an adopted genome; ordinary
        reproduction never calls this.
        """
        half = noise / 2.0
        return Genome(
            weights=[w + rng.uniform(-half, half, size=w.shape) for w in self.weights],
            biases=[b + rng.uniform(-half, half, size=b.shape) for b in self.biases],
        )

    @classmethod
    def crossover(
        cls,
        parent_a: Genome,
        parent_b: Genome,
        noise: float,
        rng: Generator,
    ) -> Genome:
        """Build an offspring genome from two parents.

        Even-indexed layers come from ``parent_a``, odd-indexed layers from
        ``parent_b``; every weight and bias then receives independent
        uniform noise in ``[-noise/2, noise/2]``.

        Raises:
            GenomeShapeError: If the parents' layer shapes differ.
        """
        if not parent_a.same_shape(parent_b):
            msg = (
                f"cannot cross {parent_a.layer_sizes} with {parent_b.layer_sizes}"
            )
            raise GenomeShapeError(msg)
        half = noise / 2.0
        weights = []
        biases = []
        for i in range(len(parent_a.weights)):
            src = parent_a if i % 2 == 0 else parent_b
            w = src.weights[i]
            b = src.biases[i]
            weights.append(w + rng.uniform(-half, half, size=w.shape))
            biases.append(b + rng.uniform(-half, half, size=b.shape))
        return cls(weights=weights, biases=biases)

    # -- Plain-data conversion ------------------------------------------------

    def to_dict(self) -> dict[str, list[Any]]:
        """Return the parameters as nested lists (YAML/JSON friendly)."""
        return {
            "weights": [w.tolist() for w in self.weights],
            "biases": [b.tolist() for b in self.biases],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Genome:
        """Rebuild a genome from :meth:`to_dict` output.

        Raises:
            GenomeShapeError: If keys are missing or layers are ragged or
                do not chain together.
        """
        try:
            weights = [np.array(w, dtype=np.float64) for w in data["weights"]]
            biases = [np.array(b, dtype=np.float64) for b in data["biases"]]
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"malformed genome data: {exc}"
            raise GenomeShapeError(msg) from exc
        return cls(weights=weights, biases=biases)
