"""Forward pass and action sampling for genome-encoded networks.

Separated from ``genome.py`` so the parameter container stays a plain
data holder and the decision maths can be tested on its own.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from formicary.errors import GenomeShapeError

if TYPE_CHECKING:
    from numpy.random import Generator

    from formicary.brain.genome import Genome


def sigmoid(v: NDArray[np.float64]) -> NDArray[np.float64]:
    """Logistic function ``1 / (1 + e^-v)``, element-wise."""
    return 1.0 / (1.0 + np.exp(-v))


def forward(genome: Genome, inputs: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    """Run the network and return the raw action scores.

    Each layer computes ``sigmoid(W @ x + b)`` and feeds the result to the
    next.

    Args:
        genome: Network parameters.
        inputs: Sensory vector; its length must equal ``genome.input_size``.

    Raises:
        GenomeShapeError: If the input width does not match the first layer.
    """
    x = np.asarray(inputs, dtype=np.float64)
    if x.shape != (genome.input_size,):
        msg = f"network expects {genome.input_size} inputs, got {x.size}"
        raise GenomeShapeError(msg, expected=genome.input_size, got=x.size)
    for w, b in zip(genome.weights, genome.biases):
        x = sigmoid(w @ x + b)
    return x


def softmax(scores: Sequence[float] | NDArray[np.float64]) -> NDArray[np.float64]:
    """Normalise scores into a probability distribution.

    The max is subtracted before exponentiating to avoid overflow.
    """
    s = np.asarray(scores, dtype=np.float64)
    e = np.exp(s - s.max())
    return e / e.sum()


def sample_action(
    probabilities: Sequence[float] | NDArray[np.float64],
    rng: Generator,
) -> int:
    """Draw an index from a discrete distribution using a single uniform.

    The draw is reduced by each probability in turn; the first index at
    which the remainder reaches zero wins.  If rounding leaves a sliver
    after the last entry, the last index is returned.
    """
    remainder = float(rng.random())
    n = len(probabilities)
    for i in range(n):
        remainder -= float(probabilities[i])
        if remainder <= 0:
            return i
    return n - 1
