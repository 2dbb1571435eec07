"""
Rate matrix operations.

This module provides the linear algebra underlying substitution models:
building a generator from exchangeabilities and a stationary distribution,
its total rate, and transition probabilities over a branch.
"""

import numpy as np
from scipy.linalg import expm

from ..errors import DimensionMismatch, InvalidDistribution

# Tolerance for a stationary distribution to count as summing to one
DISTRIBUTION_TOL = 1e-6


def check_distribution(pi: np.ndarray, tol: float = DISTRIBUTION_TOL) -> np.ndarray:
    """
    Validate a probability vector.

    Parameters
    ----------
    pi : ndarray, shape (n,)
        Candidate distribution
    tol : float
        Allowed deviation of the sum from 1

    Returns
    -------
    ndarray
        The distribution as a float array

    Raises
    ------
    InvalidDistribution
        If an entry is negative or the entries do not sum to 1
    """
    pi = np.asarray(pi, dtype=float)
    if pi.ndim != 1:
        raise InvalidDistribution(f"Distribution must be a vector, got shape {pi.shape}")
    if np.any(pi < 0):
        raise InvalidDistribution(f"Distribution has negative entries: {pi}")
    if not abs(pi.sum() - 1.0) < tol:
        raise InvalidDistribution(f"Distribution must sum to 1, got {pi.sum()}")
    return pi


def build_generator(exchangeabilities: np.ndarray, pi: np.ndarray) -> np.ndarray:
    """
    Build a rate matrix from exchangeabilities and a stationary distribution.

    Parameters
    ----------
    exchangeabilities : ndarray, shape (n, n)
        Symmetric exchangeability matrix (diagonal is ignored)
    pi : ndarray, shape (n,)
        Stationary distribution

    Returns
    -------
    Q : ndarray, shape (n, n)
        Generator with Q[i,j] = S[i,j] * pi[j] for i != j and rows summing to 0

    Raises
    ------
    DimensionMismatch
        If the matrix is not square or does not match the length of pi
    InvalidDistribution
        If pi is not a probability vector

    Examples
    --------
    >>> S = np.ones((4, 4)) - np.eye(4)
    >>> Q = build_generator(S, np.ones(4) / 4)
    >>> np.allclose(Q.sum(axis=1), 0.0)
    True
    """
    S = np.asarray(exchangeabilities, dtype=float)
    pi = np.asarray(pi, dtype=float)

    if S.ndim != 2 or S.shape[0] != S.shape[1]:
        raise DimensionMismatch(f"Exchangeability matrix must be square, got shape {S.shape}")
    if pi.shape != (S.shape[0],):
        raise DimensionMismatch(
            f"Stationary distribution has length {pi.size}, "
            f"exchangeability matrix has dimension {S.shape[0]}"
        )
    pi = check_distribution(pi)

    # Q[i,j] = r[i,j] * pi_j
    Q = S * pi[np.newaxis, :]
    np.fill_diagonal(Q, 0.0)
    np.fill_diagonal(Q, -Q.sum(axis=1))

    return Q


def total_rate(pi: np.ndarray, Q: np.ndarray) -> float:
    """
    Expected number of substitutions per unit time at stationarity.

    Parameters
    ----------
    pi : ndarray, shape (n,)
        Stationary distribution
    Q : ndarray, shape (n, n)
        Rate matrix

    Returns
    -------
    float
        -sum_i pi_i * Q[i,i]
    """
    return float(-np.dot(pi, Q.diagonal()))


def matrix_exponential(Q: np.ndarray, t: float) -> np.ndarray:
    """
    Compute transition probability matrix P(t) = exp(Q*t).

    Uses scipy's matrix exponential (Pade approximation with scaling and
    squaring). Tiny negative entries from floating point error are clipped
    and rows renormalised, so every row is a valid probability vector.

    Parameters
    ----------
    Q : ndarray, shape (n, n)
        Rate matrix
    t : float
        Branch length

    Returns
    -------
    P : ndarray, shape (n, n)
        Transition probability matrix; P[i,j] is the probability of
        ending in state j after time t when starting in state i

    Notes
    -----
    - P(0) = I
    - P(t1 + t2) = P(t1) @ P(t2)
    - Every row of P(t) tends to the stationary distribution as t grows
    """
    P = expm(Q * t)
    P = np.maximum(P, 0.0)
    P /= P.sum(axis=1, keepdims=True)
    return P


def check_stationary(Q: np.ndarray, pi: np.ndarray, atol: float = 1e-10) -> bool:
    """
    Test if pi is a stationary distribution of Q, i.e. pi @ Q = 0.

    Parameters
    ----------
    Q : ndarray, shape (n, n)
        Rate matrix
    pi : ndarray, shape (n,)
        Proposed stationary distribution
    atol : float
        Absolute tolerance

    Returns
    -------
    bool
    """
    return bool(np.allclose(pi @ Q, 0.0, atol=atol))


def check_detailed_balance(Q: np.ndarray, pi: np.ndarray, rtol: float = 1e-10) -> bool:
    """
    Test if rate matrix Q satisfies detailed balance with stationary distribution pi.

    Detailed balance: pi_i * Q[i,j] = pi_j * Q[j,i] for all i, j
    """
    flux = pi[:, np.newaxis] * Q
    return bool(np.allclose(flux, flux.T, rtol=rtol, atol=0.0))
