"""Level-1 moment relaxation of the CHSH inequality, built by hand.

Alice and Bob each hold two dichotomic observables (A0, A1 and B0, B1):
every operator squares to the identity and Alice's operators commute with
Bob's. Expectations are real, so a word and its reverse share a monomial.
"""

import numpy as np

from momentsdp.relaxation import GramMatrix, MomentRelaxation

GENERATORS = [(), ("A0",), ("A1",), ("B0",), ("B1",)]
CHSH_TERMS = [
    (("A0", "B0"), 1),
    (("A0", "B1"), 1),
    (("A1", "B0"), 1),
    (("A1", "B1"), -1),
]
TSIRELSON_BOUND = float(np.sqrt(8.0))


def _reduce(word):
    alice = [op for op in word if op.startswith("A")]
    bob = [op for op in word if op.startswith("B")]
    out = []
    for op in alice + bob:
        if out and out[-1] == op:
            out.pop()
        else:
            out.append(op)
    return tuple(out)


def canonical(word):
    return min(_reduce(word), _reduce(tuple(reversed(word))))


def chsh_monomials():
    index = {}
    d = len(GENERATORS)
    tags = np.zeros((d, d), dtype=int)
    for r in range(d):
        for c in range(d):
            word = tuple(reversed(GENERATORS[r])) + GENERATORS[c]
            tags[r, c] = index.setdefault(canonical(word), len(index))
    return tags, index


def chsh_relaxation(coefficient=float):
    tags, index = chsh_monomials()
    objective = [coefficient(0)] * len(index)
    for mono, coeff in CHSH_TERMS:
        objective[index[mono]] = coefficient(coeff)
    return MomentRelaxation(GramMatrix(tags), objective)
