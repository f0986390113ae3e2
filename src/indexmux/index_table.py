"""
Mismatch-tolerant index table.

Every sample's index1 and index2 are expanded into Hamming balls of radius
mismatches_max and each combination of variants is stored under an integer
key, so that classifying a read pair costs one key computation and one lookup.

SparseIndexTable: plain dictionary, best when the number of keys is small
DenseIndexTable: sorted numpy key array searched by binary search, best for large key spaces
"""

import itertools
import logging
import math
from typing import Dict, List, Optional, Protocol, Tuple

import edlib
import numpy

from .config import DemuxConfig
from .constants import ALPHABET, KEY_DIGITS, TableBacking
from .errors import AmbiguityError, IndexTableError
from .samples import SampleRegistry

# 4 ** mismatches_max * sample count at or above which the dense table is used
DENSE_KEY_THRESHOLD = 10_000

# Widest key (in decimal digits) that fits an unsigned 64 bit integer
UINT64_DIGITS = 19

_DIGIT_NUCLEOTIDES = str.maketrans("0123", "ATCG")


def expand_ball(index: str, mismatches: int, alphabet: str = ALPHABET) -> List[str]:
    """
    Return every string within `mismatches` substitutions of `index`.

    Each round substitutes every position of every word found so far with
    every alphabet character, so lower distances (including the reference
    itself) stay in the ball.
    """
    words = [index]
    for _ in range(mismatches):
        ball = dict.fromkeys(words)
        for word in words:
            for pos in range(len(word)):
                for char in alphabet:
                    ball[word[:pos] + char + word[pos + 1:]] = None
        words = list(ball)
    return words


def hamming_ball_size(length: int, mismatches: int, alphabet_size: int = len(ALPHABET)) -> int:
    return sum(math.comb(length, k) * (alphabet_size - 1) ** k for k in range(min(mismatches, length) + 1))


def index_key(index1: str, index2: str) -> int:
    """Decimal integer key of an index pair: A->0, T->1, C->2, G->3, index1 digits first."""
    return int((index1 + index2).translate(KEY_DIGITS))


def decode_key(key: int, index1_length: int, index2_length: int) -> Tuple[str, str]:
    digits = str(key).zfill(index1_length + index2_length).translate(_DIGIT_NUCLEOTIDES)
    return digits[:index1_length], digits[index1_length:]


class IndexTable(Protocol):
    backing: str

    def add(self, key: int, position: int) -> Optional[int]:
        ...

    def freeze(self) -> Optional[Tuple[int, int, int]]:
        ...

    def get(self, key: int) -> Optional[int]:
        ...

    def __len__(self) -> int:
        ...


class SparseIndexTable:
    backing = TableBacking.SPARSE

    def __init__(self, key_digits: int = 0):
        self._table: Dict[int, int] = {}

    def add(self, key: int, position: int) -> Optional[int]:
        """Store key -> position, returning the other position if the key is taken."""
        existing = self._table.get(key)
        if existing is not None and existing != position:
            return existing
        self._table[key] = position
        return None

    def freeze(self) -> Optional[Tuple[int, int, int]]:
        # Collisions are reported by add()
        return None

    def get(self, key: int) -> Optional[int]:
        return self._table.get(key)

    def __len__(self):
        return len(self._table)


class DenseIndexTable:
    backing = TableBacking.DENSE

    def __init__(self, key_digits: int = 0):
        if key_digits <= UINT64_DIGITS:
            self._dtype, self._key_type = numpy.uint64, numpy.uint64
        else:
            self._dtype, self._key_type = object, int
        self._pending_keys: List[int] = []
        self._pending_positions: List[int] = []
        self._keys = numpy.array([], dtype=self._dtype)
        self._positions = numpy.array([], dtype=numpy.int32)

    def add(self, key: int, position: int) -> Optional[int]:
        # Collisions are only visible once the keys are sorted in freeze()
        self._pending_keys.append(key)
        self._pending_positions.append(position)
        return None

    def freeze(self) -> Optional[Tuple[int, int, int]]:
        """
        Sort pending keys into the lookup arrays.

        Returns:
            (key, first_position, second_position) for the first key stored
            under two different positions, or None
        """
        keys = numpy.array(self._pending_keys, dtype=self._dtype)
        positions = numpy.array(self._pending_positions, dtype=numpy.int32)
        self._pending_keys = []
        self._pending_positions = []

        order = numpy.argsort(keys, kind="stable")
        keys = keys[order]
        positions = positions[order]

        for i in numpy.flatnonzero(keys[1:] == keys[:-1]):
            if positions[i] != positions[i + 1]:
                return int(keys[i]), int(positions[i]), int(positions[i + 1])

        self._keys = keys
        self._positions = positions
        return None

    def get(self, key: int) -> Optional[int]:
        # Search with the array dtype so large keys are never compared as floats
        needle = self._key_type(key)
        i = int(numpy.searchsorted(self._keys, needle))
        if i < len(self._keys) and self._keys[i] == needle:
            return int(self._positions[i])
        return None

    def __len__(self):
        return len(self._keys) + len(self._pending_keys)


def choose_backing(config: DemuxConfig, sample_count: int) -> str:
    if config.table_backing != TableBacking.AUTO:
        return config.table_backing
    if config.mismatches_max <= 1:
        return TableBacking.SPARSE
    if len(ALPHABET) ** config.mismatches_max * sample_count < DENSE_KEY_THRESHOLD:
        return TableBacking.SPARSE
    return TableBacking.DENSE


class IndexLookup:
    """Read-only view of a built table that classifies raw index strings."""

    def __init__(self, table: IndexTable, index1_length: int, index2_length: int):
        self.table = table
        self.index1_length = index1_length
        self.index2_length = index2_length

    def lookup(self, index1: str, index2: str) -> Optional[int]:
        """Sample position matching the raw index pair, or None."""
        if len(index1) != self.index1_length or len(index2) != self.index2_length:
            return None
        digits = (index1 + index2).translate(KEY_DIGITS)
        if not digits.isdigit():
            return None
        return self.table.get(int(digits))

    @property
    def backing(self) -> str:
        return self.table.backing

    def __len__(self):
        return len(self.table)


def build_index_table(registry: SampleRegistry, config: DemuxConfig,
                      backing: Optional[str] = None) -> IndexLookup:
    """
    Expand every sample's indexes and build the collision-checked lookup.

    Raises:
        AmbiguityError: two samples share a key within the mismatch radius
        IndexTableError: an expanded ball has an unexpected size
    """
    mismatches = config.mismatches_max
    index1_length, index2_length = registry.index_lengths()
    backing = backing or choose_backing(config, len(registry))

    log_index_distances(registry, mismatches)

    key_digits = index1_length + index2_length
    if backing == TableBacking.DENSE:
        table = DenseIndexTable(key_digits)
    else:
        table = SparseIndexTable(key_digits)

    expected1 = hamming_ball_size(index1_length, mismatches)
    expected2 = hamming_ball_size(index2_length, mismatches)

    for position, sample in enumerate(registry):
        ball1 = expand_ball(sample.index1, mismatches)
        ball2 = expand_ball(sample.index2, mismatches)

        if len(ball1) != expected1 or len(ball2) != expected2:
            raise IndexTableError(
                f"Expanded index sizes for sample {sample.id} are {len(ball1)} and {len(ball2)}, "
                f"expected {expected1} and {expected2}")

        for variant1, variant2 in itertools.product(ball1, ball2):
            other = table.add(index_key(variant1, variant2), position)
            if other is not None:
                raise _collision_error(registry, other, position, variant1, variant2)

    collision = table.freeze()
    if collision is not None:
        key, first, second = collision
        variant1, variant2 = decode_key(key, index1_length, index2_length)
        raise _collision_error(registry, first, second, variant1, variant2)

    logging.info(f"Built {backing} index table with {len(table):,} keys for {len(registry)} samples "
                 f"allowing {mismatches} mismatches per index")
    return IndexLookup(table, index1_length, index2_length)


def _collision_error(registry: SampleRegistry, first: int, second: int,
                     variant1: str, variant2: str) -> AmbiguityError:
    id1 = registry[first].id
    id2 = registry[second].id
    return AmbiguityError(
        f"Index combo of {variant1} and {variant2} already exists for sample id: {id1} and {id2}",
        (id1, id2))


def _minimum_distance(sequences: List[str]) -> Optional[int]:
    if len(sequences) <= 1:
        return None
    return min(edlib.align(s1, s2, task="distance")["editDistance"]
               for s1, s2 in itertools.combinations(sequences, 2))


def log_index_distances(registry: SampleRegistry, mismatches: int):
    """Log minimum edit distances between configured indexes and warn about likely collisions."""
    for desc, sequences in (("index1", registry.distinct_index1()), ("index2", registry.distinct_index2())):
        m = _minimum_distance(sequences)
        if m is not None:
            logging.info(f"Minimum edit distance is {m} for {desc}")

    # Two samples can only collide if both of their indexes are within 2 * mismatches
    separation = None
    for a, b in itertools.combinations(list(registry), 2):
        d1 = edlib.align(a.index1, b.index1, task="distance")["editDistance"]
        d2 = edlib.align(a.index2, b.index2, task="distance")["editDistance"]
        pair_distance = max(d1, d2)
        if separation is None or pair_distance < separation:
            separation = pair_distance

    if separation is not None and separation <= 2 * mismatches:
        logging.warning(f"Closest samples differ by {separation} edits in their most distant index; "
                        f"{mismatches} mismatches per index may make them ambiguous")
