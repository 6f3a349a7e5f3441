"""Token generation strategies

This module renders integers into compact base62 tokens and provides the
injectable generators the minter draws candidate tokens from.

Functions:
    encode_base62(value, length=None):
        Render a non-negative integer in the base62 alphabet.
    generate_shortcode(counter, salt='default_salt', length=7, mult=1315423911):
        Generate a short, deterministic, non-sequential hash of a counter.

Classes:
    TokenGenerator:
        Interface: a zero-argument callable returning a candidate token.
    RandomTokenGenerator:
        Default strategy: 63 random bits from one seeded PRNG, base62-encoded.
    SaltedCounterTokenGenerator:
        Deterministic strategy: salted permutation of an incrementing counter.

Example:
    >>> from linkminter.utils.shortener import RandomTokenGenerator, SaltedCounterTokenGenerator
    >>> len(RandomTokenGenerator(seed=42)()) <= 11
    True
    >>> generate = SaltedCounterTokenGenerator(salt='unit_test_salt', start=123)
    >>> generate()
    'XrJQsJI'

NOTE:
    Neither strategy is cryptographically unguessable. Collisions are handled
    by the minter, which draws again when a candidate is already taken.
"""

import itertools
import math
import random
import string
from abc import ABC, abstractmethod

import xxhash


ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
BASE = len(ALPHABET)  # base62: 26 lowercase + 26 uppercase + 10 digits


def encode_base62(value: int, length: int | None = None) -> str:
    """Render a non-negative integer in base62, most significant digit first.

    Args:
        value (int):
            Non-negative integer to encode.
        length (int | None):
            Pad with leading ALPHABET[0] characters to at least this length.

    Returns:
        str: base62 representation ('a' for zero).

    Example:
        >>> encode_base62(61)
        '9'
        >>> encode_base62(62, length=4)
        'aaba'
    """
    if not isinstance(value, int):
        raise TypeError(f'Value must be of type integer (given type: {type(value)}).')
    if value < 0:
        raise ValueError(f'Value must be a non-negative integer (given value: {value}).')

    digits = []
    while True:
        value, remainder = divmod(value, BASE)
        digits.append(ALPHABET[remainder])
        if value == 0:
            break
    return ''.join(reversed(digits)).rjust(length or 0, ALPHABET[0])


def generate_shortcode(counter: int, salt: str = 'default_salt', length: int = 7, mult: int = 1315423911) -> str:
    """Generate a short, deterministic URL hash from a counter and salt.

    The counter is run through an affine permutation over BASE**length
    (multiply by `mult`, add the xxhash of the salt) and encoded into exactly
    `length` base62 characters. The mapping is 1:1 while `counter < BASE**length`.

    Args:
        counter (int):
            Non-negative integer identifying the link.
        salt (str, optional):
            Non-empty string that shifts the output space. Defaults to "default_salt".
        length (int, optional):
            Length of the resulting hash. Defaults to 7.
        mult (int, optional):
            Multiplicative factor; must be coprime with BASE**length.

    Returns:
        str: fixed-length base62 shortcode.

    Example:
        >>> generate_shortcode(123, salt='unit_test_salt', length=7)
        'XrJQsJI'
    """
    if not isinstance(counter, int):
        raise TypeError(f'Counter must be of type integer (given type: {type(counter)}).')
    if counter < 0:
        raise ValueError(f'Counter must be a non-negative integer (given value: {counter}).')
    if not isinstance(salt, str):
        raise TypeError(f'Salt must be of type string (given type: {type(salt)}).')
    if not salt:
        raise ValueError(f'Salt must be a non-empty string (given value: {salt}).')
    if math.gcd(mult, BASE**length) != 1:
        raise ValueError(f'Multiplicative factor must be coprime with mod ({BASE**length}) (given value: mult={mult}).')

    modulo_space = BASE**length
    salt_hash = xxhash.xxh64_intdigest(salt) % modulo_space
    permuted = (counter * mult + salt_hash) % modulo_space
    return encode_base62(permuted, length=length)


class TokenGenerator(ABC):
    """Strategy producing candidate tokens for the minter."""

    @abstractmethod
    def generate(self) -> str:
        pass

    def __call__(self) -> str:
        return self.generate()


class RandomTokenGenerator(TokenGenerator):
    """Base62-encoded random 63-bit integers (at most 11 characters).

    The PRNG is seeded exactly once, at construction. `random.Random` is safe
    to share between threads, so one instance serves the whole process.
    """

    def __init__(self, seed: int | None = None, bits: int = 63):
        if bits <= 0:
            raise ValueError(f'Token entropy must be a positive number of bits (given value: {bits}).')
        self._random = random.Random(seed)  # noqa: S311
        self.bits = bits

    def generate(self) -> str:
        return encode_base62(self._random.getrandbits(self.bits))


class SaltedCounterTokenGenerator(TokenGenerator):
    """Fixed-length shortcodes from an in-process counter (see generate_shortcode).

    The counter is not persisted: after a restart the sequence repeats and the
    minter skips tokens that are still taken.
    """

    def __init__(self, salt: str = 'default_salt', length: int = 7, start: int = 0):
        # Fail on a bad salt or length now rather than on the first mint
        generate_shortcode(start, salt=salt, length=length)
        self.salt = salt
        self.length = length
        self._counter = itertools.count(start)

    def generate(self) -> str:
        return generate_shortcode(next(self._counter), salt=self.salt, length=self.length)
