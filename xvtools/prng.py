"""The Park-Miller minimal standard pseudo-random generator."""

_MODULUS = 0x7FFFFFFF


def do_rand(ctx):
    """Advance the state ``ctx`` and return the new state, in [0, 0x7ffffffd].

    Computes (7^5 * x) mod (2^31 - 1) without overflowing 31 bits.
    """
    x = (ctx % 0x7FFFFFFE) + 1
    hi, lo = divmod(x, 127773)
    x = 16807 * lo - 2836 * hi
    if x < 0:
        x += _MODULUS
    return x - 1


class ParkMiller:
    """A generator holding its state, starting from seed 1 by default."""

    def __init__(self, seed=1):
        self.state = seed

    def next(self):
        """Return the next value and keep it as the new state."""
        self.state = do_rand(self.state)
        return self.state

    def reseed(self, mask):
        """Mix ``mask`` into the state with exclusive or."""
        self.state ^= mask

    def choices(self, n, modulus):
        """The next ``n`` values reduced modulo ``modulus``."""
        if modulus <= 0:
            raise ValueError("modulus must be positive")
        return [self.next() % modulus for _ in range(n)]