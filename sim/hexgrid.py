# sim/hexgrid.py

import math

# Clockwise, starting from the top-right neighbour.
NEIGHBOR_DIRS = [(1, -1), (1, 0), (0, 1), (-1, 1), (-1, 0), (0, -1)]

SQRT3 = math.sqrt(3.0)


class Hex:
    def __init__(self, q, r):
        self.q = q
        self.r = r

    def __eq__(self, other):
        return isinstance(other, Hex) and self.q == other.q and self.r == other.r

    def __hash__(self):
        return hash((self.q, self.r))

    def __repr__(self):
        return f"({self.q},{self.r})"

    @property
    def s(self) -> int:
        return -self.q - self.r

    def neighbor(self, direction: int) -> "Hex":
        dq, dr = NEIGHBOR_DIRS[direction % 6]
        return Hex(self.q + dq, self.r + dr)

    def neighbors(self):
        return [Hex(self.q + dq, self.r + dr) for dq, dr in NEIGHBOR_DIRS]

    def distance(self, other: "Hex") -> int:
        return hex_distance(self, other)

    def to_world(self, size: float) -> tuple[float, float]:
        """Centre of this hex in world space, pointy-top layout, `size` is the circumradius."""
        x = size * (SQRT3 * self.q + SQRT3 / 2.0 * self.r)
        y = size * (1.5 * self.r)
        return x, y

    @classmethod
    def from_world(cls, x: float, y: float, size: float) -> "Hex":
        fq = (SQRT3 / 3.0 * x - y / 3.0) / size
        fr = (2.0 / 3.0 * y) / size
        return hex_round(fq, fr)


def hex_distance(a: Hex, b: Hex) -> int:
    # axial distance via cube coords
    dq = a.q - b.q
    dr = a.r - b.r
    ds = a.s - b.s
    return (abs(dq) + abs(dr) + abs(ds)) // 2


def hex_round(fq: float, fr: float) -> Hex:
    """
    Round fractional axial coordinates to the nearest hex.
    The component with the largest rounding error is rebuilt from the other two
    so that q + r + s stays 0 in cube space.
    """
    fs = -fq - fr
    q = round(fq)
    r = round(fr)
    s = round(fs)

    q_diff = abs(q - fq)
    r_diff = abs(r - fr)
    s_diff = abs(s - fs)

    if q_diff > r_diff and q_diff > s_diff:
        q = -r - s
    elif r_diff > s_diff:
        r = -q - s

    return Hex(int(q), int(r))
