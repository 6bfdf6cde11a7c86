"""
Box, label and ice-pack allocation from an order's piece count.

Tier table (small box holds 18 pieces, large box 33):

    pieces     boxes
    0          none
    1-18       1 small
    19-33      1 large
    34-51      1 small + 1 large
    52-66      2 large
    67+        fill large boxes; remainder <= 18 goes in a small box,
               a bigger remainder takes one more large box

The 67+ tier is an assumed continuation of the pattern and still awaits
confirmation from the business. Ice packs are allocated by box count
only, so ambient-only orders also receive ice; that is an open question
upstream as well.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

SMALL_BOX_CAPACITY = 18
LARGE_BOX_CAPACITY = 33

SMALL_DRY_ICE = 3
SMALL_REGULAR_ICE = 3
LARGE_DRY_ICE = 4
LARGE_REGULAR_ICE = 5

PKG_LARGE_BOX = "5OSL"
PKG_LARGE_INSERT_TOP = "5OSLI"
PKG_LARGE_INSERT_SIDES = "5OSLIS"
PKG_SMALL_BOX = "5OSS"
PKG_SMALL_INSERT_TOP = "5OSSI"
PKG_SMALL_INSERT_SIDES = "5OSSIS"
# TODO: swap for the partner's real ice codes once they are issued
PKG_DRY_ICE = "DRYICE1KG"
PKG_REGULAR_ICE = "ICEPACK"

LARGE_BOX_MATERIALS = [
    (PKG_LARGE_BOX, "Online Shop Box Large"),
    (PKG_LARGE_INSERT_TOP, "Online Shop Box Large Insert - Top"),
    (PKG_LARGE_INSERT_SIDES, "Online Shop Box Large Insert - Sides"),
]
SMALL_BOX_MATERIALS = [
    (PKG_SMALL_BOX, "Online Shop Box Small"),
    (PKG_SMALL_INSERT_TOP, "Online Shop Box Small Insert - Top"),
    (PKG_SMALL_INSERT_SIDES, "Online Shop Box Small Insert - Sides"),
]


@dataclass(frozen=True)
class PackagingItem:
    code: str
    description: str
    quantity: int


@dataclass(frozen=True)
class PackagingPlan:
    total_pieces: int = 0
    small_boxes: int = 0
    large_boxes: int = 0
    dry_ice: int = 0
    regular_ice: int = 0
    materials: List[PackagingItem] = field(default_factory=list)

    @property
    def total_boxes(self) -> int:
        return self.small_boxes + self.large_boxes

    @property
    def total_labels(self) -> int:
        # one address label per box
        return self.total_boxes

    @property
    def is_empty(self) -> bool:
        return self.total_boxes == 0


def count_pieces(quantities: Iterable[int]) -> int:
    return sum(q for q in quantities if q > 0)


def determine_boxes(pieces: int) -> Tuple[int, int]:
    """Return (small, large) box counts for `pieces` >= 1."""
    S, L = SMALL_BOX_CAPACITY, LARGE_BOX_CAPACITY
    if pieces <= S:
        return 1, 0
    if pieces <= L:
        return 0, 1
    if pieces <= S + L:
        return 1, 1
    if pieces <= 2 * L:
        return 0, 2
    large, remainder = divmod(pieces, L)
    if remainder == 0:
        return 0, large
    if remainder <= S:
        return 1, large
    return 0, large + 1


class PackagingAllocator:
    def allocate(self, total_pieces: int) -> PackagingPlan:
        if total_pieces < 0:
            raise ValueError("total_pieces must be non-negative")
        if total_pieces == 0:
            return PackagingPlan()

        small, large = determine_boxes(total_pieces)
        dry_ice = small * SMALL_DRY_ICE + large * LARGE_DRY_ICE
        regular_ice = small * SMALL_REGULAR_ICE + large * LARGE_REGULAR_ICE

        materials = []
        if large:
            materials += [PackagingItem(c, d, large) for c, d in LARGE_BOX_MATERIALS]
        if small:
            materials += [PackagingItem(c, d, small) for c, d in SMALL_BOX_MATERIALS]
        if dry_ice:
            materials.append(PackagingItem(PKG_DRY_ICE, "Dry Ice 1kg", dry_ice))
        if regular_ice:
            materials.append(PackagingItem(PKG_REGULAR_ICE, "Ice Pack", regular_ice))

        return PackagingPlan(
            total_pieces=total_pieces,
            small_boxes=small,
            large_boxes=large,
            dry_ice=dry_ice,
            regular_ice=regular_ice,
            materials=materials,
        )
