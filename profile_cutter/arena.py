# profile_cutter/arena.py
# Item arena: expands Items (qty) into unit pieces once per run.
# Sequencing algorithms carry integer piece indices, never Item objects.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from .types import Item


@dataclass(frozen=True)
class Piece:
    index: int
    length: float
    profile_type: str
    work_order_id: str
    key: str  # "<work order or profile_length>#<counter>", unique within the arena


class ItemArena:
    """Dense, stable expansion of items (stable order, index == position)."""

    def __init__(self, items: Iterable[Item]):
        pieces: List[Piece] = []
        for it in items:
            base = it.work_order_id.strip() if it.work_order_id and it.work_order_id.strip() else None
            if base is None:
                base = f"{it.profile_type}_{it.length:g}"
            for _ in range(it.quantity):
                idx = len(pieces)
                pieces.append(
                    Piece(
                        index=idx,
                        length=float(it.length),
                        profile_type=it.profile_type,
                        work_order_id=it.work_order_id,
                        key=f"{base}#{idx}",
                    )
                )
        self.pieces: Tuple[Piece, ...] = tuple(pieces)
        self.lengths: Tuple[float, ...] = tuple(p.length for p in pieces)

    def __len__(self) -> int:
        return len(self.pieces)

    def __getitem__(self, index: int) -> Piece:
        return self.pieces[index]

    def indices(self) -> List[int]:
        return list(range(len(self.pieces)))

    def demand(self, sequence: Sequence[int] = None) -> Dict[float, int]:
        """length -> count, longest first."""
        idxs = sequence if sequence is not None else range(len(self.pieces))
        out: Dict[float, int] = {}
        for i in idxs:
            ln = self.lengths[i]
            out[ln] = out.get(ln, 0) + 1
        return dict(sorted(out.items(), key=lambda kv: -kv[0]))

    def distinct_lengths(self) -> int:
        return len(set(self.lengths))
