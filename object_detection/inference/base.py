from dataclasses import dataclass
from typing import List, Tuple


@dataclass
class Detection:
    """A single surviving detection; box is (x, y, width, height) in pixels."""

    box: Tuple[int, int, int, int]
    score: float
    class_id: int
    class_name: str

    @property
    def top_left(self) -> Tuple[int, int]:
        return self.box[0], self.box[1]

    @property
    def bottom_right(self) -> Tuple[int, int]:
        x, y, w, h = self.box
        return x + w, y + h


class InferenceEngine:
    def load(self) -> None:
        raise NotImplementedError

    def infer(self, frame) -> List[Detection]:
        raise NotImplementedError

    def close(self) -> None:
        pass
