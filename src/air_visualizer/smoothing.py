from __future__ import annotations

from collections import deque

from .geometry import Marker, QuadMarkers


class MarkerSmoother:
    """Trailing average over the most recent complete quad detections."""

    def __init__(self, history_size: int = 5) -> None:
        if history_size <= 0:
            raise ValueError("history_size must be positive")
        self.history: deque[QuadMarkers] = deque(maxlen=history_size)

    def __len__(self) -> int:
        return len(self.history)

    def is_empty(self) -> bool:
        return not self.history

    def push(self, quad: QuadMarkers) -> None:
        self.history.append(quad)

    def clear(self) -> None:
        self.history.clear()

    def average(self) -> QuadMarkers:
        if not self.history:
            raise ValueError("no quad detections to average")

        size = float(len(self.history))
        top_left = Marker.zero()
        top_right = Marker.zero()
        bottom_right = Marker.zero()
        bottom_left = Marker.zero()
        for quad in self.history:
            top_left = top_left + quad.top_left_marker / size
            top_right = top_right + quad.top_right_marker / size
            bottom_right = bottom_right + quad.bottom_right_marker / size
            bottom_left = bottom_left + quad.bottom_left_marker / size

        return QuadMarkers(
            top_left_marker=top_left,
            top_right_marker=top_right,
            bottom_right_marker=bottom_right,
            bottom_left_marker=bottom_left,
        )
