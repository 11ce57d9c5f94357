"""Scoped ownership for intermediate tensors."""

from __future__ import annotations

from types import TracebackType

import torch


class TensorScope:
    """Track tensors created inside a ``with`` block and drop them on exit.

    The scope holds the only long-lived references to tracked tensors, so
    clearing it on exit frees their storage (the allocator reclaims it once
    no other reference remains), including when the block raises::

        with TensorScope() as scope:
            parts = [scope.track(make_tensor(x)) for x in xs]
            batch = torch.stack(parts)
            del parts
        # per-sample tensors released here; ``batch`` survives
    """

    def __init__(self) -> None:
        self._tensors: list[torch.Tensor] = []
        self._closed = False

    def track(self, tensor: torch.Tensor) -> torch.Tensor:
        if self._closed:
            raise RuntimeError("TensorScope is already released")
        self._tensors.append(tensor)
        return tensor

    def stack(self) -> torch.Tensor:
        """Stack all tracked tensors along a new leading axis."""
        return torch.stack(self._tensors)

    def release(self) -> None:
        self._tensors.clear()
        self._closed = True

    def __len__(self) -> int:
        return len(self._tensors)

    def __enter__(self) -> TensorScope:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
