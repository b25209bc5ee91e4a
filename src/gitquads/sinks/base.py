"""Destination writer protocols and the batching adapter."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from ..exceptions import ErrorCode, SinkError
from ..graph.quad import Quad


@runtime_checkable
class QuadWriter(Protocol):
    def write_quad(self, quad: Quad) -> None: ...


@runtime_checkable
class BatchQuadWriter(Protocol):
    def write_quads(self, quads: Sequence[Quad]) -> int: ...


class BatchedSink:
    """Uniform batch interface over any destination writer.

    The mode is chosen once: writers with ``write_quads`` get one call per
    batch, others get one ``write_quad`` call per quad. Both modes keep the
    order of the batch and stop at the first failure.

    Usage:
        sink = BatchedSink(writer)
        sink.write_batch([q1, q2, q3])
    """

    def __init__(self, writer, batch: bool = True):
        self.writer = writer
        self.batching = batch and isinstance(writer, BatchQuadWriter)
        if not self.batching and not isinstance(writer, QuadWriter):
            raise TypeError(f"{type(writer).__name__} has neither write_quad nor write_quads")
        self.calls = 0
        self.written = 0

    def write_batch(self, quads: Sequence[Quad]) -> int:
        """Write a batch and return how many quads were written.

        Raises:
            SinkError: The destination rejected a write. ``written`` holds
                the number of quads of this batch persisted before it.
        """
        if not quads:
            return 0
        if self.batching:
            return self._write_batched(quads)
        return self._write_sequential(quads)

    def _write_batched(self, quads: Sequence[Quad]) -> int:
        self.calls += 1
        try:
            count = self.writer.write_quads(quads)
        except SinkError:
            raise
        except Exception as e:
            raise SinkError(
                f"Destination rejected a batch of {len(quads)} quads: {e}",
                ErrorCode.GQ300,
                context={"batch_size": len(quads)},
            ) from e
        self.written += count
        return count

    def _write_sequential(self, quads: Sequence[Quad]) -> int:
        for i, quad in enumerate(quads):
            self.calls += 1
            try:
                self.writer.write_quad(quad)
            except Exception as e:
                raise SinkError(
                    f"Destination rejected quad {i + 1} of {len(quads)}: {e}",
                    ErrorCode.GQ300,
                    context={"batch_size": len(quads), "quad": quad.to_nquads()},
                    written=i,
                ) from e
            self.written += 1
        return len(quads)
