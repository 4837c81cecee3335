"""Row scheduling for the parallel render loop.

Rows are handed out in guided chunks: each chunk takes a share of the rows
still unassigned, so chunks start large and shrink towards ``min_chunk``.
Every chunk goes to the worker that has the fewest rows so far (ties go to
the lowest worker id). The schedule depends only on the image height, the
worker count and ``min_chunk``, so the same arguments always give the same
assignment of rows, and therefore of random streams, to workers.

Chunks never overlap, which is what lets workers write their rows of the
shared pixel buffer without locking.

Example:
    >>> chunks = partition_rows(10, 2)
    >>> [(c.start, c.stop, c.worker) for c in chunks]
    [(0, 3, 0), (3, 5, 1), (5, 7, 1), (7, 8, 0), (8, 9, 0), (9, 10, 1)]
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class RowChunk:
    """A half-open range of image rows assigned to one worker.

    Attributes:
        start: First row of the chunk.
        stop: One past the last row of the chunk.
        worker: Id of the worker that renders the chunk.
    """

    start: int
    stop: int
    worker: int

    @property
    def size(self) -> int:
        """Number of rows in the chunk."""
        return self.stop - self.start


def partition_rows(height: int, num_workers: int, min_chunk: int = 1) -> list[RowChunk]:
    """Split ``height`` rows into guided chunks assigned to workers.

    Args:
        height: Number of image rows.
        num_workers: Number of workers sharing the rows.
        min_chunk: Smallest chunk handed out (the last chunk may be smaller
            if fewer rows remain).

    Returns:
        Chunks in row order. Sizes are non-increasing and the chunks cover
        rows 0..height-1 exactly once.

    Raises:
        ValueError: If any argument is not positive.
    """
    if height < 1:
        raise ValueError(f"height must be positive, got {height}")
    if num_workers < 1:
        raise ValueError(f"num_workers must be positive, got {num_workers}")
    if min_chunk < 1:
        raise ValueError(f"min_chunk must be positive, got {min_chunk}")

    rows_per_worker = [0] * num_workers
    chunks: list[RowChunk] = []
    start = 0
    while start < height:
        remaining = height - start
        size = min(remaining, max(min_chunk, math.ceil(remaining / (2 * num_workers))))
        worker = min(range(num_workers), key=lambda w: (rows_per_worker[w], w))
        chunks.append(RowChunk(start=start, stop=start + size, worker=worker))
        rows_per_worker[worker] += size
        start += size
    return chunks


def rows_for_worker(chunks: list[RowChunk], worker: int) -> list[int]:
    """List every row a worker renders, in the order it renders them."""
    return [row for chunk in chunks if chunk.worker == worker for row in range(chunk.start, chunk.stop)]
