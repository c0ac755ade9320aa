"""
Parallel processing utilities for location-chunked estimation.

Each chunk of query locations is evaluated as an independent ``dask.delayed``
task. Tasks only read shared inputs and return their own slice of results,
which are reassembled in domain order.
"""
from typing import Any, Callable, List, Optional

import dask
from dask.delayed import delayed


class ParallelProcessor:
    """
    Evaluate contiguous chunks of work in parallel using Dask.

    Parameters
    ----------
    scheduler : str, optional
        Dask scheduler to use ('threads', 'processes', 'synchronous').
        Threads are the default since the per-location work is numpy-bound.
    num_workers : int, optional
        Number of workers. If None, the scheduler default is used.
    """

    def __init__(self, scheduler: str = "threads", num_workers: Optional[int] = None):
        valid_schedulers = ['threads', 'processes', 'synchronous', 'single-threaded', 'sync']
        if scheduler not in valid_schedulers:
            raise ValueError(f"scheduler must be one of {valid_schedulers}, got '{scheduler}'")
        if num_workers is not None and num_workers < 1:
            raise ValueError(f"num_workers must be positive, got {num_workers}")
        self.scheduler = scheduler
        self.num_workers = num_workers

    def chunk_bounds(self, n_items: int, chunk_size: int) -> List[tuple]:
        """Contiguous (start, stop) pairs covering ``range(n_items)``."""
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        return [
            (start, min(start + chunk_size, n_items))
            for start in range(0, n_items, chunk_size)
        ]

    def map_chunks(
        self,
        chunk_function: Callable[[int, int], Any],
        n_items: int,
        chunk_size: int,
    ) -> List[Any]:
        """
        Apply ``chunk_function(start, stop)`` to every chunk in parallel.

        Parameters
        ----------
        chunk_function : callable
            Function of the chunk bounds returning that chunk's results
        n_items : int
            Total number of items
        chunk_size : int
            Number of items per chunk

        Returns
        -------
        list
            Chunk results in chunk order. The first exception raised by any
            chunk propagates to the caller.
        """
        tasks = [
            delayed(chunk_function)(start, stop)
            for start, stop in self.chunk_bounds(n_items, chunk_size)
        ]
        if not tasks:
            return []
        compute_kwargs = {'scheduler': self.scheduler}
        if self.num_workers is not None:
            compute_kwargs['num_workers'] = self.num_workers
        return list(dask.compute(*tasks, **compute_kwargs))

    def __repr__(self) -> str:
        return f"ParallelProcessor(scheduler='{self.scheduler}', num_workers={self.num_workers})"
