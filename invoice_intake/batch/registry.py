from collections import OrderedDict

from invoice_intake.batch.batch import Batch
from invoice_intake.batch.exceptions import BatchNotFoundError


class BatchRegistry:
    """Keeps the most recent batches in memory for progress reads."""

    def __init__(self, max_size: int = 20) -> None:
        self._max_size = max(1, max_size)
        self._batches: OrderedDict[str, Batch] = OrderedDict()

    def add(self, batch: Batch) -> None:
        self._batches[batch.batch_id] = batch
        while len(self._batches) > self._max_size:
            self._batches.popitem(last=False)

    def get(self, batch_id: str) -> Batch:
        batch = self._batches.get(batch_id)
        if batch is None:
            raise BatchNotFoundError(f"Batch {batch_id} not found")
        return batch

    def __len__(self) -> int:
        return len(self._batches)
