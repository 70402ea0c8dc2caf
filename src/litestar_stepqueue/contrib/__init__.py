"""Optional background queue integrations for litestar-stepqueue.

Each integration requires installing the corresponding extra:

- ``saq``: Simple Async Queue for Redis (``pip install litestar-stepqueue[saq]``)
- ``arq``: Async Redis Queue (``pip install litestar-stepqueue[arq]``)

Both provide a work queue that the sequencer schedules step jobs on, plus
worker settings whose job function hands each job back to the sequencer.

Example:
    .. code-block:: python

        # When saq extra is installed
        from litestar_stepqueue.contrib.saq import SAQWorkQueue

        work_queue = SAQWorkQueue(Queue.from_url("redis://localhost:6379/0", name="step-processing"))
        sequencer = StepSequencer(registry, session_maker, work_queue)
"""

from __future__ import annotations

__all__: list[str] = []  # pragma: no cover
