import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

# Low-cardinality labels only: bucket names and keys never become label values
OPERATIONS = Counter(
    "s3lib_operations_total",
    "Total storage operations",
    ["operation", "outcome"],
)

LATENCY = Histogram(
    "s3lib_operation_duration_seconds",
    "Storage operation latency in seconds",
    ["operation"],
)


@contextmanager
def observe(operation: str) -> Iterator[None]:
    """Count and time one storage operation, labelling failures by error class."""
    start = time.perf_counter()
    try:
        yield
    except Exception as exc:
        OPERATIONS.labels(operation, type(exc).__name__).inc()
        raise
    else:
        OPERATIONS.labels(operation, "ok").inc()
    finally:
        LATENCY.labels(operation).observe(time.perf_counter() - start)
