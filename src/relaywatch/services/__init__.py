"""Services layer: the event feed controller.

Services are the top layer of the diamond DAG, depending on
[relaywatch.core][relaywatch.core], [relaywatch.utils][relaywatch.utils]
and [relaywatch.models][relaywatch.models].

```text
RawFilterInput -> build_filter -> FeedController -> {QueryExecutor | StreamSubscriber}
               -> ResultAggregator -> FeedState
```

Examples:
    ```python
    from relaywatch.models import RawFilterInput
    from relaywatch.services import FeedController

    async with FeedController() as feed:
        await feed.update(RawFilterInput(address="relay.damus.io", kind="1"))
        state = await feed.wait()
    ```
"""

from .feed import FeedConfig, FeedController, FeedState, build_filter


__all__ = [
    "FeedConfig",
    "FeedController",
    "FeedState",
    "build_filter",
]
